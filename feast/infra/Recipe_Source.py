"""Structured recipe source: Spoonacular complexSearch and parseIngredients over httpx."""
import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from feast.domain.MealCandidate import Nutrition
from feast.utilities.config import SEARCH_RESULT_LIMIT, SPOONACULAR_API_KEY, SPOONACULAR_BASE_URL, TIER_TIMEOUT_SECONDS
from feast.utilities.errors import RecipeSourceError

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")


_MACRO_NUTRIENTS = {"calories": "calories", "protein": "protein", "carbohydrates": "carbs", "fat": "fat"}


def _macro_amounts(nutrients: List[Dict[str, Any]]) -> Dict[str, float]:
    amounts = {macro: 0.0 for macro in _MACRO_NUTRIENTS.values()}
    for n in nutrients or []:
        if not isinstance(n, dict):
            continue
        macro = _MACRO_NUTRIENTS.get(str(n.get("name") or "").lower())
        amount = n.get("amount")
        if macro and isinstance(amount, (int, float)):
            amounts[macro] = amount
    return amounts


def extract_nutrition(nutrients: List[Dict[str, Any]]) -> Nutrition:
    """Nutrition from Spoonacular's ``nutrients`` list (names matched case-insensitively)."""
    return Nutrition.from_dict(_macro_amounts(nutrients))


def validate_recipe_data(recipe: Dict[str, Any]) -> bool:
    """A search result is usable only with a title, servings, ready time, ingredients and instruction steps."""
    instructions = recipe.get("analyzedInstructions")
    return (
        bool(recipe.get("title"))
        and bool(recipe.get("servings"))
        and bool(recipe.get("readyInMinutes"))
        and isinstance(recipe.get("extendedIngredients"), list)
        and len(recipe["extendedIngredients"]) > 0
        and isinstance(instructions, list)
        and len(instructions) > 0
        and isinstance(instructions[0], dict)
        and isinstance(instructions[0].get("steps"), list)
    )


def _ingredient_phrase(ing: Dict[str, Any]) -> str:
    amount = ing.get("amount")
    unit = (ing.get("unit") or "").strip()
    name = (ing.get("name") or "").strip()
    if isinstance(amount, (int, float)) and amount > 0:
        qty = int(amount) if float(amount).is_integer() else round(amount, 2)
        return " ".join(p for p in (str(qty), unit, name) if p)
    return name


def map_recipe(recipe: Dict[str, Any]) -> Dict[str, Any]:
    """Canonical recipe record from one Spoonacular search result.

    ``pricePerServing`` stays in cents as Spoonacular reports it; None when absent.
    """
    steps = recipe["analyzedInstructions"][0]["steps"]
    return {
        "id": recipe.get("id"),
        "name": recipe["title"].strip(),
        "ingredients": [p for p in (_ingredient_phrase(i) for i in recipe["extendedIngredients"]) if p],
        "instructions": [s["step"] for s in steps if isinstance(s, dict) and s.get("step")],
        "nutrition": extract_nutrition((recipe.get("nutrition") or {}).get("nutrients", [])).to_dict(),
        "servings": recipe.get("servings"),
        "readyInMinutes": recipe.get("readyInMinutes") or 0,
        "pricePerServing": recipe.get("pricePerServing"),
        "diets": [str(d).lower() for d in recipe.get("diets") or []],
        "cuisines": recipe.get("cuisines") or [],
        "description": _TAG_RE.sub("", recipe.get("summary") or ""),
        "image": recipe.get("image") or "",
    }


class SpoonacularRecipeSource:
    """Recipe search and nutrition lookup.

    ``transport`` lets tests plug in an ``httpx.MockTransport``.
    """

    def __init__(self, api_key: str = SPOONACULAR_API_KEY, base_url: str = SPOONACULAR_BASE_URL,
                 timeout: float = TIER_TIMEOUT_SECONDS, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        if not self.enabled:
            raise RecipeSourceError("SPOONACULAR_API_KEY is not set")
        params = dict(kwargs.pop("params", {}) or {})
        params["apiKey"] = self.api_key
        try:
            async with self._client() as client:
                response = await client.request(method, path, params=params, **kwargs)
        except httpx.HTTPError as e:
            raise RecipeSourceError(f"request to {path} failed: {e}") from e
        if response.status_code != 200:
            raise RecipeSourceError(f"unexpected status {response.status_code}", status=response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise RecipeSourceError(f"invalid JSON from {path}") from e

    async def search_recipes(self, query: str, diet: Optional[str] = None, max_calories: Optional[float] = None,
                             limit: int = SEARCH_RESULT_LIMIT) -> List[Dict[str, Any]]:
        """Mapped, validated search results; an empty list when nothing usable matched."""
        params = {
            "query": query.strip(),
            "number": limit,
            "addRecipeNutrition": "true",
            "addRecipeInformation": "true",
            "fillIngredients": "true",
        }
        if diet:
            params["diet"] = diet
        if max_calories:
            params["maxCalories"] = int(max_calories)

        logger.debug("Searching recipes: %s (diet=%s, maxCalories=%s)", query, diet, max_calories)
        data = await self._request("GET", "/recipes/complexSearch", params=params)
        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise RecipeSourceError("invalid search response format")

        valid = [r for r in results if isinstance(r, dict) and validate_recipe_data(r)]
        if len(valid) < len(results):
            logger.debug("Dropped %d incomplete recipes for %s", len(results) - len(valid), query)
        return [map_recipe(r) for r in valid]

    async def get_nutrition(self, ingredients: List[str]) -> Optional[Nutrition]:
        """Macros summed over every parsed ingredient, or None when the lookup returns nothing."""
        if not ingredients:
            return None
        data = await self._request(
            "POST", "/recipes/parseIngredients",
            data={"ingredientList": "\n".join(ingredients), "servings": "1"},
        )
        entries = [e for e in data if isinstance(e, dict)] if isinstance(data, list) else []
        if not entries:
            return None
        totals = {"calories": 0.0, "protein": 0.0, "carbs": 0.0, "fat": 0.0}
        for entry in entries:
            for macro, amount in _macro_amounts((entry.get("nutrition") or {}).get("nutrients", [])).items():
                totals[macro] += amount
        return Nutrition.from_dict(totals)
