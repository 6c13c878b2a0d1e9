"""MealCandidate domain entity: one sourced meal, tagged with the tier that produced it."""
from enum import Enum
from typing import List, Optional, Dict, Any, Iterable

from feast.domain.Ingredient import Ingredient
from feast.logic.pricing.normalizer import parse_ingredient_line
from feast.utilities.constants import ALL_MEAL_TYPES, DEFAULT_DIET


class SourceTier(str, Enum):
    STRUCTURED = "structured"
    GENERATIVE = "generative"
    FALLBACK = "fallback"


def meal_key(name: str) -> str:
    """Uniqueness key for meal names (case-insensitive, trimmed)."""
    return (name or "").strip().lower()


def _number(value: Any, default: float = 0) -> float:
    try:
        n = float(value)
    except (TypeError, ValueError):
        return default
    return n if n == n else default  # NaN guard


class Nutrition:
    def __init__(self, calories: float = 0, protein: float = 0, carbs: float = 0, fat: float = 0):
        self.calories = max(0, calories)
        self.protein = protein
        self.carbs = carbs
        self.fat = fat

    @staticmethod
    def from_dict(data):
        '''Accepts the key variants different sources use (fats/fat, carbohydrates/carbs).'''
        m = data if isinstance(data, dict) else {}
        return Nutrition(
            calories=round(_number(m.get("calories"))),
            protein=round(_number(m.get("protein"))),
            carbs=round(_number(m.get("carbs", m.get("carbohydrates")))),
            fat=round(_number(m.get("fat", m.get("fats")))),
        )

    def to_dict(self):
        return {"calories": self.calories, "protein": self.protein, "carbs": self.carbs, "fat": self.fat}


class MealCandidate:
    def __init__(self, name: str, type: str, cuisine: str = "", diet_tag: str = DEFAULT_DIET,
                 ingredients: Optional[List[Ingredient]] = None, instructions: Optional[List[str]] = None,
                 nutrition: Optional[Nutrition] = None, estimated_cost_usd: float = 0.0,
                 source_tier: SourceTier = SourceTier.FALLBACK, servings: int = 1,
                 description: str = "", image: str = ""):
        if not (name or "").strip():
            raise ValueError("Meal name cannot be empty")
        if not ingredients:
            raise ValueError(f"Meal '{name}' has no ingredients")
        if type not in ALL_MEAL_TYPES:
            raise ValueError(f"Unknown meal type: {type}")
        self.name = name.strip()
        self.type = type
        self.cuisine = cuisine
        self.diet_tag = (diet_tag or DEFAULT_DIET).lower()
        self.ingredients = ingredients[:]
        self.instructions = instructions[:] if instructions else []
        self.nutrition = nutrition or Nutrition()
        self.estimated_cost_usd = round(max(0.0, estimated_cost_usd), 2)
        self.source_tier = SourceTier(source_tier)
        self.servings = servings
        self.description = description
        self.image = image

    @property
    def key(self) -> str:
        return meal_key(self.name)

    def has_ingredients_and_instructions(self) -> bool:
        return bool(self.ingredients) and bool(self.instructions)

    def ingredient_names(self) -> List[str]:
        return [ing.name for ing in self.ingredients]

    def contains_allergen(self, allergies: Iterable[str]) -> bool:
        """Case-insensitive substring match of any allergy token against ingredient names."""
        tokens = [a.strip().lower() for a in allergies or () if a and a.strip()]
        return any(t in name for name in self.ingredient_names() for t in tokens)

    def __str__(self) -> str:
        return (f"{self.name} ({self.type}, {self.cuisine}, {self.diet_tag}) - "
                f"${self.estimated_cost_usd:.2f} - {self.nutrition.calories} kcal - {self.source_tier.value}")

    __repr__ = __str__

    @staticmethod
    def from_dict(data: Dict[str, Any], *, source_tier: Optional[SourceTier] = None,
                  default_type: str = "dinner", default_cuisine: str = "", default_diet: str = DEFAULT_DIET):
        '''Builds a candidate from a loosely-shaped dict (generative output, catalogue, persisted plan).

        Raises ValueError when the dict cannot produce a valid candidate.
        '''
        if not isinstance(data, dict):
            raise ValueError("Meal data must be an object")

        raw_ingredients = data.get("ingredients") or []
        if not isinstance(raw_ingredients, list):
            raise ValueError("Meal ingredients must be a list")
        ingredients = []
        for raw in raw_ingredients:
            if isinstance(raw, str):
                ing = parse_ingredient_line(raw)
            else:
                ing = Ingredient.from_dict(raw)
            if ing.name:
                ingredients.append(ing)

        instructions = data.get("instructions") or data.get("steps") or []
        if isinstance(instructions, str):
            instructions = [s.strip() for s in instructions.split("\n") if s.strip()]
        instructions = [str(s) for s in instructions if s]

        meal_type = str(data.get("type") or default_type).lower()
        if meal_type not in ALL_MEAL_TYPES:
            meal_type = default_type

        cost = data.get("estimatedCostUSD", data.get("estimatedCost", data.get("estimated_cost", data.get("cost"))))
        servings = data.get("servings")
        return MealCandidate(
            name=str(data.get("name") or data.get("title") or ""),
            type=meal_type,
            cuisine=str(data.get("cuisine") or default_cuisine),
            diet_tag=str(data.get("dietTag") or data.get("dietary") or data.get("dietType") or default_diet),
            ingredients=ingredients,
            instructions=instructions,
            nutrition=Nutrition.from_dict(data.get("nutrition")),
            estimated_cost_usd=_number(cost),
            source_tier=source_tier or SourceTier(data.get("sourceTier", SourceTier.FALLBACK)),
            servings=int(servings) if isinstance(servings, (int, float)) and servings > 0 else 1,
            description=str(data.get("description") or ""),
            image=str(data.get("image") or ""),
        )

    def to_dict(self):
        return {
            "name": self.name,
            "type": self.type,
            "cuisine": self.cuisine,
            "dietTag": self.diet_tag,
            "ingredients": [ing.to_dict() for ing in self.ingredients],
            "instructions": self.instructions,
            "nutrition": self.nutrition.to_dict(),
            "estimatedCostUSD": self.estimated_cost_usd,
            "sourceTier": self.source_tier.value,
            "servings": self.servings,
            "description": self.description,
            "image": self.image,
        }
