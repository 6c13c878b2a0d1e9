"""Meal sourcing orchestrator.

Fills one meal slot by trying, in order, the structured recipe source, the
generative text collaborator (through the recovery parser) and the fallback
catalogue. Live tiers are bounded by a per-call timeout; any failure falls
through to the next tier, so ``source_meal`` always returns a meal.
"""
import asyncio
import itertools
import logging
import random
from typing import Iterable, List, NamedTuple, Optional, Tuple

from feast.domain.MealCandidate import MealCandidate, Nutrition, SourceTier, meal_key
from feast.infra.Recipe_Source import SpoonacularRecipeSource
from feast.infra.Text_Generator import TextGenerator
from feast.logic.pricing.normalizer import parse_ingredient_line
from feast.logic.recovery.json_recovery import normalize_meal_batch, recover
from feast.logic.sourcing.catalogue import FallbackCatalogue
from feast.utilities.config import (
    LLM_MEAL_MAX_TOKENS,
    LLM_SUGGESTIONS_MAX_TOKENS,
    SEARCH_RESULT_LIMIT,
    TIER_TIMEOUT_SECONDS,
)
from feast.utilities.constants import (
    DEFAULT_DIET,
    MEAL_JSON_FORMAT,
    MEAL_PROMPT_TEMPLATE,
    MEAL_TYPE_LABELS,
    MEAL_TYPES,
    SUGGESTIONS_PROMPT_TEMPLATE,
)
from feast.utilities.errors import SourceTierError

logger = logging.getLogger(__name__)


class MealSlot(NamedTuple):
    type: str
    cuisine: str
    diet_type: str
    budget_usd: float
    allergies: Tuple[str, ...] = ()
    people: int = 1
    day_index: int = 0


def _live_diet(diet_type: str) -> Optional[str]:
    # "balanced" means no diet restriction for the live sources
    diet = (diet_type or "").lower()
    return None if diet in ("", DEFAULT_DIET) else diet


class MealSourcingOrchestrator:
    def __init__(self, recipe_source=None, text_generator=None, catalogue: Optional[FallbackCatalogue] = None,
                 *, rng: Optional[random.Random] = None, timeout: float = TIER_TIMEOUT_SECONDS):
        self.rng = rng or random.Random()
        self.recipe_source = recipe_source if recipe_source is not None else SpoonacularRecipeSource()
        self.text_generator = text_generator if text_generator is not None else TextGenerator()
        self.catalogue = catalogue or FallbackCatalogue(rng=self.rng)
        self.timeout = timeout
        self._fallback_seq = itertools.count(1)

    async def source_meal(self, slot: MealSlot, *, exclude: Iterable[str] = (), live: bool = True) -> MealCandidate:
        """First meal produced by the structured, generative and fallback tiers, in that order.

        Args:
            slot: what to fill.
            exclude: meal names already used; a live tier offering only these fails.
            live: False skips straight to the fallback catalogue.
        """
        excluded = {meal_key(n) for n in exclude}
        if live:
            for tier, fetch in ((SourceTier.STRUCTURED, self._from_structured),
                                (SourceTier.GENERATIVE, self._from_generative)):
                try:
                    meal = await asyncio.wait_for(fetch(slot, excluded), timeout=self.timeout)
                except asyncio.TimeoutError:
                    logger.warning("%s tier timed out after %.1fs for %s (%s, %s)",
                                   tier.value, self.timeout, slot.type, slot.cuisine, slot.diet_type)
                except SourceTierError as e:
                    logger.warning("%s for %s (%s, %s)", e, slot.type, slot.cuisine, slot.diet_type)
                except Exception:
                    logger.exception("Unexpected %s tier error for %s (%s, %s)",
                                     tier.value, slot.type, slot.cuisine, slot.diet_type)
                else:
                    logger.debug("%s tier produced %s", tier.value, meal.name)
                    return meal
        return self._from_catalogue(slot)

    async def _from_structured(self, slot: MealSlot, excluded) -> MealCandidate:
        query = " ".join(p for p in (slot.cuisine, MEAL_TYPE_LABELS.get(slot.type, slot.type), slot.diet_type) if p)
        # Budget in USD times 100 is passed as the calorie ceiling. This mixes currency and
        # energy units but changing it changes which recipes come back, so it is kept as is.
        max_calories = slot.budget_usd * 100
        results = await self.recipe_source.search_recipes(
            query, diet=_live_diet(slot.diet_type), max_calories=max_calories, limit=SEARCH_RESULT_LIMIT)
        if not results:
            raise SourceTierError("structured", f"no recipes for '{query}'")

        usable = []
        for record in results:
            try:
                meal = self._structured_candidate(record, slot)
            except ValueError as e:
                logger.debug("Skipping recipe record: %s", e)
                continue
            if meal.key in excluded:
                continue
            if meal.contains_allergen(slot.allergies):
                logger.info("Rejected %s: ingredients match allergies %s", meal.name, ", ".join(slot.allergies))
                continue
            usable.append((record, meal))
        if not usable:
            raise SourceTierError("structured", f"all {len(results)} recipes for '{query}' were rejected")

        record, meal = self.rng.choice(usable)
        try:
            nutrition = await self.recipe_source.get_nutrition(record["ingredients"])
        except SourceTierError as e:
            logger.debug("Nutrition lookup failed for %s: %s", meal.name, e)
            nutrition = None
        if nutrition is not None and nutrition.calories > 0:
            meal.nutrition = nutrition
        meal.estimated_cost_usd = self._structured_cost(record.get("pricePerServing"), meal.nutrition, slot.people)
        return meal

    @staticmethod
    def _structured_cost(price_per_serving, nutrition: Nutrition, people: int) -> float:
        """pricePerServing is in cents; without it, calories / 100 stands in for dollars per serving."""
        if isinstance(price_per_serving, (int, float)) and price_per_serving > 0:
            per_serving = price_per_serving / 100
        else:
            per_serving = nutrition.calories / 100
        return round(per_serving * max(1, people), 2)

    def _structured_candidate(self, record, slot: MealSlot) -> MealCandidate:
        ingredients = [parse_ingredient_line(line) for line in record.get("ingredients", [])]
        return MealCandidate(
            name=record["name"],
            type=slot.type,
            cuisine=slot.cuisine,
            diet_tag=slot.diet_type,
            ingredients=[i for i in ingredients if i.name],
            instructions=record.get("instructions", []),
            nutrition=Nutrition.from_dict(record.get("nutrition")),
            estimated_cost_usd=0.0,
            source_tier=SourceTier.STRUCTURED,
            servings=slot.people,
            description=record.get("description", ""),
            image=record.get("image", ""),
        )

    async def _from_generative(self, slot: MealSlot, excluded) -> MealCandidate:
        prompt = MEAL_PROMPT_TEMPLATE.format(
            diet=slot.diet_type, cuisine=slot.cuisine, meal_type=slot.type, day=slot.day_index + 1,
            budget=slot.budget_usd, people=slot.people, allergies=", ".join(slot.allergies) or "none",
        ) + MEAL_JSON_FORMAT
        raw = await self.text_generator.generate(prompt, LLM_MEAL_MAX_TOKENS)

        value = recover(raw)
        if isinstance(value, dict) and isinstance(value.get("recipe"), dict):
            value = value["recipe"]
        if isinstance(value, list):
            value = next((v for v in value if isinstance(v, dict)), None)
        if not isinstance(value, dict):
            raise SourceTierError("generative", "no usable meal object in response")

        try:
            meal = MealCandidate.from_dict(value, source_tier=SourceTier.GENERATIVE, default_type=slot.type,
                                           default_cuisine=slot.cuisine, default_diet=slot.diet_type)
        except ValueError as e:
            raise SourceTierError("generative", str(e)) from e

        wanted_diet = _live_diet(slot.diet_type)
        if wanted_diet and meal.diet_tag != wanted_diet:
            raise SourceTierError("generative", f"{meal.name} is {meal.diet_tag}, wanted {wanted_diet}")
        if meal.contains_allergen(slot.allergies):
            raise SourceTierError("generative", f"{meal.name} contains an allergen")
        if meal.key in excluded:
            raise SourceTierError("generative", f"{meal.name} is already in the plan")

        meal.type = slot.type
        meal.servings = slot.people
        if meal.estimated_cost_usd <= 0:
            meal.estimated_cost_usd = round(slot.budget_usd, 2)
        return meal

    def _from_catalogue(self, slot: MealSlot) -> MealCandidate:
        entry = self.catalogue.pick(slot.type, slot.diet_type, slot.allergies)
        people = max(1, slot.people)
        entry.update(
            name=f"{entry['name']} {next(self._fallback_seq)}",
            type=slot.type,
            estimatedCostUSD=entry.get("costPerServing", 0) * people,
            servings=people,
        )
        meal = MealCandidate.from_dict(entry, source_tier=SourceTier.FALLBACK, default_type=slot.type,
                                       default_cuisine=slot.cuisine)
        logger.info("Using fallback meal %s for %s (%s, %s)", meal.name, slot.type, slot.cuisine, slot.diet_type)
        return meal

    async def suggest_meals(self, cuisine: str, diet: str = DEFAULT_DIET, allergies: Iterable[str] = (),
                            people: int = 1, count: int = 7) -> List[MealCandidate]:
        """``count`` unique meal ideas from one generative request.

        Falls back to catalogue meals when the request fails or the response is
        unusable; short generative batches are backfilled with placeholders.
        """
        allergies = tuple(a for a in allergies if a)
        prompt = SUGGESTIONS_PROMPT_TEMPLATE.format(
            count=count, diet=diet, cuisine=cuisine, people=people, allergies=", ".join(allergies) or "none",
        ) + MEAL_JSON_FORMAT
        try:
            raw = await asyncio.wait_for(self.text_generator.generate(prompt, LLM_SUGGESTIONS_MAX_TOKENS),
                                         timeout=self.timeout)
            recovered = recover(raw)
            if recovered is None:
                raise SourceTierError("generative", "unusable suggestions text")
            return normalize_meal_batch(recovered, count=count, cuisine=cuisine, diet=_live_diet(diet),
                                        people=people, allergies=allergies)
        except asyncio.TimeoutError:
            logger.warning("Suggestions request timed out after %.1fs", self.timeout)
        except SourceTierError as e:
            logger.warning("Suggestions unavailable: %s", e)

        return [
            self._from_catalogue(MealSlot(MEAL_TYPES[i % len(MEAL_TYPES)], cuisine, diet, 0.0, allergies, people))
            for i in range(count)
        ]
