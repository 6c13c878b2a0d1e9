import json
import random

import pytest

from feast.domain.MealCandidate import Nutrition, SourceTier
from feast.logic.sourcing.orchestrator import MealSlot, MealSourcingOrchestrator
from feast.tests.doubles import FakeRecipeSource, FakeTextGenerator, offline_generator, offline_source, recipe_record
from feast.utilities.config import LLM_MEAL_MAX_TOKENS, LLM_SUGGESTIONS_MAX_TOKENS


def _generated(name, diet="balanced", cost=3.5, ingredients=None):
    return json.dumps({
        "name": name,
        "type": "lunch",
        "dietary": diet,
        "ingredients": ingredients or [{"name": "rice", "quantity": 1, "unit": "cup"}],
        "instructions": ["Boil", "Serve"],
        "nutrition": {"calories": 450, "protein": 15, "carbs": 70, "fat": 8},
        "estimatedCost": cost,
    })


def _orchestrator(source=None, generator=None, seed=1, timeout=1.0):
    return MealSourcingOrchestrator(source or offline_source(), generator or offline_generator(),
                                    rng=random.Random(seed), timeout=timeout)


DINNER_FOR_TWO = MealSlot("dinner", "italian", "balanced", 5.0, (), 2)


@pytest.mark.asyncio
async def test_structured_tier_wins_when_it_has_results():
    source = FakeRecipeSource([recipe_record("Risotto", price_per_serving=250)])
    generator = FakeTextGenerator(_generated("Unused"))
    meal = await _orchestrator(source, generator).source_meal(DINNER_FOR_TWO)

    assert meal.name == "Risotto"
    assert meal.source_tier is SourceTier.STRUCTURED
    assert meal.type == "dinner"
    assert meal.servings == 2
    # 250 cents per serving, two people
    assert meal.estimated_cost_usd == 5.0
    assert meal.nutrition.calories == 400
    assert generator.prompts == []


@pytest.mark.asyncio
async def test_structured_search_parameters():
    source = FakeRecipeSource([recipe_record("Risotto")])
    await _orchestrator(source).source_meal(DINNER_FOR_TWO)
    search = source.searches[0]
    assert search["query"] == "italian main course dinner balanced"
    assert search["diet"] is None
    assert search["max_calories"] == 500.0

    source = FakeRecipeSource([recipe_record("Frittata")])
    await _orchestrator(source).source_meal(MealSlot("breakfast", "italian", "vegetarian", 4.0))
    assert source.searches[0]["diet"] == "vegetarian"
    assert source.searches[0]["query"] == "italian breakfast vegetarian"


@pytest.mark.asyncio
async def test_allergen_recipe_is_rejected_and_next_tier_used():
    source = FakeRecipeSource([
        recipe_record("Peanut Butter Toast", ingredients=["2 tablespoons peanut butter", "2 slices bread"]),
    ])
    generator = FakeTextGenerator(_generated("Rice Bowl"))
    slot = MealSlot("breakfast", "american", "balanced", 5.0, ("peanut",))
    meal = await _orchestrator(source, generator).source_meal(slot)

    assert meal.name == "Rice Bowl"
    assert meal.source_tier is SourceTier.GENERATIVE
    assert meal.type == "breakfast"
    assert meal.estimated_cost_usd == 3.5
    prompt, max_tokens = generator.prompts[0]
    assert "peanut" in prompt
    assert max_tokens == LLM_MEAL_MAX_TOKENS


@pytest.mark.asyncio
async def test_malformed_generative_text_falls_back_to_catalogue():
    generator = FakeTextGenerator("Sorry, I can't help with that right now.")
    orchestrator = _orchestrator(FakeRecipeSource([]), generator)
    slot = MealSlot("dinner", "italian", "vegetarian", 5.0, (), 2)

    first = await orchestrator.source_meal(slot)
    second = await orchestrator.source_meal(slot)

    assert first.source_tier is SourceTier.FALLBACK
    assert first.name == "Vegetarian Pasta Primavera 1"
    assert second.name == "Vegetarian Pasta Primavera 2"
    assert first.diet_tag == "vegetarian"
    assert first.estimated_cost_usd == pytest.approx(6.7)
    assert first.servings == 2


@pytest.mark.asyncio
async def test_slow_tier_times_out_and_next_tier_is_used():
    source = FakeRecipeSource([recipe_record("Risotto")], delay=1.0)
    generator = FakeTextGenerator(_generated("Minestrone"))
    meal = await _orchestrator(source, generator, timeout=0.05).source_meal(DINNER_FOR_TWO)
    assert meal.name == "Minestrone"
    assert meal.source_tier is SourceTier.GENERATIVE


@pytest.mark.asyncio
async def test_unexpected_tier_error_falls_through():
    source = FakeRecipeSource(error=RuntimeError("boom"))
    generator = FakeTextGenerator(_generated("Minestrone"))
    meal = await _orchestrator(source, generator).source_meal(DINNER_FOR_TWO)
    assert meal.source_tier is SourceTier.GENERATIVE


@pytest.mark.asyncio
async def test_nutrition_lookup_enriches_and_prices_by_calories():
    source = FakeRecipeSource([recipe_record("Soup", price_per_serving=None, calories=300)],
                              nutrition=Nutrition(520, 30, 40, 20))
    meal = await _orchestrator(source).source_meal(DINNER_FOR_TWO)

    assert source.nutrition_calls == [["2 cups rice", "1 onion"]]
    assert meal.nutrition.calories == 520
    assert meal.nutrition.protein == 30
    # No price: calories / 100 per serving
    assert meal.estimated_cost_usd == pytest.approx(10.4)


@pytest.mark.asyncio
async def test_excluded_names_are_skipped():
    source = FakeRecipeSource([recipe_record("Risotto")])
    generator = FakeTextGenerator(_generated("Risotto"))
    meal = await _orchestrator(source, generator).source_meal(DINNER_FOR_TWO, exclude=[" RISOTTO "])
    assert meal.source_tier is SourceTier.FALLBACK


@pytest.mark.asyncio
async def test_generative_diet_mismatch_is_a_tier_failure():
    generator = FakeTextGenerator(_generated("Steak Salad", diet="keto"))
    slot = MealSlot("lunch", "italian", "vegetarian", 5.0)
    meal = await _orchestrator(FakeRecipeSource([]), generator).source_meal(slot)
    assert meal.source_tier is SourceTier.FALLBACK
    assert meal.diet_tag == "vegetarian"


@pytest.mark.asyncio
async def test_generative_cost_defaults_to_meal_budget():
    generator = FakeTextGenerator(_generated("Minestrone", cost=0))
    meal = await _orchestrator(FakeRecipeSource([]), generator).source_meal(DINNER_FOR_TWO)
    assert meal.estimated_cost_usd == 5.0


@pytest.mark.asyncio
async def test_live_false_goes_straight_to_catalogue():
    source = FakeRecipeSource([recipe_record("Risotto")])
    meal = await _orchestrator(source).source_meal(DINNER_FOR_TWO, live=False)
    assert meal.source_tier is SourceTier.FALLBACK
    assert source.searches == []


@pytest.mark.asyncio
async def test_seeded_rng_makes_picks_reproducible():
    records = [recipe_record(f"Recipe {i}") for i in range(8)]

    async def pick(seed):
        orchestrator = _orchestrator(FakeRecipeSource(records), seed=seed)
        structured = await orchestrator.source_meal(DINNER_FOR_TWO)
        fallback = await orchestrator.source_meal(DINNER_FOR_TWO, live=False)
        return structured.name, fallback.name

    assert await pick(42) == await pick(42)


@pytest.mark.asyncio
async def test_suggestions_are_backfilled_to_count():
    batch = json.dumps([json.loads(_generated("Risotto", diet="vegetarian")),
                        json.loads(_generated("Caprese", diet="vegetarian"))])
    generator = FakeTextGenerator(batch)
    meals = await _orchestrator(generator=generator).suggest_meals("Italian", "vegetarian", people=2, count=4)

    assert [m.name for m in meals] == ["Risotto", "Caprese", "Italian breakfast 1", "Italian lunch 2"]
    assert [m.source_tier for m in meals[:2]] == [SourceTier.GENERATIVE] * 2
    assert meals[2].source_tier is SourceTier.FALLBACK
    assert all(m.servings == 2 for m in meals)
    assert generator.prompts[0][1] == LLM_SUGGESTIONS_MAX_TOKENS
    assert "exactly 4 UNIQUE" in generator.prompts[0][0]


@pytest.mark.asyncio
async def test_suggestions_reject_an_ingredient_list():
    ingredients = json.dumps([{"name": "Tomato", "quantity": 100, "unit": "g"},
                              {"name": "Basil", "quantity": 5, "unit": "g"}])
    meals = await _orchestrator(generator=FakeTextGenerator(ingredients)).suggest_meals(
        "Italian", "vegetarian", count=3)

    assert len(meals) == 3
    assert all(m.source_tier is SourceTier.FALLBACK for m in meals)
    assert all(m.diet_tag == "vegetarian" for m in meals)
    assert len({m.key for m in meals}) == 3


@pytest.mark.asyncio
async def test_suggestions_without_generator_use_catalogue():
    meals = await _orchestrator().suggest_meals("Mexican", "balanced", allergies=["chicken"], count=5)
    assert len(meals) == 5
    assert all(m.source_tier is SourceTier.FALLBACK for m in meals)
    assert not any(m.contains_allergen(["chicken"]) for m in meals)
