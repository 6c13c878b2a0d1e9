import random
import unittest

from feast.domain.MealCandidate import SourceTier
from feast.domain.Plan import DaySlot, WeeklyPlan
from feast.logic.reporting.nutrition import compute_week_nutrition
from feast.logic.sourcing.catalogue import FALLBACK_MEALS, FallbackCatalogue
from feast.tests.doubles import make_meal, make_plan


class TestFallbackCatalogue(unittest.TestCase):

    def setUp(self):
        self.catalogue = FallbackCatalogue(rng=random.Random(11))

    def test_type_and_diet_match_first(self):
        pool = self.catalogue.candidates("breakfast", "vegetarian")
        self.assertTrue(pool)
        self.assertTrue(all(m["type"] == "breakfast" and m["dietTag"] == "vegetarian" for m in pool))

    def test_meal_type_is_relaxed_before_diet(self):
        # No vegan breakfast in the catalogue
        pool = self.catalogue.candidates("breakfast", "vegan")
        self.assertTrue(pool)
        self.assertTrue(all(m["dietTag"] == "vegan" for m in pool))

    def test_unknown_diet_keeps_meal_type(self):
        pool = self.catalogue.candidates("lunch", "carnivore")
        self.assertTrue(all(m["type"] == "lunch" for m in pool))

    def test_allergies_exclude_entries(self):
        pool = self.catalogue.candidates("lunch", None, ["chicken"])
        self.assertFalse(any("chicken" in i.lower() for m in pool for i in m["ingredients"]))

    def test_pick_returns_a_copy(self):
        picked = self.catalogue.pick("dinner", "vegetarian")
        picked["name"] = "Changed"
        self.assertNotIn("Changed", [m["name"] for m in FALLBACK_MEALS])

    def test_empty_catalogue_is_rejected(self):
        with self.assertRaises(ValueError):
            FallbackCatalogue(meals=[])

    def test_vegetarian_entries_are_affordable(self):
        for meal in FALLBACK_MEALS:
            if meal["dietTag"] in ("vegetarian", "vegan"):
                self.assertLessEqual(meal["costPerServing"], 3.5, meal["name"])


class TestPlanTotals(unittest.TestCase):

    def test_day_totals_are_derived(self):
        plan = make_plan(cost=2.5, calories=300)
        day = plan.days[0]
        day.meals["lunch"].estimated_cost_usd = 10.0
        self.assertEqual(day.total_cost_usd, 15.0)
        self.assertEqual(plan.total_cost_usd, 6 * 7.5 + 15.0)
        self.assertEqual(plan.total_calories, 21 * 300)

    def test_budget_remaining_can_go_negative(self):
        plan = make_plan(cost=10.0, budget=150.0)
        self.assertEqual(plan.budget_remaining_usd, -60.0)

    def test_used_fallback_and_tier_counts(self):
        self.assertFalse(make_plan().used_fallback)
        plan = make_plan(tier=SourceTier.FALLBACK)
        self.assertTrue(plan.used_fallback)
        self.assertEqual(plan.tier_counts(), {"structured": 0, "generative": 0, "fallback": 21})

    def test_week_must_have_seven_days(self):
        with self.assertRaises(ValueError):
            WeeklyPlan(make_plan().days[:6], total_budget_usd=100, cuisine="thai", diet_type="vegan")

    def test_day_needs_every_meal_type(self):
        with self.assertRaises(ValueError):
            DaySlot(0, {"breakfast": make_meal("Oats", "breakfast")})


class TestWeekNutrition(unittest.TestCase):

    def test_totals_and_average(self):
        report = compute_week_nutrition(make_plan(calories=500))
        self.assertEqual(list(report["days"]), ["Monday", "Tuesday", "Wednesday", "Thursday",
                                                "Friday", "Saturday", "Sunday"])
        monday = report["days"]["Monday"]
        self.assertEqual(monday["calories"], 1500)
        self.assertEqual(monday["protein"], 60)
        self.assertEqual(monday["meals"]["dinner"]["name"], "dinner 0")
        self.assertEqual(report["week_totals"]["calories"], 10500)
        self.assertEqual(report["averageDailyCalories"], 1500)


if __name__ == '__main__':
    unittest.main()
