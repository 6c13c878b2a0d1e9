import json
import unittest

from feast.domain.MealCandidate import SourceTier
from feast.logic.recovery.json_recovery import (
    normalize_meal_batch,
    parse_repaired,
    placeholder_meal,
    recover,
    salvage_objects,
)
from feast.utilities.constants import PARTIAL_RESULTS_NOTE
from feast.utilities.errors import UnusableResponseError


def _meal(name, diet="vegetarian", meal_type="lunch"):
    return {
        "name": name,
        "type": meal_type,
        "dietary": diet,
        "ingredients": [{"name": "rice", "quantity": 1, "unit": "cup"}, "2 tomatoes"],
        "instructions": ["Cook", "Serve"],
        "nutrition": {"calories": 400, "protein": 12, "carbs": 60, "fat": 9},
        "estimatedCost": 4.5,
    }


class TestRecover(unittest.TestCase):

    def test_well_formed_round_trip(self):
        meals = [_meal("Risotto"), _meal("Minestrone"), _meal("Caprese Salad")]
        self.assertEqual(recover(json.dumps(meals)), meals)

    def test_partial_salvage_keeps_valid_objects(self):
        text = ('[{"name": "A", "calories": 1}, {"name": "B", "calories": 2}, '
                '{"name": "C", "calories": 3}, {"name": "D", "ingredients": ["ri')
        result = recover(text)
        self.assertEqual([m["name"] for m in result], ["A", "B", "C"])
        self.assertTrue(result[0]["description"].endswith(PARTIAL_RESULTS_NOTE))
        self.assertNotIn("description", result[1])

    def test_malformed_object_in_the_middle_is_dropped(self):
        text = '[{"name": "A"}, {"name": "B", oops}, {"name": "C"}]'
        self.assertEqual([m["name"] for m in recover(text)], ["A", "C"])

    def test_nested_meals_survive_truncation_whole(self):
        body = ", ".join(json.dumps(_meal(n)) for n in ("One", "Two"))
        text = "[" + body + ', {"name": "Three", "nutrition": {"calories": 3'
        result = recover(text)
        self.assertEqual([m["name"] for m in result], ["One", "Two"])
        self.assertEqual(result[1]["nutrition"]["calories"], 400)

    def test_fenced_code_block(self):
        text = "Here you go:\n```json\n" + json.dumps([_meal("Pasta")]) + "\n```\nEnjoy!"
        self.assertEqual(recover(text)[0]["name"], "Pasta")

    def test_leading_prose_before_object(self):
        text = 'Sure! {"recipe": {"name": "Soup", "ingredients": ["water"]}} Hope this helps.'
        self.assertEqual(recover(text)["recipe"]["name"], "Soup")

    def test_missing_separators_are_repaired(self):
        text = '[{"name": "A"} {"name": "B"}\n{"name": "C"}]'
        result = recover(text)
        self.assertEqual([m["name"] for m in result], ["A", "B", "C"])
        self.assertNotIn("description", result[0])

    def test_trailing_commas_and_comments(self):
        text = '[\n// first meal\n{"name": "A", "tags": ["x",],},\n]'
        self.assertEqual(parse_repaired(text), [{"name": "A", "tags": ["x"]}])

    def test_nothing_parses(self):
        self.assertIsNone(recover("I cannot help with that."))
        self.assertIsNone(recover("{ definitely not json"))
        self.assertIsNone(recover(""))
        self.assertIsNone(recover(None))

    def test_scalars_are_not_results(self):
        self.assertIsNone(recover("42"))

    def test_salvage_alone(self):
        self.assertIsNone(salvage_objects("no braces here"))


class TestNormalizeMealBatch(unittest.TestCase):

    def test_dedupes_by_trimmed_lowercase_name(self):
        items = [_meal("Pasta"), _meal(" pasta "), _meal("Salad")]
        meals = normalize_meal_batch(items, count=2, cuisine="Italian", diet="vegetarian")
        self.assertEqual([m.name for m in meals], ["Pasta", "Salad"])
        self.assertTrue(all(m.source_tier is SourceTier.GENERATIVE for m in meals))

    def test_diet_filter(self):
        items = [_meal("Steak", diet="keto"), _meal("Salad")]
        meals = normalize_meal_batch(items, count=1, cuisine="Italian", diet="vegetarian")
        self.assertEqual([m.name for m in meals], ["Salad"])

    def test_backfill_up_to_count(self):
        meals = normalize_meal_batch([_meal("Salad")], count=4, cuisine="Italian", diet="vegetarian", people=2)
        self.assertEqual(len(meals), 4)
        self.assertEqual([m.name for m in meals[1:]], ["Italian breakfast 1", "Italian lunch 2", "Italian dinner 3"])
        placeholder = meals[1]
        self.assertIs(placeholder.source_tier, SourceTier.FALLBACK)
        self.assertEqual(len(placeholder.ingredients), 3)
        self.assertEqual(placeholder.nutrition.calories, 180)
        self.assertEqual(placeholder.estimated_cost_usd, 5.0)
        self.assertEqual(placeholder.diet_tag, "vegetarian")
        self.assertTrue(all(m.servings == 2 for m in meals))

    def test_placeholder_name_keeps_meal_type_as_given(self):
        self.assertEqual(placeholder_meal(2, "Mexican", "vegan", "lunch").name, "Mexican lunch 2")
        self.assertEqual(placeholder_meal(3, "", "", "dinner").name, "Balanced dinner 3")

    def test_never_exceeds_count(self):
        items = [_meal(f"Meal {i}") for i in range(10)]
        self.assertEqual(len(normalize_meal_batch(items, count=3, diet="vegetarian")), 3)

    def test_placeholders_skip_taken_names(self):
        meals = normalize_meal_batch(None, count=1, cuisine="Italian", taken=["italian breakfast 1"])
        self.assertEqual(meals[0].name, "Italian lunch 2")

    def test_allergies_drop_meals(self):
        items = [_meal("Tomato Pasta"), _meal("Plain Rice")]
        items[1]["ingredients"] = ["1 cup rice"]
        meals = normalize_meal_batch(items, count=1, diet="vegetarian", allergies=["tomato"])
        self.assertEqual(meals[0].name, "Plain Rice")

    def test_ingredient_list_is_rejected(self):
        items = [{"name": "Tomato", "quantity": 100, "unit": "g"}, {"name": "Rice", "quantity": 50, "unit": "g"}]
        with self.assertRaises(UnusableResponseError):
            normalize_meal_batch(items, count=2)


if __name__ == '__main__':
    unittest.main()
