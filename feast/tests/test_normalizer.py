import math
import unittest

from feast.logic.pricing.normalizer import (
    DEFAULT_EXCHANGE_RATES,
    DEFAULT_PRICE_TABLE,
    DEFAULT_UNIT_TABLE,
    ExchangeRateTable,
    PriceEntry,
    PriceTable,
    estimate_ingredient_cost,
    match_key,
    parse_ingredient_line,
)


class TestParseIngredientLine(unittest.TestCase):

    def test_quantity_unit_name(self):
        ing = parse_ingredient_line("2 cups rice")
        self.assertEqual((ing.quantity, ing.unit, ing.name), (2, "cup", "rice"))

    def test_quantity_without_unit(self):
        ing = parse_ingredient_line("3 eggs")
        self.assertEqual((ing.quantity, ing.unit, ing.name), (3, "unit", "eggs"))

    def test_fractions(self):
        self.assertAlmostEqual(parse_ingredient_line("1 1/2 cups flour").quantity, 1.5)
        self.assertAlmostEqual(parse_ingredient_line("1/4 teaspoon salt").quantity, 0.25)
        self.assertAlmostEqual(parse_ingredient_line("0.5 kg chicken breast").quantity, 0.5)

    def test_bare_name(self):
        ing = parse_ingredient_line("Salt")
        self.assertEqual((ing.quantity, ing.unit, ing.name), (1, "unit", "salt"))

    def test_unknown_word_stays_in_name(self):
        ing = parse_ingredient_line("2 large onions")
        self.assertEqual((ing.unit, ing.name), ("unit", "large onions"))


class TestUnitTable(unittest.TestCase):

    def test_aliases(self):
        self.assertEqual(DEFAULT_UNIT_TABLE.canonical("Tbsp"), "tablespoon")
        self.assertEqual(DEFAULT_UNIT_TABLE.canonical("lbs"), "pound")

    def test_unknown_unit_multiplier_is_one(self):
        self.assertEqual(DEFAULT_UNIT_TABLE.multiplier("handful"), 1)

    def test_convert(self):
        self.assertAlmostEqual(DEFAULT_UNIT_TABLE.convert(8, "tablespoons", "cup"), 2.0)
        self.assertEqual(DEFAULT_UNIT_TABLE.convert(3, "handful", "cup"), 3)


class TestPriceTable(unittest.TestCase):

    def test_exact_match_ignores_plural(self):
        self.assertEqual(DEFAULT_PRICE_TABLE.find_best_match("Tomatoes").name, "tomato")

    def test_containment_prefers_longest_key(self):
        self.assertEqual(DEFAULT_PRICE_TABLE.find_best_match("boneless chicken breast").name, "chicken breast")
        self.assertEqual(DEFAULT_PRICE_TABLE.find_best_match("tomato sauce").name, "tomato sauce")
        self.assertEqual(DEFAULT_PRICE_TABLE.find_best_match("brown rice").name, "rice")

    def test_containment_is_substring_either_way(self):
        self.assertEqual(DEFAULT_PRICE_TABLE.find_best_match("breadcrumbs").name, "bread")
        self.assertEqual(DEFAULT_PRICE_TABLE.find_best_match("saltines").name, "salt")
        self.assertEqual(DEFAULT_PRICE_TABLE.find_best_match("sauce").name, "tomato sauce")
        self.assertEqual(DEFAULT_PRICE_TABLE.category("Panko Breadcrumbs"), "Pantry")

    def test_category_keyword(self):
        self.assertEqual(DEFAULT_PRICE_TABLE.find_best_match("mixed vegetables").name, "tomato")
        self.assertEqual(estimate_ingredient_cost("mixed vegetables", 2, "unit"), 1.0)

    def test_default_price_when_nothing_matches(self):
        cost = estimate_ingredient_cost("unobtainium", 2, "unit")
        self.assertEqual(cost, 4.0)
        self.assertFalse(math.isnan(cost))
        self.assertEqual(DEFAULT_PRICE_TABLE.category("unobtainium"), "Other")

    def test_default_price_ignores_unit(self):
        self.assertEqual(estimate_ingredient_cost("unobtainium", 2, "cups"), 4.0)
        self.assertEqual(estimate_ingredient_cost("unobtainium", 500, "grams"), 1000.0)
        self.assertEqual(DEFAULT_PRICE_TABLE.unit_cost("unobtainium", "cup"), 2.0)

    def test_unit_multiplier_applied(self):
        # rice is priced per pound, a cup counts as a quarter pound
        self.assertEqual(estimate_ingredient_cost("rice", 2, "cups"), 0.5)

    def test_controlled_pricing(self):
        prices = PriceTable({"saffron": PriceEntry("saffron", "Pantry", "unit", 10.0)}, default_price=1.0)
        self.assertEqual(prices.estimate_ingredient_cost("saffron", 3, "unit"), 30.0)
        self.assertEqual(prices.estimate_ingredient_cost("rice", 3, "unit"), 3.0)
        self.assertEqual(len(prices), 1)

    def test_match_key(self):
        self.assertEqual(match_key("Black Beans"), "black bean")


class TestExchangeRateTable(unittest.TestCase):

    def test_conversion(self):
        self.assertEqual(DEFAULT_EXCHANGE_RATES.from_usd(10, "eur"), 8.5)
        self.assertEqual(DEFAULT_EXCHANGE_RATES.to_usd(85, "EUR"), 100.0)

    def test_unknown_currency_uses_usd_rate(self):
        self.assertEqual(DEFAULT_EXCHANGE_RATES.rate("XYZ"), 1.0)

    def test_usd_is_always_one(self):
        table = ExchangeRateTable({"USD": 3, "EUR": 0.9, "BAD": 0})
        self.assertEqual(table.rate("USD"), 1.0)
        self.assertEqual(table.supported_currencies(), ["EUR", "USD"])


if __name__ == '__main__':
    unittest.main()
