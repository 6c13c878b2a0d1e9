"""Unit & price normalizer.

Turns free-text ingredient quantities into cost estimates:

* ``parse_ingredient_line`` splits "<quantity> <unit> <name>" phrases.
* ``UnitTable`` converts a stated unit into the price table's base unit.
* ``PriceTable`` finds the closest price entry for a name (exact, containment,
  category keyword, default) and multiplies it out.
* ``ExchangeRateTable`` applies a static USD -> local currency rate as the final
  step. Rates are approximations, never live quotes.

All tables are immutable after construction so callers can share one instance
or pass test doubles with controlled pricing.
"""
from __future__ import annotations

import logging
import re
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, NamedTuple, Optional, Tuple

from feast.domain.Ingredient import Ingredient, normalize_name
from feast.utilities.constants import DEFAULT_PRICE_PER_UNIT_USD, DEFAULT_UNIT

logger = logging.getLogger(__name__)

__all__ = [
    "PriceEntry", "UnitTable", "PriceTable", "ExchangeRateTable",
    "DEFAULT_UNIT_TABLE", "DEFAULT_PRICE_TABLE", "DEFAULT_EXCHANGE_RATES",
    "parse_ingredient_line", "estimate_ingredient_cost", "match_key",
]


def _stem(word: str) -> str:
    # Simple plural to singular heuristics (not perfect, acceptable for matching)
    if word.endswith('ies') and len(word) > 3:
        return word[:-3] + 'y'
    if word.endswith('oes') and len(word) > 3:
        return word[:-3] + 'o'
    if word.endswith('ses') and len(word) > 3:
        return word[:-2]
    if word.endswith('es') and len(word) > 2 and word[-3] not in 'aeiou':
        return word[:-2]
    if word.endswith('s') and not word.endswith('ss') and len(word) > 1:
        return word[:-1]
    return word


def match_key(name: str) -> str:
    """Normalized name with every word singularized, used to compare ingredient names."""
    return " ".join(_stem(w) for w in normalize_name(name).split())


# --- Units ---------------------------------------------------------------

# canonical unit -> multiplier into the price table's base unit
_UNIT_MULTIPLIERS: Dict[str, float] = {
    "unit": 1,
    "piece": 1,
    "cup": 0.25,           # 1 cup ~ 0.25 lb
    "tablespoon": 0.0625,
    "teaspoon": 0.0208,
    "ounce": 0.0625,
    "pound": 1,
    "gram": 0.00220462,
    "kilogram": 2.20462,
    "milliliter": 0.00220462,
    "liter": 2.20462,
    "clove": 0.1,
    "bunch": 1,
    "head": 1,
    "can": 1,
    "bottle": 1,
    "slice": 0.1,
    "pinch": 0.005,
    "dash": 0.005,
}

_UNIT_ALIASES: Dict[str, str] = {
    "units": "unit",
    "pieces": "piece", "pc": "piece", "pcs": "piece", "serving": "piece", "servings": "piece",
    "cups": "cup", "c": "cup",
    "tablespoons": "tablespoon", "tbsp": "tablespoon", "tbsps": "tablespoon", "tbs": "tablespoon",
    "teaspoons": "teaspoon", "tsp": "teaspoon", "tsps": "teaspoon",
    "ounces": "ounce", "oz": "ounce",
    "pounds": "pound", "lb": "pound", "lbs": "pound",
    "grams": "gram", "g": "gram", "gr": "gram",
    "kilograms": "kilogram", "kg": "kilogram", "kgs": "kilogram",
    "milliliters": "milliliter", "ml": "milliliter",
    "liters": "liter", "l": "liter",
    "cloves": "clove",
    "bunches": "bunch",
    "heads": "head",
    "cans": "can",
    "bottles": "bottle",
    "slices": "slice",
    "pinches": "pinch",
    "dashes": "dash",
}


class UnitTable:
    """Unit aliases and conversion multipliers; unknown units convert at 1."""

    def __init__(self, multipliers: Mapping[str, float], aliases: Optional[Mapping[str, str]] = None):
        self._multipliers = MappingProxyType(dict(multipliers))
        self._aliases = MappingProxyType(dict(aliases or {}))

    def canonical(self, unit: str) -> str:
        u = normalize_name(unit)
        return self._aliases.get(u, u) or DEFAULT_UNIT

    def is_known(self, unit: str) -> bool:
        return self.canonical(unit) in self._multipliers

    def multiplier(self, unit: str) -> float:
        return self._multipliers.get(self.canonical(unit), 1)

    def convert(self, quantity: float, from_unit: str, to_unit: str) -> float:
        """Convert between two units through the base unit; unknown units pass through unchanged."""
        if self.canonical(from_unit) == self.canonical(to_unit):
            return quantity
        if not (self.is_known(from_unit) and self.is_known(to_unit)):
            return quantity
        return quantity * self.multiplier(from_unit) / self.multiplier(to_unit)


DEFAULT_UNIT_TABLE = UnitTable(_UNIT_MULTIPLIERS, _UNIT_ALIASES)


# --- Ingredient phrase parsing ----------------------------------------------

_QUANTITY_RE = re.compile(r"^\s*(\d+\s+\d+/\d+|\d+/\d+|\d+(?:\.\d+)?)\s+(.+)$")


def _parse_quantity(text: str) -> float:
    total = 0.0
    for part in text.split():
        if "/" in part:
            num, den = part.split("/", 1)
            total += float(num) / float(den) if float(den) else 0.0
        else:
            total += float(part)
    return total


def parse_ingredient_line(text: str, units: UnitTable = DEFAULT_UNIT_TABLE) -> Ingredient:
    """Parse "2 cups rice" / "3 eggs" / "salt" into an Ingredient.

    A bare name becomes quantity 1, unit "unit". The word after the quantity is
    only taken as a unit when the unit table knows it.
    """
    match = _QUANTITY_RE.match(text or "")
    if not match:
        return Ingredient(name=text or "", quantity=1, unit=DEFAULT_UNIT)
    quantity = _parse_quantity(match.group(1))
    rest = match.group(2).strip()
    words = rest.split(None, 1)
    if len(words) == 2 and units.is_known(words[0]):
        return Ingredient(name=words[1], quantity=quantity, unit=units.canonical(words[0]))
    return Ingredient(name=rest, quantity=quantity, unit=DEFAULT_UNIT)


# --- Prices ----------------------------------------------------------------

class PriceEntry(NamedTuple):
    name: str
    category: str
    unit: str
    price_per_unit: float


def _entries(rows: Iterable[Tuple[str, str, str, float]]) -> Dict[str, PriceEntry]:
    return {name: PriceEntry(name, category, unit, price) for name, category, unit, price in rows}


_PRICE_ROWS = (
    # Produce
    ("tomato", "Produce", "piece", 0.5),
    ("onion", "Produce", "piece", 0.3),
    ("garlic", "Produce", "clove", 0.1),
    ("bell pepper", "Produce", "piece", 1.0),
    ("carrot", "Produce", "piece", 0.4),
    ("potato", "Produce", "piece", 0.6),
    ("spinach", "Produce", "bunch", 2.0),
    ("lettuce", "Produce", "head", 1.5),
    ("broccoli", "Produce", "head", 0.9),
    # Dairy
    ("milk", "Dairy", "gallon", 3.5),
    ("cheese", "Dairy", "pound", 4.0),
    ("yogurt", "Dairy", "cup", 1.0),
    ("butter", "Dairy", "pound", 3.0),
    ("eggs", "Dairy", "dozen", 2.5),
    # Meat & Seafood
    ("chicken breast", "Meat & Seafood", "pound", 3.5),
    ("ground beef", "Meat & Seafood", "pound", 4.5),
    ("salmon", "Meat & Seafood", "pound", 8.0),
    ("shrimp", "Meat & Seafood", "pound", 6.0),
    # Pantry
    ("rice", "Pantry", "pound", 1.0),
    ("pasta", "Pantry", "pound", 1.5),
    ("olive oil", "Pantry", "bottle", 8.0),
    ("salt", "Pantry", "pound", 0.5),
    ("black pepper", "Pantry", "ounce", 2.0),
    ("flour", "Pantry", "pound", 1.0),
    ("sugar", "Pantry", "pound", 0.8),
    ("lentils", "Pantry", "pound", 1.1),
    ("black beans", "Pantry", "can", 1.4),
    ("bread", "Pantry", "loaf", 2.5),
    # Spices & herbs
    ("cumin", "Pantry", "ounce", 3.0),
    ("turmeric", "Pantry", "ounce", 2.5),
    ("oregano", "Pantry", "ounce", 2.0),
    ("basil", "Pantry", "ounce", 2.5),
    # Canned goods
    ("tomato sauce", "Pantry", "can", 1.0),
    ("beans", "Pantry", "can", 0.8),
    ("tuna", "Pantry", "can", 1.5),
    # Beverages
    ("orange juice", "Pantry", "gallon", 4.0),
    ("coffee", "Pantry", "pound", 8.0),
    ("tea", "Pantry", "box", 3.0),
)

# keyword found in an unmatched name -> price entry it borrows
_CATEGORY_KEYWORDS = (
    ("vegetable", "tomato"),
    ("fruit", "tomato"),
    ("meat", "chicken breast"),
    ("fish", "salmon"),
    ("grain", "rice"),
    ("spice", "salt"),
    ("herb", "basil"),
)


class PriceTable:
    """Static USD price lookup with fuzzy matching and a fixed default price."""

    def __init__(self, entries: Mapping[str, PriceEntry],
                 category_keywords: Iterable[Tuple[str, str]] = (),
                 default_price: float = DEFAULT_PRICE_PER_UNIT_USD,
                 units: UnitTable = DEFAULT_UNIT_TABLE):
        self._entries = MappingProxyType(dict(entries))
        self._by_key = MappingProxyType({match_key(name): entry for name, entry in entries.items()})
        self._keywords = tuple((kw, self._entries[target]) for kw, target in category_keywords if target in self._entries)
        self.default_price = default_price
        self.units = units

    def __len__(self):
        return len(self._entries)

    def find_best_match(self, ingredient_name: str) -> Optional[PriceEntry]:
        """Exact match, then substring containment either way (longest key wins), then category keyword."""
        normalized = normalize_name(ingredient_name)
        key = match_key(normalized)
        if not key:
            return None
        if key in self._by_key:
            return self._by_key[key]

        partial = [
            (entry_key, entry) for entry_key, entry in self._by_key.items()
            if entry_key in key or key in entry_key
        ]
        if partial:
            return max(partial, key=lambda kv: len(kv[0]))[1]

        for keyword, entry in self._keywords:
            if keyword in normalized:
                return entry
        return None

    def category(self, ingredient_name: str) -> str:
        entry = self.find_best_match(ingredient_name)
        return entry.category if entry else "Other"

    def unit_cost(self, name: str, unit: str) -> float:
        """USD cost of one ``unit`` of ``name``.

        Misses cost the default price per item; the unit conversion only applies to matched entries.
        """
        entry = self.find_best_match(name)
        if entry is None:
            logger.debug("No price entry for %r, using default %.2f", name, self.default_price)
            return self.default_price
        return entry.price_per_unit * self.units.multiplier(unit)

    def estimate_ingredient_cost(self, name: str, quantity: float, unit: str) -> float:
        return round(self.unit_cost(name, unit) * quantity, 2)


DEFAULT_PRICE_TABLE = PriceTable(_entries(_PRICE_ROWS), _CATEGORY_KEYWORDS)


def estimate_ingredient_cost(name: str, quantity: float, unit: str,
                             prices: PriceTable = DEFAULT_PRICE_TABLE) -> float:
    return prices.estimate_ingredient_cost(name, quantity, unit)


# --- Currency ----------------------------------------------------------------

class ExchangeRateTable:
    """Read-only ``currency code -> units per USD`` mapping.

    The default rates are fixed approximations; they are not live quotes and
    every converted figure should be presented as an estimate.
    """

    def __init__(self, rates: Mapping[str, float]):
        cleaned = {code.upper(): float(rate) for code, rate in rates.items() if rate and rate > 0}
        cleaned["USD"] = 1.0
        self._rates = MappingProxyType(cleaned)

    def supported_currencies(self):
        return sorted(self._rates)

    def rate(self, currency: Optional[str]) -> float:
        code = (currency or "USD").upper()
        if code not in self._rates:
            logger.warning("Unknown currency %s, falling back to USD rate", code)
        return self._rates.get(code, 1.0)

    def from_usd(self, amount_usd: float, currency: Optional[str]) -> float:
        return round(amount_usd * self.rate(currency), 2)

    def to_usd(self, amount: float, currency: Optional[str]) -> float:
        return round(amount / self.rate(currency), 2)

    def as_dict(self) -> Dict[str, float]:
        return dict(self._rates)


DEFAULT_EXCHANGE_RATES = ExchangeRateTable({
    "USD": 1, "EUR": 0.85, "GBP": 0.73, "INR": 74.5, "CAD": 1.25,
    "AUD": 1.35, "JPY": 110.0, "CNY": 6.45, "BRL": 5.25, "MXN": 20.0,
})
