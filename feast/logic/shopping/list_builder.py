"""Ingredient aggregator and grocery list builder.

Provides aggregate(ingredient_strings, prices) and build_grocery_list(plan, prices, rates, currency).
"""
import logging
from typing import Dict, Iterable, List, Optional

from feast.domain.GroceryList import GroceryItem, GroceryList
from feast.domain.Ingredient import Ingredient
from feast.domain.Plan import WeeklyPlan
from feast.logic.pricing.normalizer import (
    DEFAULT_EXCHANGE_RATES,
    DEFAULT_PRICE_TABLE,
    ExchangeRateTable,
    PriceTable,
    match_key,
    parse_ingredient_line,
)
from feast.utilities.constants import DEFAULT_UNIT

logger = logging.getLogger(__name__)


def aggregate(ingredient_strings: Iterable[str], prices: PriceTable = DEFAULT_PRICE_TABLE) -> Dict[str, Ingredient]:
    """Merge raw ingredient phrases into one bucket per normalized name.

    Args:
        ingredient_strings: plain names ("salt") or "<quantity> <unit> <name>" phrases.
        prices: price table used to fill ``unit_cost_usd``; its unit table drives conversions.

    Returns:
        Dict keyed by the first-seen normalized name. Plural and singular forms share
        a bucket; quantities in a different known unit are converted to the bucket's unit.
    """
    units = prices.units
    buckets: Dict[str, Ingredient] = {}
    by_key: Dict[str, str] = {}

    for raw in ingredient_strings:
        if not isinstance(raw, str) or not raw.strip():
            continue
        parsed = parse_ingredient_line(raw, units)
        if not parsed.name:
            continue
        key = match_key(parsed.name)
        name = by_key.get(key)
        if name is None:
            by_key[key] = parsed.name
            buckets[parsed.name] = Ingredient(parsed.name, parsed.quantity, parsed.unit)
            continue
        bucket = buckets[name]
        if bucket.unit != parsed.unit and units.is_known(parsed.unit) and units.is_known(bucket.unit):
            bucket.add_quantity(units.convert(parsed.quantity, parsed.unit, bucket.unit))
        else:
            if bucket.unit != parsed.unit:
                logger.debug("Summing %s %s into %s bucket of %s", parsed.quantity, parsed.unit, bucket.unit, name)
            bucket.add_quantity(parsed.quantity)

    for ing in buckets.values():
        ing.unit_cost_usd = round(prices.unit_cost(ing.name, ing.unit), 4)
    return buckets


def _to_grocery_items(buckets: Dict[str, Ingredient], prices: PriceTable,
                      rates: ExchangeRateTable, currency: str) -> List[GroceryItem]:
    items = []
    for ing in buckets.values():
        # Cost is recomputed from the accumulated quantity, not summed per phrase
        cost = prices.estimate_ingredient_cost(ing.name, ing.quantity, ing.unit)
        items.append(GroceryItem(
            name=ing.name,
            quantity=round(ing.quantity, 3),
            unit=ing.unit or DEFAULT_UNIT,
            estimated_cost_usd=cost,
            category=prices.category(ing.name),
            estimated_cost_local=rates.from_usd(cost, currency),
            local_currency=currency,
        ))
    items.sort(key=lambda i: i.name)
    return items


def build_grocery_list_from_names(ingredients: Iterable[str], *, prices: PriceTable = DEFAULT_PRICE_TABLE,
                                  rates: ExchangeRateTable = DEFAULT_EXCHANGE_RATES,
                                  currency: str = "USD", plan_id: Optional[str] = None) -> GroceryList:
    """Price a loose list of ingredient phrases (no plan behind it)."""
    currency = (currency or "USD").upper()
    items = _to_grocery_items(aggregate(ingredients, prices), prices, rates, currency)
    return GroceryList(items, plan_id=plan_id, currency=currency)


def build_grocery_list(plan: WeeklyPlan, *, prices: PriceTable = DEFAULT_PRICE_TABLE,
                       rates: ExchangeRateTable = DEFAULT_EXCHANGE_RATES,
                       currency: Optional[str] = None) -> GroceryList:
    """Grocery list for every ingredient of every meal in ``plan``.

    The list references the plan by id only. Local costs use the static
    exchange-rate table and are approximations.
    """
    phrases = [ing.to_phrase() for meal in plan.meals() for ing in meal.ingredients]
    grocery = build_grocery_list_from_names(
        phrases, prices=prices, rates=rates,
        currency=currency or plan.local_currency, plan_id=plan.plan_id,
    )
    logger.info("Built grocery list %s for plan %s: %d items, $%.2f",
                grocery.list_id, plan.plan_id, len(grocery.items), grocery.total_cost_usd)
    return grocery


__all__ = ['aggregate', 'build_grocery_list', 'build_grocery_list_from_names']
