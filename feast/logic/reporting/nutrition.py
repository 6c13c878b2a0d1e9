"""Nutrition aggregation for an assembled weekly plan."""
from collections import defaultdict
from typing import Any, Dict

from feast.domain.Plan import WeeklyPlan
from feast.utilities.constants import DAYS_PER_PLAN

_MACROS = ('calories', 'protein', 'carbs', 'fat')


def compute_week_nutrition(plan: WeeklyPlan) -> Dict[str, Any]:
    """Aggregate nutrition stats for the given plan.

    Returns structure:
    {
      'days': {
         'Monday': {'calories': int, 'protein': g, 'carbs': g, 'fat': g,
                    'meals': { 'breakfast': { 'name': str, 'calories': int, 'protein': g, 'carbs': g, 'fat': g }, ... }},
         ...
      },
      'week_totals': { 'calories': int, 'protein': g, 'carbs': g, 'fat': g },
      'averageDailyCalories': int
    }
    """
    days_result = {}
    totals = defaultdict(int)

    for day in plan.days:
        day_totals = defaultdict(int)
        meal_details = {}
        for slot, meal in day.meals.items():
            values = meal.nutrition.to_dict()
            meal_details[slot] = {'name': meal.name, **values}
            for key in _MACROS:
                day_totals[key] += values[key]
        days_result[day.day_name] = {**{k: day_totals[k] for k in _MACROS}, 'meals': meal_details}
        for key in _MACROS:
            totals[key] += day_totals[key]

    return {
        'days': days_result,
        'week_totals': {k: totals[k] for k in _MACROS},
        'averageDailyCalories': round(totals['calories'] / DAYS_PER_PLAN),
    }


__all__ = ["compute_week_nutrition"]
