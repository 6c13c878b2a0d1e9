from typing import Final

MEAL_TYPES: Final[tuple[str, ...]] = ("breakfast", "lunch", "dinner")
ALL_MEAL_TYPES: Final[tuple[str, ...]] = ("breakfast", "lunch", "dinner", "snack")
DAY_NAMES: Final[tuple[str, ...]] = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"
)
DAYS_PER_PLAN: Final[int] = 7
MEALS_PER_DAY: Final[int] = len(MEAL_TYPES)

# Search labels sent to the structured recipe source, per meal type
MEAL_TYPE_LABELS: Final[dict[str, str]] = {
    "breakfast": "breakfast",
    "lunch": "main course lunch",
    "dinner": "main course dinner",
    "snack": "snack",
}

DEFAULT_DIET: Final[str] = "balanced"
DEFAULT_UNIT: Final[str] = "unit"
DEFAULT_PRICE_PER_UNIT_USD: Final[float] = 2.0
PARTIAL_RESULTS_NOTE: Final[str] = (
    " (Partial results: some meals may be missing due to AI response limits.)"
)
GROCERY_CATEGORIES: Final[tuple[str, ...]] = ("Produce", "Dairy", "Meat & Seafood", "Pantry", "Other")

MEAL_PROMPT_TEMPLATE: Final[str] = (
    """
    Generate a {diet} {cuisine} recipe for {meal_type} (day {day}) costing at most ${budget:.2f}
    in total for {people} servings. Do not use any of these ingredients: {allergies}.
    Respond ONLY with a JSON object in the following format, no extra text:

    """
)
SUGGESTIONS_PROMPT_TEMPLATE: Final[str] = (
    """
    Generate exactly {count} UNIQUE {diet} {cuisine} meal suggestions serving {people} people.
    Avoid these ingredients: {allergies}.
    Respond ONLY with a JSON array of objects in the following format, no explanations:

    """
)
MEAL_JSON_FORMAT: Final[str] = (
    """
{
    "name": str,
    "type": "breakfast" | "lunch" | "dinner" | "snack",
    "cuisine": str,
    "dietary": str,
    "description": str,
    "ingredients": [
      {
        "name": str,
        "quantity": float,
        "unit": str
      },
    ],
    "instructions": [
      str,
    ],
    "nutrition": {
      "calories": int,
      "protein": int,
      "carbs": int,
      "fat": int
    },
    "estimatedCost": float
  }
    """
)
