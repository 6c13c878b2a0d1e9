from feast.utilities.config import DATA_DIR

# Centralized paths for data files (single source of truth)
PLANS_FILE = DATA_DIR / 'meal_plans.json'
GROCERY_LISTS_FILE = DATA_DIR / 'grocery_lists.json'

__all__ = ['DATA_DIR', 'PLANS_FILE', 'GROCERY_LISTS_FILE']
