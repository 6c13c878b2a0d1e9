import json
import logging
import os
from pathlib import Path
from typing import List, Optional

from feast.domain.GroceryList import GroceryList
from feast.domain.Plan import WeeklyPlan
from feast.infra.paths import GROCERY_LISTS_FILE, PLANS_FILE

logger = logging.getLogger(__name__)


def _load_store(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f) or {}
    except json.JSONDecodeError:
        logger.exception("Corrupt store %s, starting empty", path)
        return {}


def _atomic_write(path: Path, store: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(store, f, indent=2, ensure_ascii=False)
    os.replace(tmp, path)


class PlanRepository:
    """JSON-file store of complete weekly plans and the grocery lists derived from them."""

    def __init__(self, plans_file: Path = PLANS_FILE, grocery_file: Path = GROCERY_LISTS_FILE):
        self.plans_file = Path(plans_file)
        self.grocery_file = Path(grocery_file)

    def save_plan(self, plan: WeeklyPlan) -> str:
        store = _load_store(self.plans_file)
        store[plan.plan_id] = plan.to_dict()
        _atomic_write(self.plans_file, store)
        logger.info("Saved plan %s", plan.plan_id)
        return plan.plan_id

    def get_plan(self, plan_id: str) -> Optional[WeeklyPlan]:
        data = _load_store(self.plans_file).get(plan_id)
        return WeeklyPlan.from_dict(data) if data else None

    def list_plan_ids(self) -> List[str]:
        return list(_load_store(self.plans_file))

    def delete_plan(self, plan_id: str) -> bool:
        store = _load_store(self.plans_file)
        if plan_id not in store:
            return False
        del store[plan_id]
        _atomic_write(self.plans_file, store)
        return True

    def save_grocery_list(self, grocery: GroceryList) -> str:
        store = _load_store(self.grocery_file)
        store[grocery.list_id] = grocery.to_dict()
        _atomic_write(self.grocery_file, store)
        logger.info("Saved grocery list %s (plan %s)", grocery.list_id, grocery.plan_id)
        return grocery.list_id

    def get_grocery_list(self, list_id: str) -> Optional[GroceryList]:
        data = _load_store(self.grocery_file).get(list_id)
        return GroceryList.from_dict(data) if data else None

    def grocery_lists_for_plan(self, plan_id: str) -> List[GroceryList]:
        return [GroceryList.from_dict(d) for d in _load_store(self.grocery_file).values()
                if d.get("planId") == plan_id]
