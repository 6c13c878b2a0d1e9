"""GroceryList aggregate: priced items derived from a plan, referencing it by id only."""
from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4


class GroceryItem:
    def __init__(self, name: str, quantity: float, unit: str, estimated_cost_usd: float,
                 category: str = "Other", estimated_cost_local: Optional[float] = None,
                 local_currency: str = "USD"):
        self.name = name
        self.quantity = quantity
        self.unit = unit
        self.estimated_cost_usd = estimated_cost_usd
        self.category = category
        self.estimated_cost_local = estimated_cost_usd if estimated_cost_local is None else estimated_cost_local
        self.local_currency = local_currency

    def __str__(self) -> str:
        return f"{self.name} - {self.quantity} {self.unit} - ${self.estimated_cost_usd:.2f} ({self.category})"

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        return GroceryItem(
            name=data.get("name", ""),
            quantity=data.get("quantity", 0),
            unit=data.get("unit", ""),
            estimated_cost_usd=data.get("estimatedCostUSD", 0.0),
            category=data.get("category", "Other"),
            estimated_cost_local=data.get("estimatedCostLocal"),
            local_currency=data.get("localCurrency", "USD"),
        )

    def to_dict(self):
        return {
            "name": self.name,
            "quantity": round(self.quantity, 3),
            "unit": self.unit,
            "estimatedCostUSD": self.estimated_cost_usd,
            "estimatedCostLocal": self.estimated_cost_local,
            "localCurrency": self.local_currency,
            "category": self.category,
        }


class GroceryList:
    def __init__(self, items: Optional[List[GroceryItem]] = None, plan_id: Optional[str] = None,
                 currency: str = "USD", list_id: Optional[str] = None, created_at: Optional[str] = None):
        self.items = items[:] if items else []
        self.plan_id = plan_id
        self.currency = currency
        self.list_id = list_id or uuid4().hex
        self.created_at = created_at or datetime.now(timezone.utc).isoformat()

    @property
    def total_cost_usd(self) -> float:
        return round(sum(i.estimated_cost_usd for i in self.items), 2)

    @property
    def total_cost_local(self) -> float:
        return round(sum(i.estimated_cost_local for i in self.items), 2)

    def by_category(self):
        '''Items grouped by category, categories and items sorted by name.'''
        groups = {}
        for item in sorted(self.items, key=lambda i: i.name):
            groups.setdefault(item.category, []).append(item)
        return dict(sorted(groups.items()))

    def __str__(self) -> str:
        return f"Grocery List ({len(self.items)} items, ${self.total_cost_usd:.2f})"

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        return GroceryList(
            items=[GroceryItem.from_dict(i) for i in data.get("items", [])],
            plan_id=data.get("planId"),
            currency=data.get("currency", "USD"),
            list_id=data.get("id"),
            created_at=data.get("createdAt"),
        )

    def to_dict(self):
        return {
            "id": self.list_id,
            "planId": self.plan_id,
            "currency": self.currency,
            "createdAt": self.created_at,
            "items": [i.to_dict() for i in self.items],
            "totalCostUSD": self.total_cost_usd,
            "totalCostLocal": self.total_cost_local,
        }
