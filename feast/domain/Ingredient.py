"""Ingredient domain entity: normalized name, quantity, unit, optional unit cost."""
import re
from typing import Optional

from feast.utilities.constants import DEFAULT_UNIT


def normalize_name(name: str) -> str:
    """Lowercase, strip punctuation and collapse whitespace."""
    if not isinstance(name, str):
        return ""
    n = re.sub(r"[^\w\s]", "", name.lower())
    return re.sub(r"\s+", " ", n).strip()


class Ingredient:
    def __init__(self, name: str = "", quantity: float = 1, unit: str = DEFAULT_UNIT,
                 unit_cost_usd: Optional[float] = None):
        self.name = normalize_name(name)
        self.quantity = quantity
        self.unit = (unit or DEFAULT_UNIT).strip().lower()
        self.unit_cost_usd = unit_cost_usd

    def add_quantity(self, quantity: float):
        '''Accumulates quantity; only the aggregator calls this.'''
        self.quantity += quantity

    def to_phrase(self) -> str:
        """Render as "<quantity> <unit> <name>", the shape the aggregator parses."""
        qty = int(self.quantity) if float(self.quantity).is_integer() else round(self.quantity, 3)
        return f"{qty} {self.unit} {self.name}"

    def __str__(self) -> str:
        return f"{self.name} - {self.quantity} {self.unit}"

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        '''Creates an Ingredient from a dict or a bare string. Ignores unknown keys.'''
        if isinstance(data, str):
            return Ingredient(name=data)
        d = dict(data) if isinstance(data, dict) else {}
        name = d.get("name") or d.get("item") or ""
        try:
            quantity = float(d.get("quantity", d.get("amount", 1)) or 1)
        except (TypeError, ValueError):
            quantity = 1.0
        cost = d.get("unitCostUSD")
        return Ingredient(
            name=str(name),
            quantity=quantity,
            unit=str(d.get("unit") or DEFAULT_UNIT),
            unit_cost_usd=float(cost) if isinstance(cost, (int, float)) else None,
        )

    def to_dict(self):
        return {
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "unitCostUSD": self.unit_cost_usd,
        }
