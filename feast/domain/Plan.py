"""Plan domain entities: DaySlot (three meals + derived totals) and WeeklyPlan (seven days)."""
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import uuid4

from feast.domain.MealCandidate import MealCandidate, SourceTier
from feast.utilities.constants import DAY_NAMES, DAYS_PER_PLAN, MEAL_TYPES


class DaySlot:
    def __init__(self, day_index: int, meals: Dict[str, MealCandidate], day_name: Optional[str] = None):
        missing = [t for t in MEAL_TYPES if t not in meals]
        if missing:
            raise ValueError(f"Day {day_index} is missing meals: {', '.join(missing)}")
        self.day_index = day_index
        self.day_name = day_name or DAY_NAMES[day_index % len(DAY_NAMES)]
        self.meals = {t: meals[t] for t in MEAL_TYPES}

    # Totals are always derived from the meals, never stored
    @property
    def total_cost_usd(self) -> float:
        return round(sum(m.estimated_cost_usd for m in self.meals.values()), 2)

    @property
    def total_calories(self) -> int:
        return int(round(sum(m.nutrition.calories for m in self.meals.values())))

    def __str__(self) -> str:
        names = ", ".join(m.name for m in self.meals.values())
        return f"{self.day_name}: {names} (${self.total_cost_usd:.2f}, {self.total_calories} kcal)"

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        meals = {t: MealCandidate.from_dict(data["meals"][t], default_type=t) for t in MEAL_TYPES}
        return DaySlot(data.get("dayIndex", 0), meals, day_name=data.get("dayName"))

    def to_dict(self):
        return {
            "dayIndex": self.day_index,
            "dayName": self.day_name,
            "meals": {t: m.to_dict() for t, m in self.meals.items()},
            "totalCostUSD": self.total_cost_usd,
            "totalCalories": self.total_calories,
        }


class WeeklyPlan:
    def __init__(self, days: List[DaySlot], total_budget_usd: float, cuisine: str, diet_type: str,
                 plan_id: Optional[str] = None, local_currency: str = "USD", exchange_rate: float = 1.0,
                 created_at: Optional[str] = None):
        if len(days) != DAYS_PER_PLAN:
            raise ValueError(f"A weekly plan needs {DAYS_PER_PLAN} days, got {len(days)}")
        self.days = days[:]
        self.total_budget_usd = round(total_budget_usd, 2)
        self.cuisine = cuisine
        self.diet_type = diet_type
        self.plan_id = plan_id or uuid4().hex
        self.local_currency = local_currency
        self.exchange_rate = exchange_rate
        self.created_at = created_at or datetime.now(timezone.utc).isoformat()

    @property
    def total_cost_usd(self) -> float:
        return round(sum(d.total_cost_usd for d in self.days), 2)

    @property
    def total_calories(self) -> int:
        return sum(d.total_calories for d in self.days)

    @property
    def budget_remaining_usd(self) -> float:
        # Negative means the plan overran the budget
        return round(self.total_budget_usd - self.total_cost_usd, 2)

    def meals(self) -> List[MealCandidate]:
        return [m for d in self.days for m in d.meals.values()]

    @property
    def fallback_meal_count(self) -> int:
        return sum(1 for m in self.meals() if m.source_tier is SourceTier.FALLBACK)

    @property
    def used_fallback(self) -> bool:
        """True when any meal came from a lower-fidelity tier than structured search."""
        return any(m.source_tier is not SourceTier.STRUCTURED for m in self.meals())

    def tier_counts(self) -> Dict[str, int]:
        counts = {tier.value: 0 for tier in SourceTier}
        for m in self.meals():
            counts[m.source_tier.value] += 1
        return counts

    def _local(self, amount_usd: float) -> float:
        return round(amount_usd * self.exchange_rate, 2)

    def __str__(self) -> str:
        return (f"{self.cuisine} {self.diet_type} plan - ${self.total_cost_usd:.2f} of "
                f"${self.total_budget_usd:.2f} - {self.total_calories} kcal")

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        return WeeklyPlan(
            days=[DaySlot.from_dict(d) for d in data.get("days", [])],
            total_budget_usd=data.get("totalBudgetUSD", 0.0),
            cuisine=data.get("cuisine", ""),
            diet_type=data.get("dietType", ""),
            plan_id=data.get("id"),
            local_currency=data.get("localCurrency", "USD"),
            exchange_rate=data.get("exchangeRate", 1.0),
            created_at=data.get("createdAt"),
        )

    def to_dict(self):
        return {
            "id": self.plan_id,
            "createdAt": self.created_at,
            "cuisine": self.cuisine,
            "dietType": self.diet_type,
            "days": [d.to_dict() for d in self.days],
            "totalBudgetUSD": self.total_budget_usd,
            "totalCostUSD": self.total_cost_usd,
            "budgetRemainingUSD": self.budget_remaining_usd,
            "totalCalories": self.total_calories,
            "localCurrency": self.local_currency,
            "exchangeRate": self.exchange_rate,
            "totalBudgetLocal": self._local(self.total_budget_usd),
            "totalCostLocal": self._local(self.total_cost_usd),
            "budgetRemainingLocal": self._local(self.budget_remaining_usd),
            "fallbackMealCount": self.fallback_meal_count,
            "usedFallback": self.used_fallback,
            "tierCounts": self.tier_counts(),
        }
