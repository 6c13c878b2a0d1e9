"""Weekly plan assembler.

Fills 7 days x 3 meals through the sourcing orchestrator. The three meals of a
day are sourced concurrently; days run one after another to bound the number
of concurrent external calls. Meal names are unique across the whole plan.
"""
import asyncio
import logging
from typing import Dict, List, Optional, Set

from feast.domain.MealCandidate import MealCandidate
from feast.domain.Plan import DaySlot, WeeklyPlan
from feast.infra.Exchange_Rates import current_rates
from feast.logic.pricing.normalizer import ExchangeRateTable
from feast.logic.sourcing.orchestrator import MealSlot, MealSourcingOrchestrator
from feast.utilities.constants import DAY_NAMES, DAYS_PER_PLAN, MEAL_TYPES, MEALS_PER_DAY
from feast.utilities.errors import PlanAssemblyError
from feast.utilities.validators import PlanRequest

logger = logging.getLogger(__name__)

LIVE_ATTEMPTS_PER_MEAL = 3
MAX_FORCED_ATTEMPTS_PER_DAY = 30


def weekly_budget_usd(request: PlanRequest, rates: ExchangeRateTable) -> float:
    """Weekly USD budget: converted ``budget`` when given, else ``maxDailyBudget * 7``."""
    if request.budget is not None:
        return rates.to_usd(request.budget, request.currency)
    return round(request.max_daily_budget * DAYS_PER_PLAN, 2)


class WeeklyPlanAssembler:
    def __init__(self, orchestrator: MealSourcingOrchestrator, rates: Optional[ExchangeRateTable] = None,
                 max_forced_attempts: int = MAX_FORCED_ATTEMPTS_PER_DAY):
        self.orchestrator = orchestrator
        self._rates = rates
        self.max_forced_attempts = max_forced_attempts

    @property
    def rates(self) -> ExchangeRateTable:
        return self._rates or current_rates()

    async def assemble(self, request: PlanRequest) -> WeeklyPlan:
        """Build a complete seven-day plan or raise PlanAssemblyError; never a partial week."""
        rates = self.rates
        total_budget = weekly_budget_usd(request, rates)
        meal_budget = total_budget / (DAYS_PER_PLAN * MEALS_PER_DAY)
        logger.info("Assembling %s %s plan: $%.2f/week ($%.2f/meal) for %d people",
                    request.cuisine, request.dietary, total_budget, meal_budget, request.number_of_people)

        used: Set[str] = set()
        live_attempts_left = LIVE_ATTEMPTS_PER_MEAL * DAYS_PER_PLAN * MEALS_PER_DAY
        days: List[DaySlot] = []
        for day_index in range(DAYS_PER_PLAN):
            day_name = DAY_NAMES[day_index]
            meals, live_attempts_left = await self._fill_day(
                request, day_index, meal_budget, used, live_attempts_left)
            day = DaySlot(day_index, meals, day_name=day_name)
            logger.debug("%s", day)
            days.append(day)

        plan = WeeklyPlan(
            days, total_budget_usd=total_budget, cuisine=request.cuisine, diet_type=request.dietary,
            local_currency=request.currency, exchange_rate=rates.rate(request.currency),
        )
        logger.info("Assembled plan %s: $%.2f of $%.2f, %d fallback meals",
                    plan.plan_id, plan.total_cost_usd, plan.total_budget_usd, plan.fallback_meal_count)
        return plan

    async def _fill_day(self, request: PlanRequest, day_index: int, meal_budget: float,
                        used: Set[str], live_attempts_left: int):
        day_name = DAY_NAMES[day_index]
        filled: Dict[str, MealCandidate] = {}
        pending = list(MEAL_TYPES)
        forced_attempts = 0

        while pending:
            live = []
            for _ in pending:
                live.append(live_attempts_left > 0)
                if live_attempts_left > 0:
                    live_attempts_left -= 1
            forced_attempts += live.count(False)
            if forced_attempts > self.max_forced_attempts:
                raise PlanAssemblyError(day_name, request.cuisine, request.dietary,
                                        f"no unique meals left after {self.max_forced_attempts} fallback picks")

            slots = [
                MealSlot(meal_type, request.cuisine, request.dietary, meal_budget,
                         tuple(request.allergies), request.number_of_people, day_index)
                for meal_type in pending
            ]
            taken = sorted(used)
            try:
                results = await asyncio.gather(*(
                    self.orchestrator.source_meal(slot, exclude=taken, live=is_live)
                    for slot, is_live in zip(slots, live)
                ))
            except Exception as e:
                logger.exception("Sourcing failed for %s", day_name)
                raise PlanAssemblyError(day_name, request.cuisine, request.dietary, str(e)) from e

            for meal_type, meal in zip(pending, results):
                if meal.key in used:
                    logger.info("Duplicate meal %s for %s %s, retrying", meal.name, day_name, meal_type)
                    continue
                used.add(meal.key)
                filled[meal_type] = meal
            pending = [t for t in MEAL_TYPES if t not in filled]

        return filled, live_attempts_left
