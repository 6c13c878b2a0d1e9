from fastapi import (
    FastAPI,
    Query,
    APIRouter,
    Depends,
    HTTPException,
    Response,
)

from typing import Optional
import logging

from feast.domain.Plan import WeeklyPlan
from feast.infra.Exchange_Rates import current_rates, refresh_exchange_rates
from feast.infra.pdf_utils import generate_pdf_for_plan
from feast.infra.Plan_Repository import PlanRepository
from feast.logic.planning.assembler import WeeklyPlanAssembler
from feast.logic.reporting.nutrition import compute_week_nutrition
from feast.logic.shopping.list_builder import build_grocery_list, build_grocery_list_from_names
from feast.logic.sourcing.orchestrator import MealSourcingOrchestrator
from feast.utilities.config import REFRESH_RATES_ON_STARTUP
from feast.utilities.errors import PlanAssemblyError
from feast.utilities.validators import GroceryListRequest, PlanRequest

# Routers
from feast.api.api_ai import router as ai_router, get_orchestrator

# Logging
logger = logging.getLogger(__name__)

RATES_NOTE = "Exchange rates are static approximations, not live quotes. Local amounts are estimates."

# Initialize FastAPI app
app = FastAPI(title="Feast Meal Sourcing API")
router = APIRouter()

# Include routers
app.include_router(ai_router)


@app.on_event("startup")
async def _refresh_rates_on_startup():
    """Optionally replace the static exchange-rate table with fetched rates."""
    if REFRESH_RATES_ON_STARTUP:
        await refresh_exchange_rates()


# -------------------- Dependencies --------------------
def get_repository() -> PlanRepository:
    return PlanRepository()


def get_assembler(orchestrator: MealSourcingOrchestrator = Depends(get_orchestrator)) -> WeeklyPlanAssembler:
    return WeeklyPlanAssembler(orchestrator)


def _check_currency(currency: str) -> str:
    code = (currency or "USD").upper()
    if code not in current_rates().supported_currencies():
        raise HTTPException(status_code=400, detail=f"Unsupported currency: {code}")
    return code


def _load_plan(repo: PlanRepository, plan_id: str) -> WeeklyPlan:
    plan = repo.get_plan(plan_id)
    if plan is None:
        raise HTTPException(status_code=404, detail="Meal plan not found")
    return plan


# -------------------- API: Meal plans --------------------
@router.post("/api/meal-plan")
async def create_meal_plan(payload: PlanRequest,
                           assembler: WeeklyPlanAssembler = Depends(get_assembler),
                           repo: PlanRepository = Depends(get_repository)):
    """Assemble and persist a weekly plan. A plan that cannot be completed is never saved."""
    _check_currency(payload.currency)
    try:
        plan = await assembler.assemble(payload)
    except PlanAssemblyError as e:
        logger.exception("Meal plan aborted")
        raise HTTPException(status_code=500, detail=str(e))
    plan_id = repo.save_plan(plan)
    return {
        "success": True,
        "mealPlan": plan.to_dict(),
        "savedMealPlanId": plan_id,
        "usedFallback": plan.used_fallback,
    }


@router.get("/api/meal-plans/{plan_id}")
def get_meal_plan(plan_id: str, repo: PlanRepository = Depends(get_repository)):
    return _load_plan(repo, plan_id).to_dict()


@router.get("/api/meal-plans/{plan_id}/export")
def export_meal_plan(plan_id: str, repo: PlanRepository = Depends(get_repository)):
    plan = _load_plan(repo, plan_id)
    pdf = generate_pdf_for_plan(plan)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=meal-plan-{plan_id}.pdf"},
    )


@router.get("/api/meal-plans/{plan_id}/nutrition")
def meal_plan_nutrition(plan_id: str, repo: PlanRepository = Depends(get_repository)):
    """Return nutrition aggregation for a saved plan."""
    plan = _load_plan(repo, plan_id)
    return {"planId": plan_id, **compute_week_nutrition(plan)}


# -------------------- API: Grocery lists --------------------
@router.post("/api/meal-plans/{plan_id}/grocery-list")
def create_plan_grocery_list(plan_id: str, currency: Optional[str] = Query(default=None),
                             repo: PlanRepository = Depends(get_repository)):
    plan = _load_plan(repo, plan_id)
    code = _check_currency(currency or plan.local_currency)
    grocery = build_grocery_list(plan, rates=current_rates(), currency=code)
    repo.save_grocery_list(grocery)
    return {**grocery.to_dict(), "note": RATES_NOTE}


@router.post("/api/grocery-list/enhanced")
def enhanced_grocery_list(payload: GroceryListRequest):
    """Price a loose ingredient list without a plan behind it."""
    if not payload.ingredients:
        raise HTTPException(status_code=400, detail="Ingredients array is required")
    code = _check_currency(payload.currency)
    grocery = build_grocery_list_from_names(
        [i.name for i in payload.ingredients], rates=current_rates(), currency=code)
    return {
        "success": True,
        "groceryList": [i.to_dict() for i in grocery.items],
        "totalCost": grocery.total_cost_local,
        "totalCostUSD": grocery.total_cost_usd,
        "currency": code,
        "note": RATES_NOTE,
    }


@router.get("/api/currencies")
def currencies():
    rates = current_rates()
    return {"currencies": rates.supported_currencies(), "rates": rates.as_dict(), "note": RATES_NOTE}


app.include_router(router)
