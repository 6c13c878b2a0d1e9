import logging

from fastapi import APIRouter, Depends

from feast.logic.sourcing.orchestrator import MealSourcingOrchestrator
from feast.utilities.validators import SuggestionsRequest

logger = logging.getLogger(__name__)


# === Dependency: sourcing orchestrator ===
def get_orchestrator() -> MealSourcingOrchestrator:
    """Orchestrator wired to the configured recipe source and text generator."""
    return MealSourcingOrchestrator()


# === FastAPI Endpoint ===
router = APIRouter()


@router.post("/api/meal-plan/ai/suggestions")
async def meal_suggestions(payload: SuggestionsRequest,
                           orchestrator: MealSourcingOrchestrator = Depends(get_orchestrator)):
    """Batch of unique meal ideas; lower-fidelity entries carry sourceTier "fallback"."""
    meals = await orchestrator.suggest_meals(
        payload.cuisine, payload.dietary, payload.allergies, payload.number_of_people, payload.count,
    )
    logger.info("Suggested %d/%d %s meals", len(meals), payload.count, payload.cuisine)
    return {
        "success": True,
        "requestedCount": payload.count,
        "actualCount": len(meals),
        "data": [m.to_dict() for m in meals],
    }
