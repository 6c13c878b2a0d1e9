from typing import Optional


class FeastError(Exception):
    """Base class for errors raised by the planning core."""


class SourceTierError(FeastError):
    """A single sourcing tier failed or returned unusable data. Never leaves the orchestrator."""

    def __init__(self, tier: str, message: str):
        super().__init__(f"{tier} tier failed: {message}")
        self.tier = tier


class UnusableResponseError(SourceTierError):
    def __init__(self, message: str):
        super().__init__("generative", message)


class RecipeSourceError(SourceTierError):
    _STATUS_MESSAGES = {
        401: "Invalid recipe API key. Check SPOONACULAR_API_KEY.",
        403: "Recipe API access forbidden. Check your plan permissions.",
        429: "Recipe API rate limit exceeded. Try again later.",
    }

    def __init__(self, message: str, status: Optional[int] = None):
        if status is not None:
            if status in self._STATUS_MESSAGES:
                message = self._STATUS_MESSAGES[status]
            elif status >= 500:
                message = f"Recipe API server error ({status}). Try again later."
        super().__init__("structured", message)
        self.status = status


class PlanAssemblyError(FeastError):
    """A day of the plan could not be filled; the whole plan is aborted."""

    def __init__(self, day_name: str, cuisine: str, diet_type: str, reason: str = ""):
        message = (f"Unable to complete {day_name} for {cuisine} cuisine with {diet_type} diet"
                   + (f": {reason}" if reason else ""))
        super().__init__(message)
        self.day_name = day_name
        self.cuisine = cuisine
        self.diet_type = diet_type
