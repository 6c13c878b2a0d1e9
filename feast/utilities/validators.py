"""
Input validation schemas using Pydantic for plan, grocery and suggestion requests.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from feast.utilities.config import DEFAULT_CURRENCY
from feast.utilities.constants import DAYS_PER_PLAN, DEFAULT_DIET


def _split_allergies(v):
    if v is None:
        return []
    if isinstance(v, str):
        v = v.split(",")
    return v


class PlanRequest(BaseModel):
    """Schema for weekly plan requests.

    The budget is either a weekly ``budget`` in ``currency`` or a daily USD
    range, in which case the weekly total is ``maxDailyBudget * 7``.
    """
    model_config = ConfigDict(populate_by_name=True)

    cuisine: str = Field(..., min_length=1, max_length=50)
    dietary: str = Field(DEFAULT_DIET, max_length=50)
    allergies: List[str] = Field(default_factory=list)
    budget: Optional[float] = Field(None, gt=0)
    currency: str = Field(DEFAULT_CURRENCY, min_length=3, max_length=3)
    min_daily_budget: Optional[float] = Field(None, ge=0, alias="minDailyBudget")
    max_daily_budget: Optional[float] = Field(None, gt=0, alias="maxDailyBudget")
    number_of_people: int = Field(1, ge=1, le=20, alias="numberOfPeople")
    days: int = Field(DAYS_PER_PLAN, ge=DAYS_PER_PLAN, le=DAYS_PER_PLAN)

    @field_validator('cuisine')
    @classmethod
    def validate_cuisine(cls, v):
        """Cuisine must not be blank."""
        if not v.strip():
            raise ValueError('Cuisine cannot be empty')
        return v.strip()

    @field_validator('dietary')
    @classmethod
    def normalize_diet(cls, v):
        return (v or DEFAULT_DIET).strip().lower() or DEFAULT_DIET

    @field_validator('currency')
    @classmethod
    def upper_currency(cls, v):
        return v.strip().upper()

    @field_validator('allergies', mode='before')
    @classmethod
    def split_allergies(cls, v):
        """Accept a list or a comma separated string."""
        return _split_allergies(v)

    @field_validator('allergies')
    @classmethod
    def clean_allergies(cls, v):
        return [a.strip().lower() for a in v if a and a.strip()]

    @model_validator(mode='after')
    def check_budget(self):
        if self.budget is None and self.max_daily_budget is None:
            raise ValueError('Either budget or maxDailyBudget is required')
        if (self.min_daily_budget is not None and self.max_daily_budget is not None
                and self.min_daily_budget > self.max_daily_budget):
            raise ValueError('minDailyBudget cannot exceed maxDailyBudget')
        return self


class GroceryIngredientInput(BaseModel):
    """Schema for one loose ingredient ("2 cups rice" or "rice")."""
    name: str = Field(..., min_length=1, max_length=200)

    @field_validator('name')
    @classmethod
    def strip_whitespace(cls, v):
        """Remove leading/trailing whitespace."""
        if not v.strip():
            raise ValueError('Ingredient name cannot be empty')
        return v.strip()


class GroceryListRequest(BaseModel):
    ingredients: List[GroceryIngredientInput] = Field(default_factory=list)
    currency: str = Field(DEFAULT_CURRENCY, min_length=3, max_length=3)

    @field_validator('currency')
    @classmethod
    def upper_currency(cls, v):
        return v.strip().upper()


class SuggestionsRequest(BaseModel):
    """Schema for a batch of generated meal suggestions."""
    model_config = ConfigDict(populate_by_name=True)

    cuisine: str = Field(..., min_length=1, max_length=50)
    dietary: str = Field(DEFAULT_DIET, max_length=50)
    allergies: List[str] = Field(default_factory=list)
    number_of_people: int = Field(1, ge=1, le=20, alias="numberOfPeople")
    count: int = Field(7, ge=1, le=21)

    @field_validator('cuisine')
    @classmethod
    def validate_cuisine(cls, v):
        if not v.strip():
            raise ValueError('Cuisine cannot be empty')
        return v.strip()

    @field_validator('dietary')
    @classmethod
    def normalize_diet(cls, v):
        return (v or DEFAULT_DIET).strip().lower() or DEFAULT_DIET

    @field_validator('allergies', mode='before')
    @classmethod
    def split_allergies(cls, v):
        return _split_allergies(v)

    @field_validator('allergies')
    @classmethod
    def clean_allergies(cls, v):
        return [a.strip().lower() for a in v if a and a.strip()]
