from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal

# Contributions have a field named `date`
DateType = date

# ===== SAVINGS GOAL PYDANTIC MODELS =====


class SavingsGoalCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    target_amount: Decimal = Field(..., ge=0)
    deadline: Optional[date] = None
    description: Optional[str] = Field(None, max_length=255)

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('Title is required')
        return v

    @field_validator('target_amount')
    @classmethod
    def validate_target_amount(cls, v: Decimal) -> Decimal:
        return round(v, 2)


class SavingsGoalUpdate(SavingsGoalCreate):
    """Goal edits resubmit the whole form"""
    pass


class ContributionCreate(BaseModel):
    amount: Decimal = Field(..., ge=1, description="Contribution amount (minimum 1)")
    date: Optional[DateType] = Field(None, description="Defaults to today")

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return round(v, 2)


class ContributionResponse(BaseModel):
    id: int
    goal_id: int
    amount: Decimal
    date: DateType
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ContributionEnvelope(BaseModel):
    message: str
    contribution: ContributionResponse


class SavingsGoalResponse(BaseModel):
    goal_id: int
    user_id: int
    title: str
    target_amount: Decimal
    deadline: Optional[date] = None
    description: Optional[str] = None
    saved_amount: Optional[Decimal] = None
    progress: Optional[float] = None
    contributions: List[ContributionResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SavingsGoalEnvelope(BaseModel):
    message: str
    goal: SavingsGoalResponse
