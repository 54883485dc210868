from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal
from typing_extensions import Self

from money_tracker.models.transaction import TransactionResponse

# ===== BUDGET PYDANTIC MODELS =====


class BudgetCreate(BaseModel):
    category: str = Field(..., min_length=1, max_length=255, description="Category the budget caps")
    amount: Decimal = Field(..., ge=0, description="Spending ceiling")
    start_date: date = Field(..., description="Budget start date")
    end_date: date = Field(..., description="Budget end date")
    description: Optional[str] = Field(None, max_length=1000)

    @field_validator('category')
    @classmethod
    def validate_category(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('Category is required')
        return v

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return round(v, 2)

    @field_validator('description')
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v

    @model_validator(mode="after")
    def check_date_range(self) -> Self:
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class BudgetUpdate(BaseModel):
    """Update budget - all fields optional"""
    category: Optional[str] = Field(None, min_length=1, max_length=255)
    amount: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    description: Optional[str] = Field(None, max_length=1000)

    @field_validator('category')
    @classmethod
    def validate_category(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError('Category is required')
        return v

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return round(v, 2) if v is not None else v

    @model_validator(mode="after")
    def check_date_range(self) -> Self:
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class BudgetResponse(BaseModel):
    budget_id: int
    user_id: int
    category: str
    amount: Decimal
    start_date: date
    end_date: date
    description: Optional[str] = None
    spent: Optional[Decimal] = None
    remaining: Optional[Decimal] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BudgetEnvelope(BaseModel):
    message: str
    budget: BudgetResponse


class BudgetTransactions(BaseModel):
    budget: BudgetResponse
    transactions: List[TransactionResponse]
