from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime, date
from decimal import Decimal
from enum import Enum

# ===== TRANSACTION PYDANTIC MODELS =====


class TransactionTypeEnum(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


def normalize_transaction_type(v):
    # The dashboard posts "Income"/"Expense"; ORM rows carry TransactionType
    if isinstance(v, Enum):
        v = v.value
    if isinstance(v, str):
        return v.strip().lower()
    return v


class TransactionCreate(BaseModel):
    type: TransactionTypeEnum = Field(..., description="income or expense")
    category: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., ge=0, description="Transaction amount")
    transaction_date: date = Field(..., description="Date of the transaction")
    description: Optional[str] = Field(None, max_length=500)
    budget_id: Optional[int] = Field(None, description="Budget this transaction counts against")

    @field_validator('type', mode='before')
    @classmethod
    def normalize_type(cls, v):
        return normalize_transaction_type(v)

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return round(v, 2)

    @field_validator('category')
    @classmethod
    def validate_category(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('Category is required')
        return v

    @field_validator('description')
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v


class TransactionUpdate(BaseModel):
    """Update transaction - all fields optional"""
    type: Optional[TransactionTypeEnum] = None
    category: Optional[str] = Field(None, min_length=1, max_length=255)
    amount: Optional[Decimal] = Field(None, ge=0)
    transaction_date: Optional[date] = None
    description: Optional[str] = Field(None, max_length=500)
    budget_id: Optional[int] = None

    @field_validator('type', mode='before')
    @classmethod
    def normalize_type(cls, v):
        return normalize_transaction_type(v)

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return round(v, 2) if v is not None else v

    @field_validator('category')
    @classmethod
    def validate_category(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError('Category is required')
        return v

    @field_validator('description')
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v


class BudgetExpenseCreate(BaseModel):
    """Expense logged straight against a budget; category comes from the budget."""
    amount: Decimal = Field(..., ge=0)
    transaction_date: Optional[date] = None
    description: Optional[str] = Field(None, max_length=500)

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return round(v, 2)


class TransactionResponse(BaseModel):
    transaction_id: int
    user_id: int
    budget_id: Optional[int] = None
    type: TransactionTypeEnum
    category: str
    amount: Decimal
    transaction_date: date
    description: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator('type', mode='before')
    @classmethod
    def normalize_type(cls, v):
        return normalize_transaction_type(v)


class TransactionEnvelope(BaseModel):
    message: str
    transaction: TransactionResponse
