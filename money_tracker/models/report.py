from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional
from datetime import date
from decimal import Decimal
from enum import Enum
from typing_extensions import Self

# ===== REPORT PYDANTIC MODELS =====


class ReportTypeEnum(str, Enum):
    SUMMARY = "summary"


class ReportQuery(BaseModel):
    """Reports are computed on request and never stored."""
    report_type: ReportTypeEnum = ReportTypeEnum.SUMMARY
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def check_date_range(self) -> Self:
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class ReportResponse(BaseModel):
    """Field names match what the dashboard charts read."""
    report_type: ReportTypeEnum
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    total_income: Decimal = Field(..., alias="totalIncome")
    total_expenses: Decimal = Field(..., alias="totalExpenses")
    balance: Decimal
    total_saved: Decimal = Field(..., alias="totalSaved")
    total_target: Decimal = Field(..., alias="totalTarget")
    savings_progress: int = Field(..., alias="savingsProgress")

    model_config = ConfigDict(populate_by_name=True)
