from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing_extensions import Annotated

from money_tracker.auth import AuthContext, get_auth_context
from money_tracker.crud import crud_report
from money_tracker.db.core import get_db
from money_tracker.models import report as report_models

router = APIRouter(
    prefix="/dashboard/reports",
    tags=["reports"],
)


@router.get("", response_model=report_models.ReportResponse)
def read_report(
    query: Annotated[report_models.ReportQuery, Query()],
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """
    Totals for income, expenses and savings, optionally limited to a date range.
    """
    return crud_report.build_report(db, auth.user_id, query)
