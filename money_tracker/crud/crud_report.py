from sqlalchemy.orm import Session
from sqlalchemy import func
from decimal import Decimal, ROUND_HALF_UP

from money_tracker.db.core import TransactionDB, SavingsGoalDB, SavingsContributionDB, TransactionType
from money_tracker.models.report import ReportQuery, ReportResponse


def _as_money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(Decimal("0.01"))


def _sum_transactions(db: Session, user_id: int, transaction_type: TransactionType, query: ReportQuery) -> Decimal:
    q = db.query(func.coalesce(func.sum(TransactionDB.amount), 0)).filter(
        TransactionDB.user_id == user_id,
        TransactionDB.type == transaction_type
    )
    if query.start_date:
        q = q.filter(TransactionDB.transaction_date >= query.start_date)
    if query.end_date:
        q = q.filter(TransactionDB.transaction_date <= query.end_date)
    return _as_money(q.scalar())


def build_report(db: Session, user_id: int, query: ReportQuery) -> ReportResponse:
    """Summarize income, spending and savings for the user"""

    total_income = _sum_transactions(db, user_id, TransactionType.INCOME, query)
    total_expenses = _sum_transactions(db, user_id, TransactionType.EXPENSE, query)

    saved_q = (
        db.query(func.coalesce(func.sum(SavingsContributionDB.amount), 0))
        .join(SavingsGoalDB, SavingsContributionDB.goal_id == SavingsGoalDB.goal_id)
        .filter(SavingsGoalDB.user_id == user_id)
    )
    if query.start_date:
        saved_q = saved_q.filter(SavingsContributionDB.date >= query.start_date)
    if query.end_date:
        saved_q = saved_q.filter(SavingsContributionDB.date <= query.end_date)
    total_saved = _as_money(saved_q.scalar())

    total_target = _as_money(
        db.query(func.coalesce(func.sum(SavingsGoalDB.target_amount), 0))
        .filter(SavingsGoalDB.user_id == user_id)
        .scalar()
    )

    if total_target > 0:
        savings_progress = int((total_saved / total_target * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    else:
        savings_progress = 0

    return ReportResponse(
        report_type=query.report_type,
        start_date=query.start_date,
        end_date=query.end_date,
        total_income=total_income,
        total_expenses=total_expenses,
        balance=total_income - total_expenses,
        total_saved=total_saved,
        total_target=total_target,
        savings_progress=savings_progress,
    )
