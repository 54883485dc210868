from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import desc, func
from typing import Optional, List, Tuple
from datetime import datetime, date
from decimal import Decimal

from money_tracker.db.core import BudgetDB, TransactionDB, UserDB, NotFoundError, TransactionType
from money_tracker.models.budget import BudgetCreate, BudgetUpdate
from money_tracker.models.transaction import BudgetExpenseCreate
from money_tracker.logging_config import get_logger

logger = get_logger(__name__)


# ===== UTILITY FUNCTIONS =====

def calculate_budget_spending(db: Session, budget: BudgetDB) -> Decimal:
    """Sum of expense transactions linked to the budget"""
    spent = db.query(func.coalesce(func.sum(TransactionDB.amount), 0)).filter(
        TransactionDB.budget_id == budget.budget_id,
        TransactionDB.type == TransactionType.EXPENSE
    ).scalar()
    return Decimal(str(spent)).quantize(Decimal("0.01"))


def attach_spending(db: Session, budget: BudgetDB) -> BudgetDB:
    budget.spent = calculate_budget_spending(db, budget)
    budget.remaining = budget.amount - budget.spent
    return budget


# ===== DATABASE OPERATIONS =====

def create_db_budget(db: Session, user_id: int, budget_data: BudgetCreate) -> BudgetDB:
    """Create a new budget"""

    user = db.query(UserDB).filter(UserDB.id == user_id).first()
    if not user:
        raise NotFoundError(f"User with id {user_id} not found")

    db_budget = BudgetDB(
        user_id=user_id,
        category=budget_data.category,
        amount=budget_data.amount,
        start_date=budget_data.start_date,
        end_date=budget_data.end_date,
        description=budget_data.description,
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow()
    )

    try:
        db.add(db_budget)
        db.commit()
        db.refresh(db_budget)
        return attach_spending(db, db_budget)
    except IntegrityError:
        db.rollback()
        raise ValueError("Budget creation failed due to database constraint")


def read_db_budget(db: Session, budget_id: int, user_id: int, include_spending: bool = True) -> Optional[BudgetDB]:
    """Read a budget by ID with optional spending calculations"""

    budget = db.query(BudgetDB).filter(
        BudgetDB.budget_id == budget_id,
        BudgetDB.user_id == user_id
    ).first()

    if budget and include_spending:
        attach_spending(db, budget)

    return budget


def read_db_budgets(db: Session, user_id: int, skip: int = 0, limit: int = 100) -> List[BudgetDB]:
    """Read all budgets for a user with spent and remaining amounts"""

    budgets = (
        db.query(BudgetDB)
        .filter(BudgetDB.user_id == user_id)
        .order_by(desc(BudgetDB.start_date), desc(BudgetDB.budget_id))
        .offset(skip)
        .limit(limit)
        .all()
    )

    for budget in budgets:
        attach_spending(db, budget)

    return budgets


def update_db_budget(db: Session, budget_id: int, user_id: int, budget_updates: BudgetUpdate) -> BudgetDB:
    """Update an existing budget"""

    db_budget = read_db_budget(db, budget_id, user_id, include_spending=False)
    if not db_budget:
        raise NotFoundError(f"Budget with id {budget_id} not found")

    update_data = {k: v for k, v in budget_updates.model_dump(exclude_unset=True).items()
                   if v is not None or k == 'description'}

    # A partial update may move only one end of the range
    start_date = update_data.get('start_date', db_budget.start_date)
    end_date = update_data.get('end_date', db_budget.end_date)
    if end_date < start_date:
        raise ValueError("end_date must be on or after start_date")

    for field, value in update_data.items():
        setattr(db_budget, field, value)

    db_budget.updated_at = datetime.utcnow()

    try:
        db.commit()
        db.refresh(db_budget)
        return attach_spending(db, db_budget)
    except IntegrityError:
        db.rollback()
        raise ValueError("Budget update failed due to database constraint")


def delete_db_budget(db: Session, budget_id: int, user_id: int) -> bool:
    """Delete a budget; its transactions are kept and unlinked"""

    db_budget = read_db_budget(db, budget_id, user_id, include_spending=False)
    if not db_budget:
        raise NotFoundError(f"Budget with id {budget_id} not found")

    try:
        db.query(TransactionDB).filter(TransactionDB.budget_id == budget_id).update(
            {TransactionDB.budget_id: None}, synchronize_session="fetch"
        )
        db.delete(db_budget)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError("Budget deletion failed due to database constraint")

    logger.info(f"Deleted budget {budget_id} for user {user_id}")
    return True


def read_budget_transactions(db: Session, budget_id: int, user_id: int) -> Tuple[BudgetDB, List[TransactionDB]]:
    """Return the budget together with the user's transactions in its category, newest first"""

    budget = read_db_budget(db, budget_id, user_id)
    if not budget:
        raise NotFoundError(f"Budget with id {budget_id} not found")

    transactions = (
        db.query(TransactionDB)
        .filter(
            TransactionDB.user_id == user_id,
            TransactionDB.category == budget.category
        )
        .order_by(desc(TransactionDB.transaction_date), desc(TransactionDB.transaction_id))
        .all()
    )

    return budget, transactions


def add_expense_to_budget(db: Session, budget_id: int, user_id: int, expense: BudgetExpenseCreate) -> TransactionDB:
    """Record an expense against a budget, using the budget's category"""

    budget = read_db_budget(db, budget_id, user_id, include_spending=False)
    if not budget:
        raise NotFoundError(f"Budget with id {budget_id} not found")

    db_transaction = TransactionDB(
        user_id=user_id,
        budget_id=budget.budget_id,
        type=TransactionType.EXPENSE,
        category=budget.category,
        amount=expense.amount,
        transaction_date=expense.transaction_date or date.today(),
        description=expense.description or "",
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow()
    )

    try:
        db.add(db_transaction)
        db.commit()
        db.refresh(db_transaction)
    except IntegrityError:
        db.rollback()
        raise ValueError("Expense creation failed due to database constraint")

    logger.info(f"Added expense {db_transaction.transaction_id} of {expense.amount} to budget {budget_id}")
    return db_transaction
