from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import desc
from typing import Optional, List
from datetime import datetime

from money_tracker.db.core import TransactionDB, BudgetDB, UserDB, NotFoundError, TransactionType
from money_tracker.models.transaction import TransactionCreate, TransactionUpdate
from money_tracker.logging_config import get_logger

logger = get_logger(__name__)


# ===== UTILITY FUNCTIONS =====

def verify_budget_owner(db: Session, budget_id: int, user_id: int) -> BudgetDB:
    """Fetch a budget only if it belongs to the user"""
    budget = db.query(BudgetDB).filter(
        BudgetDB.budget_id == budget_id,
        BudgetDB.user_id == user_id
    ).first()
    if not budget:
        raise NotFoundError(f"Budget with id {budget_id} not found")
    return budget


# ===== DATABASE OPERATIONS =====

def create_db_transaction(db: Session, user_id: int, transaction_data: TransactionCreate) -> TransactionDB:
    """Create a new transaction"""

    user = db.query(UserDB).filter(UserDB.id == user_id).first()
    if not user:
        raise NotFoundError(f"User with id {user_id} not found")

    if transaction_data.budget_id is not None:
        verify_budget_owner(db, transaction_data.budget_id, user_id)

    db_transaction = TransactionDB(
        user_id=user_id,
        budget_id=transaction_data.budget_id,
        type=TransactionType(transaction_data.type.value),
        category=transaction_data.category,
        amount=transaction_data.amount,
        transaction_date=transaction_data.transaction_date,
        description=transaction_data.description or "",
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow()
    )

    try:
        db.add(db_transaction)
        db.commit()
        db.refresh(db_transaction)
        return db_transaction
    except IntegrityError:
        db.rollback()
        raise ValueError("Transaction creation failed due to database constraint")


def read_db_transaction(db: Session, transaction_id: int, user_id: int) -> Optional[TransactionDB]:
    """Read a single transaction owned by the user"""
    return db.query(TransactionDB).filter(
        TransactionDB.transaction_id == transaction_id,
        TransactionDB.user_id == user_id
    ).first()


def read_db_transactions(db: Session, user_id: int, skip: int = 0, limit: int = 100) -> List[TransactionDB]:
    """Read a user's transactions, newest first"""
    return (
        db.query(TransactionDB)
        .filter(TransactionDB.user_id == user_id)
        .order_by(desc(TransactionDB.transaction_date), desc(TransactionDB.transaction_id))
        .offset(skip)
        .limit(limit)
        .all()
    )


def update_db_transaction(db: Session, transaction_id: int, user_id: int,
                          transaction_updates: TransactionUpdate) -> TransactionDB:
    """Update an existing transaction"""

    db_transaction = read_db_transaction(db, transaction_id, user_id)
    if not db_transaction:
        raise NotFoundError(f"Transaction with id {transaction_id} not found")

    # Update only the fields that are provided
    update_data = transaction_updates.model_dump(exclude_unset=True)

    if update_data.get('budget_id') is not None:
        verify_budget_owner(db, update_data['budget_id'], user_id)

    for field, value in update_data.items():
        if field == 'type':
            if value is not None:
                db_transaction.type = TransactionType(value.value)
        elif field == 'description':
            db_transaction.description = value or ""
        elif field in ('category', 'amount', 'transaction_date') and value is None:
            continue
        else:
            setattr(db_transaction, field, value)

    db_transaction.updated_at = datetime.utcnow()

    try:
        db.commit()
        db.refresh(db_transaction)
        return db_transaction
    except IntegrityError:
        db.rollback()
        raise ValueError("Transaction update failed due to database constraint")


def delete_db_transaction(db: Session, transaction_id: int, user_id: int) -> bool:
    """Delete a transaction"""

    db_transaction = read_db_transaction(db, transaction_id, user_id)
    if not db_transaction:
        raise NotFoundError(f"Transaction with id {transaction_id} not found")

    db.delete(db_transaction)
    db.commit()
    return True
