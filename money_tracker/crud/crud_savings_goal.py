from sqlalchemy.orm import Session, selectinload
from sqlalchemy.exc import IntegrityError
from sqlalchemy import desc
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal

from money_tracker.db.core import (
    SavingsGoalDB, SavingsContributionDB, UserDB, NotFoundError, ForbiddenError
)
from money_tracker.models.savings_goal import SavingsGoalCreate, SavingsGoalUpdate, ContributionCreate
from money_tracker.logging_config import get_logger

logger = get_logger(__name__)


# ===== UTILITY FUNCTIONS =====

def calculate_goal_progress(saved: Decimal, target: Decimal) -> float:
    """Percentage of the target reached, capped at 100"""
    if not target or target <= 0:
        return 0.0
    return round(min(float(saved / target * 100), 100.0), 2)


def attach_progress(goal: SavingsGoalDB) -> SavingsGoalDB:
    goal.saved_amount = sum((c.amount for c in goal.contributions), Decimal("0.00"))
    goal.progress = calculate_goal_progress(goal.saved_amount, goal.target_amount)
    return goal


def _get_owned_goal(db: Session, goal_id: int, user_id: int) -> SavingsGoalDB:
    goal = db.query(SavingsGoalDB).filter(
        SavingsGoalDB.goal_id == goal_id,
        SavingsGoalDB.user_id == user_id
    ).first()
    if not goal:
        raise NotFoundError(f"Savings goal with id {goal_id} not found")
    return goal


# ===== SAVINGS GOAL OPERATIONS =====

def create_db_goal(db: Session, user_id: int, goal_data: SavingsGoalCreate) -> SavingsGoalDB:
    """Create a new savings goal"""

    user = db.query(UserDB).filter(UserDB.id == user_id).first()
    if not user:
        raise NotFoundError(f"User with id {user_id} not found")

    db_goal = SavingsGoalDB(
        user_id=user_id,
        title=goal_data.title,
        target_amount=goal_data.target_amount,
        deadline=goal_data.deadline,
        description=goal_data.description,
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow()
    )

    try:
        db.add(db_goal)
        db.commit()
        db.refresh(db_goal)
        return attach_progress(db_goal)
    except IntegrityError:
        db.rollback()
        raise ValueError("Savings goal creation failed due to database constraint")


def read_db_goal(db: Session, goal_id: int, user_id: int) -> Optional[SavingsGoalDB]:
    goal = (
        db.query(SavingsGoalDB)
        .options(selectinload(SavingsGoalDB.contributions))
        .filter(SavingsGoalDB.goal_id == goal_id, SavingsGoalDB.user_id == user_id)
        .first()
    )
    return attach_progress(goal) if goal else None


def read_db_goals(db: Session, user_id: int) -> List[SavingsGoalDB]:
    """Read all goals for a user, newest first, with contributions and progress"""

    goals = (
        db.query(SavingsGoalDB)
        .options(selectinload(SavingsGoalDB.contributions))
        .filter(SavingsGoalDB.user_id == user_id)
        .order_by(desc(SavingsGoalDB.created_at), desc(SavingsGoalDB.goal_id))
        .all()
    )
    return [attach_progress(goal) for goal in goals]


def update_db_goal(db: Session, goal_id: int, user_id: int, goal_updates: SavingsGoalUpdate) -> SavingsGoalDB:
    """Replace a goal's editable fields"""

    db_goal = _get_owned_goal(db, goal_id, user_id)

    for field, value in goal_updates.model_dump().items():
        setattr(db_goal, field, value)
    db_goal.updated_at = datetime.utcnow()

    db.commit()
    db.refresh(db_goal)
    return attach_progress(db_goal)


def delete_db_goal(db: Session, goal_id: int, user_id: int) -> bool:
    """Delete a goal along with its contributions"""

    db_goal = _get_owned_goal(db, goal_id, user_id)

    try:
        db.query(SavingsContributionDB).filter(SavingsContributionDB.goal_id == goal_id).delete(
            synchronize_session="fetch"
        )
        db.delete(db_goal)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError("Savings goal deletion failed due to database constraint")

    logger.info(f"Deleted savings goal {goal_id} for user {user_id}")
    return True


# ===== CONTRIBUTION OPERATIONS =====

def add_contribution(db: Session, goal_id: int, user_id: int, contribution: ContributionCreate) -> SavingsContributionDB:
    """Add money to a goal"""

    _get_owned_goal(db, goal_id, user_id)

    db_contribution = SavingsContributionDB(
        goal_id=goal_id,
        amount=contribution.amount,
        date=contribution.date or date.today(),
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow()
    )

    db.add(db_contribution)
    db.commit()
    db.refresh(db_contribution)
    return db_contribution


def delete_contribution(db: Session, contribution_id: int, user_id: int) -> bool:
    """Delete a contribution from one of the user's goals"""

    db_contribution = db.query(SavingsContributionDB).filter(SavingsContributionDB.id == contribution_id).first()
    if not db_contribution:
        raise NotFoundError(f"Contribution with id {contribution_id} not found")

    if db_contribution.goal.user_id != user_id:
        logger.warning(f"User {user_id} tried to delete contribution {contribution_id} on another user's goal")
        raise ForbiddenError("Unauthorized")

    db.delete(db_contribution)
    db.commit()
    return True
