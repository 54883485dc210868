from typing import Optional, List
from sqlalchemy import create_engine, event, ForeignKey, Index, UniqueConstraint, String, Text, DECIMAL, DateTime, Date
from sqlalchemy.types import Enum
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Mapped, relationship, mapped_column
from datetime import datetime, date
from decimal import Decimal
import enum

from money_tracker.config import get_settings

# SavingsContributionDB has a column named `date`
DateType = date


class NotFoundError(Exception):
    pass


class ForbiddenError(Exception):
    pass


class Base(DeclarativeBase):
    pass


class UserDB(Base):
    __tablename__ = "users"

    __table_args__ = (
        UniqueConstraint("email", name="uq_user_email"),
        Index("idx_users_email", "email"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Authentication
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Profile
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    currency_symbol: Mapped[str] = mapped_column(String(10), nullable=False, default="₱")

    # Activity Tracking
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    # Audit Trail
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    transactions: Mapped[List["TransactionDB"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    budgets: Mapped[List["BudgetDB"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    savings_goals: Mapped[List["SavingsGoalDB"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )


class PasswordResetDB(Base):
    """One live reset token per email; a newer request overwrites the row."""
    __tablename__ = "password_resets"

    email: Mapped[str] = mapped_column(String(255), primary_key=True)
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class RevokedTokenDB(Base):
    __tablename__ = "revoked_tokens"

    __table_args__ = (
        Index("idx_revoked_tokens_expires", "expires_at"),
    )

    jti: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[int] = mapped_column(nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    revoked_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class TransactionType(enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"


class BudgetDB(Base):
    __tablename__ = "budgets"

    __table_args__ = (
        Index("idx_budgets_user", "user_id"),
    )

    budget_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # Budget Data
    category: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(DECIMAL(12, 2), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(1000))

    # Audit Trail
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user: Mapped["UserDB"] = relationship(back_populates="budgets")
    # Linked transactions survive budget deletion with budget_id set to NULL
    transactions: Mapped[List["TransactionDB"]] = relationship(back_populates="budget", passive_deletes=True)


class TransactionDB(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        Index("idx_transactions_user_date", "user_id", "transaction_date"),
        Index("idx_transactions_budget", "budget_id"),
    )

    transaction_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    budget_id: Mapped[Optional[int]] = mapped_column(ForeignKey("budgets.budget_id", ondelete="SET NULL"))

    # Basic Transaction Data
    type: Mapped[TransactionType] = mapped_column(Enum(TransactionType, values_callable=lambda e: [m.value for m in e]))
    category: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(DECIMAL(12, 2), nullable=False)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Audit Trail
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user: Mapped["UserDB"] = relationship(back_populates="transactions")
    budget: Mapped[Optional["BudgetDB"]] = relationship(back_populates="transactions")


class SavingsGoalDB(Base):
    __tablename__ = "savings_goals"

    __table_args__ = (
        Index("idx_savings_goals_user", "user_id"),
    )

    goal_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    target_amount: Mapped[Decimal] = mapped_column(DECIMAL(12, 2), nullable=False)
    deadline: Mapped[Optional[date]] = mapped_column(Date)
    description: Mapped[Optional[str]] = mapped_column(Text)

    # Audit Trail
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user: Mapped["UserDB"] = relationship(back_populates="savings_goals")
    contributions: Mapped[List["SavingsContributionDB"]] = relationship(
        back_populates="goal",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SavingsContributionDB.date",
    )


class SavingsContributionDB(Base):
    __tablename__ = "savings_contributions"

    __table_args__ = (
        Index("idx_contributions_goal", "goal_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    goal_id: Mapped[int] = mapped_column(ForeignKey("savings_goals.goal_id", ondelete="CASCADE"), nullable=False)

    amount: Mapped[Decimal] = mapped_column(DECIMAL(10, 2), nullable=False)
    date: Mapped[DateType] = mapped_column(Date, nullable=False, default=DateType.today)

    # Audit Trail
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    goal: Mapped["SavingsGoalDB"] = relationship(back_populates="contributions")


def enable_sqlite_foreign_keys(engine) -> None:
    """SQLite ignores ON DELETE rules unless the pragma is set per connection."""
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def make_engine(database_url: str, echo: bool = False):
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    new_engine = create_engine(database_url, echo=echo, connect_args=connect_args)
    enable_sqlite_foreign_keys(new_engine)
    return new_engine


settings = get_settings()
engine = make_engine(settings.database_url, echo=settings.sql_echo)
session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_db_and_tables(bind=None) -> None:
    Base.metadata.create_all(bind=bind or engine)


# Dependency to get the database session
def get_db():
    database = session_local()
    try:
        yield database
    finally:
        database.close()
