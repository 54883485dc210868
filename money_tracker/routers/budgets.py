from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List

from money_tracker.auth import AuthContext, get_auth_context
from money_tracker.crud import crud_budget
from money_tracker.db.core import get_db, NotFoundError
from money_tracker.models import budget as budget_models
from money_tracker.models import transaction as transaction_models
from money_tracker.models.user import MessageResponse

router = APIRouter(
    prefix="/dashboard/budgets",
    tags=["budgets"],
)


@router.get("", response_model=List[budget_models.BudgetResponse])
def read_budgets(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """
    Retrieve the signed-in user's budgets with spent and remaining amounts.
    """
    return crud_budget.read_db_budgets(db, auth.user_id, skip=skip, limit=limit)


@router.post("", response_model=budget_models.BudgetEnvelope)
def create_budget(
    budget: budget_models.BudgetCreate,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    try:
        db_budget = crud_budget.create_db_budget(db, auth.user_id, budget)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"message": "Budget added successfully", "budget": db_budget}


@router.get("/{budget_id}", response_model=budget_models.BudgetResponse)
def read_budget(
    budget_id: int,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    db_budget = crud_budget.read_db_budget(db, budget_id, auth.user_id)
    if db_budget is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Budget not found")
    return db_budget


@router.put("/{budget_id}", response_model=budget_models.BudgetEnvelope)
def update_budget(
    budget_id: int,
    budget: budget_models.BudgetUpdate,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """
    Update a budget. Only the fields sent are changed.
    """
    try:
        db_budget = crud_budget.update_db_budget(db, budget_id, auth.user_id, budget)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"message": "Budget updated successfully", "budget": db_budget}


@router.delete("/{budget_id}", response_model=MessageResponse)
def delete_budget(
    budget_id: int,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """
    Delete a budget. Its transactions are kept but no longer linked to it.
    """
    try:
        crud_budget.delete_db_budget(db, budget_id, auth.user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"message": "Budget deleted successfully"}


@router.get("/{budget_id}/transactions", response_model=budget_models.BudgetTransactions)
def read_budget_transactions(
    budget_id: int,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """
    Retrieve a budget together with the user's transactions in its category.
    """
    try:
        db_budget, transactions = crud_budget.read_budget_transactions(db, budget_id, auth.user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"budget": db_budget, "transactions": transactions}


@router.post("/{budget_id}/add-expense", response_model=transaction_models.TransactionEnvelope)
def add_expense(
    budget_id: int,
    expense: transaction_models.BudgetExpenseCreate,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """
    Log an expense against a budget in the budget's category.
    """
    try:
        db_transaction = crud_budget.add_expense_to_budget(db, budget_id, auth.user_id, expense)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"message": "Expense added to budget successfully", "transaction": db_transaction}
