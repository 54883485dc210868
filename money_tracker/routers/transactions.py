from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List

from money_tracker.auth import AuthContext, get_auth_context
from money_tracker.crud import crud_transaction
from money_tracker.db.core import get_db, NotFoundError
from money_tracker.models import transaction as transaction_models
from money_tracker.models.user import MessageResponse

router = APIRouter(
    prefix="/dashboard/transactions",
    tags=["transactions"],
)


@router.get("", response_model=List[transaction_models.TransactionResponse])
def read_transactions(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """
    Retrieve the signed-in user's transactions, newest first.
    """
    return crud_transaction.read_db_transactions(db, auth.user_id, skip=skip, limit=limit)


@router.post("", response_model=transaction_models.TransactionEnvelope)
def create_transaction(
    transaction: transaction_models.TransactionCreate,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """
    Record a new income or expense.
    """
    try:
        db_transaction = crud_transaction.create_db_transaction(db, auth.user_id, transaction)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"message": "Transaction added successfully", "transaction": db_transaction}


@router.get("/{transaction_id}", response_model=transaction_models.TransactionResponse)
def read_transaction(
    transaction_id: int,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    db_transaction = crud_transaction.read_db_transaction(db, transaction_id, auth.user_id)
    if db_transaction is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
    return db_transaction


@router.put("/{transaction_id}", response_model=transaction_models.TransactionEnvelope)
def update_transaction(
    transaction_id: int,
    transaction: transaction_models.TransactionUpdate,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """
    Update a transaction. Only the fields sent are changed.
    """
    try:
        db_transaction = crud_transaction.update_db_transaction(db, transaction_id, auth.user_id, transaction)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"message": "Transaction updated successfully", "transaction": db_transaction}


@router.delete("/{transaction_id}", response_model=MessageResponse)
def delete_transaction(
    transaction_id: int,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    try:
        crud_transaction.delete_db_transaction(db, transaction_id, auth.user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"message": "Transaction deleted successfully"}
