from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from money_tracker.auth import AuthContext, get_auth_context
from money_tracker.crud import crud_savings_goal
from money_tracker.db.core import get_db, NotFoundError, ForbiddenError
from money_tracker.models import savings_goal as goal_models
from money_tracker.models.user import MessageResponse

router = APIRouter(
    prefix="/dashboard",
    tags=["savings-goals"],
)


@router.get("/savings-goals", response_model=List[goal_models.SavingsGoalResponse])
def read_goals(auth: AuthContext = Depends(get_auth_context), db: Session = Depends(get_db)):
    """
    Retrieve the signed-in user's savings goals with their contributions.
    """
    return crud_savings_goal.read_db_goals(db, auth.user_id)


@router.post("/savings-goals", response_model=goal_models.SavingsGoalEnvelope)
def create_goal(
    goal: goal_models.SavingsGoalCreate,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    try:
        db_goal = crud_savings_goal.create_db_goal(db, auth.user_id, goal)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"message": "Savings goal added successfully", "goal": db_goal}


@router.put("/savings-goals/{goal_id}", response_model=goal_models.SavingsGoalEnvelope)
def update_goal(
    goal_id: int,
    goal: goal_models.SavingsGoalUpdate,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    try:
        db_goal = crud_savings_goal.update_db_goal(db, goal_id, auth.user_id, goal)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"message": "Savings goal updated successfully", "goal": db_goal}


@router.delete("/savings-goals/{goal_id}", response_model=MessageResponse)
def delete_goal(
    goal_id: int,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """
    Delete a goal and all of its contributions.
    """
    try:
        crud_savings_goal.delete_db_goal(db, goal_id, auth.user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"message": "Goal deleted successfully"}


@router.post(
    "/goals/{goal_id}/add-contribution",
    response_model=goal_models.ContributionEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def add_contribution(
    goal_id: int,
    contribution: goal_models.ContributionCreate,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    try:
        db_contribution = crud_savings_goal.add_contribution(db, goal_id, auth.user_id, contribution)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"message": "Contribution added successfully!", "contribution": db_contribution}


@router.delete("/contributions/{contribution_id}", response_model=MessageResponse)
def delete_contribution(
    contribution_id: int,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    try:
        crud_savings_goal.delete_contribution(db, contribution_id, auth.user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return {"message": "Contribution deleted successfully"}
