from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from smartbudget.db import get_db
from smartbudget.deps.user import current_user_id
from smartbudget.repositories import store
from smartbudget.schemas.goals import GoalDeposit, GoalOut

router = APIRouter(prefix="/goals", tags=["goals"])


@router.get("", response_model=List[GoalOut])
def list_goals(
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    return store.list_goals(db, user_id)


@router.patch("/{goal_id}", response_model=GoalOut)
def deposit(
    goal_id: str,
    body: GoalDeposit,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    try:
        goal = store.get_goal(db, user_id, goal_id)
        new_amount = max(0.0, float(goal.current_saved_amount or 0) + body.amount)
        return store.update_goal_amount(db, user_id, goal_id, new_amount)
    except store.NotFoundError:
        raise HTTPException(status_code=404, detail="goal not found")


@router.delete("/{goal_id}", status_code=204)
def delete_goal(
    goal_id: str,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    try:
        store.delete_goal(db, user_id, goal_id)
    except store.NotFoundError:
        raise HTTPException(status_code=404, detail="goal not found")
