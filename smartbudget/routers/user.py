from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from smartbudget.db import get_db
from smartbudget.deps.user import current_user_id
from smartbudget.repositories import store
from smartbudget.schemas.analysis import UserOut, UserUpdate

router = APIRouter(prefix="/user", tags=["user"])


@router.get("", response_model=UserOut)
def get_user(
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    return store.get_or_create_user(db, user_id)


@router.patch("", response_model=UserOut)
def update_user(
    body: UserUpdate,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    return store.update_user(
        db,
        user_id,
        monthly_net_income=body.monthly_net_income,
        flexible_budget=body.monthly_budget,
    )
