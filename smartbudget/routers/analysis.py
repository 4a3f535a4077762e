from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from smartbudget.db import get_db
from smartbudget.deps.user import current_user_id
from smartbudget.repositories import store
from smartbudget.schemas.analysis import AnalysisResponse
from smartbudget.services.budget import InvalidPeriodError, PeriodSpec, compute_budget
from smartbudget.utils import dates

router = APIRouter(tags=["analysis"])


def _period(timeframe: str, month: Optional[str], start: Optional[str], end: Optional[str]) -> PeriodSpec:
    if timeframe == "custom":
        if not start or not end:
            raise InvalidPeriodError("custom range needs start and end")
        return PeriodSpec.for_range(start, end)
    ref = month or dates.current_month_key()
    if timeframe == "year":
        return PeriodSpec.for_year(ref)
    return PeriodSpec.for_month(ref)


@router.get("/analysis", response_model=AnalysisResponse)
def analysis(
    mode: Literal["auto", "manual"] = "auto",
    timeframe: Literal["month", "year", "custom"] = "month",
    month: Optional[str] = Query(default=None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$"),
    start: Optional[str] = None,
    end: Optional[str] = None,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    try:
        period = _period(timeframe, month, start, end)
    except InvalidPeriodError as err:
        raise HTTPException(status_code=400, detail=str(err))

    user = store.get_or_create_user(db, user_id)
    summary = compute_budget(
        store.list_transactions(db, user_id),
        period,
        mode,
        baseline_income=user.monthly_net_income,
        flexible_budget=user.flexible_budget,
    )
    return {
        "budget_ceiling": summary.budget_ceiling,
        "used": summary.used,
        "by_category": summary.by_category,
        "patterns": summary.patterns,
        "timeframe": summary.timeframe,
        "months_in_period": summary.months_in_period,
        "ceiling_source": summary.ceiling_source,
        "period_start": summary.period_start,
        "period_end": summary.period_end,
        "impulse_transactions": summary.impulse_transactions,
        "goals": store.list_goals(db, user_id),
    }
