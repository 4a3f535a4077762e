from __future__ import annotations
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

from smartbudget.schemas.goals import GoalOut
from smartbudget.schemas.txns import TxnOut


class CategoryTotal(BaseModel):
    category: str
    amount: float


class AnalysisResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    budget_ceiling: float
    used: float
    by_category: List[CategoryTotal]
    patterns: List[str]
    timeframe: Literal["month", "year", "custom"]
    months_in_period: int
    ceiling_source: str
    period_start: str
    period_end: str
    impulse_transactions: List[TxnOut] = Field(default_factory=list)
    goals: List[GoalOut] = Field(default_factory=list)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    name: str
    monthly_net_income: float
    flexible_budget: Optional[float] = None


class UserUpdate(BaseModel):
    monthly_net_income: Optional[float] = Field(default=None, ge=0)
    # manual-mode monthly allowance
    monthly_budget: Optional[float] = Field(default=None, ge=0)
