from __future__ import annotations
from typing import Optional, List, Literal
from pydantic import BaseModel, ConfigDict, Field


class GoalOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    title: str
    title_translated: Optional[str] = None
    target_amount: float
    target_date: str
    current_saved_amount: float
    rules: List[str]
    rules_translated: Optional[List[str]] = None
    progress_pct: int


class GoalDeposit(BaseModel):
    # Negative amounts are withdrawals; the balance never drops below zero
    amount: float


class ChatMessage(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(BaseModel):
    conversation: List[ChatMessage] = Field(min_length=1)


class ChatResponse(BaseModel):
    assistant_message: str
    intent: str
    updated_goals: Optional[List[GoalOut]] = None
