from __future__ import annotations
from typing import Any, Dict, Optional, Annotated, List, Literal
from pydantic import BaseModel, Field, ConfigDict

# Strict "YYYY-MM-DD" calendar day
DateStr = Annotated[str, Field(pattern=r"^\d{4}-(0[1-9]|1[0-2])-(0[1-9]|[12]\d|3[01])$")]


class TxnCreate(BaseModel):
    date: DateStr
    merchant: str = Field(min_length=1)
    amount: float
    raw_category: Optional[str] = None
    justification: Optional[str] = None


class TxnBulkCreate(BaseModel):
    # rows are validated one by one during ingestion
    transactions: List[Dict[str, Any]]


class TxnOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    date: str
    merchant: str
    amount: float
    raw_category: Optional[str] = None
    justification: Optional[str] = None
    category: str
    is_impulse: bool
    decision_label: Literal["useful", "unnecessary"]
    decision_explanation: str
    decision_explanation_translated: Optional[str] = None


class TxnBulkError(BaseModel):
    row: int
    error: str


class TxnBulkResponse(BaseModel):
    created: List[TxnOut]
    errors: List[TxnBulkError]


class TxnCorrection(BaseModel):
    # None means "leave unchanged"
    category: Optional[str] = Field(default=None, min_length=1)
    decision_label: Optional[Literal["useful", "unnecessary"]] = None
    is_impulse: Optional[bool] = None


class ImpulseJustification(BaseModel):
    justification: Optional[str] = None
