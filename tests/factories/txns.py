from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional, Union
import uuid

DateLike = Union[date, datetime, str]


def _quantize_amount(value: Any) -> float:
    dec = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return float(dec)


def _normalize_date(d: Optional[DateLike]) -> str:
    if d is None:
        return date.today().isoformat()
    if isinstance(d, datetime):
        return d.date().isoformat()
    if isinstance(d, date):
        return d.isoformat()
    return date.fromisoformat(str(d).strip()[:10]).isoformat()


@dataclass
class Txn:
    """Plain stand-in for a classified transaction row (services read attributes only)."""

    id: str
    date: str
    merchant: str
    amount: float
    category: str
    is_impulse: bool = False
    decision_label: str = "useful"
    decision_explanation: str = ""
    justification: Optional[str] = None
    raw_category: Optional[str] = None


def create_txn(
    *,
    date_: Optional[DateLike] = None,
    merchant: str = "Test merchant",
    amount: float = 12.34,
    category: str = "general",
    is_impulse: bool = False,
    **overrides: Any,
) -> Txn:
    """
    Build a Txn with sane defaults:
      - date: today unless given (accepts date/datetime/ISO string)
      - amount: quantized to 2 decimals
    """
    return Txn(
        id=overrides.pop("id", None) or str(uuid.uuid4()),
        date=_normalize_date(date_),
        merchant=merchant,
        amount=_quantize_amount(amount),
        category=category,
        is_impulse=is_impulse,
        **overrides,
    )
