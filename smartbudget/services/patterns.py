"""
Behavioral nudges over a period's expense transactions.

Rules are evaluated in a fixed order and the first three that fire are kept:

  1. top category share            (always, when any category exists)
  2. budget pace vs. elapsed days  (needs ceiling + used)
  3. first half vs. second half    (1.2x either way)
  4. impulse rate                  (any impulse purchase)
  5. recurring merchant            (see services.recurring)
  6. costliest weekday             (with per-occurrence average)

Amounts are accumulated unrounded; rounding happens in the message text only.
"""
from __future__ import annotations
import datetime as dt
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from smartbudget.config import settings
from smartbudget.services.recurring import top_recurring
from smartbudget.utils import dates

MAX_PATTERNS = 3
EMPTY_MESSAGE = "No spending recorded for this period yet."

OVERRUN_FACTOR = 1.1
GOOD_PACE_FACTOR = 0.8
TREND_FACTOR = 1.2

_PERIOD_NOUN = {"month": "month", "year": "year", "custom": "period"}


def _amt(t) -> float:
    return abs(float(t.amount or 0))


def _money(v: float) -> str:
    return f"{v:.2f} {settings.CURRENCY}"


def _top_category(expenses: Sequence, **_) -> Optional[str]:
    totals: dict = {}
    for t in expenses:
        cat = t.category or "general"
        totals[cat] = totals.get(cat, 0.0) + _amt(t)
    if not totals:
        return None
    total = sum(totals.values())
    top, top_amount = max(totals.items(), key=lambda kv: kv[1])
    pct = round(top_amount / total * 100) if total else 0
    return f"{top} makes up {pct}% of your spending ({_money(top_amount)})."


def budget_pace(
    used: float,
    ceiling: float,
    bounds: Tuple[dt.date, dt.date],
    timeframe: str = "month",
    today: Optional[dt.date] = None,
) -> Optional[str]:
    start, end = bounds
    today = today or dates.today()
    total_days = max(1, (end - start).days + 1)
    elapsed = (min(today, end) - start).days + 1
    elapsed = min(total_days, max(1, elapsed))
    share = elapsed / total_days
    expected = ceiling * share
    noun = _PERIOD_NOUN.get(timeframe, "period")
    if used > OVERRUN_FACTOR * expected:
        projection = used / share
        return (
            f"You are spending faster than planned: {_money(used)} after {elapsed} of "
            f"{total_days} days. At this pace you will reach {_money(projection)} this {noun} "
            f"(budget {_money(ceiling)})."
        )
    if used < GOOD_PACE_FACTOR * expected:
        return (
            f"Good pace: you have used {_money(used)} so far, below the expected "
            f"{_money(expected)} for this point of the {noun}."
        )
    return None


def _pace(expenses, *, ceiling=None, used=None, bounds=None, timeframe="month", **_) -> Optional[str]:
    if ceiling is None or used is None or bounds is None:
        return None
    return budget_pace(used, ceiling, bounds, timeframe)


def _trend(expenses, *, bounds=None, **_) -> Optional[str]:
    if bounds is None:
        return None
    start, end = bounds
    mid = start + dt.timedelta(days=((end - start).days + 1) // 2)
    first = second = 0.0
    for t in expenses:
        if dates.parse_date(t.date) < mid:
            first += _amt(t)
        else:
            second += _amt(t)
    if first > 0 and second > TREND_FACTOR * first:
        return (
            f"Your spending is rising: {_money(second)} in the second half "
            f"versus {_money(first)} in the first half."
        )
    if second > 0 and first > TREND_FACTOR * second:
        return (
            f"Nice, your spending is going down: {_money(second)} in the second half "
            f"versus {_money(first)} in the first half."
        )
    return None


def _impulse_rate(expenses, **_) -> Optional[str]:
    impulses = [t for t in expenses if t.is_impulse]
    if not impulses:
        return None
    rate = round(len(impulses) / len(expenses) * 100)
    return f"{rate}% of your purchases are impulse buys. Try pausing for a moment before you buy."


def _recurring(expenses, **_) -> Optional[str]:
    top = top_recurring(expenses)
    if top is None:
        return None
    kind = top.cadence if top.cadence != "unknown" else "recurring"
    return (
        f"{top.merchant} looks like a {kind} payment ({top.count}x, about "
        f"{_money(top.avg_amount)} each). Check whether you still need it."
    )


def _weekday(expenses, **_) -> Optional[str]:
    totals: dict = {}
    counts: dict = {}
    for t in expenses:
        day = dates.weekday_name(t.date)
        totals[day] = totals.get(day, 0.0) + _amt(t)
        counts[day] = counts.get(day, 0) + 1
    if not totals:
        return None
    day, amount = max(totals.items(), key=lambda kv: kv[1])
    return f"{day} is your most expensive day (average {_money(amount / counts[day])} per purchase)."


RULES: List[Callable[..., Optional[str]]] = [
    _top_category,
    _pace,
    _trend,
    _impulse_rate,
    _recurring,
    _weekday,
]


def detect_patterns(
    expenses: Iterable,
    timeframe: str = "month",
    ceiling: Optional[float] = None,
    used: Optional[float] = None,
    bounds: Optional[Tuple[dt.date, dt.date]] = None,
) -> List[str]:
    expenses = list(expenses)
    if not expenses:
        return [EMPTY_MESSAGE]
    out: List[str] = []
    for rule in RULES:
        msg = rule(expenses, ceiling=ceiling, used=used, bounds=bounds, timeframe=timeframe)
        if msg:
            out.append(msg)
        if len(out) >= MAX_PATTERNS:
            break
    return out
