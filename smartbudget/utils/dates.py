"""Calendar helpers. Dates travel as ISO strings (YYYY-MM-DD / YYYY-MM) and are
compared as strings; no timezone conversion happens anywhere."""
from __future__ import annotations
import calendar
import datetime as dt
from typing import List, Optional

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def today() -> dt.date:
    return dt.date.today()


def parse_date(value: str) -> dt.date:
    return dt.date.fromisoformat(str(value)[:10])


def is_iso_date(value: Optional[str]) -> bool:
    if not value:
        return False
    try:
        parse_date(value)
    except ValueError:
        return False
    return len(str(value)) >= 10


def month_key(d: dt.date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def current_month_key() -> str:
    return month_key(today())


def month_bounds(month: str) -> tuple[dt.date, dt.date]:
    y, m = map(int, month.split("-")[:2])
    last = calendar.monthrange(y, m)[1]
    return dt.date(y, m, 1), dt.date(y, m, last)


def shift_month(month: str, delta: int) -> str:
    y, m = map(int, month.split("-")[:2])
    idx = y * 12 + (m - 1) + delta
    return f"{idx // 12:04d}-{idx % 12 + 1:02d}"


def trailing_months(end_month: str, count: int) -> List[str]:
    """``count`` month keys ending at ``end_month`` inclusive, oldest first."""
    return [shift_month(end_month, -i) for i in range(count - 1, -1, -1)]


def month_diff(start: dt.date, end: dt.date) -> int:
    return (end.year - start.year) * 12 + (end.month - start.month)


def whole_months_between(start: dt.date, end: dt.date) -> int:
    """Completed calendar months from ``start`` to ``end`` (day-of-month aware)."""
    months = month_diff(start, end)
    if end.day < start.day:
        months -= 1
    return months


def add_days(d: dt.date, days: int) -> dt.date:
    return d + dt.timedelta(days=days)


def weekday_name(value: str) -> str:
    return WEEKDAYS[parse_date(value).weekday()]
