"""
Budget scoping and aggregation over a user's transaction history.

Transactions are scoped to a period by comparing their ``YYYY-MM-DD`` strings,
split into income-like and expense-like rows, and summarised into a ceiling,
spend, a per-category table and behavioral nudges.

Months in a period:
  month  -> 1
  year   -> the numeric month of the reference month ("2025-04" -> 4), not 12
  custom -> inclusive month difference + 1 (min 1)
"""
from __future__ import annotations
import datetime as dt
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Literal, Optional, Sequence, Tuple

from smartbudget.config import settings
from smartbudget.lib.categories import INCOME_CATEGORIES, SALARY_CATEGORY, normalize_category
from smartbudget.services.patterns import detect_patterns
from smartbudget.utils import dates
from smartbudget.utils.text import normalize_text

_log = logging.getLogger(__name__)

Timeframe = Literal["month", "year", "custom"]
BudgetMode = Literal["auto", "manual"]

HISTORY_MONTHS = 12

SALARY_KEYWORDS = ("salary", "lohn", "gehalt", "salaer", "payroll", "paycheck", "wages")
INCOME_KEYWORDS = SALARY_KEYWORDS + (
    "income",
    "einkommen",
    "refund",
    "rueckerstattung",
    "gutschrift",
    "dividend",
    "zinsertrag",
    "bonus",
)


class InvalidPeriodError(ValueError):
    """Custom range missing a bound, unparsable, or reversed."""


@dataclass(frozen=True)
class PeriodSpec:
    timeframe: Timeframe
    month: Optional[str] = None  # YYYY-MM (month / year reference)
    start: Optional[str] = None  # YYYY-MM-DD (custom)
    end: Optional[str] = None  # YYYY-MM-DD (custom)

    @classmethod
    def for_month(cls, month: str) -> "PeriodSpec":
        return cls("month", month=month)

    @classmethod
    def for_year(cls, month: str) -> "PeriodSpec":
        return cls("year", month=month)

    @classmethod
    def for_range(cls, start: str, end: str) -> "PeriodSpec":
        if not (dates.is_iso_date(start) and dates.is_iso_date(end)):
            raise InvalidPeriodError("custom range needs start and end as YYYY-MM-DD")
        if start[:10] > end[:10]:
            raise InvalidPeriodError("custom range start must not be after end")
        return cls("custom", start=start[:10], end=end[:10])

    def contains(self, date_str: str) -> bool:
        d = (date_str or "")[:10]
        if self.timeframe == "month":
            return d.startswith(self.month or "")
        if self.timeframe == "year":
            return d.startswith((self.month or "")[:4])
        return (self.start or "") <= d <= (self.end or "")

    def months(self) -> int:
        if self.timeframe == "year":
            return int((self.month or "0000-01").split("-")[1])
        if self.timeframe == "custom":
            span = dates.month_diff(dates.parse_date(self.start), dates.parse_date(self.end)) + 1
            return max(1, span)
        return 1

    def reference_month(self) -> str:
        """Month the salary history window ends at."""
        if self.timeframe == "custom":
            return (self.end or self.start or "")[:7]
        return (self.month or "")[:7]

    def bounds(self) -> Tuple[dt.date, dt.date]:
        if self.timeframe == "month":
            return dates.month_bounds(self.month)
        if self.timeframe == "year":
            y = int(self.month[:4])
            return dt.date(y, 1, 1), dt.date(y, 12, 31)
        return dates.parse_date(self.start), dates.parse_date(self.end)


@dataclass
class BudgetSummary:
    budget_ceiling: float
    used: float
    by_category: List[Dict[str, Any]]
    patterns: List[str]
    timeframe: Timeframe
    months_in_period: int
    ceiling_source: str
    period_start: str
    period_end: str
    impulse_transactions: List[Any] = field(default_factory=list)


def _text_of(t) -> str:
    parts = [getattr(t, "merchant", ""), getattr(t, "category", ""), getattr(t, "justification", "")]
    return normalize_text(" ".join(p for p in parts if p))


def is_salary(t) -> bool:
    if normalize_category(getattr(t, "category", None)) == SALARY_CATEGORY:
        return True
    text = _text_of(t)
    return any(k in text for k in SALARY_KEYWORDS)


def is_income(t) -> bool:
    if normalize_category(getattr(t, "category", None)) in INCOME_CATEGORIES:
        return True
    text = _text_of(t)
    return any(k in text for k in INCOME_KEYWORDS)


def scope_transactions(txns: Iterable[Any], period: PeriodSpec) -> List[Any]:
    return [t for t in txns if period.contains(getattr(t, "date", ""))]


def partition(txns: Iterable[Any]) -> Tuple[List[Any], List[Any]]:
    """(income_like, expense_like)"""
    income, expenses = [], []
    for t in txns:
        (income if is_income(t) else expenses).append(t)
    return income, expenses


def category_totals(expenses: Iterable[Any]) -> List[Dict[str, Any]]:
    """Category -> summed |amount|, descending; ties keep first-seen order."""
    totals: Dict[str, float] = {}
    for t in expenses:
        cat = getattr(t, "category", None) or "general"
        totals[cat] = totals.get(cat, 0.0) + abs(float(t.amount or 0))
    ranked = [{"category": c, "amount": a} for c, a in totals.items()]
    ranked.sort(key=lambda r: -r["amount"])  # list.sort is stable
    return ranked


def average_monthly_salary(txns: Iterable[Any], end_month: str, months: int = HISTORY_MONTHS) -> float:
    """Average salary over the months (of the trailing window) that had any salary."""
    window = set(dates.trailing_months(end_month, months))
    per_month: Dict[str, float] = defaultdict(float)
    for t in txns:
        month = (getattr(t, "date", "") or "")[:7]
        if month in window and is_salary(t):
            per_month[month] += abs(float(t.amount or 0))
    paid = [v for v in per_month.values() if v > 0]
    if not paid:
        return 0.0
    return sum(paid) / len(paid)


def budget_ceiling(
    all_txns: Sequence[Any],
    scoped_income: Sequence[Any],
    period: PeriodSpec,
    mode: BudgetMode,
    *,
    baseline_income: float,
    flexible_budget: Optional[float] = None,
) -> Tuple[float, str]:
    """Return (ceiling, source) where source names the rule that produced it."""
    months = period.months()
    share = settings.FLEXIBLE_SHARE
    if mode == "manual":
        monthly = flexible_budget if flexible_budget is not None else baseline_income * share
        return float(monthly) * months, "manual"

    observed = sum(abs(float(t.amount or 0)) for t in scoped_income if is_salary(t))
    if observed > 0:
        return observed, "salary"

    avg = average_monthly_salary(all_txns, period.reference_month())
    if avg > 0:
        return avg * share * months, "salary_history"
    return float(baseline_income) * share * months, "baseline"


def compute_budget(
    all_txns: Sequence[Any],
    period: PeriodSpec,
    mode: BudgetMode = "auto",
    *,
    baseline_income: Optional[float] = None,
    flexible_budget: Optional[float] = None,
) -> BudgetSummary:
    """
    Summarise one period of a user's transactions.

    Args:
        all_txns: full history (needed for the trailing salary average)
        period: month / year / custom range
        mode: "auto" derives the ceiling from salary, "manual" uses the flexible budget
        baseline_income: declared monthly net income (defaults from settings)
        flexible_budget: manual monthly allowance
    """
    if baseline_income is None:
        baseline_income = settings.DEFAULT_MONTHLY_NET_INCOME
    scoped = scope_transactions(all_txns, period)
    income, expenses = partition(scoped)

    ceiling, source = budget_ceiling(
        all_txns,
        income,
        period,
        mode,
        baseline_income=baseline_income,
        flexible_budget=flexible_budget,
    )
    used = sum(abs(float(t.amount or 0)) for t in expenses)
    start, end = period.bounds()
    patterns = detect_patterns(
        expenses,
        period.timeframe,
        ceiling=ceiling,
        used=used,
        bounds=(start, end),
    )
    _log.debug(
        "budget: timeframe=%s scoped=%d expenses=%d ceiling=%.2f source=%s",
        period.timeframe,
        len(scoped),
        len(expenses),
        ceiling,
        source,
    )
    return BudgetSummary(
        budget_ceiling=ceiling,
        used=used,
        by_category=category_totals(expenses),
        patterns=patterns,
        timeframe=period.timeframe,
        months_in_period=period.months(),
        ceiling_source=source,
        period_start=start.isoformat(),
        period_end=end.isoformat(),
        impulse_transactions=[t for t in expenses if getattr(t, "is_impulse", False)],
    )
