from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

from smartbudget.utils.dates import parse_date
from smartbudget.utils.text import canonicalize_merchant

MIN_OCCURRENCES = 3
MAX_SPREAD_RATIO = 0.3


@dataclass
class RecurringMerchant:
    merchant: str
    count: int
    avg_amount: float
    cadence: str

    @property
    def weight(self) -> float:
        return self.avg_amount * self.count


def _infer_cadence(sorted_dates: List[date]) -> str:
    if len(sorted_dates) < 3:
        return "unknown"
    # crude distance histogram in days
    diffs = [
        (sorted_dates[i] - sorted_dates[i - 1]).days
        for i in range(1, len(sorted_dates))
    ]
    avg = sum(diffs) / len(diffs)
    if 26 <= avg <= 35:  # monthly-ish
        return "monthly"
    if 6 <= avg <= 8:  # weekly-ish
        return "weekly"
    if 350 <= avg <= 380:
        return "yearly"
    return "unknown"


def find_recurring(txns: Iterable) -> List[RecurringMerchant]:
    """
    Group by merchant; keep groups with >= 3 rows whose amount spread
    (max - min) / avg is at most 0.3. Ranked by avg * count, descending.
    """
    by_merchant = defaultdict(list)
    display = {}
    for t in txns:
        key = canonicalize_merchant(t.merchant)
        if not key:
            continue
        display.setdefault(key, (t.merchant or "").strip())
        by_merchant[key].append(t)

    out: List[RecurringMerchant] = []
    for key, rows in by_merchant.items():
        if len(rows) < MIN_OCCURRENCES:
            continue
        # charges may be stored negative
        amounts = [abs(float(r.amount or 0)) for r in rows]
        avg_amt = sum(amounts) / len(amounts)
        if avg_amt <= 0:
            continue
        if (max(amounts) - min(amounts)) / avg_amt > MAX_SPREAD_RATIO:
            continue
        dates = sorted(parse_date(r.date) for r in rows if r.date)
        out.append(
            RecurringMerchant(
                merchant=display[key],
                count=len(rows),
                avg_amount=avg_amt,
                cadence=_infer_cadence(dates),
            )
        )
    out.sort(key=lambda r: -r.weight)
    return out


def top_recurring(txns: Iterable) -> Optional[RecurringMerchant]:
    found = find_recurring(txns)
    return found[0] if found else None
