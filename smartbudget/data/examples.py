"""
Reference transactions used as few-shot exemplars for the classifier.

Synthetic rows shaped like a public card-transaction dataset. The corpus is
read-only; callers get it through ``load_examples()`` which builds it once per
process.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class KaggleTransaction:
    date: str
    merchant: str
    amount: float
    category: str
    is_impulse: bool
    decision_label: str
    decision_explanation: str


_ROWS = [
    # groceries: mostly useful
    ("2024-01-15", "Coop", 87.5, "groceries", False, "useful",
     "Regular weekly grocery run. Sensible household spending."),
    ("2024-01-18", "Migros", 45.2, "groceries", False, "useful",
     "Necessary purchase of staple food."),
    # shopping: often impulse
    ("2024-01-20", "Zalando", 129.9, "shopping", True, "unnecessary",
     "Online shopping without a concrete need. Classic late-night impulse buy."),
    ("2024-02-03", "H&M", 89.5, "shopping", True, "unnecessary",
     "Unplanned clothing purchase in store, emotionally driven."),
    ("2024-02-10", "Manor", 156.0, "shopping", False, "useful",
     "Planned purchase of clothing that was actually needed."),
    # food delivery: mixed
    ("2024-01-22", "Uber Eats", 42.5, "food delivery", True, "unnecessary",
     "Late food order out of convenience although there was food at home."),
    ("2024-02-05", "Just Eat", 38.9, "food delivery", True, "unnecessary",
     "Spontaneous order without real need. Could have cooked."),
    ("2024-02-14", "Pizza Kurier", 65.0, "food delivery", False, "useful",
     "Planned dinner with friends. Social event."),
    # transport: usually useful
    ("2024-01-16", "SBB", 85.0, "transport", False, "useful",
     "Monthly rail pass for commuting. Necessary expense."),
    ("2024-01-25", "Uber", 28.5, "transport", False, "useful",
     "Taxi ride after missing the last train. Necessary."),
    ("2024-02-08", "Mobility", 45.0, "transport", False, "useful",
     "Car sharing for the weekend shopping trip. Sensible use."),
    # entertainment: mixed
    ("2024-01-30", "Netflix", 19.9, "entertainment", False, "useful",
     "Monthly streaming subscription. Planned entertainment spending."),
    ("2024-02-12", "Spotify", 12.9, "entertainment", False, "useful",
     "Music streaming subscription. Regular fixed cost."),
    ("2024-02-16", "Kino Arena", 85.0, "entertainment", True, "unnecessary",
     "Spontaneous cinema visit with snacks. Was not budgeted."),
    # health: usually useful
    ("2024-01-19", "Apotheke", 34.5, "health", False, "useful",
     "Necessary medication and health products."),
    ("2024-02-07", "Fitnesscenter", 79.0, "health", False, "useful",
     "Monthly gym membership. Investment in health."),
]

_CACHE: Tuple[KaggleTransaction, ...] | None = None


def load_examples() -> Tuple[KaggleTransaction, ...]:
    global _CACHE
    if _CACHE is None:
        _CACHE = tuple(KaggleTransaction(*row) for row in _ROWS)
    return _CACHE
