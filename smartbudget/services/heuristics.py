"""Heuristic transaction classifier (deterministic fallback, never empty)."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from smartbudget.lib.categories import DEFAULT_FALLBACK_CATEGORY


@dataclass(frozen=True)
class MerchantRule:
    keywords: Tuple[str, ...]
    category: str
    # amount > impulse_over -> impulse purchase
    impulse_over: Optional[float] = None
    # amount > unnecessary_over -> "unnecessary"; defaults to the impulse verdict
    unnecessary_over: Optional[float] = None
    label: str = "useful"


# Order matters only for keywords of equal length: the earlier rule wins.
MERCHANT_RULES = [
    MerchantRule(
        ("coop", "migros", "aldi", "lidl", "denner", "spar", "volg",
         "whole foods", "trader joe", "kroger", "supermarket", "grocery"),
        "groceries",
    ),
    MerchantRule(
        ("uber eats", "delivery", "pizza", "restaurant", "just eat",
         "doordash", "takeaway", "mcdonald", "burger king", "kebab"),
        "food delivery",
        impulse_over=30.0,
        unnecessary_over=40.0,
    ),
    MerchantRule(
        ("sbb", "uber", "taxi", "lyft", "mobility", "bvg", "train", "parking",
         "shell", "bp ", "esso", "tamoil"),
        "transport",
    ),
    MerchantRule(
        ("zalando", "h&m", "zara", "shopping", "manor", "amazon", "galaxus",
         "mango", "about you", "shein", "primark", "globus"),
        "shopping",
        impulse_over=50.0,
    ),
    MerchantRule(
        ("netflix", "spotify", "kino", "cinema", "disney", "steam",
         "playstation", "ticketcorner"),
        "entertainment",
    ),
    MerchantRule(
        ("apotheke", "pharmacy", "fitness", "gym", "doctor", "arzt", "dentist"),
        "health",
    ),
    MerchantRule(("rent", "miete", "ikea"), "housing"),
    MerchantRule(("insurance", "versicherung", "helsana", "css ", "axa"), "insurance"),
    MerchantRule(("udemy", "coursera", "school", "university", "books"), "education"),
]


def normalize(text: str) -> str:
    """Normalize text for matching."""
    return (text or "").lower().strip()


def match_rule(merchant: str) -> Tuple[Optional[MerchantRule], str]:
    """Longest keyword contained in ``merchant`` wins; returns (rule, keyword)."""
    m = normalize(merchant) + " "
    best: Optional[MerchantRule] = None
    best_kw = ""
    for rule in MERCHANT_RULES:
        for kw in rule.keywords:
            if kw in m and len(kw) > len(best_kw):
                best, best_kw = rule, kw
    return best, best_kw


def explain(merchant: str, is_impulse: bool) -> str:
    if is_impulse:
        return (
            f"Spontaneous purchase at {merchant}. "
            "Next time, think about whether you really need it."
        )
    return f"Regular purchase at {merchant}. Looks planned and sensible."


def classify_fallback(merchant: str, amount: float) -> Dict:
    """Return {category, is_impulse, decision_label, decision_explanation}.

    Pure function of merchant text and amount.
    """
    rule, _kw = match_rule(merchant)
    amount = float(amount or 0)
    if rule is None:
        category, is_impulse, label = DEFAULT_FALLBACK_CATEGORY, False, "useful"
    else:
        category = rule.category
        is_impulse = rule.impulse_over is not None and amount > rule.impulse_over
        if rule.unnecessary_over is not None:
            label = "unnecessary" if amount > rule.unnecessary_over else "useful"
        elif rule.impulse_over is not None:
            label = "unnecessary" if is_impulse else "useful"
        else:
            label = rule.label
    return {
        "category": category,
        "is_impulse": is_impulse,
        "decision_label": label,
        "decision_explanation": explain((merchant or "").strip(), is_impulse),
    }
