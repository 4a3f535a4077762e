"""
Savings goal synthesis.

A free-text savings intention ("I want to save 3000 for Japan by next summer")
becomes {title, target_amount, target_date, rules}. The completion model only
proposes; the contribution rule at rules[0] is always computed here:

    monthly = target_amount / max(1, whole months from today to target_date)

Target dates that are not strictly in the future are replaced by today + 180
days before the contribution is computed.
"""
from __future__ import annotations
import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from smartbudget.config import settings
from smartbudget.services import translate as translate_mod
from smartbudget.utils import dates
from smartbudget.utils import llm as llm_mod
from smartbudget.utils.text import extract_json_object, normalize_text

_log = logging.getLogger(__name__)

DEFAULT_TITLE = "new goal"
DEFAULT_AMOUNT = 1000.0
GENERIC_RULES = [
    "Stick to your monthly budget",
    "Avoid impulse purchases",
    "Save a fixed amount regularly",
]
SYNTH_TEMPERATURE = 0.5

_TRANSFER_WORDS = ("transfer", "ueberweis")
_MONTH_WORDS = ("month", "monat")
_SAVINGS_PHRASES = ("to savings", "aufs sparkonto")


@dataclass
class GoalDraft:
    title: str
    target_amount: float
    target_date: str
    rules: List[str]
    title_translated: Optional[str] = None
    rules_translated: Optional[List[str]] = field(default=None)
    monthly_contribution: float = 0.0
    from_fallback: bool = False


def default_target_date(today: Optional[dt.date] = None) -> str:
    today = today or dates.today()
    return dates.add_days(today, settings.DEFAULT_GOAL_DAYS).isoformat()


def ensure_future_date(value: Optional[str], today: Optional[dt.date] = None) -> str:
    """Return ``value`` if it parses and lies strictly after today, else today + 180d."""
    today = today or dates.today()
    if dates.is_iso_date(value) and dates.parse_date(value) > today:
        return str(value)[:10]
    return default_target_date(today)


def months_remaining(target_date: str, today: Optional[dt.date] = None) -> int:
    today = today or dates.today()
    return max(1, dates.whole_months_between(today, dates.parse_date(target_date)))


def monthly_contribution(target_amount: float, target_date: str, today: Optional[dt.date] = None) -> float:
    return max(0.0, float(target_amount) / months_remaining(target_date, today))


def contribution_rule(monthly: float) -> str:
    return f"Transfer {monthly:.2f} {settings.CURRENCY} to savings each month"


def is_transfer_rule(rule: str) -> bool:
    """True for rules that already describe a monthly transfer to savings."""
    t = normalize_text(rule)
    if any(p in t for p in _SAVINGS_PHRASES):
        return True
    return any(w in t for w in _TRANSFER_WORDS) and any(w in t for w in _MONTH_WORDS)


def build_rules(target_amount: float, target_date: str, proposed: List[str]) -> tuple[List[str], float]:
    """Canonical contribution rule first, then the proposed rules minus transfer duplicates."""
    monthly = monthly_contribution(target_amount, target_date)
    extra = [r.strip() for r in proposed if isinstance(r, str) and r.strip() and not is_transfer_rule(r)]
    return [contribution_rule(monthly), *extra], monthly


def _system_prompt() -> str:
    today = dates.today().isoformat()
    return (
        "You are a finance coach who helps users define savings goals. "
        f"Today is {today}.\n\n"
        "Analyse the user's message and extract:\n"
        '1. goalTitle: a short title for the savings goal (e.g. "Thailand trip", "New car")\n'
        f"2. targetAmount: the target amount in {settings.CURRENCY} (a number)\n"
        "3. targetDate: the target date as YYYY-MM-DD\n"
        "4. rules: 3-4 concrete behavioral rules that help reach the goal\n\n"
        "Rules should be specific, measurable and realistic, for example:\n"
        f'- "Shopping at most 300 {settings.CURRENCY} per month"\n'
        '- "Food delivery at most twice a week"\n'
        f'- "Wait 24h before any purchase over 100 {settings.CURRENCY}"\n\n'
        "Reply ONLY with a valid JSON object with the fields goalTitle, targetAmount, "
        "targetDate, rules (array of strings)."
    )


def _to_amount(v: Any) -> Optional[float]:
    try:
        amount = float(v)
    except (TypeError, ValueError):
        return None
    return amount if amount > 0 else None


def extract_goal(utterance: str) -> Optional[Dict[str, Any]]:
    """Ask the completion model for a goal; None when the call fails or returns no JSON."""
    try:
        reply = llm_mod.complete(_system_prompt(), utterance, SYNTH_TEMPERATURE)
    except Exception as err:
        _log.warning("goals: extraction failed, using default goal (%s)", type(err).__name__)
        return None
    parsed = extract_json_object(reply)
    if parsed is None:
        _log.warning("goals: unparseable extraction reply, using default goal")
    return parsed


def synthesize(utterance: str, translate: bool = True) -> GoalDraft:
    parsed = extract_goal(utterance)
    from_fallback = parsed is None
    parsed = parsed or {}

    title = str(parsed.get("goalTitle") or parsed.get("title") or "").strip() or DEFAULT_TITLE
    amount = _to_amount(parsed.get("targetAmount")) or DEFAULT_AMOUNT
    target_date = ensure_future_date(parsed.get("targetDate"))
    proposed = parsed.get("rules")
    if not isinstance(proposed, list) or not proposed:
        proposed = list(GENERIC_RULES)

    rules, monthly = build_rules(amount, target_date, proposed)
    draft = GoalDraft(
        title=title,
        target_amount=amount,
        target_date=target_date,
        rules=rules,
        monthly_contribution=monthly,
        from_fallback=from_fallback,
    )
    if translate:
        translate_draft(draft)
    return draft


def translate_draft(draft: GoalDraft) -> GoalDraft:
    """Best-effort secondary-language title and rules; untranslated text on failure."""
    lang = settings.SECONDARY_LANGUAGE
    out = translate_mod.translate_texts([draft.title, *draft.rules], lang)
    if len(out) == len(draft.rules) + 1:
        draft.title_translated = out[0]
        draft.rules_translated = out[1:]
    return draft


def revise(goal, utterance: str, translate: bool = True) -> GoalDraft:
    """
    Re-synthesize an existing goal from a change request.

    Fields the model does not return keep the goal's stored values; when the
    call fails entirely only the contribution rule is recomputed.
    """
    parsed = extract_goal(utterance)
    from_fallback = parsed is None
    parsed = parsed or {}

    title = str(parsed.get("goalTitle") or parsed.get("title") or "").strip() or goal.title
    amount = _to_amount(parsed.get("targetAmount")) or float(goal.target_amount)
    target_date = ensure_future_date(parsed.get("targetDate") or goal.target_date)
    proposed = parsed.get("rules")
    if not isinstance(proposed, list) or not proposed:
        proposed = list(goal.rules or [])[1:]

    rules, monthly = build_rules(amount, target_date, proposed)
    draft = GoalDraft(
        title=title,
        target_amount=amount,
        target_date=target_date,
        rules=rules,
        monthly_contribution=monthly,
        from_fallback=from_fallback,
    )
    if translate:
        translate_draft(draft)
    return draft
