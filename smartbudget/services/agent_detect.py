# smartbudget/services/agent_detect.py
"""
Keyword/regex detectors for chat messages about savings goals.

Each detector looks at the latest user utterance (and the user's goals) and
returns a typed intent or None. ``route`` runs them in a fixed precedence;
this is heuristic matching, so false positives are expected.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union
import re

from smartbudget.utils.text import normalize_text, parse_amount


@dataclass
class Deposit:
    goal_id: str
    goal_title: str
    amount: float
    kind: str = "deposit"


@dataclass
class RuleAdd:
    goal_id: str
    rule_text: str
    kind: str = "rule_add"


@dataclass
class RuleRemove:
    goal_id: str
    rule_index: Optional[int] = None  # 0-based
    rule_text: Optional[str] = None
    kind: str = "rule_remove"


@dataclass
class Delete:
    goal_id: str
    goal_title: str
    kind: str = "delete"


@dataclass
class Complete:
    goal_id: str
    goal_title: str
    kind: str = "complete"


@dataclass
class Update:
    goal_id: str
    kind: str = "update"


@dataclass
class CreateGoal:
    kind: str = "create_goal"


@dataclass
class General:
    kind: str = "general"


Intent = Union[Deposit, RuleAdd, RuleRemove, Delete, Complete, Update, CreateGoal, General]

DEPOSIT_KEYWORDS = [
    "eingezahlt", "einbezahlt", "einzahlung", "zurueckgelegt", "gespart",
    "saved", "deposit", "put aside", "set aside",
]
RULE_ADD_KEYWORDS = [
    "regel hinzuf", "neue regel", "regel add", "regel dazu",
    "add rule", "new rule", "add a rule",
]
DELETE_KEYWORDS = ["loesch", "delete", "entfern", "weg"]
COMPLETE_KEYWORDS = [
    "fertig", "erreicht", "abgeschlossen", "erfuellt", "erledigt",
    "completed", "reached", "achieved", "finished",
]
UPDATE_KEYWORDS = [
    "update", "anpassen", "pass an", "passe", "aendere", "aendern",
    "bearbeiten", "edit", "adjust", "change", "modify", "revise", "rename",
    "updaten", "aktualisier", "editieren", "rewrite", "rework",
    "ueberarbeite", "aenderung",
]
GOAL_KEYWORDS = ["sparen", "sparziel", "ziel", "spare", "save", "saving", "savings", "goal", "target"]
AMOUNT_KEYWORDS = ["chf", "franken", "fr.", "eur", "usd", "$", "€", "£"]
TIME_KEYWORDS = [
    "bis", "monat", "jahr", "tag", "woche",
    "by", "month", "year", "week", "day", "until",
]

_AMOUNT_RE = re.compile(r"(\d+(?:[.,]\d{1,2})?)")
_DIGIT_RE = re.compile(r"\d+")
_RULE_TEXT_RE = re.compile(r"(?:regel|rule)[^:]*[:\-]\s*[\"“]?(.+?)[\"”]?$", re.IGNORECASE)
_QUOTED_RE = re.compile(r"[\"“](.+?)[\"”]")
_RULE_INDEX_RE = re.compile(r"(?:regel|rule)\s*(?:nr\.?|no\.?|#)?\s*(\d+)", re.IGNORECASE)
# remove verb with "rule" after it, or the German verb on either side of "regel"
_RULE_REMOVE_RE = re.compile(
    r"\b(?:remove|delete|drop)\b.*\brules?\b"
    r"|\bregel\w*\b.*\b(?:loesch|entfern|streich)"
    r"|\b(?:loesch|entfern|streich)\w*\b.*\bregel"
)
_RULE_NAMED_RE = re.compile(r"\b(?:remove|delete|drop)\s+(?:the\s+|my\s+)?(.+?)\s+rule\b", re.IGNORECASE)
_ARTICLES = {"the", "a", "my", "this", "that"}


def _has_any(text: str, keywords: Sequence[str]) -> bool:
    return any(k in text for k in keywords)


def _has_word_start(text: str, keywords: Sequence[str]) -> bool:
    # "edit" must not fire inside "credit"
    return any(re.search(r"\b" + re.escape(k), text) for k in keywords)


def match_goal_by_name(normalized_message: str, goals: Sequence) -> Optional[object]:
    """First goal whose normalized title occurs in the normalized message."""
    for g in goals:
        title = normalize_text(g.title).strip()
        if title and title in normalized_message:
            return g
    return None


def _target_goal(normalized: str, goals: Sequence):
    return match_goal_by_name(normalized, goals) or (goals[0] if goals else None)


def _rule_text(message: str) -> str:
    m = _RULE_TEXT_RE.search(message.strip()) or _QUOTED_RE.search(message)
    return m.group(1).strip() if m else ""


def detect_deposit(message: str, goals: Sequence) -> Optional[Deposit]:
    normalized = normalize_text(message)
    if not _has_any(normalized, DEPOSIT_KEYWORDS):
        return None
    m = _AMOUNT_RE.search(message)
    if not m:
        return None
    amount = parse_amount(m.group(1))
    if amount is None or amount <= 0:
        return None
    goal = match_goal_by_name(normalized, goals)
    if goal is None:
        return None
    return Deposit(goal_id=goal.id, goal_title=goal.title, amount=amount)


def _named_rule(message: str) -> Optional[str]:
    """Rule name between the verb and "rule", as in: remove the shopping rule."""
    m = _RULE_NAMED_RE.search(message)
    if not m:
        return None
    name = m.group(1).strip()
    return None if name.lower() in _ARTICLES else name


def detect_rule_add(message: str, goals: Sequence) -> Optional[RuleAdd]:
    normalized = normalize_text(message)
    if not _has_any(normalized, RULE_ADD_KEYWORDS):
        return None
    text = _rule_text(message)
    if not text:
        return None
    goal = _target_goal(normalized, goals)
    if goal is None:
        return None
    return RuleAdd(goal_id=goal.id, rule_text=text)


def detect_rule_remove(message: str, goals: Sequence) -> Optional[RuleRemove]:
    normalized = normalize_text(message)
    if not _RULE_REMOVE_RE.search(normalized):
        return None
    goal = _target_goal(normalized, goals)
    if goal is None:
        return None
    m = _RULE_INDEX_RE.search(message)
    if m:
        return RuleRemove(goal_id=goal.id, rule_index=int(m.group(1)) - 1)
    return RuleRemove(goal_id=goal.id, rule_text=_rule_text(message) or _named_rule(message))


def detect_delete(message: str, goals: Sequence) -> Optional[Delete]:
    normalized = normalize_text(message)
    if not _has_any(normalized, DELETE_KEYWORDS):
        return None
    goal = _target_goal(normalized, goals)
    if goal is None:
        return None
    return Delete(goal_id=goal.id, goal_title=goal.title)


def detect_complete(message: str, goals: Sequence) -> Optional[Complete]:
    normalized = normalize_text(message)
    if not _has_any(normalized, COMPLETE_KEYWORDS):
        return None
    goal = _target_goal(normalized, goals)
    if goal is None:
        return None
    return Complete(goal_id=goal.id, goal_title=goal.title)


def detect_update(message: str, goals: Sequence) -> Optional[Update]:
    normalized = normalize_text(message)
    if not _has_word_start(normalized, UPDATE_KEYWORDS):
        return None
    goal = _target_goal(normalized, goals)
    if goal is None:
        return None
    return Update(goal_id=goal.id)


def detect_create_goal(message: str, goals: Sequence = ()) -> Optional[CreateGoal]:
    normalized = normalize_text(message)
    has_goal = _has_any(normalized, GOAL_KEYWORDS)
    has_amount = _has_any(normalized, AMOUNT_KEYWORDS) or bool(_DIGIT_RE.search(message))
    has_time = _has_any(normalized, TIME_KEYWORDS)
    if has_goal and (has_amount or has_time):
        return CreateGoal()
    return None


DETECTORS = [
    detect_deposit,
    detect_rule_add,
    detect_rule_remove,
    detect_delete,
    detect_complete,
    detect_update,
    detect_create_goal,
]


def route(message: str, goals: Sequence) -> Intent:
    """First detector that fires wins; General otherwise."""
    goals = list(goals)
    for detect in DETECTORS:
        intent = detect(message, goals)
        if intent is not None:
            return intent
    return General()


def latest_user_message(conversation: List[dict]) -> str:
    for m in reversed(conversation or []):
        if m.get("role") == "user":
            return m.get("content") or ""
    return ""
