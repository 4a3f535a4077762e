"""
Chat orchestration: route the latest user message to a goal operation or to
the general finance-coach conversation.

Handlers never raise for goal-mutation failures; they log and answer with a
friendly message instead. Store errors outside the handlers bubble up.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from smartbudget.config import settings
from smartbudget.repositories import store
from smartbudget.services import goals as goals_svc
from smartbudget.services import translate as translate_mod
from smartbudget.services.agent_detect import (
    Complete,
    CreateGoal,
    Delete,
    Deposit,
    General,
    RuleAdd,
    RuleRemove,
    Update,
    latest_user_message,
    route,
)
from smartbudget.utils import dates
from smartbudget.utils import llm as llm_mod

_log = logging.getLogger(__name__)

CHAT_TEMPERATURE = 0.7


@dataclass
class ChatResult:
    assistant_message: str
    intent: str
    updated_goals: Optional[List] = None


def _money(v: float) -> str:
    return f"{v:.2f} {settings.CURRENCY}"


def _progress(goal) -> int:
    return goal.progress_pct


# ---------------- goal handlers ----------------

def handle_deposit(db: Session, user_id: str, intent: Deposit, goals: List) -> str:
    goal = next((g for g in goals if g.id == intent.goal_id), None)
    if goal is None:
        return "I could not find a matching savings goal. Tell me the goal name and I will record the deposit."
    new_amount = max(0.0, float(goal.current_saved_amount or 0) + intent.amount)
    updated = store.update_goal_amount(db, user_id, goal.id, new_amount)
    return (
        f'Got it! I booked {_money(intent.amount)} to "{updated.title}". '
        f"New balance: {_money(updated.current_saved_amount)} of "
        f"{_money(updated.target_amount)} ({_progress(updated)}%)."
    )


def handle_rule_add(db: Session, user_id: str, intent: RuleAdd, goals: List) -> str:
    goal = next((g for g in goals if g.id == intent.goal_id), None)
    if goal is None:
        return "I could not find a savings goal to add the rule to."
    rules = [*(goal.rules or []), intent.rule_text]
    base_translated = goal.rules_translated if goal.rules_translated is not None else list(goal.rules or [])
    rules_translated = [*base_translated, translate_mod.translate_to_default_language(intent.rule_text)]
    store.update_goal_rules(db, user_id, goal.id, rules, rules_translated)
    return f'I added a new rule to "{goal.title}": "{intent.rule_text}".'


def remove_rule(rules: List[str], translated: Optional[List[str]], intent: RuleRemove):
    """Return (rules, translated) without the targeted rule; rules[0] is never removed."""
    keep = list(range(len(rules)))
    if intent.rule_index is not None:
        if 0 < intent.rule_index < len(rules):
            keep.remove(intent.rule_index)
    elif intent.rule_text:
        needle = intent.rule_text.lower()
        keep = [i for i in keep if i == 0 or needle not in rules[i].lower()]
    new_rules = [rules[i] for i in keep]
    new_translated = None
    if translated is not None and len(translated) == len(rules):
        new_translated = [translated[i] for i in keep]
    return new_rules, new_translated


def handle_rule_remove(db: Session, user_id: str, intent: RuleRemove, goals: List) -> str:
    goal = next((g for g in goals if g.id == intent.goal_id), None)
    if goal is None:
        return "I could not find a savings goal to remove a rule from."
    if intent.rule_index == 0:
        return f'The monthly transfer rule of "{goal.title}" stays; it is computed from your target.'
    rules, translated = remove_rule(list(goal.rules or []), goal.rules_translated, intent)
    store.update_goal_rules(db, user_id, goal.id, rules, translated)
    return f'Rule updated. "{goal.title}" now has {len(rules)} rules.'


def handle_delete(db: Session, user_id: str, intent: Delete, goals: List) -> str:
    store.delete_goal(db, user_id, intent.goal_id)
    return f'I deleted the savings goal "{intent.goal_title}".'


def handle_complete(db: Session, user_id: str, intent: Complete, goals: List) -> str:
    updated = store.mark_goal_complete(db, user_id, intent.goal_id)
    return f'Congrats! "{updated.title}" is now marked as achieved (target {_money(updated.target_amount)}).'


def handle_update(db: Session, user_id: str, intent: Update, goals: List, message: str) -> str:
    goal = next((g for g in goals if g.id == intent.goal_id), None)
    if goal is None:
        return "Could not find a matching savings goal to update."
    draft = goals_svc.revise(goal, message)
    updated = store.update_goal(
        db,
        user_id,
        goal.id,
        {
            "title": draft.title,
            "title_translated": draft.title_translated,
            "target_amount": draft.target_amount,
            "target_date": draft.target_date,
            "rules": draft.rules,
            "rules_translated": draft.rules_translated,
        },
    )
    if draft.from_fallback:
        return (
            f'I could not read the changes for "{updated.title}", so I only recalculated '
            f"the monthly transfer: {draft.rules[0]}."
        )
    return (
        f'I updated your savings goal "{updated.title}". '
        f"Target: {_money(updated.target_amount)} by {updated.target_date}."
    )


def handle_create(db: Session, user_id: str, message: str) -> str:
    draft = goals_svc.synthesize(message)
    store.create_goal(
        db,
        user_id,
        {
            "title": draft.title,
            "title_translated": draft.title_translated,
            "target_amount": draft.target_amount,
            "target_date": draft.target_date,
            "rules": draft.rules,
            "rules_translated": draft.rules_translated,
        },
    )
    lines = "\n".join(f"{i}. {r}" for i, r in enumerate(draft.rules, start=1))
    note = (
        "I could not read an amount or date from your message, so I used defaults. "
        "Tell me what to change.\n\n"
        if draft.from_fallback
        else ""
    )
    return (
        f'Great! I captured your savings goal "{draft.title}".\n\n'
        f"Goal: {_money(draft.target_amount)} by {draft.target_date}\n\n"
        f"Your rules:\n{lines}\n\n"
        f"{note}Stay focused and track your progress regularly."
    )


_FAILURE_MESSAGES: Dict[str, str] = {
    "deposit": "I could not save the deposit. Please try again or tell me the goal name and the amount.",
    "rule_add": "I could not save the rule. Please try again.",
    "rule_remove": "I could not remove the rule. Please try again.",
    "delete": "I could not delete the savings goal.",
    "complete": "I could not mark the savings goal as completed.",
    "update": "Could not update the savings goal.",
    "create_goal": "Sorry, I could not process your savings goal. Could you rephrase it?",
}


# ---------------- general conversation ----------------

def coach_system_prompt(user, goals: List) -> str:
    income = user.monthly_net_income if user and user.monthly_net_income else settings.DEFAULT_MONTHLY_NET_INCOME
    goal_lines = "\n".join(
        f"  * {g.title}: {_money(g.target_amount)} by {g.target_date}" for g in goals
    )
    return (
        "You are SmartBudgetAI, a friendly but honest personal finance coach. "
        f"Today is {dates.today().isoformat()}.\n\n"
        "You help users reflect on their spending and make better financial decisions.\n\n"
        "Style:\n"
        "- Concrete and actionable\n"
        "- Honest but encouraging\n"
        "- Short, concise answers\n\n"
        "User data:\n"
        f"- Monthly net income: {_money(income)}\n"
        f"- Active savings goals: {len(goals)}\n"
        f"{goal_lines}\n\n"
        "If the user mentions a savings goal (with amount and timeframe), respond enthusiastically."
    )


def mock_reply(message: str) -> str:
    text = (message or "").lower()
    if any(k in text for k in ("save", "saving", "goal", "sparen", "ziel")):
        return (
            "That sounds like a great savings goal! Tell me the amount and a date "
            "and I will set it up with concrete rules for you."
        )
    if any(k in text for k in ("spend", "expense", "cost", "ausgaben", "kosten")):
        return (
            "Let's look at your spending together. The analysis page shows your top "
            "categories; that is usually where the savings potential is."
        )
    if "impulse" in text or "impuls" in text:
        return (
            "Impulse purchases are normal, but they can put your goals at risk. "
            f"Try the 24-hour rule: wait a day before any purchase over 50 {settings.CURRENCY}."
        )
    return "I see. Let's work on your finances together. What would you like to achieve next?"


def general_reply(user, goals: List, conversation: List[dict], message: str) -> str:
    messages = [{"role": "system", "content": coach_system_prompt(user, goals)}, *conversation]
    try:
        return llm_mod.complete_chat(messages, CHAT_TEMPERATURE)
    except Exception as err:
        _log.warning("chat: completion unavailable, using mock reply (%s)", type(err).__name__)
        return mock_reply(message)


# ---------------- entry point ----------------

def process_chat(db: Session, user_id: str, conversation: List[dict]) -> ChatResult:
    """Route the latest user message and apply its goal operation."""
    message = latest_user_message(conversation)
    goals = store.list_goals(db, user_id)
    intent = route(message, goals)
    _log.info("chat: intent=%s goals=%d", intent.kind, len(goals), extra={"evt": "chat.intent"})

    if isinstance(intent, General):
        user = store.get_or_create_user(db, user_id)
        reply = general_reply(user, goals, conversation, message)
        return ChatResult(assistant_message=reply, intent=intent.kind)

    try:
        if isinstance(intent, Deposit):
            reply = handle_deposit(db, user_id, intent, goals)
        elif isinstance(intent, RuleAdd):
            reply = handle_rule_add(db, user_id, intent, goals)
        elif isinstance(intent, RuleRemove):
            reply = handle_rule_remove(db, user_id, intent, goals)
        elif isinstance(intent, Delete):
            reply = handle_delete(db, user_id, intent, goals)
        elif isinstance(intent, Complete):
            reply = handle_complete(db, user_id, intent, goals)
        elif isinstance(intent, Update):
            reply = handle_update(db, user_id, intent, goals, message)
        elif isinstance(intent, CreateGoal):
            reply = handle_create(db, user_id, message)
        else:
            raise TypeError(f"unhandled intent {intent!r}")
    except Exception:
        _log.exception("chat: %s handler failed", intent.kind)
        db.rollback()
        return ChatResult(assistant_message=_FAILURE_MESSAGES[intent.kind], intent=intent.kind)

    return ChatResult(
        assistant_message=reply,
        intent=intent.kind,
        updated_goals=store.list_goals(db, user_id),
    )
