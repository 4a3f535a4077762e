"""
Transaction classification: category, impulse flag and a usefulness verdict.

The completion model gets the category taxonomy, a handful of labeled examples
and the transaction. Whatever happens on that path, ``classify_transaction``
returns a complete verdict: a reply without JSON or a failing call falls back to
the keyword heuristic in ``heuristics.classify_fallback``.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional

from smartbudget.config import settings
from smartbudget.lib.categories import RECOMMENDED_CATEGORIES, DEFAULT_LLM_CATEGORY
from smartbudget.services.few_shots import get_few_shots, format_few_shots
from smartbudget.services.heuristics import classify_fallback
from smartbudget.utils import llm as llm_mod
from smartbudget.utils.text import extract_json_object

_log = logging.getLogger(__name__)

CLASSIFY_TEMPERATURE = 0.2
NO_EXPLANATION = "No explanation available."


def _system_prompt() -> str:
    cats = ", ".join(f'"{c}"' for c in RECOMMENDED_CATEGORIES)
    examples = format_few_shots(get_few_shots(), settings.CURRENCY)
    return (
        "You are a personal finance expert. Your task is to analyse and classify transactions.\n\n"
        "Analyse the transaction and reply with a JSON object with these fields:\n"
        f"- category: one of {cats}. If none fits, coin a new short category name.\n"
        "- isImpulse: true if the purchase was an impulse buy (spontaneous, emotional, unplanned), else false\n"
        '- decisionLabel: "useful" if the purchase was sensible/necessary, "unnecessary" otherwise\n'
        "- decisionExplanation: a short explanation (1-2 sentences) that helps the user reflect on the purchase\n\n"
        "Here are some examples for orientation:\n\n"
        f"{examples}\n\n"
        "Reply ONLY with a valid JSON object, without additional text."
    )


def _user_prompt(txn: Dict[str, Any]) -> str:
    lines = [
        "Classify this transaction:",
        f"Merchant: {txn.get('merchant', '')}",
        f"Amount: {txn.get('amount')} {settings.CURRENCY}",
    ]
    if txn.get("raw_category"):
        lines.append(f"Category (from user): {txn['raw_category']}")
    if txn.get("justification"):
        lines.append(f"Justification: {txn['justification']}")
    return "\n".join(lines)


def _coerce_bool(v: Any) -> bool:
    if isinstance(v, str):
        return v.strip().lower() in {"true", "yes", "1", "ja"}
    return bool(v)


def parse_verdict(parsed: Dict[str, Any]) -> Dict[str, Any]:
    """Map a model JSON object onto the verdict shape, defaulting missing fields."""
    category = parsed.get("category")
    category = category.strip() if isinstance(category, str) and category.strip() else DEFAULT_LLM_CATEGORY
    explanation = parsed.get("decisionExplanation") or parsed.get("decision_explanation")
    raw_impulse = parsed.get("isImpulse", parsed.get("is_impulse", False))
    raw_label = parsed.get("decisionLabel", parsed.get("decision_label"))
    return {
        "category": category,
        "is_impulse": _coerce_bool(raw_impulse),
        "decision_label": "unnecessary" if raw_label == "unnecessary" else "useful",
        "decision_explanation": str(explanation).strip() if explanation else NO_EXPLANATION,
    }


def classify_transaction(txn: Dict[str, Any]) -> Dict[str, Any]:
    """
    Classify one transaction.

    Args:
        txn: {merchant, amount, raw_category?, justification?}

    Returns:
        {category, is_impulse, decision_label, decision_explanation}
    """
    merchant = txn.get("merchant", "") or ""
    amount = float(txn.get("amount") or 0)
    try:
        reply = llm_mod.complete(_system_prompt(), _user_prompt(txn), CLASSIFY_TEMPERATURE)
    except Exception as err:
        _log.warning(
            "classify: completion failed, using heuristic (%s)",
            type(err).__name__,
            extra={"evt": "classify.fallback"},
        )
        return classify_fallback(merchant, amount)

    parsed = extract_json_object(reply)
    if parsed is None:
        _log.warning("classify: unparseable reply, using heuristic", extra={"evt": "classify.fallback"})
        return classify_fallback(merchant, amount)
    return parse_verdict(parsed)


# ---------------- Re-classification after a user justification ----------------

def _justification_prompts(txn, justification: Optional[str]) -> tuple[str, str]:
    system = (
        "You are a finance coach. Decide whether a purchase was an impulse purchase.\n"
        'Reply only with compact JSON: {"isImpulse": boolean, "decisionLabel": "useful"|"unnecessary", '
        '"decisionExplanation": string, "category": string}\n\n'
        "Context:\n"
        "- isImpulse = true when the purchase was unplanned or unnecessary.\n"
        '- decisionLabel = "useful" for sensible spending, otherwise "unnecessary".\n'
        "- decisionExplanation short and specific.\n"
    )
    user = (
        "Transaction:\n"
        f"- Merchant: {txn.merchant}\n"
        f"- Amount: {txn.amount} {settings.CURRENCY}\n"
        f"- Date: {txn.date}\n"
        f"- Current category: {txn.category}\n"
        f"- Original justification: {txn.justification or 'none'}\n"
        f"- User comment: {justification or 'none'}\n\n"
        "Please classify again."
    )
    return system, user


def reclassify_with_justification(txn, justification: Optional[str]) -> Dict[str, Any]:
    """
    Re-run the verdict for a stored transaction given a user comment.

    Fields the model does not return keep their stored values; the explanation
    falls back to the comment, then to the stored explanation.
    """
    result: Dict[str, Any] = {}
    system, user = _justification_prompts(txn, justification)
    try:
        result = extract_json_object(llm_mod.complete(system, user, 0.2)) or {}
    except Exception as err:
        _log.warning("reclassify: completion failed (%s)", type(err).__name__)

    label = result.get("decisionLabel")
    category = result.get("category")
    return {
        "category": category.strip() if isinstance(category, str) and category.strip() else txn.category,
        "is_impulse": result["isImpulse"] if isinstance(result.get("isImpulse"), bool) else txn.is_impulse,
        "decision_label": label if label in ("useful", "unnecessary") else txn.decision_label,
        "decision_explanation": result.get("decisionExplanation") or justification or txn.decision_explanation,
    }
