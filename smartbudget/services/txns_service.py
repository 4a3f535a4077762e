"""Transaction ingestion and correction.

A transaction is always classified before it is stored; the translated
explanation is filled best-effort.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError
from sqlalchemy.orm import Session

from smartbudget.orm_models import Transaction
from smartbudget.repositories import store
from smartbudget.schemas.txns import TxnCreate
from smartbudget.services import translate as translate_mod
from smartbudget.services.classify import classify_transaction, reclassify_with_justification

_log = logging.getLogger(__name__)

CORRECTABLE_FIELDS = ("category", "decision_label", "is_impulse")


def ingest_transaction(db: Session, user_id: str, payload: Dict[str, Any]) -> Transaction:
    """
    Classify and persist one transaction.

    payload: {date, merchant, amount, raw_category?, justification?}
    """
    merchant = payload["merchant"].strip()
    raw_category = (payload.get("raw_category") or "").strip() or None
    hint = raw_category or store.merchant_category_hint(db, user_id, merchant)

    verdict = classify_transaction(
        {
            "merchant": merchant,
            "amount": payload["amount"],
            "raw_category": hint,
            "justification": payload.get("justification"),
        }
    )
    fields = {
        "date": str(payload["date"])[:10],
        "merchant": merchant,
        "amount": float(payload["amount"]),
        "raw_category": raw_category,
        "justification": payload.get("justification"),
        **verdict,
        "decision_explanation_translated": translate_mod.translate_to_default_language(
            verdict["decision_explanation"]
        ),
    }
    txn = store.create_transaction(db, user_id, fields)
    _log.info(
        "txn: stored id=%s category=%s impulse=%s",
        txn.id,
        txn.category,
        txn.is_impulse,
        extra={"evt": "txn.ingest"},
    )
    return txn


def _validation_message(err: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in e['loc']) or 'row'}: {e['msg']}" for e in err.errors()
    )


def ingest_bulk(db: Session, user_id: str, rows: List[Dict[str, Any]]) -> Tuple[List[Transaction], List[Dict[str, Any]]]:
    """Validate and ingest rows one by one; a failing row is reported and does not stop the batch."""
    created: List[Transaction] = []
    errors: List[Dict[str, Any]] = []
    for idx, row in enumerate(rows):
        try:
            payload = TxnCreate.model_validate(row).model_dump()
        except ValidationError as err:
            _log.info("txn: bulk row %d rejected", idx, extra={"evt": "txn.bulk.invalid"})
            errors.append({"row": idx, "error": _validation_message(err)})
            continue
        try:
            created.append(ingest_transaction(db, user_id, payload))
        except Exception as err:
            db.rollback()
            _log.warning("txn: bulk row %d failed (%s)", idx, err)
            errors.append({"row": idx, "error": str(err)})
    return created, errors


def correct_transaction(db: Session, user_id: str, txn_id: str, changes: Dict[str, Any]) -> Transaction:
    """Apply a user's correction of category / decision label / impulse flag."""
    fields = {k: v for k, v in changes.items() if k in CORRECTABLE_FIELDS and v is not None}
    return store.update_transaction(db, user_id, txn_id, fields)


def submit_justification(db: Session, user_id: str, txn_id: str, justification: Optional[str]) -> Transaction:
    """Re-classify a stored transaction in light of the user's comment."""
    txn = store.get_transaction(db, user_id, txn_id)
    verdict = reclassify_with_justification(txn, justification)
    explanation = verdict["decision_explanation"]
    fields = {
        "category": verdict["category"],
        "is_impulse": verdict["is_impulse"],
        "decision_label": verdict["decision_label"],
        "decision_explanation": explanation,
        "decision_explanation_translated": translate_mod.translate_to_default_language(explanation),
    }
    if justification:
        fields["justification"] = justification
    return store.update_transaction(db, user_id, txn_id, fields)
