from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from smartbudget.db import get_db
from smartbudget.deps.user import current_user_id
from smartbudget.repositories import store
from smartbudget.schemas.txns import (
    ImpulseJustification,
    TxnBulkCreate,
    TxnBulkResponse,
    TxnCorrection,
    TxnCreate,
    TxnOut,
)
from smartbudget.services import txns_service

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("", response_model=List[TxnOut])
def list_transactions(
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    return store.list_transactions(db, user_id)


@router.post("", response_model=TxnOut, status_code=201)
def create_transaction(
    body: TxnCreate,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    return txns_service.ingest_transaction(db, user_id, body.model_dump())


@router.post("/bulk", response_model=TxnBulkResponse)
def create_transactions_bulk(
    body: TxnBulkCreate,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    created, errors = txns_service.ingest_bulk(db, user_id, body.transactions)
    return {"created": created, "errors": errors}


@router.patch("/{txn_id}", response_model=TxnOut)
def correct_transaction(
    txn_id: str,
    body: TxnCorrection,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    try:
        return txns_service.correct_transaction(db, user_id, txn_id, body.model_dump())
    except store.NotFoundError:
        raise HTTPException(status_code=404, detail="transaction not found")


@router.post("/{txn_id}/impulse", response_model=TxnOut)
def justify_transaction(
    txn_id: str,
    body: ImpulseJustification,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    try:
        return txns_service.submit_justification(db, user_id, txn_id, body.justification)
    except store.NotFoundError:
        raise HTTPException(status_code=404, detail="transaction not found")
