"""Persistence accessors for users, transactions and savings goals.

Plain functions over a SQLAlchemy ``Session``; each mutating call commits.
Concurrent writers are last-write-wins.
"""
from collections import Counter
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from smartbudget.config import settings
from smartbudget.orm_models import SavingsGoal, Transaction, User

MERCHANT_HINT_WINDOW = 10


class NotFoundError(LookupError):
    def __init__(self, kind: str, ident: str):
        super().__init__(f"{kind} not found: {ident}")
        self.kind = kind
        self.ident = ident


# ---------------- Users ----------------

def get_or_create_user(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if user is None:
        user = User(
            id=user_id,
            name=user_id,
            monthly_net_income=settings.DEFAULT_MONTHLY_NET_INCOME,
            flexible_budget=None,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    return user


def update_user(
    db: Session,
    user_id: str,
    *,
    monthly_net_income: Optional[float] = None,
    flexible_budget: Optional[float] = None,
) -> User:
    user = get_or_create_user(db, user_id)
    if monthly_net_income is not None:
        user.monthly_net_income = float(monthly_net_income)
    if flexible_budget is not None:
        user.flexible_budget = float(flexible_budget)
    db.commit()
    db.refresh(user)
    return user


# ---------------- Transactions ----------------

def list_transactions(db: Session, user_id: str) -> List[Transaction]:
    return (
        db.query(Transaction)
        .filter(Transaction.user_id == user_id)
        .order_by(Transaction.date.desc(), Transaction.created_at.desc())
        .all()
    )


def create_transaction(db: Session, user_id: str, fields: Dict) -> Transaction:
    txn = Transaction(user_id=user_id, **fields)
    db.add(txn)
    db.commit()
    db.refresh(txn)
    return txn


def get_transaction(db: Session, user_id: str, txn_id: str) -> Transaction:
    txn = (
        db.query(Transaction)
        .filter(Transaction.id == txn_id, Transaction.user_id == user_id)
        .one_or_none()
    )
    if txn is None:
        raise NotFoundError("transaction", txn_id)
    return txn


def update_transaction(db: Session, user_id: str, txn_id: str, fields: Dict) -> Transaction:
    txn = get_transaction(db, user_id, txn_id)
    for key, value in fields.items():
        setattr(txn, key, value)
    db.commit()
    db.refresh(txn)
    return txn


def merchant_category_hint(db: Session, user_id: str, merchant: str) -> Optional[str]:
    """Most frequent category among the user's last 10 transactions at ``merchant``."""
    rows = (
        db.query(Transaction.category)
        .filter(Transaction.user_id == user_id, Transaction.merchant == merchant)
        .order_by(Transaction.created_at.desc())
        .limit(MERCHANT_HINT_WINDOW)
        .all()
    )
    cats = [c for (c,) in rows if c]
    if not cats:
        return None
    # Counter.most_common keeps first-seen order on ties (newest first)
    return Counter(cats).most_common(1)[0][0]


# ---------------- Savings goals ----------------

def list_goals(db: Session, user_id: str) -> List[SavingsGoal]:
    return (
        db.query(SavingsGoal)
        .filter(SavingsGoal.user_id == user_id)
        .order_by(SavingsGoal.created_at.desc())
        .all()
    )


def get_goal(db: Session, user_id: str, goal_id: str) -> SavingsGoal:
    goal = (
        db.query(SavingsGoal)
        .filter(SavingsGoal.id == goal_id, SavingsGoal.user_id == user_id)
        .one_or_none()
    )
    if goal is None:
        raise NotFoundError("goal", goal_id)
    return goal


def create_goal(db: Session, user_id: str, fields: Dict) -> SavingsGoal:
    goal = SavingsGoal(user_id=user_id, current_saved_amount=0.0, **fields)
    db.add(goal)
    db.commit()
    db.refresh(goal)
    return goal


def update_goal_amount(db: Session, user_id: str, goal_id: str, amount: float) -> SavingsGoal:
    goal = get_goal(db, user_id, goal_id)
    goal.current_saved_amount = float(amount)
    db.commit()
    db.refresh(goal)
    return goal


def update_goal_rules(
    db: Session,
    user_id: str,
    goal_id: str,
    rules: List[str],
    rules_translated: Optional[List[str]] = None,
) -> SavingsGoal:
    goal = get_goal(db, user_id, goal_id)
    # JSON columns only notice reassignment, not in-place mutation
    goal.rules = list(rules)
    goal.rules_translated = list(rules_translated) if rules_translated is not None else None
    db.commit()
    db.refresh(goal)
    return goal


def update_goal(db: Session, user_id: str, goal_id: str, fields: Dict) -> SavingsGoal:
    goal = get_goal(db, user_id, goal_id)
    for key, value in fields.items():
        if key in ("rules", "rules_translated") and value is not None:
            value = list(value)
        setattr(goal, key, value)
    db.commit()
    db.refresh(goal)
    return goal


def mark_goal_complete(db: Session, user_id: str, goal_id: str) -> SavingsGoal:
    goal = get_goal(db, user_id, goal_id)
    goal.current_saved_amount = goal.target_amount
    db.commit()
    db.refresh(goal)
    return goal


def delete_goal(db: Session, user_id: str, goal_id: str) -> None:
    goal = get_goal(db, user_id, goal_id)
    db.delete(goal)
    db.commit()
