import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String,
    Float,
    DateTime,
    Text,
    Boolean,
    ForeignKey,
    JSON,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, validates

from smartbudget.db import Base

DECISION_LABELS = ("useful", "unnecessary")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(128), default="")
    # Baseline income used when no salary history exists
    monthly_net_income: Mapped[float] = mapped_column(Float, default=0.0)
    # Manual-mode monthly allowance; None means "derive from income"
    flexible_budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, server_default=func.now()
    )


class Transaction(Base):
    __tablename__ = "transactions"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    date: Mapped[str] = mapped_column(String(10), index=True)  # YYYY-MM-DD
    merchant: Mapped[str] = mapped_column(String(256), index=True)
    amount: Mapped[float] = mapped_column(Float)
    raw_category: Mapped[str | None] = mapped_column(String(128), nullable=True)
    justification: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(128), index=True)
    is_impulse: Mapped[bool] = mapped_column(Boolean, default=False)
    decision_label: Mapped[str] = mapped_column(String(16), default="useful")
    decision_explanation: Mapped[str] = mapped_column(Text, default="")
    decision_explanation_translated: Mapped[str | None] = mapped_column(
        Text, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, server_default=func.now()
    )

    @validates("decision_label")
    def _check_label(self, _key, value):
        if value not in DECISION_LABELS:
            raise ValueError(f"decision_label must be one of {DECISION_LABELS}")
        return value


class SavingsGoal(Base):
    __tablename__ = "savings_goals"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    title: Mapped[str] = mapped_column(String(256))
    title_translated: Mapped[str | None] = mapped_column(String(256), nullable=True)
    target_amount: Mapped[float] = mapped_column(Float)
    target_date: Mapped[str] = mapped_column(String(10))  # YYYY-MM-DD
    current_saved_amount: Mapped[float] = mapped_column(Float, default=0.0)
    rules: Mapped[list] = mapped_column(JSON, default=list)
    rules_translated: Mapped[list | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, server_default=func.now()
    )

    @property
    def progress_pct(self) -> int:
        if not self.target_amount:
            return 0
        return min(100, round(self.current_saved_amount / self.target_amount * 100))
