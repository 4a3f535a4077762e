"""Per-request user resolution.

There is no authentication: the caller names the user in ``X-User-Id`` and
falls back to the demo user. Unknown users are created on first use.
"""

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from smartbudget.config import settings
from smartbudget.db import get_db
from smartbudget.repositories import store


def current_user_id(
    x_user_id: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> str:
    user_id = (x_user_id or "").strip() or settings.DEMO_USER_ID
    store.get_or_create_user(db, user_id)
    return user_id
