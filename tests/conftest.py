import os

import pytest

# ===========================================================================
# Environment must be fixed before smartbudget.config / smartbudget.db import
# ===========================================================================
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ.setdefault("DEV_ALLOW_NO_LLM", "1")
os.environ.setdefault("TZ", "UTC")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from smartbudget import db as app_db  # noqa: E402
from smartbudget import orm_models  # noqa: E402,F401


@pytest.fixture(autouse=True)
def _baseline_test_env(monkeypatch):
    """Disable real LLM calls; tests that need a model reply monkeypatch
    smartbudget.utils.llm.complete / complete_chat instead."""
    monkeypatch.setenv("DEV_ALLOW_NO_LLM", "1")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    yield


@pytest.fixture
def llm_enabled(monkeypatch):
    """Make llm_available() true without any network; pair with a patched complete()."""
    monkeypatch.setenv("DEV_ALLOW_NO_LLM", "0")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    yield


@pytest.fixture
def db_session():
    """Fresh schema per test on the shared in-memory engine."""
    app_db.Base.metadata.drop_all(bind=app_db.engine)
    app_db.Base.metadata.create_all(bind=app_db.engine)
    db = app_db.SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(db_session):
    from fastapi.testclient import TestClient
    from smartbudget.main import app

    def override_get_db():
        s = app_db.SessionLocal()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[app_db.get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.pop(app_db.get_db, None)
