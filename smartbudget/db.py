from sqlalchemy import create_engine, event
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from .config import settings


class Base(DeclarativeBase):
    """SQLAlchemy Declarative Base."""

    pass


def _connect_args(url: str):
    # For SQLite, disable same-thread check
    return {"check_same_thread": False} if url.startswith("sqlite") else {}


_url = settings.DATABASE_URL
_kwargs = dict(
    connect_args=_connect_args(_url),
    pool_pre_ping=True,
    future=True,
    echo=False,
)
if not _url.startswith("sqlite"):
    _kwargs.update(dict(pool_recycle=1800, pool_size=5, max_overflow=10))
if _url.startswith("sqlite") and ":memory:" in _url:
    # Share the same in-memory DB across connections (test client + fixture sessions)
    _kwargs["poolclass"] = StaticPool  # type: ignore[assignment]

engine = create_engine(_url, **_kwargs)

if _url.startswith("sqlite") and ":memory:" not in _url:

    @event.listens_for(engine, "connect")
    def _sqlite_pragma(dbapi_conn, _):
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA journal_mode=WAL;")
        cur.execute("PRAGMA synchronous=NORMAL;")
        cur.close()


SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def init_db() -> None:
    """Create tables for all registered models."""
    from . import orm_models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
