import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from smartbudget.config import settings
from smartbudget.db import init_db
from smartbudget.logging import configure_json_logging
from smartbudget.routers import analysis, chat, goals, transactions, user

logger = logging.getLogger("smartbudget.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_json_logging(settings.LOG_LEVEL)
    init_db()
    logger.info(
        "startup: env=%s db=%s llm_stub=%s",
        settings.ENV,
        settings.DATABASE_URL.split("://", 1)[0],
        settings.DEV_ALLOW_NO_LLM,
        extra={"evt": "app.startup"},
    )
    yield


app = FastAPI(
    title="SmartBudget",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Log unhandled exceptions with full traceback."""
    logger.error(
        "Unhandled exception in API request %s %s:\n%s",
        request.method,
        request.url.path,
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/health")
def health():
    return {"ok": True}


app.include_router(transactions.router)
app.include_router(analysis.router)
app.include_router(goals.router)
app.include_router(chat.router)
app.include_router(user.router)
