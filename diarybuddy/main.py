import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy import text

from diarybuddy.db.base import Base, engine, get_db
from diarybuddy.core.config import settings
from diarybuddy.core.logging import configure_logging
from diarybuddy.routers import chat as chat_router
from diarybuddy.routers import entries as entries_router
from diarybuddy.routers import preferences as preferences_router
from diarybuddy.core.errors import (
    DiaryBuddyException,
    diarybuddy_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)
import diarybuddy.models  # noqa: F401  (registers tables on Base.metadata)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    if settings.AUTO_CREATE_TABLES:
        Base.metadata.create_all(bind=engine)
    yield
    conversation = getattr(app.state, "conversation", None)
    if conversation is not None and hasattr(conversation.generator, "close"):
        conversation.generator.close()


app = FastAPI(
    title="Diary Buddy API",
    description=(
        "**Student diary assistant**\n\n"
        "Chat about your day; the assistant writes a summary and learning outcome, "
        "learns your preferences, and stores both.\n\n"
        "All error responses follow the `{code, message, details}` envelope."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Exception handlers (most specific first) ---
app.add_exception_handler(DiaryBuddyException, diarybuddy_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Routers ---
app.include_router(entries_router.router)
app.include_router(preferences_router.router)
app.include_router(chat_router.router)


@app.get("/health", tags=["health"], summary="Health check")
def health(db: Session = Depends(get_db)):
    """
    Returns `{"status": "ok", "db": "ok"}` when both the API and the database
    are reachable. Returns HTTP 503 if the DB is down.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "ok"
    except SQLAlchemyError as exc:
        logger.warning("Health check: database unreachable: %s", exc)
        db_status = "unreachable"

    if db_status != "ok":
        return JSONResponse(
            status_code=503,
            content={"status": "error", "db": db_status},
        )
    return {"status": "ok", "db": "ok", "env": settings.APP_ENV}
