"""
Record store: durable storage for diary entries and preferences.

Public API
----------
RecordStore.list_entries()                         -> list[DiaryEntry]  (newest first)
RecordStore.create_entry(content, summary, learning) -> int              (assigned id)
RecordStore.list_preferences()                     -> dict[str, str]
RecordStore.upsert_preference(key, value)          -> None               (last write wins)

Every call opens its own DB session and commits before returning, so each
call is atomic on its own. Nothing spans two calls.

Errors: any SQLAlchemy failure surfaces as StoreUnavailableError; integrity
failures and empty required fields as ConstraintViolationError.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from diarybuddy.core.errors import ConstraintViolationError, StoreUnavailableError
from diarybuddy.models.entry import Entry
from diarybuddy.models.preference import Preference
from diarybuddy.services.state import DiaryEntry

logger = logging.getLogger(__name__)


def _require(value: str | None, field: str) -> str:
    if value is None or not str(value).strip():
        raise ConstraintViolationError(message=f"{field} must not be empty.", field=field)
    return value


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; CURRENT_TIMESTAMP is UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _upsert_statement(dialect: str, key: str, value: str):
    """Single-statement INSERT ... ON CONFLICT(key) DO UPDATE for the preference."""
    if dialect == "postgresql":
        stmt = postgresql_insert(Preference)
    elif dialect == "sqlite":
        stmt = sqlite_insert(Preference)
    else:
        raise StoreUnavailableError(operation="upsert_preference", reason=f"unsupported dialect {dialect}")
    stmt = stmt.values(key=key, value=value)
    return stmt.on_conflict_do_update(
        index_elements=[Preference.key],
        set_={"value": stmt.excluded["value"]},
    )


def _to_entry(row: Entry) -> DiaryEntry:
    return DiaryEntry(
        id=row.id,
        content=row.content,
        summary=row.summary or "",
        learning=row.learning or "",
        created_at=_as_utc(row.created_at),
    )


class RecordStore:
    """CRUD access to the `entries` and `preferences` tables."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except IntegrityError as exc:
            db.rollback()
            logger.warning("Constraint violated during %s: %s", operation, exc.orig)
            raise ConstraintViolationError(message=f"Write rejected during {operation}.") from exc
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Store failure during %s: %s", operation, exc)
            raise StoreUnavailableError(operation=operation, reason=type(exc).__name__) from exc
        finally:
            db.close()

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def list_entries(self) -> list[DiaryEntry]:
        """All entries, newest first (ties broken by descending id)."""
        with self._session("list_entries") as db:
            rows = (
                db.query(Entry)
                .order_by(Entry.created_at.desc(), Entry.id.desc())
                .all()
            )
            return [_to_entry(r) for r in rows]

    def create_entry(self, content: str, summary: str, learning: str) -> int:
        """Insert one entry and return the id assigned by the database."""
        _require(content, "content")
        _require(summary, "summary")
        _require(learning, "learning")

        with self._session("create_entry") as db:
            entry = Entry(content=content, summary=summary, learning=learning)
            db.add(entry)
            db.commit()
            logger.debug("Created entry %s", entry.id)
            return entry.id

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def list_preferences(self) -> dict[str, str]:
        with self._session("list_preferences") as db:
            return {p.key: p.value for p in db.query(Preference).all()}

    def upsert_preference(self, key: str, value: str) -> None:
        """Insert the pair, or replace the value stored under `key`."""
        _require(key, "key")
        _require(value, "value")

        with self._session("upsert_preference") as db:
            db.execute(_upsert_statement(db.get_bind().dialect.name, key, value))
            db.commit()
            logger.debug("Saved preference %r", key)
