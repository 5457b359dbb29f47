# playground/db.py
"""
Embedded record store.

A single SQLite file holds JSON values under string keys, each with an
optional expiry. Expired rows are invisible to reads and are swept on the
next write. Every call runs in its own transaction; nothing spans keys.
"""
from __future__ import annotations
import json
import logging
import os
import time
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from sqlalchemy import Float, String, Text, create_engine, delete, event, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from .config import get_storage_file
from .errors import RecordDecodeError, RecordEncodeError, RecordNotFound, StoreError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass

class Record(Base):
    __tablename__ = "records"

    key: Mapped[str] = mapped_column(String(512), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    # unix seconds, NULL means the record never expires
    expires_at: Mapped[Optional[float]] = mapped_column(Float, nullable=True, index=True)


def glob_to_like(pattern: str) -> str:
    """Translate a key glob (``*`` any run, ``?`` one char) into a LIKE pattern escaped with ``\\``."""
    out = []
    for ch in pattern:
        if ch == "*":
            out.append("%")
        elif ch == "?":
            out.append("_")
        elif ch in ("%", "_", "\\"):
            out.append("\\" + ch)
        else:
            out.append(ch)
    return "".join(out)


def _case_sensitive_like(dbapi_connection, connection_record):
    # keys are matched byte for byte, SQLite LIKE folds ASCII case by default
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA case_sensitive_like = ON")
    cursor.close()


class RecordStore:
    def __init__(self, database_url: str, clock: Callable[[], float] = time.time):
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        self.engine = create_engine(database_url, echo=False, future=True, connect_args=connect_args)
        if database_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _case_sensitive_like)
        Base.metadata.create_all(self.engine)
        self._sessions = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False, future=True)
        self.clock = clock

    def _alive(self, now: float):
        return or_(Record.expires_at.is_(None), Record.expires_at > now)

    def _write(self, key: str, value: str, expires_at: Optional[float]) -> None:
        now = self.clock()
        try:
            with self._sessions.begin() as session:
                session.execute(delete(Record).where(Record.expires_at <= now))
                session.merge(Record(key=key, value=value, expires_at=expires_at))
        except SQLAlchemyError as e:
            raise StoreError(f"could not write {key}: {e}") from e

    def set(self, key: str, value: Any) -> None:
        try:
            data = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise RecordEncodeError(key, str(e)) from e
        self.set_string(key, data)

    def set_string(self, key: str, value: str) -> None:
        self._write(key, value, None)

    def set_string_expire(self, key: str, value: str, ttl: timedelta) -> None:
        self._write(key, value, self.clock() + ttl.total_seconds())

    def get_string(self, key: str) -> str:
        try:
            with self._sessions() as session:
                value = session.scalar(
                    select(Record.value).where(Record.key == key).where(self._alive(self.clock()))
                )
        except SQLAlchemyError as e:
            raise StoreError(f"could not read {key}: {e}") from e
        if value is None:
            raise RecordNotFound(key)
        return value

    def get(self, key: str, into: Optional[Callable[[Any], Any]] = None) -> Any:
        """Decode the JSON at ``key``; ``into`` converts the decoded value (e.g. ``Credentials.from_dict``)."""
        raw = self.get_string(key)
        try:
            data = json.loads(raw)
            return into(data) if into is not None else data
        except (ValueError, TypeError, KeyError) as e:
            raise RecordDecodeError(key, str(e)) from e

    def list(self, pattern: str) -> list[str]:
        """Raw values whose keys match ``pattern``, in descending key order."""
        stmt = (
            select(Record.value)
            .where(Record.key.like(glob_to_like(pattern), escape="\\"))
            .where(self._alive(self.clock()))
            .order_by(Record.key.desc())
        )
        try:
            with self._sessions() as session:
                return list(session.scalars(stmt))
        except SQLAlchemyError as e:
            raise StoreError(f"could not list {pattern}: {e}") from e

    def close(self) -> None:
        self.engine.dispose()


def open_store(storage_path: str, now: Optional[datetime] = None, clock: Callable[[], float] = time.time) -> RecordStore:
    os.makedirs(storage_path, exist_ok=True)
    path = get_storage_file(storage_path, now)
    store = RecordStore(f"sqlite:///{os.path.abspath(path)}", clock=clock)
    logger.info("Opened record store at %s", path)
    return store
