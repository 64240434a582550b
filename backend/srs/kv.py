"""Key-value persistence backends for the card store.

The scheduler only needs three operations from its storage: read one
key, write one key, and scan a key range. Any durable key-value store
can sit behind this interface; two are provided here.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session, sessionmaker

from backend.database import init_db, make_sessionmaker, session_scope
from backend.models.kv_record import KVRecord

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Minimal byte-oriented key-value interface."""

    @abstractmethod
    def read(self, key: str) -> bytes | None:
        """Return the value stored under ``key``, or None if absent."""

    @abstractmethod
    def write(self, key: str, value: bytes) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def scan(self, prefix: str = "") -> Iterator[tuple[str, bytes]]:
        """Yield ``(key, value)`` pairs whose key starts with ``prefix``."""


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store; contents are lost when the process exits."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}

    def read(self, key: str) -> bytes | None:
        return self._data.get(key)

    def write(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    def scan(self, prefix: str = "") -> Iterator[tuple[str, bytes]]:
        # Snapshot so callers may write while iterating
        for key, value in list(self._data.items()):
            if key.startswith(prefix):
                yield key, value


class SQLKeyValueStore(KeyValueStore):
    """Embedded store on top of a single SQLAlchemy table (SQLite by default)."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._sessions: sessionmaker[Session] = make_sessionmaker(engine)
        init_db(engine)

    def read(self, key: str) -> bytes | None:
        with self._sessions() as db:
            record = db.get(KVRecord, key)
            return record.value if record is not None else None

    def write(self, key: str, value: bytes) -> None:
        with session_scope(self._sessions) as db:
            record = db.get(KVRecord, key)
            if record is None:
                db.add(KVRecord(key=key, value=value))
            else:
                record.value = value
        logger.debug("Wrote %d bytes to %s", len(value), key)

    def scan(self, prefix: str = "") -> Iterator[tuple[str, bytes]]:
        stmt = select(KVRecord.key, KVRecord.value).order_by(KVRecord.key.asc())
        if prefix:
            stmt = stmt.where(KVRecord.key.startswith(prefix, autoescape=True))
        with self._sessions() as db:
            rows = db.execute(stmt).all()
        for key, value in rows:
            yield key, value
