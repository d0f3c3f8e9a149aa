"""
Key-value persistence backends.

The core only relies on get/set/remove/clear of opaque strings and never
assumes multi-key transactions.
"""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from clinic_safety.models.records import KeyValueRecord

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def clear(self) -> None: ...


class InMemoryKeyValueStore:
    def __init__(self):
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()

    def keys(self) -> list[str]:
        return list(self._items)


class SqlKeyValueStore:
    """Key-value store on the ``kv_records`` table. One session per call."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def get_item(self, key: str) -> str | None:
        with self._session_factory() as db:
            record = db.get(KeyValueRecord, key)
            return record.value if record else None

    def set_item(self, key: str, value: str) -> None:
        with self._session_factory() as db:
            record = db.get(KeyValueRecord, key)
            if record is None:
                db.add(KeyValueRecord(key=key, value=value))
            else:
                record.value = value
            db.commit()

    def remove_item(self, key: str) -> None:
        with self._session_factory() as db:
            db.execute(delete(KeyValueRecord).where(KeyValueRecord.key == key))
            db.commit()

    def clear(self) -> None:
        with self._session_factory() as db:
            db.execute(delete(KeyValueRecord))
            db.commit()
        logger.warning("Key-value store cleared")

    def keys(self) -> list[str]:
        with self._session_factory() as db:
            return list(db.scalars(select(KeyValueRecord.key)))
