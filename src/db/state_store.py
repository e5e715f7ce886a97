from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.engine import Result
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql.expression import Executable

from db.models import StateEntryOrm
from domain.errors import StoreError
from domain.state import KeyValue, StateStore
from services.state_store import BaseStateCursor

logger = logging.getLogger(__name__)


class SqlStateCursor(BaseStateCursor):
    def __init__(self, result: Result[Any]) -> None:
        super().__init__()
        self._result = result

    def _advance(self) -> KeyValue:
        try:
            row = self._result.fetchone()
        except SQLAlchemyError as exc:
            raise StoreError("failed to advance range scan", cause=exc) from exc
        if row is None:
            raise StopIteration
        key, value = row
        return KeyValue(key=key, value=value)

    def _release(self) -> None:
        self._result.close()


class SqlStateStore(StateStore):
    """State store kept in a single ``state_entries`` table.

    Every ``put`` and ``delete`` commits on its own. A failed statement rolls
    the session back before the ``StoreError`` is raised.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, key: str) -> bytes | None:
        stmt = select(StateEntryOrm.value).where(StateEntryOrm.key == key)
        try:
            return self._session.scalar(stmt)
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StoreError("failed to read from state store", key=key, cause=exc) from exc

    def put(self, key: str, value: bytes) -> None:
        if not key:
            raise StoreError("key must be non-empty", key=key)

        stmt = insert(StateEntryOrm).values({"key": key, "value": value})
        stmt = stmt.on_conflict_do_update(index_elements=["key"], set_={"value": stmt.excluded.value})
        self._write(stmt, key=key, failure="failed to put to state store")

    def delete(self, key: str) -> None:
        stmt = delete(StateEntryOrm).where(StateEntryOrm.key == key)
        self._write(stmt, key=key, failure="failed to delete from state store")

    def scan(self, start_key: str, end_key: str) -> SqlStateCursor:
        stmt = select(StateEntryOrm.key, StateEntryOrm.value).order_by(StateEntryOrm.key.asc())
        if start_key:
            stmt = stmt.where(StateEntryOrm.key >= start_key)
        if end_key:
            stmt = stmt.where(StateEntryOrm.key < end_key)

        try:
            result = self._session.execute(stmt)
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StoreError("failed to open range scan", cause=exc) from exc
        logger.debug("Opened range scan [%r, %r)", start_key, end_key)
        return SqlStateCursor(result)

    def _write(self, stmt: Executable, *, key: str, failure: str) -> None:
        try:
            self._session.execute(stmt)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StoreError(failure, key=key, cause=exc) from exc


__all__ = ["SqlStateCursor", "SqlStateStore"]
