"""Owner-scoped client for the applications and network_contacts tables.

Every statement issued here carries a ``user_id == owner_id`` predicate, so a
caller can never read or write another user's rows even by guessing an id.
Rows travel as plain dicts keyed by column name.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from log import get_logger
from models import TABLES

log = get_logger(__name__)

# Columns the store owns; callers cannot set or overwrite them.
PROTECTED_COLUMNS = frozenset({"id", "user_id", "created_at"})


class StoreError(RuntimeError):
    """Raised when a query is rejected or the database cannot be reached."""

    def __init__(self, operation: str, table: str, detail: str = "") -> None:
        message = f"{operation} on {table} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.operation = operation
        self.table = table


def row_to_dict(row: Any) -> dict[str, Any]:
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}


class DataStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _model(self, table: str):
        try:
            return TABLES[table]
        except KeyError:
            raise StoreError("lookup", table, "unknown table") from None

    def _column(self, model, table: str, name: str):
        if name not in model.__table__.columns:
            raise StoreError("select", table, f"unknown column {name}")
        return getattr(model, name)

    def _payload(self, table: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        model = self._model(table)
        columns = set(model.__table__.columns.keys())
        payload = {k: v for k, v in fields.items() if k not in PROTECTED_COLUMNS}
        unknown = sorted(set(payload) - columns)
        if unknown:
            raise StoreError("write", table, f"unknown column(s) {', '.join(unknown)}")
        return payload

    def _fail(self, operation: str, table: str, exc: SQLAlchemyError) -> StoreError:
        self.db.rollback()
        log.error("Store %s on %s failed: %s", operation, table, exc)
        return StoreError(operation, table, str(exc.__class__.__name__))

    def select(
        self,
        table: str,
        owner_id: str,
        *,
        eq: Mapping[str, Any] | None = None,
        ilike: Mapping[str, str] | None = None,
        order_by: str = "created_at",
        descending: bool = True,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Rows owned by ``owner_id`` matching every ``eq`` and ``ilike`` predicate.

        ``ilike`` values match anywhere in the column, ignoring case.
        """
        model = self._model(table)
        query = self.db.query(model).filter(model.user_id == owner_id)
        for column, value in (eq or {}).items():
            query = query.filter(self._column(model, table, column) == value)
        for column, value in (ilike or {}).items():
            query = query.filter(
                func.lower(self._column(model, table, column)).contains(value.lower(), autoescape=True)
            )
        order_column = self._column(model, table, order_by)
        query = query.order_by(order_column.desc() if descending else order_column.asc())
        if limit is not None:
            query = query.limit(limit)
        try:
            return [row_to_dict(row) for row in query.all()]
        except SQLAlchemyError as exc:
            raise self._fail("select", table, exc) from exc

    def select_one(self, table: str, owner_id: str, record_id: str) -> dict[str, Any] | None:
        model = self._model(table)
        try:
            row = (
                self.db.query(model)
                .filter(model.id == record_id, model.user_id == owner_id)
                .first()
            )
        except SQLAlchemyError as exc:
            raise self._fail("select", table, exc) from exc
        return row_to_dict(row) if row is not None else None

    def insert(self, table: str, owner_id: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        model = self._model(table)
        payload = self._payload(table, fields)
        try:
            row = model(**payload, user_id=owner_id, created_at=datetime.now(timezone.utc))
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as exc:
            raise self._fail("insert", table, exc) from exc
        log.debug("Inserted %s row %s", table, row.id)
        return row_to_dict(row)

    def update(
        self, table: str, owner_id: str, record_id: str, fields: Mapping[str, Any]
    ) -> dict[str, Any] | None:
        """Apply ``fields`` to one owned row; ``None`` when no row matched."""
        model = self._model(table)
        payload = self._payload(table, fields)
        try:
            row = (
                self.db.query(model)
                .filter(model.id == record_id, model.user_id == owner_id)
                .first()
            )
            if row is None:
                return None
            for key, value in payload.items():
                setattr(row, key, value)
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as exc:
            raise self._fail("update", table, exc) from exc
        return row_to_dict(row)

    def delete(self, table: str, owner_id: str, record_id: str) -> int:
        """Delete one owned row and return the number of rows removed (0 or 1)."""
        model = self._model(table)
        try:
            count = (
                self.db.query(model)
                .filter(model.id == record_id, model.user_id == owner_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as exc:
            raise self._fail("delete", table, exc) from exc
        return count
