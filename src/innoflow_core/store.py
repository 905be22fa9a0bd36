"""Thin table-oriented record store over a SQLAlchemy session.

Exposes the five operations the item tracker needs (fetch all, fetch by id,
insert, update, delete). Each write commits on its own; there is no
optimistic-concurrency check, so the last writer wins.
"""
import logging
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models

logger = logging.getLogger("innoflow-core.store")

TABLES: dict[str, type] = {
    "items": models.Item,
    "comments": models.Comment,
    "audit_logs": models.AuditLog,
}


class RecordStoreError(Exception):
    """Raised when the store rejects an operation. Carries the store's message."""

    def __init__(self, message: str, table: Optional[str] = None):
        super().__init__(message)
        self.table = table


class RecordNotFoundError(RecordStoreError):
    """Raised when an update or delete targets a missing record."""

    def __init__(self, table: str, record_id: UUID):
        super().__init__(f"No row in '{table}' with id {record_id}", table=table)
        self.record_id = record_id


class RecordStore:
    """CRUD access to the item tracker tables."""

    def __init__(self, db: Session):
        self.db = db

    def _model(self, table: str) -> type:
        try:
            return TABLES[table]
        except KeyError:
            raise RecordStoreError(f"Unknown table: {table}", table=table)

    def _column(self, model: type, table: str, name: str):
        column = getattr(model, name, None)
        if column is None or not hasattr(column, "property"):
            raise RecordStoreError(f"Unknown column '{name}' on table '{table}'", table=table)
        return column

    def fetch_all(
        self,
        table: str,
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        ascending: bool = True,
    ) -> list:
        """
        Fetch every row of a table.

        Args:
            table: Table name
            filters: Column -> value equality filters, ANDed together
            order_by: Column to sort by
            ascending: Sort direction

        Returns:
            List of model instances
        """
        model = self._model(table)
        query = self.db.query(model)
        for name, value in (filters or {}).items():
            query = query.filter(self._column(model, table, name) == value)
        if order_by:
            column = self._column(model, table, order_by)
            query = query.order_by(column.asc() if ascending else column.desc())
        try:
            return query.all()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching from {table}: {e}")
            raise RecordStoreError(str(e), table=table) from e

    def fetch_by_id(self, table: str, record_id: UUID):
        """Fetch a single row, or None when it does not exist."""
        model = self._model(table)
        try:
            return self.db.query(model).filter(model.id == record_id).first()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching {table} {record_id}: {e}")
            raise RecordStoreError(str(e), table=table) from e

    def insert(self, table: str, record: dict[str, Any]):
        """Insert a row and return it with server-side defaults populated."""
        model = self._model(table)
        for name in record:
            self._column(model, table, name)
        row = model(**record)
        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error inserting into {table}: {e}")
            raise RecordStoreError(str(e), table=table) from e
        return row

    def update(self, table: str, record_id: UUID, changes: dict[str, Any]):
        """Apply a partial update and return the updated row.

        Raises:
            RecordNotFoundError: If no row has this id
        """
        model = self._model(table)
        row = self.fetch_by_id(table, record_id)
        if row is None:
            raise RecordNotFoundError(table, record_id)
        for name, value in changes.items():
            self._column(model, table, name)
            setattr(row, name, value)
        try:
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating {table} {record_id}: {e}")
            raise RecordStoreError(str(e), table=table) from e
        return row

    def delete(self, table: str, record_id: UUID) -> None:
        """Delete a row.

        Raises:
            RecordNotFoundError: If no row has this id
        """
        row = self.fetch_by_id(table, record_id)
        if row is None:
            raise RecordNotFoundError(table, record_id)
        try:
            self.db.delete(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting {table} {record_id}: {e}")
            raise RecordStoreError(str(e), table=table) from e
