"""Database port implementation on SQLAlchemy Core."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, select, text
from sqlalchemy.exc import SQLAlchemyError

from statecraft.adapters.codec import record_from_mapping, record_to_dict
from statecraft.adapters.sqlalchemy.mappings import TableRegistry
from statecraft.domain.errors import ConflictError, InternalError, InvalidError, NotFoundError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from sqlalchemy import Executable, Table
    from sqlalchemy.engine import Engine, RowMapping

    from statecraft.config import DatabaseConfig
    from statecraft.domain.model import Record

log = logging.getLogger(__name__)


class SqlAlchemyDatabase:
    """Persistent store over any SQLAlchemy engine.

    Predicates are SQL ``WHERE`` fragments over the record's columns, e.g.
    ``"name = 'Franco'"``. Each write runs in its own transaction.
    """

    def __init__(self, engine: Engine, *, tables: TableRegistry | None = None) -> None:
        self.engine = engine
        self.tables = tables or TableRegistry()

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> SqlAlchemyDatabase:
        return cls(create_engine(config.uri, echo=config.echo, future=True))

    def dispose(self) -> None:
        self.engine.dispose()

    # Reads -------------------------------------------------------------------

    def get(self, record: Record, key: str) -> None:
        op = "SqlAlchemyDatabase.get"
        table = self._table(record)
        primary_key = table.c[record.get_schema().primary_key]
        stmt = select(table).where(primary_key == _coerce_key(op, primary_key.type, key))
        rows = self._fetch(op, stmt)
        if not rows:
            raise NotFoundError(
                op, f"could not find a {table.name} record with id {key}"
            )
        record.update(record_from_mapping(type(record), rows[0]))

    def query_one(self, record: Record, predicate: str) -> None:
        op = "SqlAlchemyDatabase.query_one"
        table = self._table(record)
        stmt = select(table).where(text(predicate)).limit(2)
        rows = self._fetch(op, stmt)
        if not rows:
            raise NotFoundError(
                op, f"could not find a {table.name} record with query {predicate}"
            )
        if len(rows) > 1:
            raise ConflictError(
                op, f"found multiple {table.name} records that satisfy query {predicate}"
            )
        record.update(record_from_mapping(type(record), rows[0]))

    def query(self, results: list[Record], template: Record, query_parts: Sequence[str]) -> None:
        op = "SqlAlchemyDatabase.query"
        if not 1 <= len(query_parts) <= 3:  # noqa: PLR2004
            raise InvalidError(op, "expected a predicate with an optional limit and offset")

        table = self._table(template)
        stmt = select(table).where(text(query_parts[0]))
        if len(query_parts) > 1:
            stmt = stmt.limit(_parse_count(op, "limit", query_parts[1]))
        if len(query_parts) > 2:  # noqa: PLR2004
            stmt = stmt.offset(_parse_count(op, "offset", query_parts[2]))

        rows = self._fetch(op, stmt)
        if not rows:
            raise NotFoundError(
                op, f"could not find any {table.name} record with query {query_parts[0]}"
            )
        results.clear()
        results.extend(record_from_mapping(type(template), row) for row in rows)

    def raw_query(
        self,
        results: list[Record],
        template: Record,
        statement: str,
        params: Mapping[str, Any] | None = None,
    ) -> None:
        """Fill ``results`` from a complete SQL statement returning template rows."""

        op = "SqlAlchemyDatabase.raw_query"
        rows = self._fetch(op, text(statement).bindparams(**(params or {})))
        if not rows:
            raise NotFoundError(op, f"could not find any record with query {statement}")
        results.clear()
        results.extend(record_from_mapping(type(template), row) for row in rows)

    # Writes ------------------------------------------------------------------

    def insert(self, record: Record) -> None:
        op = "SqlAlchemyDatabase.insert"
        table = self._table(record)
        stmt = table.insert().values(**self._values(table, record))
        self._write(op, stmt, "error inserting into the database")

    def update(self, record: Record) -> None:
        op = "SqlAlchemyDatabase.update"
        table = self._table(record)
        primary_key = table.c[record.get_schema().primary_key]
        values = self._values(table, record)
        stmt = table.update().where(primary_key == values[primary_key.name]).values(**values)
        if self._write(op, stmt, "error updating the database") == 0:
            raise NotFoundError(
                op, f"could not find a {table.name} record with id {record.get_id()}"
            )

    def delete(self, record: Record) -> None:
        op = "SqlAlchemyDatabase.delete"
        table = self._table(record)
        primary_key = table.c[record.get_schema().primary_key]
        stmt = table.delete().where(
            primary_key == _coerce_key(op, primary_key.type, record.get_id())
        )
        if self._write(op, stmt, "error deleting from the database") == 0:
            raise NotFoundError(
                op, f"could not find a {table.name} record with id {record.get_id()}"
            )

    # Schema ------------------------------------------------------------------

    def create_schema(self, record_types: Sequence[type[Record]], drop_existing: bool) -> None:
        for record_type in record_types:
            if drop_existing:
                self.drop_table(record_type)
            self.create_table(record_type)

    def create_table(self, record_type: type[Record]) -> None:
        """Create the table for ``record_type``; existing tables are left alone."""

        table = self.tables.table_for(record_type)
        log.info("Creating table %s", table.name)
        try:
            table.create(self.engine, checkfirst=True)
        except SQLAlchemyError as exc:
            raise InternalError(
                "SqlAlchemyDatabase.create_table", "could not create table"
            ) from exc

    def drop_table(self, record_type: type[Record]) -> None:
        table = self.tables.table_for(record_type)
        log.info("Dropping table %s", table.name)
        try:
            table.drop(self.engine, checkfirst=True)
        except SQLAlchemyError as exc:
            raise InternalError("SqlAlchemyDatabase.drop_table", "could not drop table") from exc

    # Helpers -----------------------------------------------------------------

    def _table(self, record: Record) -> Table:
        return self.tables.table_for(type(record))

    def _values(self, table: Table, record: Record) -> dict[str, Any]:
        payload = record_to_dict(record)
        return {name: value for name, value in payload.items() if name in table.c}

    def _fetch(self, op: str, stmt: Executable) -> list[RowMapping]:
        try:
            with self.engine.connect() as connection:
                return list(connection.execute(stmt).mappings().all())
        except SQLAlchemyError as exc:
            raise InternalError(op, "error making query to the database") from exc

    def _write(self, op: str, stmt: Executable, message: str) -> int:
        try:
            with self.engine.begin() as connection:
                return connection.execute(stmt).rowcount
        except SQLAlchemyError as exc:
            raise InternalError(op, message) from exc


def _coerce_key(op: str, column_type: Any, key: str) -> object:
    try:
        python_type = column_type.python_type
    except NotImplementedError:
        return key
    if python_type is str:
        return key
    try:
        return python_type(key)
    except (TypeError, ValueError) as exc:
        raise InvalidError(op, f"key {key!r} does not match the primary-key type") from exc


def _parse_count(op: str, name: str, value: str) -> int:
    try:
        count = int(value)
    except ValueError as exc:
        raise InvalidError(op, f"{name} must be an integer, got {value!r}") from exc
    if count < 0:
        raise InvalidError(op, f"{name} must not be negative")
    return count
