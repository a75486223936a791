"""SQLAlchemy table metadata derived from record dataclasses."""

from __future__ import annotations

import logging
import types
from dataclasses import fields, is_dataclass
from typing import TYPE_CHECKING, Any, Final, Union, get_args, get_origin, get_type_hints

from sqlalchemy import Boolean, Column, Float, Integer, MetaData, String, Table

from statecraft.domain.errors import InvalidError

if TYPE_CHECKING:
    from sqlalchemy.types import TypeEngine

    from statecraft.domain.model import Record, Schema

log = logging.getLogger(__name__)

NAMING_CONVENTION: Final[dict[str, str]] = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

COLUMN_TYPES: Final[dict[type[Any], type[TypeEngine[Any]]]] = {
    str: String,
    int: Integer,
    float: Float,
    bool: Boolean,
}


def schema_of(record_type: type[Record]) -> Schema:
    schema: Schema | None = getattr(record_type, "SCHEMA", None)
    if schema is None:
        raise InvalidError(
            "mappings.schema_of", f"{record_type.__name__} does not declare a SCHEMA"
        )
    return schema


class TableRegistry:
    """Tables for record types, built on demand from their dataclass fields."""

    def __init__(self, metadata: MetaData | None = None) -> None:
        self.metadata = metadata or MetaData(naming_convention=NAMING_CONVENTION)
        self._tables: dict[type[Any], Table] = {}

    def register_table(self, record_type: type[Record], table: Table) -> None:
        if table.metadata is not self.metadata:
            raise InvalidError(
                "TableRegistry.register_table", f"table {table.name} uses foreign metadata"
            )
        self._tables[record_type] = table

    def table_for(self, record_type: type[Record]) -> Table:
        table = self._tables.get(record_type)
        if table is None:
            table = self._build_table(record_type)
            self._tables[record_type] = table
        return table

    def _build_table(self, record_type: type[Record]) -> Table:
        op = "TableRegistry.table_for"
        schema = schema_of(record_type)
        existing = self.metadata.tables.get(schema.name)
        if existing is not None:
            return existing
        if not is_dataclass(record_type):
            raise InvalidError(op, f"{record_type.__name__} is not a dataclass")

        hints = get_type_hints(record_type)
        columns: list[Column[Any]] = []
        for item in fields(record_type):
            python_type, nullable = _unwrap_optional(hints[item.name])
            column_type = COLUMN_TYPES.get(python_type)
            if column_type is None:
                raise InvalidError(
                    op, f"field {record_type.__name__}.{item.name} has no column mapping"
                )
            is_primary_key = item.name == schema.primary_key
            columns.append(
                Column(
                    item.name,
                    column_type(),
                    primary_key=is_primary_key,
                    nullable=nullable and not is_primary_key,
                )
            )

        if schema.primary_key not in {column.name for column in columns}:
            raise InvalidError(
                op, f"{record_type.__name__} has no primary-key field {schema.primary_key}"
            )
        log.debug("Deriving table %s from %s", schema.name, record_type.__name__)
        return Table(schema.name, self.metadata, *columns)


def _unwrap_optional(annotation: object) -> tuple[object, bool]:
    if get_origin(annotation) in (Union, types.UnionType):
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(members) == 1:
            return members[0], True
    return annotation, False
