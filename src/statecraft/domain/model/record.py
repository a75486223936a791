"""
The record contract: the minimal capability storable entities expose
to the engine and the backend adapters.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import ClassVar, Protocol, runtime_checkable

from statecraft.domain.errors import InvalidError


@dataclass(frozen=True, slots=True)
class Schema:
    """Storage layout of a record: collection name and primary-key field."""

    name: str
    primary_key: str


class RecordTypeError(InvalidError):
    """Raised when a record is updated from an instance of another type."""


@runtime_checkable
class Record(Protocol):
    """Structural contract for anything the engine can stage."""

    def get_schema(self) -> Schema: ...

    def get_id(self) -> str: ...

    def update(self, other: object) -> None: ...


@dataclass(eq=False, kw_only=True)
class DataRecord:
    """Dataclass-backed record.

    Subclasses declare ``SCHEMA`` and their fields; the primary-key field named
    by the schema provides the id.
    """

    SCHEMA: ClassVar[Schema]

    @classmethod
    def schema(cls) -> Schema:
        return cls.SCHEMA

    def get_schema(self) -> Schema:
        return self.SCHEMA

    def get_id(self) -> str:
        return str(getattr(self, self.SCHEMA.primary_key))

    def update(self, other: object) -> None:
        if type(other) is not type(self):
            raise RecordTypeError(
                f"{type(self).__name__}.update",
                f"cannot update from {type(other).__name__}",
            )
        for item in fields(self):
            setattr(self, item.name, getattr(other, item.name))
