"""Ports for the backends the engine applies changes against."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from statecraft.domain.model import Record


@runtime_checkable
class Database(Protocol):
    """Persistent store contract.

    Implementations raise :class:`statecraft.domain.errors.StateError` subclasses:
    ``NotFoundError`` for missing rows, ``ConflictError`` when ``query_one`` is
    ambiguous and ``InternalError`` for anything else.
    """

    def get(self, record: Record, key: str) -> None:
        """Load the row whose primary key is ``key`` into ``record``."""
        ...

    def query_one(self, record: Record, predicate: str) -> None:
        """Load the single row satisfying ``predicate`` into ``record``."""
        ...

    def query(self, results: list[Record], template: Record, query_parts: Sequence[str]) -> None:
        """Fill ``results`` with the rows satisfying ``query_parts``.

        ``query_parts`` holds the predicate, optionally followed by a limit and an offset.
        """
        ...

    def insert(self, record: Record) -> None: ...

    def update(self, record: Record) -> None: ...

    def delete(self, record: Record) -> None: ...

    def create_schema(self, record_types: Sequence[type[Record]], drop_existing: bool) -> None:
        """Prepare storage for ``record_types``, dropping existing tables if asked to."""
        ...


@runtime_checkable
class Cache(Protocol):
    """Fast key-value store contract, keyed by record id."""

    def get(self, record: Record, key: str) -> None: ...

    def set(self, record: Record, ttl_ms: int) -> None: ...

    def delete(self, record: Record) -> None: ...

    def get_ttl(self) -> int:
        """Return the TTL in milliseconds applied to staged writes."""
        ...

    def set_ttl(self, ttl_ms: int) -> None: ...

    def purge(self) -> None: ...
