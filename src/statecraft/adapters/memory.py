"""In-process dictionary cache."""

from __future__ import annotations

import time
from copy import deepcopy
from typing import TYPE_CHECKING

from statecraft.domain.errors import ConflictError, InvalidError, NotFoundError, StateError

if TYPE_CHECKING:
    from statecraft.domain.model import Record


def cache_key(record: Record, record_id: str) -> str:
    schema = record.get_schema()
    return f"{schema.name}:{schema.primary_key}-{record_id}"


class MemoryCache:
    """Single-process cache keyed by ``<collection>:<primary key field>-<id>``.

    Values are deep copies of the records handed to :meth:`set`. Entries expire
    lazily on read once their TTL (milliseconds, ``0`` for none) has elapsed.
    """

    def __init__(self, *, ttl_ms: int = 0) -> None:
        self._memory: dict[str, tuple[Record, float | None]] = {}
        self._ttl_ms = 0
        self.set_ttl(ttl_ms)

    def get(self, record: Record, key: str) -> None:
        op = "MemoryCache.get"
        memory_key = cache_key(record, key)
        entry = self._memory.get(memory_key)
        if entry is not None and _expired(entry[1]):
            del self._memory[memory_key]
            entry = None
        if entry is None:
            raise NotFoundError(op, f"object with key {memory_key} was not found in the cache")

        try:
            record.update(deepcopy(entry[0]))
        except StateError as exc:
            raise ConflictError(op, "could not load the cached object into the record") from exc

    def set(self, record: Record, ttl_ms: int) -> None:
        expires_at = time.monotonic() + ttl_ms / 1000 if ttl_ms > 0 else None
        self._memory[cache_key(record, record.get_id())] = (deepcopy(record), expires_at)

    def delete(self, record: Record) -> None:
        self._memory.pop(cache_key(record, record.get_id()), None)

    def get_ttl(self) -> int:
        return self._ttl_ms

    def set_ttl(self, ttl_ms: int) -> None:
        if ttl_ms < 0:
            raise InvalidError("MemoryCache.set_ttl", "ttl must not be negative")
        self._ttl_ms = ttl_ms

    def purge(self) -> None:
        self._memory.clear()

    def __len__(self) -> int:
        return len(self._memory)


def _expired(expires_at: float | None) -> bool:
    return expires_at is not None and time.monotonic() >= expires_at
