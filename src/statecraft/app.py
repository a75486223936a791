"""Application wiring: adapters and managers built from configuration."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from statecraft.adapters.memory import MemoryCache
from statecraft.adapters.redis import RedisCache
from statecraft.adapters.sqlalchemy import SqlAlchemyDatabase
from statecraft.config import get_cache_config, get_database_config
from statecraft.domain.manager import Manager

if TYPE_CHECKING:
    from collections.abc import Sequence

    from statecraft.config import CacheConfig, DatabaseConfig
    from statecraft.domain.model import Record
    from statecraft.domain.ports import Cache


log = getLogger(__name__)


def build_database(config: DatabaseConfig | None = None) -> SqlAlchemyDatabase:
    return SqlAlchemyDatabase.from_config(config or get_database_config())


def build_cache(config: CacheConfig | None = None) -> Cache | None:
    """Return the configured cache, or ``None`` when caching is disabled."""

    resolved = config or get_cache_config()
    match resolved.backend:
        case "memory":
            return MemoryCache(ttl_ms=resolved.ttl_ms)
        case "redis":
            return RedisCache.from_config(resolved)
        case "none":
            return None


def build_manager(
    *,
    database_config: DatabaseConfig | None = None,
    cache_config: CacheConfig | None = None,
    use_database: bool = True,
) -> Manager:
    """Create a manager over the configured database and cache."""

    database = build_database(database_config) if use_database else None
    cache = build_cache(cache_config)
    log.info(
        "Building manager: database=%s, cache=%s",
        type(database).__name__ if database else None,
        type(cache).__name__ if cache else None,
    )
    return Manager(database=database, cache=cache)


def create_schema(
    record_types: Sequence[type[Record]],
    *,
    drop_existing: bool = False,
    database_config: DatabaseConfig | None = None,
) -> None:
    database = build_database(database_config)
    try:
        database.create_schema(record_types, drop_existing)
    finally:
        database.dispose()


def purge_cache(cache_config: CacheConfig | None = None) -> bool:
    """Purge the configured cache; returns ``False`` when caching is disabled."""

    cache = build_cache(cache_config)
    if cache is None:
        return False
    cache.purge()
    return True
