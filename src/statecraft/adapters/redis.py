"""Redis-backed cache."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from redis import Redis
from redis.exceptions import RedisError

from statecraft.adapters.codec import record_from_json, record_to_json
from statecraft.adapters.memory import cache_key
from statecraft.domain.errors import ConflictError, InternalError, InvalidError, NotFoundError

if TYPE_CHECKING:
    from statecraft.config import CacheConfig
    from statecraft.domain.model import Record

log = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "statecraft"


class RedisCache:
    """Distributed cache storing records as JSON documents.

    Keys live under ``namespace`` so :meth:`purge` only removes this cache's entries.
    """

    def __init__(
        self,
        client: Redis,
        *,
        ttl_ms: int = 0,
        namespace: str = DEFAULT_NAMESPACE,
    ) -> None:
        self._client = client
        self._namespace = namespace
        self._ttl_ms = 0
        self.set_ttl(ttl_ms)

    @classmethod
    def from_url(
        cls, url: str, *, ttl_ms: int = 0, namespace: str = DEFAULT_NAMESPACE
    ) -> RedisCache:
        return cls(Redis.from_url(url), ttl_ms=ttl_ms, namespace=namespace)

    @classmethod
    def from_config(cls, config: CacheConfig) -> RedisCache:
        if config.redis_url is None:
            raise InvalidError("RedisCache.from_config", "a redis url is required")
        return cls.from_url(config.redis_url, ttl_ms=config.ttl_ms, namespace=config.namespace)

    def get(self, record: Record, key: str) -> None:
        op = "RedisCache.get"
        redis_key = self._key(record, key)
        try:
            value = self._client.get(redis_key)
        except RedisError as exc:
            raise InternalError(op, "error reading from redis") from exc
        if value is None:
            raise NotFoundError(op, f"object with key {redis_key} was not found in the cache")

        cached = record_from_json(type(record), value)
        try:
            record.update(cached)
        except InvalidError as exc:
            raise ConflictError(op, "could not load the cached object into the record") from exc

    def set(self, record: Record, ttl_ms: int) -> None:
        op = "RedisCache.set"
        payload = record_to_json(record)
        try:
            self._client.set(
                self._key(record, record.get_id()), payload, px=ttl_ms if ttl_ms > 0 else None
            )
        except RedisError as exc:
            raise InternalError(op, "error writing to redis") from exc

    def delete(self, record: Record) -> None:
        try:
            self._client.delete(self._key(record, record.get_id()))
        except RedisError as exc:
            raise InternalError("RedisCache.delete", "error deleting from redis") from exc

    def get_ttl(self) -> int:
        return self._ttl_ms

    def set_ttl(self, ttl_ms: int) -> None:
        if ttl_ms < 0:
            raise InvalidError("RedisCache.set_ttl", "ttl must not be negative")
        self._ttl_ms = ttl_ms

    def purge(self) -> None:
        op = "RedisCache.purge"
        try:
            keys = list(self._client.scan_iter(match=f"{self._namespace}:*"))
            if keys:
                self._client.delete(*keys)
        except RedisError as exc:
            raise InternalError(op, "error purging redis") from exc
        log.info("Purged %s keys from namespace %s", len(keys), self._namespace)

    def _key(self, record: Record, record_id: str) -> str:
        return f"{self._namespace}:{cache_key(record, record_id)}"
