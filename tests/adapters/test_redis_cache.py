from __future__ import annotations

import fnmatch
import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from statecraft.adapters.redis import RedisCache
from statecraft.config import CacheConfig
from statecraft.domain.errors import InternalError, InvalidError, NotFoundError
from statecraft.domain.ports import Cache
from tests.helpers.records import User, make_book, make_user


class FakeRedis:
    """Just enough of the redis client surface for RedisCache."""

    def __init__(self) -> None:
        self.store: dict[str, bytes] = {}
        self.expiries: dict[str, int | None] = {}

    def get(self, key: str) -> bytes | None:
        return self.store.get(key)

    def set(self, key: str, value: bytes, px: int | None = None) -> bool:
        self.store[key] = value
        self.expiries[key] = px
        return True

    def delete(self, *keys: str) -> int:
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    def scan_iter(self, match: str) -> list[str]:
        return [key for key in self.store if fnmatch.fnmatch(key, match)]


class BrokenRedis(FakeRedis):
    def get(self, key: str) -> bytes | None:
        raise RedisConnectionError("connection refused")

    def set(self, key: str, value: bytes, px: int | None = None) -> bool:
        raise RedisConnectionError("connection refused")

    def delete(self, *keys: str) -> int:
        raise RedisConnectionError("connection refused")

    def scan_iter(self, match: str) -> list[str]:
        raise RedisConnectionError("connection refused")


def _blank_user() -> User:
    return User(id="", name="", email="")


@pytest.fixture
def client() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def cache(client: FakeRedis) -> RedisCache:
    return RedisCache(client, ttl_ms=1500)  # type: ignore[arg-type]


def test_redis_cache_satisfies_the_port(cache: RedisCache) -> None:
    assert isinstance(cache, Cache)


def test_set_stores_json_under_the_namespace(cache: RedisCache, client: FakeRedis) -> None:
    cache.set(make_user(), cache.get_ttl())

    assert json.loads(client.store["statecraft:users:id-1"]) == {
        "id": "1",
        "name": "Franco",
        "email": "franco@gmail.com",
    }
    assert client.expiries["statecraft:users:id-1"] == 1500


def test_zero_ttl_stores_without_expiry(cache: RedisCache, client: FakeRedis) -> None:
    cache.set(make_user(), 0)

    assert client.expiries["statecraft:users:id-1"] is None


def test_get_loads_the_record(cache: RedisCache) -> None:
    cache.set(make_user(), 0)

    user = _blank_user()
    cache.get(user, "1")

    assert user == make_user()


def test_get_missing_key(cache: RedisCache) -> None:
    with pytest.raises(NotFoundError):
        cache.get(_blank_user(), "404")


def test_purge_only_removes_namespaced_keys(cache: RedisCache, client: FakeRedis) -> None:
    client.store["other:key"] = b"keep"
    cache.set(make_user(), 0)
    cache.set(make_book(), 0)

    cache.purge()

    assert client.store == {"other:key": b"keep"}


def test_delete(cache: RedisCache, client: FakeRedis) -> None:
    cache.set(make_user(), 0)

    cache.delete(make_user())

    assert client.store == {}


def test_redis_errors_are_internal_errors() -> None:
    cache = RedisCache(BrokenRedis())  # type: ignore[arg-type]

    with pytest.raises(InternalError):
        cache.get(_blank_user(), "1")
    with pytest.raises(InternalError):
        cache.set(make_user(), 0)
    with pytest.raises(InternalError):
        cache.delete(make_user())
    with pytest.raises(InternalError):
        cache.purge()


def test_ttl_accessors(cache: RedisCache) -> None:
    cache.set_ttl(10)

    assert cache.get_ttl() == 10
    with pytest.raises(InvalidError):
        cache.set_ttl(-5)


def test_from_config_connects_lazily() -> None:
    cache = RedisCache.from_config(
        CacheConfig(backend="redis", redis_url="redis://localhost:6379/0", ttl_ms=42)
    )

    assert cache.get_ttl() == 42


def test_from_config_requires_a_url() -> None:
    with pytest.raises(InvalidError):
        RedisCache.from_config(CacheConfig(backend="memory"))
