from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from statecraft.adapters.memory import MemoryCache
from statecraft.domain.errors import ConflictError, InternalError, NotFoundError
from statecraft.domain.manager import Manager
from tests.helpers.records import User, make_book, make_user

if TYPE_CHECKING:
    from statecraft.adapters.sqlalchemy import SqlAlchemyDatabase
    from statecraft.domain.model import Record


def _blank_user() -> User:
    return User(id="", name="", email="")


def test_commit_insert_update_delete(manager: Manager, database: SqlAlchemyDatabase) -> None:
    user = make_user()

    manager.stage(user, "insert")
    manager.commit()
    assert manager.status() == ()
    assert len(manager.applied()) == 1

    user.name = "Not Franco"
    manager.stage(user, "update")
    manager.commit()
    stored = _blank_user()
    database.get(stored, "1")
    assert stored.name == "Not Franco"

    manager.stage(user, "delete")
    manager.commit()
    with pytest.raises(NotFoundError):
        database.get(_blank_user(), "1")


def test_partial_failure_then_rollback(manager: Manager, database: SqlAlchemyDatabase) -> None:
    # the books table is never created
    manager.stage(make_user(), "insert")
    manager.stage(make_book(), "insert")

    with pytest.raises(ConflictError):
        manager.commit()
    assert len(manager.applied()) == 1
    assert len(manager.status()) == 2

    manager.rollback()
    assert manager.applied() == ()
    assert len(manager.status()) == 2
    with pytest.raises(NotFoundError):
        database.get(_blank_user(), "1")

    manager.clear()
    assert manager.status() == ()


def test_duplicate_insert_fails_without_touching_the_stored_row(
    manager: Manager, database: SqlAlchemyDatabase
) -> None:
    manager.stage(make_user(), "insert")
    manager.commit()

    manager.stage(make_user(name="Impostor"), "insert")
    with pytest.raises(ConflictError):
        manager.commit()

    assert manager.applied() == ()
    assert len(manager.status()) == 1
    stored = _blank_user()
    database.get(stored, "1")
    assert stored.name == "Franco"

    # the cache step still runs after the database rejected the insert
    cached = _blank_user()
    manager.get(cached, "1")
    assert cached.name == "Impostor"


def test_rollback_of_successful_commit(manager: Manager) -> None:
    manager.stage(make_user("2", "Juan", "juan@gmail.com"), "insert")
    manager.stage(make_user("3", "Xin", "xin@gmail.com"), "insert")
    manager.commit()
    assert len(manager.applied()) == 2

    manager.rollback()

    assert manager.status() == ()
    assert manager.applied() == ()
    with pytest.raises(NotFoundError):
        manager.get(_blank_user(), "3")


@pytest.mark.parametrize("backends", ["database", "cache", "both"])
def test_get_returns_committed_values(
    database: SqlAlchemyDatabase, memory_cache: MemoryCache, backends: str
) -> None:
    manager = Manager(
        database=database if backends in {"database", "both"} else None,
        cache=memory_cache if backends in {"cache", "both"} else None,
    )
    user = make_user()
    manager.stage(user, "insert")
    manager.commit()
    user.email = "franco.new@gmail.com"
    manager.stage(user, "update")
    manager.commit()
    user.email = "uncommitted@gmail.com"

    loaded = _blank_user()
    manager.get(loaded, "1")

    assert loaded == make_user(email="franco.new@gmail.com")

    with pytest.raises(NotFoundError):
        manager.get(_blank_user(), "404")


def test_get_falls_back_to_the_database_after_a_cache_purge(
    manager: Manager, memory_cache: MemoryCache
) -> None:
    manager.stage(make_user(), "insert")
    manager.commit()
    memory_cache.purge()

    loaded = _blank_user()
    manager.get(loaded, "1")

    assert loaded.name == "Franco"
    assert len(memory_cache) == 0


def test_query_one(manager: Manager) -> None:
    manager.stage(make_user("1", "Franco", "franco@gmail.com"), "insert")
    manager.stage(make_user("2", "Juan", "juan@gmail.com"), "insert")
    manager.stage(make_user("3", "Juan", "juan.other@gmail.com"), "insert")
    manager.commit()

    loaded = _blank_user()
    manager.query_one(loaded, "email = 'juan@gmail.com'")
    assert loaded.id == "2"

    with pytest.raises(NotFoundError) as missing:
        manager.query_one(_blank_user(), "email = 'nobody@gmail.com'")
    assert missing.value.op == "Manager.query_one"

    with pytest.raises(ConflictError):
        manager.query_one(_blank_user(), "name = 'Juan'")


def test_query_windows(manager: Manager) -> None:
    for index, name in enumerate(["Franco", "Juan", "Xin"], start=1):
        manager.stage(make_user(str(index), name, f"{name.lower()}@gmail.com"), "insert")
    manager.commit()
    template = _blank_user()

    everything = manager.query([], template, "id <> '2' ORDER BY id")
    first = manager.query([], template, "id <> '2' ORDER BY id", "1")
    second = manager.query([], template, "id <> '2' ORDER BY id", 1, 1)

    assert [user.id for user in everything] == ["1", "3"]
    assert first == everything[:1]
    assert second == everything[1:2]

    with pytest.raises(NotFoundError):
        manager.query([], template, "id <> '2' ORDER BY id", 1, 2)
    with pytest.raises(NotFoundError):
        manager.query([], template, "name = 'Nobody'")


def test_query_fills_the_callers_list(manager: Manager) -> None:
    manager.stage(make_user(), "insert")
    manager.commit()
    results: list[User] = [make_user("stale")]

    returned = manager.query(results, _blank_user(), "1 = 1")

    assert returned is results
    assert results == [make_user()]


class FlakyDeleteCache(MemoryCache):
    """Memory cache whose first delete fails."""

    def __init__(self) -> None:
        super().__init__()
        self.delete_failures = 1

    def delete(self, record: Record) -> None:
        if self.delete_failures:
            self.delete_failures -= 1
            raise InternalError("FlakyDeleteCache.delete", "cache unavailable")
        super().delete(record)


def test_rollback_can_be_retried_after_a_partial_revert(database: SqlAlchemyDatabase) -> None:
    cache = FlakyDeleteCache()
    manager = Manager(database=database, cache=cache)
    manager.stage(make_user(), "insert")
    manager.commit()

    with pytest.raises(ConflictError):
        manager.rollback()
    assert len(manager.applied()) == 1

    manager.rollback()

    assert manager.applied() == ()
    assert len(cache) == 0
    with pytest.raises(NotFoundError):
        database.get(_blank_user(), "1")
