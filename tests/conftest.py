from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from statecraft.adapters.memory import MemoryCache
from statecraft.adapters.sqlalchemy import SqlAlchemyDatabase
from statecraft.domain.manager import Manager
from tests.helpers.backends import FakeCache, FakeDatabase
from tests.helpers.records import Counter, User

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def database(sqlite_engine: Engine) -> SqlAlchemyDatabase:
    db = SqlAlchemyDatabase(sqlite_engine)
    db.create_schema([User, Counter], drop_existing=True)
    return db


@pytest.fixture
def memory_cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def manager(database: SqlAlchemyDatabase, memory_cache: MemoryCache) -> Manager:
    return Manager(database=database, cache=memory_cache)


@pytest.fixture
def fake_database() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def fake_cache() -> FakeCache:
    return FakeCache()
