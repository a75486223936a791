"""Staged-change storage orchestration over a database and a cache."""

from __future__ import annotations

from importlib import metadata

from statecraft.domain.change import Change, ChangeStatus, Operation
from statecraft.domain.errors import (
    ConflictError,
    ErrorKind,
    InternalError,
    InvalidError,
    NotFoundError,
    StateError,
)
from statecraft.domain.manager import Manager
from statecraft.domain.model import DataRecord, Record, RecordTypeError, Schema
from statecraft.domain.ports import Cache, Database

try:
    __version__ = metadata.version("statecraft")
except metadata.PackageNotFoundError:
    __version__ = "0.0.0+local"

__all__ = [
    "Cache",
    "Change",
    "ChangeStatus",
    "ConflictError",
    "DataRecord",
    "Database",
    "ErrorKind",
    "InternalError",
    "InvalidError",
    "Manager",
    "NotFoundError",
    "Operation",
    "Record",
    "RecordTypeError",
    "Schema",
    "StateError",
]
