"""SQLAlchemy adapter package for statecraft."""

from __future__ import annotations

from .database import SqlAlchemyDatabase
from .mappings import NAMING_CONVENTION, TableRegistry, schema_of

__all__ = [
    "NAMING_CONVENTION",
    "SqlAlchemyDatabase",
    "TableRegistry",
    "schema_of",
]
