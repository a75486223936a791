from __future__ import annotations

from .persistence import Cache, Database

__all__ = [
    "Cache",
    "Database",
]
