from __future__ import annotations

from .record import DataRecord, Record, RecordTypeError, Schema

__all__ = [
    "DataRecord",
    "Record",
    "RecordTypeError",
    "Schema",
]
