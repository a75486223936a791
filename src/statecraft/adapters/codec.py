"""Conversion between dataclass records and plain payloads."""

from __future__ import annotations

from functools import cache
from typing import TYPE_CHECKING, Any, cast

from pydantic import TypeAdapter, ValidationError

from statecraft.domain.errors import InternalError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from statecraft.domain.model import Record


@cache
def _adapter(record_type: type[Any]) -> TypeAdapter[Any]:
    return TypeAdapter(record_type)


def record_to_dict(record: Record) -> dict[str, Any]:
    return cast(dict[str, Any], _adapter(type(record)).dump_python(record, mode="json"))


def record_to_json(record: Record) -> bytes:
    return _adapter(type(record)).dump_json(record)


def record_from_mapping[TRecord: Record](
    record_type: type[TRecord], payload: Mapping[str, Any]
) -> TRecord:
    try:
        return cast(TRecord, _adapter(record_type).validate_python(dict(payload)))
    except ValidationError as exc:
        raise InternalError(
            "codec.record_from_mapping", f"invalid {record_type.__name__} payload"
        ) from exc


def record_from_json[TRecord: Record](record_type: type[TRecord], payload: bytes | str) -> TRecord:
    try:
        return cast(TRecord, _adapter(record_type).validate_json(payload))
    except ValidationError as exc:
        raise InternalError(
            "codec.record_from_json", f"invalid {record_type.__name__} payload"
        ) from exc
