from __future__ import annotations

import pytest

from statecraft.domain.errors import (
    ConflictError,
    ErrorKind,
    InternalError,
    InvalidError,
    NotFoundError,
    StateError,
    error_for_kind,
    error_kind,
    error_message,
    wrap,
)


@pytest.mark.parametrize(
    ("error_cls", "kind"),
    [
        (InvalidError, ErrorKind.INVALID),
        (NotFoundError, ErrorKind.NOT_FOUND),
        (ConflictError, ErrorKind.CONFLICT),
        (InternalError, ErrorKind.INTERNAL),
    ],
)
def test_error_classes_carry_their_kind(error_cls: type[StateError], kind: ErrorKind) -> None:
    error = error_cls("Some.op", "went wrong")

    assert error.kind is kind
    assert error_for_kind(kind) is error_cls
    assert error.op == "Some.op"
    assert error.message == "went wrong"
    assert str(error) == "Some.op: went wrong"


def test_wrap_preserves_kind_and_message() -> None:
    original = NotFoundError("Cache.get", "missing")

    wrapped = wrap("Manager.get", original)

    assert isinstance(wrapped, NotFoundError)
    assert wrapped.op == "Manager.get"
    assert wrapped.message == "missing"
    assert wrapped.__cause__ is original


def test_wrap_treats_foreign_exceptions_as_internal() -> None:
    original = ValueError("boom")

    wrapped = wrap("Manager.get", original)

    assert isinstance(wrapped, InternalError)
    assert error_kind(original) is ErrorKind.INTERNAL
    assert error_message(original) == "boom"
    assert wrapped.message == "boom"
