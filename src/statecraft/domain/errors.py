"""Error kinds shared by the engine and the backend adapters."""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    INVALID = "invalid"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"


class StateError(RuntimeError):
    """Base error carrying the operation tag and the domain-level kind.

    The originating error, when there is one, is available through ``__cause__``.
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, op: str, message: str) -> None:
        super().__init__(f"{op}: {message}")
        self.op = op
        self.message = message


class InvalidError(StateError):
    """Raised for bad arguments such as an unknown operation name."""

    kind = ErrorKind.INVALID


class NotFoundError(StateError):
    """Raised when no record matches a key or predicate."""

    kind = ErrorKind.NOT_FOUND


class ConflictError(StateError):
    """Raised when a query is ambiguous or a batch partially failed."""

    kind = ErrorKind.CONFLICT


class InternalError(StateError):
    """Raised for backend failures not otherwise classified."""

    kind = ErrorKind.INTERNAL


_ERROR_BY_KIND: dict[ErrorKind, type[StateError]] = {
    ErrorKind.INVALID: InvalidError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.CONFLICT: ConflictError,
    ErrorKind.INTERNAL: InternalError,
}


def error_for_kind(kind: ErrorKind) -> type[StateError]:
    return _ERROR_BY_KIND[kind]


def error_kind(error: BaseException) -> ErrorKind:
    """Return the kind of ``error``; foreign exceptions count as internal."""

    if isinstance(error, StateError):
        return error.kind
    return ErrorKind.INTERNAL


def error_message(error: BaseException) -> str:
    if isinstance(error, StateError):
        return error.message
    return str(error)


def wrap(op: str, error: BaseException) -> StateError:
    """Re-tag ``error`` with ``op`` keeping its kind and message.

    The returned exception is meant to be raised ``from error``.
    """

    wrapped = error_for_kind(error_kind(error))(op, error_message(error))
    wrapped.__cause__ = error
    return wrapped
