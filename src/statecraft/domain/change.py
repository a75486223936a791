"""Staged mutations and their lifecycle."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from statecraft.domain.errors import InternalError, InvalidError, NotFoundError

if TYPE_CHECKING:
    from collections.abc import Callable

    from statecraft.domain.model import Record
    from statecraft.domain.ports import Cache, Database

log = logging.getLogger(__name__)

type Step = tuple[str, Callable[[], None]]


class Operation(StrEnum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class ChangeStatus(StrEnum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
    REVERTED = "reverted"


class Change:
    """One mutation of a record, staged for a later commit.

    The operation is fixed at construction; ``status`` and ``last_error`` track the
    outcome of the latest ``apply``/``revert`` call.
    """

    def __init__(self, record: Record, operation: Operation | str) -> None:
        try:
            resolved = Operation(operation)
        except ValueError as exc:
            raise InvalidError(
                "Change.new", f"operation {operation!r} is not supported"
            ) from exc
        self.record = record
        self._operation = resolved
        self.status = ChangeStatus.PENDING
        self.last_error: Exception | None = None

    @property
    def operation(self) -> Operation:
        return self._operation

    def __repr__(self) -> str:
        return (
            f"Change(record={self.record!r}, operation={self._operation.value}, "
            f"status={self.status.value}, last_error={self.last_error!r})"
        )

    def apply(self, database: Database | None, cache: Cache | None) -> None:
        """Run the operation against each configured backend, database first.

        Changes that already succeeded or were reverted are left alone. A failing
        backend does not stop the other one from being attempted, but the change
        stays failed once any backend rejected it.
        """

        if self.status in (ChangeStatus.SUCCESS, ChangeStatus.REVERTED):
            return

        op = f"Change.apply.{self._operation.name}"
        failure: tuple[str, Exception] | None = None
        for backend, action in self._apply_steps(database, cache):
            try:
                action()
            except Exception as exc:  # noqa: BLE001
                self.status = ChangeStatus.FAILURE
                self.last_error = exc
                failure = (backend, exc)
                log.warning("%s: %s failed for %r: %s", op, backend, self.record, exc)
            else:
                if failure is None:
                    self.status = ChangeStatus.SUCCESS

        if failure is not None:
            backend, exc = failure
            raise InternalError(
                op, f"{backend}: could not apply {self._operation.value} operation"
            ) from exc

    def revert(self, database: Database | None, cache: Cache | None) -> None:
        """Undo a successful insert by deleting the record from each backend.

        Only inserts can be reverted; updates and deletes keep their status since
        no pre-image of the record is captured. A backend that no longer holds the
        record counts as reverted, so a partly failed revert can be retried.
        """

        if self.status is not ChangeStatus.SUCCESS:
            return
        if self._operation is not Operation.INSERT:
            return

        op = f"Change.revert.{self._operation.name}"
        failure: tuple[str, Exception] | None = None
        for backend, action in self._revert_steps(database, cache):
            try:
                action()
            except NotFoundError:
                log.debug("%s: %s no longer holds %r", op, backend, self.record)
            except Exception as exc:  # noqa: BLE001
                self.last_error = exc
                failure = (backend, exc)
                log.warning("%s: %s failed for %r: %s", op, backend, self.record, exc)

        if failure is not None:
            backend, exc = failure
            raise InternalError(
                op, f"{backend}: could not revert {self._operation.value} operation"
            ) from exc
        self.status = ChangeStatus.REVERTED

    def _apply_steps(self, database: Database | None, cache: Cache | None) -> list[Step]:
        record = self.record
        steps: list[Step] = []
        if database is not None:
            match self._operation:
                case Operation.INSERT:
                    steps.append(("database", lambda: database.insert(record)))
                case Operation.UPDATE:
                    steps.append(("database", lambda: database.update(record)))
                case Operation.DELETE:
                    steps.append(("database", lambda: database.delete(record)))
        if cache is not None:
            if self._operation is Operation.DELETE:
                steps.append(("cache", lambda: cache.delete(record)))
            else:
                steps.append(("cache", lambda: cache.set(record, cache.get_ttl())))
        return steps

    def _revert_steps(self, database: Database | None, cache: Cache | None) -> list[Step]:
        record = self.record
        steps: list[Step] = []
        if database is not None:
            steps.append(("database", lambda: database.delete(record)))
        if cache is not None:
            steps.append(("cache", lambda: cache.delete(record)))
        return steps
