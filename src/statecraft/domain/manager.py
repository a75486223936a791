"""Orchestration of reads and staged writes over a database and a cache."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from statecraft.domain.change import Change, ChangeStatus
from statecraft.domain.errors import (
    ConflictError,
    InvalidError,
    StateError,
    wrap,
)

if TYPE_CHECKING:
    from statecraft.domain.change import Operation
    from statecraft.domain.model import Record
    from statecraft.domain.ports import Cache, Database

log = logging.getLogger(__name__)


class Manager:
    """Application state over an optional database and an optional cache.

    Writes are staged as :class:`Change` objects and only reach the backends on
    :meth:`commit`. Reads go straight to the backends. Instances are not safe to
    share between concurrent callers.
    """

    def __init__(self, database: Database | None = None, cache: Cache | None = None) -> None:
        if database is None and cache is None:
            raise InvalidError(
                "Manager.new", "a manager requires at least a database or a cache"
            )
        self.database = database
        self.cache = cache
        self._staged: list[Change] = []
        self._applied: list[Change] = []

    # Reads -------------------------------------------------------------------

    def get(self, record: Record, key: str) -> None:
        """Load ``record`` by id, trying the cache before the database.

        Any cache error falls through to the database. A database hit is not
        written back to the cache.
        """

        op = "Manager.get"
        error: Exception | None = None

        if self.cache is not None:
            try:
                self.cache.get(record, key)
            except Exception as exc:  # noqa: BLE001
                error = exc
            else:
                return

        if self.database is not None:
            try:
                self.database.get(record, key)
            except Exception as exc:  # noqa: BLE001
                error = exc
            else:
                return

        if error is not None:
            raise wrap(op, error) from error

    def query_one(self, record: Record, predicate: str) -> None:
        """Load the single database row matching ``predicate`` into ``record``."""

        op = "Manager.query_one"
        database = self._require_database(op)
        try:
            database.query_one(record, predicate)
        except StateError as exc:
            raise wrap(op, exc) from exc

    def query(
        self,
        results: list[Record],
        template: Record,
        predicate: str,
        limit: int | str | None = None,
        offset: int | str | None = None,
    ) -> list[Record]:
        """Fill ``results`` with every database row matching ``predicate``.

        ``limit`` and ``offset`` window the result set; an offset needs a limit.
        Rows come back in the backend's natural order unless the predicate
        carries an ordering clause.
        """

        op = "Manager.query"
        database = self._require_database(op)
        if offset is not None and limit is None:
            raise InvalidError(op, "an offset requires a limit")

        query_parts = [predicate]
        if limit is not None:
            query_parts.append(str(limit))
        if offset is not None:
            query_parts.append(str(offset))

        try:
            database.query(results, template, query_parts)
        except StateError as exc:
            raise wrap(op, exc) from exc
        return results

    # Writes ------------------------------------------------------------------

    def stage(self, record: Record, operation: Operation | str) -> Change:
        """Queue a change; nothing reaches the backends until :meth:`commit`."""

        try:
            change = Change(record, operation)
        except InvalidError as exc:
            raise InvalidError("Manager.stage", "failed to stage record for changes") from exc

        self._staged.append(change)
        return change

    def commit(self) -> None:
        """Apply every staged change in order.

        The whole batch is attempted even after a failure. Successful changes are
        collected in :meth:`applied`; if any change failed the staged changes are
        kept and a :class:`ConflictError` is raised.
        """

        self._applied = []
        failed = 0

        for change in self._staged:
            try:
                change.apply(self.database, self.cache)
            except StateError:
                log.debug("Change %r could not be applied", change, exc_info=True)
            if change.status is ChangeStatus.SUCCESS:
                self._applied.append(change)
            elif change.status is ChangeStatus.FAILURE:
                failed += 1

        if failed:
            log.warning(
                "Commit finished with failures: applied=%s, failed=%s",
                len(self._applied),
                failed,
            )
            raise ConflictError("Manager.commit", "one or more changes could not be committed")

        log.info("Committed %s changes", len(self._applied))
        self.clear()

    def rollback(self) -> None:
        """Revert the changes applied by the latest commit.

        Changes that could not be reverted stay in :meth:`applied` so a later call
        can retry them.
        """

        pending = self._applied
        self._applied = []
        failed = 0

        for change in pending:
            try:
                change.revert(self.database, self.cache)
            except StateError:
                failed += 1
            if change.status is not ChangeStatus.REVERTED:
                self._applied.append(change)

        if failed:
            log.warning("Rollback finished with %s failed reverts", failed)
            raise ConflictError("Manager.rollback", "could not rollback one or more changes")

        log.info(
            "Rolled back %s changes, %s left in place",
            len(pending) - len(self._applied),
            len(self._applied),
        )

    def clear(self) -> None:
        self._staged = []

    def status(self) -> tuple[Change, ...]:
        """Return the staged changes."""
        return tuple(self._staged)

    def applied(self) -> tuple[Change, ...]:
        """Return the changes applied by the latest commit."""
        return tuple(self._applied)

    def describe_status(self) -> list[str]:
        """Return and log one line per staged change."""

        lines = [
            f"Record: {change.record!r} OP: {change.operation.value} "
            f"Status: {change.status.value} Error: {change.last_error}"
            for change in self._staged
        ]
        for line in lines:
            log.info(line)
        return lines

    def _require_database(self, op: str) -> Database:
        if self.database is None:
            raise InvalidError(op, "this operation requires a database")
        return self.database
