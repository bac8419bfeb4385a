"""Re-materialization of dynamic assignments, on demand and on an interval."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Mapping
from typing import Literal

from warden_core.notifier import Notifier
from warden_core.refresh.models import MaterializationError, RefreshReport
from warden_core.store.models import Assignment, ConditionFn, as_key_list, build_permission_map
from warden_core.store.store import AssignmentStore

logger = logging.getLogger(__name__)


async def _resolve(value: object) -> object:
    if inspect.isawaitable(value):
        return await value
    return value


class RefreshCoordinator:
    """Drives fetchers and invalidation-key sources for dynamic assignments.

    Every refresh of a given assignment runs under that assignment's lock, so
    two overlapping refreshes never interleave: the second one compares its
    invalidation key against whatever the first one committed. The map and
    key are swapped in one synchronous step after the fetch succeeded; a
    failure leaves both untouched and publishes nothing.
    """

    def __init__(
        self,
        store: AssignmentStore,
        notifier: Notifier,
        *,
        interval_error_policy: Literal["log", "stop"] = "log",
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._interval_error_policy = interval_error_policy

    # -- Materialization -------------------------------------------------------

    async def _resolve_key(self, assignment: Assignment) -> str | None:
        source = assignment.invalidate_key
        if source is None or not callable(source):
            return source
        try:
            return await _resolve(source())
        except Exception as exc:
            raise MaterializationError(assignment.role, "resolve_invalidation_key", exc) from exc

    async def _fetch(self, assignment: Assignment) -> list[str]:
        try:
            return as_key_list(await _resolve(assignment.fetcher()))
        except Exception as exc:
            raise MaterializationError(assignment.role, "fetch_permissions", exc) from exc

    def _commit(self, assignment: Assignment, keys: list[str], key: str | None) -> None:
        grants: Mapping[str, ConditionFn] = build_permission_map(keys, assignment.condition)
        assignment.swap(grants, key)
        logger.debug(
            "Materialized %d permission(s) for role %r (assignment %d, key=%r)",
            len(grants),
            assignment.role,
            assignment.id,
            key,
        )
        self._notifier.notify()

    def publish_static(self, assignment: Assignment, keys: list[str], key: str | None = None) -> None:
        """Materialize literal grants immediately, without suspending."""
        self._commit(assignment, keys, key)

    def discard(self, assignment: Assignment) -> None:
        """Drop an assignment whose first materialization failed.

        Subscribers hear about it when grants were already published.
        """
        self._store.remove(assignment)
        if assignment.permissions:
            assignment.swap(build_permission_map((), None), None)
            self._notifier.notify()

    async def initialize(self, assignment: Assignment) -> None:
        """First materialization: resolve the key, then fetch (if dynamic).

        On failure the assignment is discarded before the lock is released,
        so a refresh waiting on it finds it removed.
        """
        async with assignment.lock:
            try:
                key = await self._resolve_key(assignment)
                if assignment.is_dynamic:
                    keys = await self._fetch(assignment)
                    self._commit(assignment, keys, key)
                else:
                    # Literal grants are already in place; only the key was pending
                    assignment.last_invalidate_key = key
            except (MaterializationError, asyncio.CancelledError):
                self.discard(assignment)
                raise

    async def refresh_assignment(self, assignment: Assignment) -> bool:
        """Refresh one dynamic assignment. Returns False when it was skipped."""
        if not assignment.is_dynamic:
            return False
        async with assignment.lock:
            if assignment.removed:
                return False
            key = None
            if assignment.has_key_source:
                key = await self._resolve_key(assignment)
                if key == assignment.last_invalidate_key:
                    logger.debug(
                        "Invalidation key unchanged for role %r (assignment %d), skipping",
                        assignment.role,
                        assignment.id,
                    )
                    return False
            keys = await self._fetch(assignment)
            self._commit(assignment, keys, key)
            return True

    async def refresh(self, role: str | None = None) -> RefreshReport:
        """Refresh dynamic assignments of *role*, or of every role.

        Assignments are processed one after another in registration order.
        A failing assignment keeps its previous data and does not stop the
        pass; once every assignment was tried, a single failure is raised
        as is and several are raised together in an ``ExceptionGroup``.
        """
        roles = [role] if role is not None else self._store.roles()
        report = RefreshReport()
        errors: list[MaterializationError] = []
        for r in roles:
            for assignment in self._store.assignments(r):
                if not assignment.is_dynamic:
                    continue
                try:
                    refreshed = await self.refresh_assignment(assignment)
                except MaterializationError as exc:
                    errors.append(exc)
                    continue
                if assignment.removed:
                    continue
                if refreshed:
                    report.refreshed.append((r, assignment.id))
                else:
                    report.skipped.append((r, assignment.id))
        if len(errors) == 1:
            raise errors[0]
        if errors:
            raise ExceptionGroup(f"refresh failed for {len(errors)} assignments", errors)
        return report

    # -- Interval timers -------------------------------------------------------

    def start_interval(self, assignment: Assignment) -> None:
        """Start the background refresh timer of a dynamic assignment."""
        if not assignment.interval_ms or assignment.interval_ms <= 0:
            return
        if not assignment.is_dynamic:
            logger.debug(
                "Ignoring interval for static assignment %d of role %r",
                assignment.id,
                assignment.role,
            )
            return
        if assignment.refreshing:
            return
        assignment.task = asyncio.get_running_loop().create_task(
            self._run_interval(assignment),
            name=f"warden-refresh-{assignment.role}-{assignment.id}",
        )
        logger.info(
            "Refreshing role %r (assignment %d) every %sms",
            assignment.role,
            assignment.id,
            assignment.interval_ms,
        )

    async def _run_interval(self, assignment: Assignment) -> None:
        delay = assignment.interval_ms / 1000
        while True:
            await asyncio.sleep(delay)
            try:
                await self.refresh_assignment(assignment)
            except MaterializationError:
                logger.exception(
                    "Interval refresh failed for role %r (assignment %d)",
                    assignment.role,
                    assignment.id,
                )
                if self._interval_error_policy == "stop":
                    logger.info(
                        "Stopped refreshing role %r (assignment %d) after failure",
                        assignment.role,
                        assignment.id,
                    )
                    return

    def stop_interval(self, assignment: Assignment) -> None:
        """Cancel the background timer of one assignment, if any."""
        if assignment.task is None:
            return
        assignment.task.cancel()
        assignment.task = None
        logger.info("Stopped refreshing role %r (assignment %d)", assignment.role, assignment.id)

    async def aclose(self) -> None:
        """Cancel every background timer and wait for them to finish."""
        tasks = []
        for assignment in self._store:
            if assignment.task is not None:
                tasks.append(assignment.task)
                self.stop_interval(assignment)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
