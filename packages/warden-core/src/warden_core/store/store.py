"""Per-role ordered collections of assignments."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterator

from warden_core.store.models import (
    Assignment,
    ConditionFn,
    InvalidationKeySource,
    PermissionFetcher,
)

logger = logging.getLogger(__name__)


class AssignmentStore:
    """In-memory arena of assignments keyed by role.

    Assignments for a role keep their creation order and are never merged.
    The store is the only mutable shared state of an engine.
    """

    def __init__(self) -> None:
        self._by_role: dict[str, list[Assignment]] = {}
        self._ids = itertools.count(1)

    def add(
        self,
        role: str,
        *,
        fetcher: PermissionFetcher | None = None,
        invalidate_key: InvalidationKeySource | None = None,
        interval_ms: float | None = None,
        condition: ConditionFn | None = None,
    ) -> Assignment:
        """Append a new, not yet materialized assignment to *role*."""
        assignment = Assignment(
            id=next(self._ids),
            role=role,
            fetcher=fetcher,
            invalidate_key=invalidate_key,
            interval_ms=interval_ms,
            condition=condition,
        )
        self._by_role.setdefault(role, []).append(assignment)
        logger.debug(
            "Added %s assignment %d to role %r",
            "dynamic" if assignment.is_dynamic else "static",
            assignment.id,
            role,
        )
        return assignment

    def remove(self, assignment: Assignment) -> None:
        assignments = self._by_role.get(assignment.role)
        if not assignments or assignment not in assignments:
            return
        assignments.remove(assignment)
        assignment.removed = True
        if not assignments:
            del self._by_role[assignment.role]
        logger.debug("Removed assignment %d from role %r", assignment.id, assignment.role)

    def assignments(self, role: str) -> tuple[Assignment, ...]:
        """Snapshot of a role's assignments in creation order."""
        return tuple(self._by_role.get(role, ()))

    def roles(self) -> list[str]:
        """Roles that own at least one assignment, in first-assignment order."""
        return list(self._by_role)

    def __iter__(self) -> Iterator[Assignment]:
        for assignments in list(self._by_role.values()):
            yield from list(assignments)

    def get_role_permissions(self, role: str) -> list[str]:
        """Union of current keys across the role's assignments, first-seen order."""
        seen: dict[str, None] = {}
        for assignment in self.assignments(role):
            for key in assignment.permissions:
                seen.setdefault(key, None)
        return list(seen)
