"""Permission evaluation: wildcard precedence plus per-grant conditions."""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterable
from typing import Any

from warden_core.catalog.keys import candidate_keys
from warden_core.store.store import AssignmentStore


def _as_roles(role: str | Iterable[str]) -> list[str]:
    if isinstance(role, str):
        return [role]
    return list(role)


def has_permission(granted: Collection[str], required: str, context: Any = None) -> bool:
    """Static check against a bare list of keys. Conditions do not apply.

    *context* is accepted for call-site symmetry with :meth:`Evaluator.can`
    and ignored.
    """
    return any(key in granted for key in candidate_keys(required))


class Evaluator:
    """Read-only view over an :class:`AssignmentStore` answering ``can``."""

    def __init__(self, store: AssignmentStore) -> None:
        self._store = store

    def can(
        self,
        role: str | Iterable[str],
        permission: str,
        context: Any = None,
        *,
        validator: Callable[[Any], bool] | None = None,
    ) -> bool:
        """Return True if any role's assignment grants *permission* in *context*.

        For each role and each of its assignments (creation order), the
        global wildcard, the exact key and the resource wildcard are tried
        in that order; the first grant whose condition holds authorizes.
        There is no deny: grants only ever add.

        *validator*, when given, is consulted once after a grant matched and
        can only narrow the answer.
        """
        keys = candidate_keys(permission)
        for r in _as_roles(role):
            for assignment in self._store.assignments(r):
                # One read of the reference: a concurrent swap cannot split this check
                grants = assignment.permissions
                for key in keys:
                    condition = grants.get(key)
                    if condition is not None and condition(context):
                        return validator is None or bool(validator(context))
        return False
