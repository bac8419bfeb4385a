"""The access engine: catalog, assignments, evaluation, refresh, notification."""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Iterable, Mapping
from typing import Any, Literal

from warden_core.catalog.catalog import PermissionCatalog, PermissionDef
from warden_core.config.models import AccessConfig, Resource
from warden_core.evaluator.evaluator import Evaluator, has_permission
from warden_core.notifier import Notifier
from warden_core.refresh.coordinator import RefreshCoordinator
from warden_core.refresh.models import RefreshReport
from warden_core.store.models import (
    AssignOptions,
    Assignment,
    ConditionFn,
    PermissionFetcher,
    as_key_list,
)
from warden_core.store.store import AssignmentStore

logger = logging.getLogger(__name__)


class AccessEngine:
    """In-process RBAC + ABAC authorization engine.

    Roles own ordered assignments. Each assignment maps permission keys
    (``resource:action``, ``resource:*`` or ``*``) to a condition and may be
    backed by an async fetcher that is refreshed on demand or on an interval,
    gated by an invalidation key. Listeners registered with
    :meth:`subscribe` are called after every successful materialization.

    Must be used from a single event loop. ``can``, ``allow`` and
    ``get_role_permissions`` never suspend.
    """

    def __init__(
        self,
        roles: Iterable[str],
        actions: Iterable[str],
        resources: Iterable[Resource | Mapping[str, Any]],
        *,
        interval_error_policy: Literal["log", "stop"] = "log",
    ) -> None:
        self.catalog = PermissionCatalog(roles, actions, resources)
        self._store = AssignmentStore()
        self._notifier = Notifier()
        self._evaluator = Evaluator(self._store)
        self._coordinator = RefreshCoordinator(
            self._store,
            self._notifier,
            interval_error_policy=interval_error_policy,
        )

    # -- Catalog ---------------------------------------------------------------

    @property
    def roles(self) -> tuple[str, ...]:
        return self.catalog.roles

    @property
    def actions(self) -> tuple[str, ...]:
        return self.catalog.actions

    @property
    def resources(self) -> tuple[Resource, ...]:
        return self.catalog.resources

    @property
    def permissions(self) -> tuple[PermissionDef, ...]:
        return self.catalog.permissions

    @property
    def permission_keys(self) -> tuple[str, ...]:
        return self.catalog.permission_keys

    def normalize_permissions(self, raw: Iterable[str]) -> list[str]:
        return self.catalog.normalize_permissions(raw)

    # -- Assignments -----------------------------------------------------------

    def allow(
        self,
        role: str,
        permission: str | Iterable[str],
        condition: ConditionFn | None = None,
    ) -> None:
        """Grant one key or a list of keys to *role*, all under *condition*."""
        keys = as_key_list(permission)
        assignment = self._store.add(role, condition=condition)
        self._coordinator.publish_static(assignment, keys)

    async def assign_permissions(
        self,
        role: str,
        perms: str | Iterable[str] | PermissionFetcher,
        options: AssignOptions | Mapping[str, Any] | ConditionFn | None = None,
    ) -> Assignment:
        """Attach a new assignment to *role* and return it once materialized.

        *perms* is a key, a list of keys, or a zero-argument fetcher (sync or
        async) producing either. *options* is a condition callable or
        :class:`AssignOptions` / mapping with ``condition``,
        ``invalidate_key`` and ``interval_ms``.

        Literal grants are visible before the first suspension point. With a
        fetcher or a callable invalidation key the call waits for the first
        key resolution and fetch; if either fails the assignment is dropped,
        subscribers hear about any literal grants taken back, and
        :class:`~warden_core.refresh.MaterializationError` is raised.
        """
        opts = AssignOptions.coerce(options)
        fetcher = perms if callable(perms) else None
        keys = None if fetcher is not None else as_key_list(perms)

        assignment = self._store.add(
            role,
            fetcher=fetcher,
            invalidate_key=opts.invalidate_key,
            interval_ms=opts.interval_ms,
            condition=opts.condition,
        )

        if keys is not None:
            literal_key = opts.invalidate_key if isinstance(opts.invalidate_key, str) else None
            self._coordinator.publish_static(assignment, keys, literal_key)

        if fetcher is not None or callable(opts.invalidate_key):
            await self._coordinator.initialize(assignment)

        self._coordinator.start_interval(assignment)
        return assignment

    def get_role_permissions(self, role: str) -> list[str]:
        """Keys currently granted to *role* across all its assignments."""
        return self._store.get_role_permissions(role)

    def resolve_permissions(self, role: str) -> list[str]:
        return self.get_role_permissions(role)

    def assignments(self, role: str) -> tuple[Assignment, ...]:
        return self._store.assignments(role)

    # -- Evaluation ------------------------------------------------------------

    def can(
        self,
        role: str | Iterable[str],
        permission: str,
        context: Any = None,
        *,
        validator: Callable[[Any], bool] | None = None,
    ) -> bool:
        return self._evaluator.can(role, permission, context, validator=validator)

    def has_permission(self, granted: Collection[str], permission: str, context: Any = None) -> bool:
        return has_permission(granted, permission, context)

    # -- Refresh and notification ----------------------------------------------

    async def refresh(self, role: str | None = None) -> RefreshReport:
        return await self._coordinator.refresh(role)

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        return self._notifier.subscribe(callback)

    def stop_refresh(self, assignment: Assignment) -> None:
        """Cancel the background refresh timer of one assignment."""
        self._coordinator.stop_interval(assignment)

    async def aclose(self) -> None:
        """Cancel all background refresh timers."""
        await self._coordinator.aclose()

    async def __aenter__(self) -> AccessEngine:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def create_engine(config: AccessConfig | Mapping[str, Any]) -> AccessEngine:
    """Build an engine from config and apply its static grants."""
    if not isinstance(config, AccessConfig):
        config = AccessConfig.model_validate(config)
    engine = AccessEngine(
        roles=config.roles,
        actions=config.actions,
        resources=config.resources,
        interval_error_policy=config.refresh.interval_error_policy,
    )
    for role, keys in config.grants.items():
        engine.allow(role, keys)
    logger.debug("Applied static grants for %d role(s)", len(config.grants))
    return engine
