"""The closed universe of concrete permission keys."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

from warden_core.catalog.keys import make_key
from warden_core.config.models import Resource

logger = logging.getLogger(__name__)


class PermissionDef(BaseModel):
    """One grantable ``resource:action`` pair."""

    model_config = ConfigDict(frozen=True)

    key: str
    resource: Resource
    action: str


def _as_resource(value: Resource | Mapping[str, Any]) -> Resource:
    if isinstance(value, Resource):
        return value
    return Resource.model_validate(value)


class PermissionCatalog:
    """Cross product of declared resources and actions, fixed at construction.

    Roles are carried for enumeration only; the catalog never restricts which
    roles may be evaluated.
    """

    def __init__(
        self,
        roles: Iterable[str],
        actions: Iterable[str],
        resources: Iterable[Resource | Mapping[str, Any]],
    ) -> None:
        self._roles = tuple(roles)
        self._actions = tuple(actions)
        self._resources = tuple(_as_resource(r) for r in resources)
        self._permissions = tuple(
            PermissionDef(key=make_key(resource.key, action), resource=resource, action=action)
            for resource in self._resources
            for action in self._actions
        )
        self._keys = tuple(p.key for p in self._permissions)
        self._key_set = frozenset(self._keys)
        logger.debug(
            "Built permission catalog: %d resources x %d actions = %d keys",
            len(self._resources),
            len(self._actions),
            len(self._keys),
        )

    @property
    def roles(self) -> tuple[str, ...]:
        return self._roles

    @property
    def actions(self) -> tuple[str, ...]:
        return self._actions

    @property
    def resources(self) -> tuple[Resource, ...]:
        return self._resources

    @property
    def permissions(self) -> tuple[PermissionDef, ...]:
        return self._permissions

    @property
    def permission_keys(self) -> tuple[str, ...]:
        return self._keys

    def __contains__(self, key: object) -> bool:
        return key in self._key_set

    def __len__(self) -> int:
        return len(self._keys)

    def normalize_permissions(self, raw: Iterable[str]) -> list[str]:
        """Keep only entries that exactly equal a catalog key.

        Wildcards are not catalog keys and are dropped. Input order and
        duplicates are preserved.
        """
        return [p for p in raw if p in self._key_set]
