"""Assignment records and the per-role store."""

from warden_core.store.models import (
    AssignOptions,
    Assignment,
    ConditionFn,
    InvalidationKeyFetcher,
    InvalidationKeySource,
    PermissionFetcher,
    always_allow,
    as_key_list,
    build_permission_map,
)
from warden_core.store.store import AssignmentStore

__all__ = [
    "AssignOptions",
    "Assignment",
    "AssignmentStore",
    "ConditionFn",
    "InvalidationKeyFetcher",
    "InvalidationKeySource",
    "PermissionFetcher",
    "always_allow",
    "as_key_list",
    "build_permission_map",
]
