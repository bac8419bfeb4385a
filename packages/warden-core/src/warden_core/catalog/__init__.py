"""Permission catalog and key grammar."""

from warden_core.catalog.catalog import PermissionCatalog, PermissionDef
from warden_core.catalog.keys import (
    GLOBAL_WILDCARD,
    candidate_keys,
    make_key,
    resource_of,
    resource_wildcard,
)

__all__ = [
    "GLOBAL_WILDCARD",
    "PermissionCatalog",
    "PermissionDef",
    "candidate_keys",
    "make_key",
    "resource_of",
    "resource_wildcard",
]
