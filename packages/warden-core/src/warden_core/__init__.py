"""Warden Core - in-process RBAC/ABAC engine with refreshable permission sources."""

from warden_core.catalog import PermissionCatalog, PermissionDef
from warden_core.config import AccessConfig, Resource, load_config
from warden_core.engine import AccessEngine, create_engine
from warden_core.evaluator import has_permission
from warden_core.interfaces import AccessControl
from warden_core.refresh import MaterializationError, RefreshReport
from warden_core.store import AssignOptions, Assignment

__version__ = "0.1.0"

__all__ = [
    "AccessConfig",
    "AccessControl",
    "AccessEngine",
    "AssignOptions",
    "Assignment",
    "MaterializationError",
    "PermissionCatalog",
    "PermissionDef",
    "RefreshReport",
    "Resource",
    "create_engine",
    "has_permission",
    "load_config",
]
