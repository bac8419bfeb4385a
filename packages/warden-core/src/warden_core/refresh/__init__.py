"""Refresh of dynamic permission sources, gated by invalidation keys."""

from warden_core.refresh.coordinator import RefreshCoordinator
from warden_core.refresh.models import MaterializationError, RefreshReport

__all__ = [
    "MaterializationError",
    "RefreshCoordinator",
    "RefreshReport",
]
