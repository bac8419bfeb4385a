from .loader import load_config
from .models import AccessConfig, RefreshSettings, Resource

__all__ = [
    "AccessConfig",
    "RefreshSettings",
    "Resource",
    "load_config",
]
