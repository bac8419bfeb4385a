"""Access-control interface consumed by reactive bindings."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class AccessControl(Protocol):
    """What a UI layer needs: decide, list, and hear about changes."""

    def can(self, role: str | Iterable[str], permission: str, context: Any = None) -> bool: ...

    def get_role_permissions(self, role: str) -> list[str]: ...

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]: ...
