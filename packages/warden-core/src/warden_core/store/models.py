"""Assignment records and the options accepted when creating them."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Union

from pydantic import BaseModel, ConfigDict

ConditionFn = Callable[[Any], bool]
PermissionFetcher = Callable[[], Union[str, Iterable[str], Awaitable[Union[str, Iterable[str]]]]]
InvalidationKeyFetcher = Callable[[], Union[str, Awaitable[str]]]
InvalidationKeySource = Union[str, InvalidationKeyFetcher]

_EMPTY: Mapping[str, ConditionFn] = MappingProxyType({})


def always_allow(context: Any = None) -> bool:
    return True


def as_key_list(value: object) -> list[str]:
    """A single key or an iterable of keys, as a list."""
    if isinstance(value, str):
        return [value]
    if isinstance(value, Iterable):
        keys = list(value)
        for key in keys:
            if not isinstance(key, str):
                raise TypeError(f"permission keys must be strings, got {type(key).__name__}")
        return keys
    raise TypeError(f"expected a permission key or a list of keys, got {type(value).__name__}")


def build_permission_map(keys: Iterable[str], condition: ConditionFn | None) -> Mapping[str, ConditionFn]:
    """Map every key to the same condition (always-true when None)."""
    check = condition or always_allow
    return MappingProxyType({key: check for key in keys})


class AssignOptions(BaseModel):
    """Structured options for ``assign_permissions``.

    ``interval_ms`` is in milliseconds; a missing or non-positive value means
    no background refresh. Unknown option names are rejected.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    condition: ConditionFn | None = None
    invalidate_key: str | InvalidationKeyFetcher | None = None
    interval_ms: float | None = None

    @classmethod
    def coerce(cls, options: object) -> AssignOptions:
        """Accept None, a bare condition callable, a mapping, or an instance."""
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        if isinstance(options, Mapping):
            return cls.model_validate(options)
        if callable(options):
            return cls(condition=options)
        raise TypeError(f"unsupported assignment options: {type(options).__name__}")


@dataclass(eq=False)
class Assignment:
    """One unit of grant attached to a role.

    ``permissions`` is replaced wholesale (never edited in place) together
    with ``last_invalidate_key`` via :meth:`swap`, so a reader holding the
    old mapping keeps seeing a complete grant set. ``removed`` is set once the
    store drops the assignment; a refresh still queued on ``lock`` then does
    nothing.
    """

    id: int
    role: str
    fetcher: PermissionFetcher | None = None
    invalidate_key: InvalidationKeySource | None = None
    interval_ms: float | None = None
    condition: ConditionFn | None = None
    permissions: Mapping[str, ConditionFn] = field(default_factory=lambda: _EMPTY)
    last_invalidate_key: str | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    task: asyncio.Task | None = field(default=None, repr=False)
    removed: bool = False

    @property
    def is_dynamic(self) -> bool:
        return self.fetcher is not None

    @property
    def has_key_source(self) -> bool:
        return self.invalidate_key is not None

    @property
    def refreshing(self) -> bool:
        """True while a background refresh timer is alive."""
        return self.task is not None and not self.task.done()

    def swap(self, permissions: Mapping[str, ConditionFn], invalidate_key: str | None) -> None:
        self.permissions = permissions
        self.last_invalidate_key = invalidate_key
