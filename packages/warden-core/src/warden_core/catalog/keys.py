"""Permission key grammar: ``resource:action``, ``resource:*`` and ``*``."""

from __future__ import annotations

GLOBAL_WILDCARD = "*"
WILDCARD_ACTION = "*"
DELIMITER = ":"


def make_key(resource_key: str, action: str) -> str:
    return f"{resource_key}{DELIMITER}{action}"


def resource_wildcard(resource_key: str) -> str:
    return make_key(resource_key, WILDCARD_ACTION)


def resource_of(permission: str) -> str | None:
    """Text before the first delimiter, or None when there is no delimiter."""
    resource, sep, _ = permission.partition(DELIMITER)
    return resource if sep else None


def candidate_keys(permission: str) -> list[str]:
    """Grant keys that can satisfy *permission*, in evaluation order.

    Global wildcard first, then the exact key, then the resource wildcard.
    A permission without a delimiter has no resource wildcard.
    """
    keys = [GLOBAL_WILDCARD, permission]
    resource = resource_of(permission)
    if resource is not None:
        keys.append(resource_wildcard(resource))
    # "*" or "post:*" requested directly would otherwise repeat a key
    return list(dict.fromkeys(keys))
