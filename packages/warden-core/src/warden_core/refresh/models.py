"""Models for the refresh subsystem."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

Operation = Literal["fetch_permissions", "resolve_invalidation_key"]


class MaterializationError(Exception):
    """Wraps a failing permission fetcher or invalidation-key source."""

    def __init__(self, role: str, operation: Operation, cause: Exception) -> None:
        self.role = role
        self.operation = operation
        super().__init__(f"{operation} for role {role!r} failed: {cause}")
        self.__cause__ = cause


class RefreshReport(BaseModel):
    """Outcome of a refresh pass, as ``(role, assignment id)`` pairs.

    Static assignments are not refreshable and appear in neither list.
    """

    refreshed: list[tuple[str, int]] = Field(default_factory=list)
    skipped: list[tuple[str, int]] = Field(default_factory=list)
