from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Literal


class Resource(BaseModel):
    """A protected resource. Its key prefixes every permission on it."""

    model_config = ConfigDict(frozen=True)

    name: str
    key: str = Field(min_length=1)
    description: str | None = None

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("key cannot be empty or whitespace")
        if ":" in v or v == "*":
            raise ValueError(f"key {v!r} cannot contain ':' or be '*'")
        return v


class RefreshSettings(BaseModel):
    # "log" keeps the timer running after a failed interval refresh, "stop" cancels it
    interval_error_policy: Literal["log", "stop"] = "log"


class AccessConfig(BaseModel):
    roles: list[str] = Field(default_factory=list)
    actions: list[str] = Field(default_factory=list)
    resources: list[Resource] = Field(default_factory=list)
    grants: dict[str, list[str]] = Field(default_factory=dict)
    refresh: RefreshSettings = Field(default_factory=RefreshSettings)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"

    @model_validator(mode="after")
    def validate_resource_keys(self) -> "AccessConfig":
        seen: set[str] = set()
        for resource in self.resources:
            if resource.key in seen:
                raise ValueError(f"duplicate resource key: {resource.key!r}")
            seen.add(resource.key)
        return self

    @model_validator(mode="after")
    def validate_grants(self) -> "AccessConfig":
        """Static grants may only name declared roles, resources and actions."""
        resource_keys = {r.key for r in self.resources}
        for role, keys in self.grants.items():
            if role not in self.roles:
                raise ValueError(f"grants for undeclared role {role!r}")
            for key in keys:
                if key == "*":
                    continue
                resource, sep, action = key.partition(":")
                if not sep or resource not in resource_keys:
                    raise ValueError(f"grant {key!r} for role {role!r} names no declared resource")
                if action != "*" and action not in self.actions:
                    raise ValueError(f"grant {key!r} for role {role!r} names undeclared action {action!r}")
        return self
