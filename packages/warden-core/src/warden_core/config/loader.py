"""Policy file discovery and loading."""

import logging
import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import AccessConfig

logger = logging.getLogger(__name__)

PROJECT_POLICY = "warden.yaml"

# ${VAR} or ${VAR:-fallback}
_ENV_REF = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def policy_candidates(cli_path: str | None = None) -> list[Path]:
    """Policy files to try, highest priority first."""
    candidates = [Path(PROJECT_POLICY), Path.home() / ".warden" / "config.yaml"]
    if cli_path:
        candidates.insert(0, Path(cli_path))
    return candidates


def load_config(cli_path: str | None = None) -> AccessConfig:
    """Load the first non-empty policy file, or an empty policy.

    An explicit *cli_path* must exist. Files are read with ``yaml.safe_load``,
    ``${VAR}`` references are expanded, and the result is validated as an
    :class:`AccessConfig`. Every failure is raised as ``ValueError`` naming
    the file.
    """
    if cli_path and not Path(cli_path).exists():
        raise ValueError(f"Policy file not found: {cli_path}")

    for path in policy_candidates(cli_path):
        if not path.exists():
            continue
        raw = _read_policy(path)
        if raw is None:
            logger.debug("Policy file %s is empty, skipping", path)
            continue
        try:
            config = AccessConfig.model_validate(_expand_env_vars(raw))
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e
        logger.debug(
            "Loaded policy %s: %d role(s), %d resource(s), static grants for %d role(s)",
            path,
            len(config.roles),
            len(config.resources),
            len(config.grants),
        )
        return config

    logger.debug("No policy file found, using an empty policy")
    return AccessConfig()


def _read_policy(path: Path) -> dict | None:
    try:
        raw = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if raw is not None and not isinstance(raw, dict):
        raise ValueError(f"Invalid config in {path}: expected a mapping, got {type(raw).__name__}")
    return raw


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ``${VAR}`` and ``${VAR:-fallback}`` in strings.

    An unset variable without a fallback expands to the empty string.
    """
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), m.group(2) or ""), obj)
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default policy written by `warden config init`
DEFAULT_CONFIG_TEMPLATE = """\
# warden.yaml

roles: ["admin", "editor", "user"]
actions: ["create", "read", "update", "delete"]

resources:
  - name: "Post"
    key: "post"
    description: "Blog posts"
  - name: "Comment"
    key: "comment"

# Static, unconditional grants applied at startup.
# Keys are "resource:action", "resource:*" or "*"; roles, resources and
# actions must be declared above.
grants:
  admin: ["*"]
  editor: ["post:*", "comment:*"]
  user: ["post:read", "comment:read", "comment:create"]

# Background refresh of dynamic permission sources
refresh:
  interval_error_policy: "log"   # log | stop

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
