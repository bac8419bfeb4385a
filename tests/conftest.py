"""Shared test fixtures for Warden."""

import asyncio

import pytest

from warden_core.config.models import AccessConfig, Resource
from warden_core.engine import AccessEngine


@pytest.fixture
def sample_resources():
    return [
        Resource(name="Post", key="post", description="Blog posts"),
        Resource(name="Comment", key="comment"),
        Resource(name="User", key="user", description="User accounts"),
    ]


@pytest.fixture
def sample_config(sample_resources):
    return AccessConfig(
        roles=["admin", "editor", "user", "guest"],
        actions=["create", "read", "update", "delete"],
        resources=sample_resources,
    )


@pytest.fixture
def engine(sample_config):
    return AccessEngine(
        roles=sample_config.roles,
        actions=sample_config.actions,
        resources=sample_config.resources,
    )


@pytest.fixture
def policy_file(tmp_path):
    """A warden.yaml with static grants for CLI and loader tests."""
    path = tmp_path / "warden.yaml"
    path.write_text(
        "roles: [admin, editor, user]\n"
        "actions: [create, read, update, delete]\n"
        "resources:\n"
        "  - name: Post\n"
        "    key: post\n"
        "    description: Blog posts\n"
        "  - name: Comment\n"
        "    key: comment\n"
        "grants:\n"
        "  admin: ['*']\n"
        "  editor: ['post:*']\n"
        "  user: ['post:read', 'comment:read']\n"
    )
    return path


class Versioned:
    """A permission source whose data and version stamp change together.

    Counts calls so tests can tell whether a fetch actually happened.
    """

    def __init__(self, versions: dict[str, list[str]], version: str) -> None:
        self.versions = versions
        self.version = version
        self.fetches = 0
        self.key_reads = 0

    async def fetch(self) -> list[str]:
        self.fetches += 1
        return list(self.versions[self.version])

    async def key(self) -> str:
        self.key_reads += 1
        return self.version


@pytest.fixture
def versioned():
    return Versioned(
        {"v1": ["post:read"], "v2": ["post:read", "post:update"], "v3": ["post:delete"]},
        "v1",
    )


async def _wait_for(predicate, timeout: float = 1.0, step: float = 0.005) -> bool:
    """Poll *predicate* until it is true or *timeout* seconds pass."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(step)
    return predicate()


@pytest.fixture
def wait_for():
    return _wait_for
