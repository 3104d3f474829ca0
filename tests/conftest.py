"""Pytest configuration and fixtures."""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Generator

import pytest

from build_retention.policy.models import PolicyConfig
from build_retention.repository.memory import InMemoryRepository
from build_retention.repository.models import ItemKind

# Keep the suite independent of any policy file or overrides on the host
for _var in list(os.environ):
    if _var.startswith("RETENTION_"):
        del os.environ[_var]

NOW = datetime(2024, 8, 31, 12, 0, tzinfo=timezone.utc)

RELEASE_REPO = "libs-release"
SNAPSHOT_REPO = "libs-snapshot"
ARCHIVE_REPO = "libs-archive"


def days_ago(days: float) -> datetime:
    """Instant ``days`` before the fixed test clock."""
    return NOW - timedelta(days=days)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Fixed clock for age evaluation."""
    return lambda: NOW


@pytest.fixture
def memory_repo() -> InMemoryRepository:
    """In-memory repository with release, snapshot and archive repositories."""
    return InMemoryRepository([RELEASE_REPO, SNAPSHOT_REPO, ARCHIVE_REPO])


@pytest.fixture
def policy_config() -> PolicyConfig:
    """Policy matching the repositories of ``memory_repo``."""
    return PolicyConfig(
        release_repos=[RELEASE_REPO],
        snapshot_repos=[SNAPSHOT_REPO],
        archive_repo=ARCHIVE_REPO,
        keep_latest=2,
        keep_days=180,
        select_projects=["*"],
        cleanup_root="com/jfrog",
    )


@pytest.fixture
def seed_group(memory_repo: InMemoryRepository):
    """
    Return a helper that seeds a leaf version group.

    Each version is an artifact directory holding one jar; versions are
    given as (name, age_in_days) pairs, oldest first.
    """

    def _seed(
        repo_key: str,
        group_path: str,
        versions: list[tuple[str, float]],
        content_age: float | None = None,
    ) -> list[str]:
        paths = []
        for name, age in versions:
            version_path = f"{group_path}/{name}"
            memory_repo.put(repo_key, version_path, ItemKind.ARTIFACT, days_ago(age))
            file_age = age if content_age is None else content_age
            memory_repo.put(
                repo_key,
                f"{version_path}/{name}.jar",
                ItemKind.ARTIFACT,
                days_ago(file_age),
            )
            paths.append(version_path)
        return paths

    return _seed
