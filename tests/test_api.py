"""API integration tests for the Build Retention FastAPI application.

These tests use FastAPI TestClient against an in-memory repository service,
so no storage root or policy file is needed.
"""

import logging
from typing import Generator

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from build_retention.api.app import create_app
from build_retention.api.routes.cleanup import parse_repos
from build_retention.policy.models import PolicyConfig
from build_retention.repository.events import StorageEventBus
from build_retention.repository.memory import InMemoryRepository
from build_retention.repository.models import ItemKind, RepoPath

from conftest import ARCHIVE_REPO, RELEASE_REPO, SNAPSHOT_REPO


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def client(
    policy_config: PolicyConfig, memory_repo: InMemoryRepository
) -> Generator[TestClient, None, None]:
    """Create a test client bound to the shared in-memory repository."""
    app = create_app(policy_config, memory_repo)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def snapshot_group(seed_group) -> None:
    seed_group(SNAPSHOT_REPO, "com/jfrog/app", [("1.0", 4), ("1.1", 3), ("1.2", 2), ("1.3", 1)])


# =============================================================================
# Root and health
# =============================================================================


class TestRootAndHealth:
    def test_root(self, client: TestClient) -> None:
        response = client.get("/")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["name"] == "Build Retention API"

    def test_health_all_repositories_present(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"][ARCHIVE_REPO] == "healthy"
        assert data["components"]["dry_run"] == "false"

    def test_health_degraded_when_repository_missing(self, policy_config: PolicyConfig) -> None:
        app = create_app(policy_config, InMemoryRepository([RELEASE_REPO, SNAPSHOT_REPO]))
        with TestClient(app) as client:
            data = client.get("/health").json()

        assert data["status"] == "degraded"
        assert data["components"][ARCHIVE_REPO] == "missing"


# =============================================================================
# Batch cleanup
# =============================================================================


class TestCleanupEndpoint:
    """Tests for POST /api/plugins/execute/cleanup."""

    def test_repos_query(self, client: TestClient, memory_repo, snapshot_group) -> None:
        response = client.post("/api/plugins/execute/cleanup", params={"repos": SNAPSHOT_REPO})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["success"] is True
        summary = data["repositories"][SNAPSHOT_REPO]
        assert summary["action"] == "delete"
        assert summary["deleted_count"] == 1
        assert not memory_repo.exists(RepoPath(repo_key=SNAPSHOT_REPO, path="com/jfrog/app/1.0"))

    def test_plugin_params_form(self, client: TestClient, snapshot_group) -> None:
        response = client.post(
            "/api/plugins/execute/cleanup",
            params={"params": f"repos={SNAPSHOT_REPO},libs-other"},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["repositories"][SNAPSHOT_REPO]["deleted_count"] == 1
        assert data["skipped_repos"] == ["libs-other"]

    def test_no_repositories(self, client: TestClient) -> None:
        response = client.post("/api/plugins/execute/cleanup")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["type"] == "bad_request"
        assert response.json()["error"]["message"] == "No repositories given"

    def test_parse_repos(self) -> None:
        assert parse_repos(["a,b", "a"], "repos=c|other=d") == ["a", "b", "c"]
        assert parse_repos(None, None) == []


# =============================================================================
# Storage event webhooks
# =============================================================================


class TestEventEndpoints:
    """Tests for /api/v1/events."""

    def test_item_created_release_folder(self, client: TestClient, memory_repo, seed_group) -> None:
        seed_group(RELEASE_REPO, "com/jfrog/app", [("1.0", 400), ("1.1", 300), ("1.2", 200)])
        memory_repo.put(SNAPSHOT_REPO, "com/jfrog/app/2.0-SNAPSHOT", ItemKind.ARTIFACT)
        memory_repo.put(RELEASE_REPO, "com/jfrog/app/2.0", ItemKind.FOLDER)

        response = client.post(
            "/api/v1/events/item-created",
            json={"repo_key": RELEASE_REPO, "path": "com/jfrog/app/2.0"},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["triggered"] is True
        assert data["outcome"]["snapshot"]["deleted"] == [f"{SNAPSHOT_REPO}:com/jfrog/app/2.0-SNAPSHOT"]
        assert data["outcome"]["retention"]["archived_count"] == 1
        assert memory_repo.exists(RepoPath(repo_key=ARCHIVE_REPO, path="com/jfrog/app/1.0"))

    def test_item_created_not_qualifying(self, client: TestClient, memory_repo) -> None:
        memory_repo.put(SNAPSHOT_REPO, "com/jfrog/app/2.0", ItemKind.FOLDER)

        response = client.post(
            "/api/v1/events/item-created",
            json={"repo_key": SNAPSHOT_REPO, "path": "com/jfrog/app/2.0"},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["triggered"] is False
        assert response.json()["outcome"] is None

    def test_missing_item(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/events/item-created",
            json={"repo_key": RELEASE_REPO, "path": "com/jfrog/nope"},
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"]["type"] == "not_found"
        assert response.json()["error"]["message"] == f"No item at {RELEASE_REPO}:com/jfrog/nope"

    def test_before_delete(self, client: TestClient, memory_repo) -> None:
        memory_repo.put(SNAPSHOT_REPO, "com/jfrog/app/1.0", ItemKind.ARTIFACT)

        response = client.post(
            "/api/v1/events/before-delete",
            json={"repo_key": SNAPSHOT_REPO, "path": "com/jfrog/app/1.0"},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["item"] == f"{SNAPSHOT_REPO}:com/jfrog/app/1.0"

    def test_invalid_body(self, client: TestClient) -> None:
        response = client.post("/api/v1/events/item-created", json={"path": "x"})
        assert response.status_code == 422


class TestInProcessEvents:
    def test_factory_registers_triggers_on_bus(self, policy_config: PolicyConfig) -> None:
        bus = StorageEventBus()
        repo = InMemoryRepository([RELEASE_REPO, SNAPSHOT_REPO, ARCHIVE_REPO], event_bus=bus)
        repo.put(SNAPSHOT_REPO, "com/jfrog/app/2.0-SNAPSHOT", ItemKind.ARTIFACT)

        create_app(policy_config, repo)
        repo.create_folder(RepoPath(repo_key=RELEASE_REPO, path="com/jfrog/app/2.0"))

        assert not repo.exists(RepoPath(repo_key=SNAPSHOT_REPO, path="com/jfrog/app/2.0-SNAPSHOT"))


class TestRequestLogging:
    """Request log lines carry the retention summary left by the routes."""

    LOGGER = "build_retention.api.middleware.logging"

    def test_cleanup_summary_logged(self, client: TestClient, snapshot_group, caplog) -> None:
        with caplog.at_level(logging.INFO, logger=self.LOGGER):
            response = client.post("/api/plugins/execute/cleanup", params={"repos": f"{SNAPSHOT_REPO},libs-other"})

        assert float(response.headers["X-Process-Time"]) >= 0
        record = next(r for r in caplog.records if r.name == self.LOGGER)
        assert "POST /api/plugins/execute/cleanup -> 200" in record.getMessage()
        assert record.retention == {
            "repos": f"{SNAPSHOT_REPO},libs-other",
            "deleted": 1,
            "archived": 0,
            "skipped": 1,
            "success": True,
        }

    def test_event_item_logged(self, client: TestClient, memory_repo, caplog) -> None:
        memory_repo.put(SNAPSHOT_REPO, "com/jfrog/app/2.0", ItemKind.FOLDER)

        with caplog.at_level(logging.INFO, logger=self.LOGGER):
            client.post(
                "/api/v1/events/item-created",
                json={"repo_key": SNAPSHOT_REPO, "path": "com/jfrog/app/2.0"},
            )

        record = next(r for r in caplog.records if r.name == self.LOGGER)
        assert record.retention == {"item": f"{SNAPSHOT_REPO}:com/jfrog/app/2.0", "triggered": False}

    def test_request_without_summary(self, client: TestClient, caplog) -> None:
        with caplog.at_level(logging.INFO, logger=self.LOGGER):
            client.get("/")

        record = next(r for r in caplog.records if r.name == self.LOGGER)
        assert record.getMessage().startswith("GET / -> 200")
        assert record.retention == {}

    def test_health_not_instrumented(self, client: TestClient) -> None:
        response = client.get("/health")
        assert "X-Process-Time" not in response.headers
