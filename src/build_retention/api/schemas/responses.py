"""
Pydantic response schemas for API endpoints.

All API responses conform to these schemas for consistent output.
"""

from pydantic import BaseModel, Field

from build_retention.policy.models import (
    Action,
    CleanupReport,
    RetentionResult,
    TriggerOutcome,
)


class RepositoryCleanupSummary(BaseModel):
    """Cleanup counters for one repository."""

    action: Action = Field(description="Action applied to the repository")
    deleted_count: int = Field(description="Builds deleted")
    archived_count: int = Field(description="Builds moved to the archive repository")
    kept_count: int = Field(description="Archive candidates kept by the age gate")
    groups_processed: int = Field(description="Leaf version groups acted on")
    errors: list[str] = Field(default_factory=list, description="Per-candidate failures")

    @classmethod
    def from_result(cls, action: Action, result: RetentionResult) -> "RepositoryCleanupSummary":
        return cls(
            action=action,
            deleted_count=result.deleted_count,
            archived_count=result.archived_count,
            kept_count=result.kept_count,
            groups_processed=result.groups_processed,
            errors=list(result.errors),
        )


class CleanupResponse(BaseModel):
    """Acknowledgment of a batch cleanup."""

    success: bool = Field(description="False if any candidate failed")
    dry_run: bool = Field(description="Whether mutations were suppressed")
    repositories: dict[str, RepositoryCleanupSummary] = Field(
        default_factory=dict, description="Summary per processed repository"
    )
    skipped_repos: list[str] = Field(
        default_factory=list, description="Repositories with no configured action"
    )

    @classmethod
    def from_report(cls, report: CleanupReport, dry_run: bool) -> "CleanupResponse":
        return cls(
            success=report.success,
            dry_run=dry_run,
            repositories={
                repo_key: RepositoryCleanupSummary.from_result(report.actions[repo_key], result)
                for repo_key, result in report.results.items()
            },
            skipped_repos=list(report.skipped_repos),
        )


class ItemEventResponse(BaseModel):
    """Result of delivering a storage event."""

    event: str = Field(description="Event type handled")
    item: str = Field(description="Item as repo:path")
    triggered: bool = Field(description="Whether retention ran for the item")
    outcome: TriggerOutcome | None = Field(default=None, description="Trigger outcome")


class HealthResponse(BaseModel):
    """Service health and configuration summary."""

    status: str = Field(description="healthy or degraded")
    version: str = Field(description="Package version")
    timestamp: str = Field(description="ISO timestamp")
    components: dict[str, str] = Field(default_factory=dict, description="Component status")
