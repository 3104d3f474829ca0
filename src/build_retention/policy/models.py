"""
Pydantic models for retention policy configuration and results.

Defines the policy configuration value passed into every component, the
action tag chosen per invocation site, and the structured results the
engine, the snapshot coupler and the triggers report back.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

WILDCARD = "*"


class Action(Enum):
    """What happens to builds outside the retention window."""

    DELETE = "delete"
    ARCHIVE = "archive"


class CandidateStatus(Enum):
    """Outcome for a single retention candidate."""

    DELETED = "deleted"
    ARCHIVED = "archived"
    KEPT = "kept"
    WOULD_DELETE = "would_delete"
    WOULD_ARCHIVE = "would_archive"
    FAILED = "failed"


def _split_list(v: Any) -> Any:
    if isinstance(v, str):
        return tuple(part.strip() for part in v.split(",") if part.strip())
    return v


class PolicyConfig(BaseModel):
    """
    Retention policy configuration.

    Immutable; built once per process (see ``build_retention.config``) and
    handed to every component explicitly. Accepts both snake_case and the
    camelCase keys used by repository-manager property files.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    release_repos: tuple[str, ...] = Field(
        default=(), alias="releaseRepos", description="Repository keys receiving release builds"
    )
    snapshot_repos: tuple[str, ...] = Field(
        default=(), alias="snapshotRepos", description="Repository keys searched for matching snapshots"
    )
    archive_repo: str | None = Field(
        default=None, alias="archiveRepo", description="Destination repository for archived builds"
    )
    keep_latest: int = Field(
        default=2, ge=0, alias="keepLatest", description="Most-recent builds always retained (plus one)"
    )
    keep_days: int = Field(
        default=180, ge=0, alias="keepDays", description="Minimum age before a build may be archived"
    )
    select_projects: tuple[str, ...] = Field(
        default=(WILDCARD,),
        alias="selectProjects",
        description="Path substrings selecting projects, or the wildcard",
    )
    cleanup_root: str = Field(
        default="com/jfrog", alias="cleanupRoot", description="Top-level path walked by batch cleanup"
    )
    dry_run: bool = Field(default=False, alias="dryRun", description="Report without mutating")

    @field_validator("release_repos", "snapshot_repos", "select_projects", mode="before")
    @classmethod
    def split_lists(cls, v):
        """Accept comma-separated strings as well as sequences."""
        return _split_list(v)

    @field_validator("cleanup_root", mode="before")
    @classmethod
    def normalize_root(cls, v):
        if v is None:
            return ""
        return str(v).strip("/")

    @model_validator(mode="after")
    def check_repositories(self) -> "PolicyConfig":
        """A repository cannot be both release and snapshot; releases need an archive."""
        overlap = set(self.release_repos) & set(self.snapshot_repos)
        if overlap:
            raise ValueError(
                f"Repositories configured as both release and snapshot: {sorted(overlap)}"
            )
        if self.release_repos and not self.archive_repo:
            raise ValueError("archive_repo is required when release_repos are configured")
        return self

    def is_release_repo(self, repo_key: str) -> bool:
        return repo_key in self.release_repos

    def is_snapshot_repo(self, repo_key: str) -> bool:
        return repo_key in self.snapshot_repos


class CandidateOutcome(BaseModel):
    """What happened to one build outside the retention window."""

    path: str = Field(description="Candidate location as repo:path")
    action: Action = Field(description="Action requested for the walk")
    status: CandidateStatus = Field(description="Result for this candidate")
    target: str | None = Field(default=None, description="Archive destination when moved")
    message: str | None = Field(default=None, description="Failure or decision detail")


class RetentionResult(BaseModel):
    """Result of a retention walk."""

    success: bool = Field(default=True, description="False if any candidate failed")
    deleted_count: int = Field(default=0, description="Number of builds deleted")
    archived_count: int = Field(default=0, description="Number of builds archived")
    kept_count: int = Field(default=0, description="Candidates left in place by the age gate")
    groups_processed: int = Field(default=0, description="Leaf version groups acted on")
    outcomes: list[CandidateOutcome] = Field(default_factory=list, description="Per-candidate outcomes")
    errors: list[str] = Field(default_factory=list, description="Any errors encountered")

    def record(self, outcome: CandidateOutcome) -> None:
        """Add an outcome and update the counters."""
        self.outcomes.append(outcome)
        if outcome.status is CandidateStatus.DELETED:
            self.deleted_count += 1
        elif outcome.status is CandidateStatus.ARCHIVED:
            self.archived_count += 1
        elif outcome.status is CandidateStatus.KEPT:
            self.kept_count += 1
        elif outcome.status is CandidateStatus.FAILED:
            self.success = False
            self.errors.append(f"{outcome.path}: {outcome.message}")

    def merge(self, other: "RetentionResult") -> "RetentionResult":
        """Fold ``other`` into this result and return self."""
        self.success = self.success and other.success
        self.deleted_count += other.deleted_count
        self.archived_count += other.archived_count
        self.kept_count += other.kept_count
        self.groups_processed += other.groups_processed
        self.outcomes.extend(other.outcomes)
        self.errors.extend(other.errors)
        return self

    def paths_with_status(self, status: CandidateStatus) -> list[str]:
        return [o.path for o in self.outcomes if o.status is status]


class SnapshotResult(BaseModel):
    """Result of removing the snapshot that matches a release."""

    success: bool = Field(default=True, description="False if any deletion failed")
    release_path: str = Field(description="Release item as repo:path")
    snapshot_path: str = Field(description="Relative snapshot path searched for")
    deleted: list[str] = Field(default_factory=list, description="Snapshot items deleted")
    errors: list[str] = Field(default_factory=list, description="Any errors encountered")


class TriggerOutcome(BaseModel):
    """Result of the item-created trigger for a qualifying release folder."""

    item_path: str = Field(description="Created item as repo:path")
    snapshot: SnapshotResult = Field(description="Snapshot coupling result")
    retention: RetentionResult = Field(description="Retention walk over the item's parent")

    @property
    def success(self) -> bool:
        return self.snapshot.success and self.retention.success


class CleanupReport(BaseModel):
    """Result of a batch cleanup over named repositories."""

    results: dict[str, RetentionResult] = Field(
        default_factory=dict, description="Retention result per processed repository"
    )
    actions: dict[str, Action] = Field(
        default_factory=dict, description="Action applied per processed repository"
    )
    skipped_repos: list[str] = Field(
        default_factory=list, description="Repositories with no configured action"
    )

    @property
    def success(self) -> bool:
        return all(result.success for result in self.results.values())

    @property
    def deleted_count(self) -> int:
        return sum(r.deleted_count for r in self.results.values())

    @property
    def archived_count(self) -> int:
        return sum(r.archived_count for r in self.results.values())
