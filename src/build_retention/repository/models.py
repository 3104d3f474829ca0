"""
Pydantic models for repository paths and items.

These are read-only views of what the hosting repository manager exposes:
a repository key plus a slash-separated relative path, and the items found
at such paths.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ItemKind(Enum):
    """Structural kind of a repository item."""

    FOLDER = "folder"  # Intermediate grouping (artifact name, group id)
    ARTIFACT = "artifact"  # Concrete build output


class RepoPath(BaseModel):
    """Repository key plus relative path. Empty path is the repository root."""

    model_config = ConfigDict(frozen=True)

    repo_key: str = Field(min_length=1, description="Repository key")
    path: str = Field(default="", description="Slash-separated path relative to the repository root")

    @field_validator("path", mode="before")
    @classmethod
    def normalize_path(cls, v):
        """Strip surrounding slashes and collapse empty segments."""
        if v is None:
            return ""
        return "/".join(segment for segment in str(v).split("/") if segment)

    @property
    def name(self) -> str:
        """Last path segment, empty for the repository root."""
        return self.path.rsplit("/", 1)[-1] if self.path else ""

    @property
    def is_root(self) -> bool:
        return not self.path

    @property
    def parent(self) -> "RepoPath":
        """Parent path; the root is its own parent."""
        if "/" not in self.path:
            return RepoPath(repo_key=self.repo_key, path="")
        return RepoPath(repo_key=self.repo_key, path=self.path.rsplit("/", 1)[0])

    @property
    def segments(self) -> list[str]:
        return self.path.split("/") if self.path else []

    def child(self, name: str) -> "RepoPath":
        """Path of a direct child named ``name``."""
        return RepoPath(repo_key=self.repo_key, path=f"{self.path}/{name}")

    def with_repo(self, repo_key: str) -> "RepoPath":
        """Same relative path in another repository."""
        return RepoPath(repo_key=repo_key, path=self.path)

    def with_suffix_appended(self, suffix: str) -> "RepoPath":
        """Same repository, relative path with ``suffix`` appended verbatim."""
        return RepoPath(repo_key=self.repo_key, path=self.path + suffix)

    def __str__(self) -> str:
        return f"{self.repo_key}:{self.path}"


class Item(BaseModel):
    """A node in a repository tree."""

    model_config = ConfigDict(frozen=True)

    repo_path: RepoPath = Field(description="Location of the item")
    kind: ItemKind = Field(description="Folder or build artifact")
    last_modified: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Last modification instant",
    )

    @field_validator("kind", mode="before")
    @classmethod
    def validate_kind(cls, v):
        """Convert string to ItemKind enum."""
        if isinstance(v, str):
            return ItemKind(v.lower())
        return v

    @field_validator("last_modified")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        """Naive timestamps are taken as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def name(self) -> str:
        return self.repo_path.name

    @property
    def rel_path(self) -> str:
        return self.repo_path.path

    @property
    def repo_key(self) -> str:
        return self.repo_path.repo_key

    @property
    def is_folder(self) -> bool:
        return self.kind is ItemKind.FOLDER

    @property
    def parent(self) -> RepoPath:
        return self.repo_path.parent
