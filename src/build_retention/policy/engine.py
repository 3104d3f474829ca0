"""
Retention policy engine.

Walks a repository subtree depth-first. Nodes whose children are all
folders are intermediate and every child is visited; nodes with at least one
build artifact among their children are leaf version groups, where all but
the ``keep_latest + 1`` most recent entries are deleted or archived.

Children are expected oldest first. Services that cannot promise that set
``guarantees_order = False`` and the engine sorts by last-modified time.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Sequence

from build_retention.core.exceptions import (
    ConfigurationError,
    LookupFailure,
    ServiceOperationError,
    UnrecognizedActionError,
)
from build_retention.repository.models import Item, ItemKind, RepoPath
from build_retention.repository.service import RepositoryService

from .age import any_child_older_than
from .filters import is_path_in_selected_projects
from .models import Action, CandidateOutcome, CandidateStatus, RetentionResult

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def coerce_action(action: Action | str) -> Action:
    """Turn an action tag or its name/value into an Action."""
    if isinstance(action, Action):
        return action
    if isinstance(action, str):
        for candidate in Action:
            if action.lower() in (candidate.value, candidate.name.lower()):
                return candidate
    raise UnrecognizedActionError(action)


class RetentionEngine:
    """
    Applies keep-latest / keep-days retention to a repository subtree.

    Each delete or move is an independent call into the repository service:
    a failure is recorded for that candidate and the walk carries on.
    """

    def __init__(
        self,
        repository: RepositoryService,
        *,
        clock: Clock | None = None,
    ):
        """
        Initialize the engine.

        Args:
            repository: Service used to list, move and delete items
            clock: Source of "now" for the age gate (defaults to UTC now)
        """
        self._repository = repository
        self._clock = clock or _utc_now

    def process(
        self,
        repo_key: str,
        path: str,
        keep_latest: int,
        keep_days: int,
        archive_repo: str | None,
        action: Action | str,
        selected_projects: Sequence[str],
        *,
        dry_run: bool = False,
    ) -> RetentionResult:
        """
        Delete or archive old builds below ``path`` in ``repo_key``.

        Args:
            repo_key: Repository to walk
            path: Relative path where the walk starts
            keep_latest: Builds kept per group beyond the most recent one
            keep_days: Minimum age before an archive candidate is moved
            archive_repo: Destination repository for archived builds
            action: Delete or archive, applied to the whole walk
            selected_projects: Project substrings, or the wildcard
            dry_run: Report decisions without calling delete/move

        Returns:
            RetentionResult with per-candidate outcomes

        Raises:
            ValueError: If keep_latest or keep_days is negative
            ConfigurationError: If archiving without an archive repository
        """
        result = RetentionResult()

        try:
            action = coerce_action(action)
        except UnrecognizedActionError as e:
            logger.warning(f"Not a valid action, skipping {repo_key}:{path}: {e}")
            result.success = False
            result.errors.append(str(e))
            return result

        if keep_latest < 0:
            raise ValueError(f"keep_latest must be >= 0, got {keep_latest}")
        if keep_days < 0:
            raise ValueError(f"keep_days must be >= 0, got {keep_days}")
        if action is Action.ARCHIVE and not archive_repo:
            raise ConfigurationError(
                "An archive repository is required to archive builds",
                config_key="archive_repo",
            )

        self._walk(
            RepoPath(repo_key=repo_key, path=path),
            keep_latest=keep_latest,
            keep_days=keep_days,
            archive_repo=archive_repo,
            action=action,
            selected_projects=list(selected_projects),
            dry_run=dry_run,
            result=result,
        )
        return result

    def _children(self, path: RepoPath) -> list[Item]:
        try:
            children = self._repository.get_children(path)
        except LookupFailure as e:
            logger.info(f"Nothing to process at {path}: {e}")
            return []
        if not self._repository.guarantees_order:
            children = sorted(children, key=lambda item: item.last_modified)
        return children

    def _walk(
        self,
        path: RepoPath,
        *,
        keep_latest: int,
        keep_days: int,
        archive_repo: str | None,
        action: Action,
        selected_projects: list[str],
        dry_run: bool,
        result: RetentionResult,
    ) -> None:
        logger.info(f"Getting child nodes under '{path.path}' in repo {path.repo_key}")
        children = self._children(path)
        logger.info(f"# of child nodes: {len(children)}")

        if not children:
            return

        is_leaf_group = any(child.kind is ItemKind.ARTIFACT for child in children)
        if not is_leaf_group:
            for child in children:
                logger.debug(f"Child name {child.rel_path}")
                self._walk(
                    child.repo_path,
                    keep_latest=keep_latest,
                    keep_days=keep_days,
                    archive_repo=archive_repo,
                    action=action,
                    selected_projects=selected_projects,
                    dry_run=dry_run,
                    result=result,
                )
            return

        retained = keep_latest + 1
        if len(children) <= retained:
            return
        if not is_path_in_selected_projects(path.path, selected_projects):
            return

        result.groups_processed += 1
        excess = len(children) - retained
        for candidate in children[:excess]:
            result.record(
                self._apply(candidate, action, keep_days, archive_repo, dry_run)
            )

    def _apply(
        self,
        candidate: Item,
        action: Action,
        keep_days: int,
        archive_repo: str | None,
        dry_run: bool,
    ) -> CandidateOutcome:
        """Run ``action`` against one candidate outside the retention window."""
        match action:
            case Action.ARCHIVE:
                return self._archive(candidate.repo_path, keep_days, archive_repo, dry_run)
            case Action.DELETE:
                return self._delete(candidate.repo_path, dry_run)

    def _archive(
        self,
        source: RepoPath,
        keep_days: int,
        archive_repo: str | None,
        dry_run: bool,
    ) -> CandidateOutcome:
        action = Action.ARCHIVE
        logger.info(f"Archive candidate {source}")
        # The age gate looks at the candidate's own content, not its siblings
        if not any_child_older_than(self._children(source), keep_days, self._clock()):
            logger.info(f"Keeping the archive candidate {source}")
            return CandidateOutcome(
                path=str(source),
                action=action,
                status=CandidateStatus.KEPT,
                message=f"Nothing older than {keep_days} days",
            )

        target = source.with_repo(archive_repo)
        if dry_run:
            return CandidateOutcome(
                path=str(source), action=action, status=CandidateStatus.WOULD_ARCHIVE, target=str(target)
            )
        logger.info(f"Moving the archive candidate {source} to {archive_repo}")
        try:
            self._repository.move(source, target)
        except ServiceOperationError as e:
            logger.error(f"Failed to archive {source}: {e}")
            return CandidateOutcome(
                path=str(source), action=action, status=CandidateStatus.FAILED, target=str(target), message=str(e)
            )
        return CandidateOutcome(
            path=str(source), action=action, status=CandidateStatus.ARCHIVED, target=str(target)
        )

    def _delete(self, source: RepoPath, dry_run: bool) -> CandidateOutcome:
        action = Action.DELETE
        logger.info(f"Delete candidate {source}")
        if dry_run:
            return CandidateOutcome(path=str(source), action=action, status=CandidateStatus.WOULD_DELETE)
        try:
            self._repository.delete(source)
        except ServiceOperationError as e:
            logger.error(f"Failed to delete {source}: {e}")
            return CandidateOutcome(
                path=str(source), action=action, status=CandidateStatus.FAILED, message=str(e)
            )
        return CandidateOutcome(path=str(source), action=action, status=CandidateStatus.DELETED)
