"""
Retention triggers.

Two entry points drive the policy engine:
- batch cleanup of named repositories (operator initiated)
- the item-created storage event for new release folders

Both use the PolicyConfig they were built with; nothing is read from
process-wide state.
"""

import logging
from typing import Iterable

from build_retention.policy.engine import RetentionEngine
from build_retention.policy.filters import is_path_in_selected_projects
from build_retention.policy.models import (
    Action,
    CleanupReport,
    PolicyConfig,
    RetentionResult,
    TriggerOutcome,
)
from build_retention.policy.snapshots import SnapshotCoupler
from build_retention.repository.events import StorageEvent, StorageEventBus, StorageEventType
from build_retention.repository.models import Item
from build_retention.repository.service import RepositoryService

logger = logging.getLogger(__name__)


class RetentionTriggers:
    """Binds a policy configuration and a repository service to the engine."""

    def __init__(
        self,
        config: PolicyConfig,
        repository: RepositoryService,
        *,
        engine: RetentionEngine | None = None,
        coupler: SnapshotCoupler | None = None,
    ):
        """
        Initialize the triggers.

        Args:
            config: Policy configuration applied by every trigger
            repository: Repository service the engine and coupler act on
            engine: RetentionEngine instance (built from repository if None)
            coupler: SnapshotCoupler instance (built from repository if None)
        """
        self._config = config
        self._repository = repository
        self._engine = engine or RetentionEngine(repository)
        self._coupler = coupler or SnapshotCoupler(repository)

    @property
    def config(self) -> PolicyConfig:
        return self._config

    @property
    def repository(self) -> RepositoryService:
        return self._repository

    def action_for(self, repo_key: str) -> Action | None:
        """Archive for release repos, delete for snapshot repos, else None."""
        if self._config.is_release_repo(repo_key):
            return Action.ARCHIVE
        if self._config.is_snapshot_repo(repo_key):
            return Action.DELETE
        return None

    def _run_engine(self, repo_key: str, path: str, action: Action) -> RetentionResult:
        config = self._config
        return self._engine.process(
            repo_key,
            path,
            config.keep_latest,
            config.keep_days,
            config.archive_repo,
            action,
            config.select_projects,
            dry_run=config.dry_run,
        )

    def run_cleanup(self, repos: Iterable[str]) -> CleanupReport:
        """
        Apply retention to each named repository from the cleanup root.

        Unknown repositories are logged and skipped.
        """
        report = CleanupReport()
        for repo_key in repos:
            logger.info(f"Iterating repo {repo_key}")
            action = self.action_for(repo_key)
            if action is None:
                logger.info(f"No action defined for repository {repo_key}")
                report.skipped_repos.append(repo_key)
                continue

            result = self._run_engine(repo_key, self._config.cleanup_root, action)
            if repo_key in report.results:
                report.results[repo_key].merge(result)
            else:
                report.results[repo_key] = result
            report.actions[repo_key] = action
        return report

    def qualifies(self, item: Item) -> bool:
        """True for a selected-project folder created in a release repo."""
        return (
            self._config.is_release_repo(item.repo_key)
            and item.is_folder
            and is_path_in_selected_projects(item.rel_path, self._config.select_projects)
        )

    def on_item_created(self, item: Item) -> TriggerOutcome | None:
        """
        React to a newly created item.

        For a qualifying release folder, delete the matching snapshot and
        then archive old builds next to it. Returns None otherwise.
        """
        if not self.qualifies(item):
            return None

        logger.info(f"Before deleting snapshot of {item.rel_path}")
        snapshot = self._coupler.delete_matching_snapshot(
            item, self._config.snapshot_repos, dry_run=self._config.dry_run
        )
        retention = self._run_engine(item.repo_key, item.parent.path, Action.ARCHIVE)
        return TriggerOutcome(item_path=str(item.repo_path), snapshot=snapshot, retention=retention)

    def before_delete(self, item: Item) -> None:
        logger.info(f"Inside before delete: deleting {item.repo_path}")

    def _handle_created(self, event: StorageEvent) -> TriggerOutcome | None:
        return self.on_item_created(event.item)

    def _handle_before_delete(self, event: StorageEvent) -> None:
        self.before_delete(event.item)

    def register(self, bus: StorageEventBus) -> None:
        """Subscribe both storage callbacks to ``bus``."""
        bus.subscribe(StorageEventType.ITEM_CREATED, self._handle_created)
        bus.subscribe(StorageEventType.BEFORE_DELETE, self._handle_before_delete)

    def unregister(self, bus: StorageEventBus) -> None:
        bus.unsubscribe(StorageEventType.ITEM_CREATED, self._handle_created)
        bus.unsubscribe(StorageEventType.BEFORE_DELETE, self._handle_before_delete)
