"""Removal of snapshot builds once the matching release is published."""

import logging
from typing import Sequence

from build_retention.core.exceptions import ServiceOperationError
from build_retention.repository.models import Item
from build_retention.repository.service import RepositoryService

from .models import SnapshotResult

logger = logging.getLogger(__name__)

SNAPSHOT_SUFFIX = "-SNAPSHOT"


def snapshot_path_for(release_path: str) -> str:
    """Relative path of the snapshot build matching a release path."""
    return release_path + SNAPSHOT_SUFFIX


class SnapshotCoupler:
    """Deletes the snapshot counterpart of a release across snapshot repos."""

    def __init__(self, repository: RepositoryService):
        self._repository = repository

    def delete_matching_snapshot(
        self,
        release_item: Item,
        snapshot_repos: Sequence[str],
        *,
        dry_run: bool = False,
    ) -> SnapshotResult:
        """
        Delete ``<release path>-SNAPSHOT`` from every snapshot repository.

        Repositories that do not hold the snapshot are skipped silently, so
        calling this twice for the same release is harmless.

        Args:
            release_item: The item just published in a release repository
            snapshot_repos: Repository keys to search
            dry_run: Report matches without deleting

        Returns:
            SnapshotResult listing what was (or would be) deleted
        """
        release_path = release_item.repo_path
        logger.info(f"{release_path.path} created in repo {release_path.repo_key}")
        snapshot = release_path.with_suffix_appended(SNAPSHOT_SUFFIX)
        logger.info(f"Corresponding snapshot {snapshot.path}")

        result = SnapshotResult(release_path=str(release_path), snapshot_path=snapshot.path)
        for repo_key in snapshot_repos:
            candidate = snapshot.with_repo(repo_key)
            logger.info(f"Checking for existence of {snapshot.path} in repo {repo_key}")
            if not self._repository.exists(candidate):
                continue
            if dry_run:
                result.deleted.append(str(candidate))
                continue
            logger.info(f"{snapshot.path} exists in repo {repo_key}, deleting it")
            try:
                self._repository.delete(candidate)
            except ServiceOperationError as e:
                logger.error(f"Failed to delete snapshot {candidate}: {e}")
                result.success = False
                result.errors.append(f"{candidate}: {e}")
                continue
            result.deleted.append(str(candidate))
        return result
