"""
Filesystem repository service.

Manages a storage root where every repository is a directory:
- {root}/{repo_key}/
- {root}/{repo_key}/{relative/path}/...

A regular file is a build artifact. A directory that directly holds at least
one regular file is a build output as well (a version directory with its
jars and poms); any other directory is an intermediate folder.
"""

import logging
import os
import shutil
import threading
from datetime import datetime, timezone
from pathlib import Path

from build_retention.core.exceptions import ItemNotFoundError, ServiceOperationError
from build_retention.repository.events import StorageEventBus
from build_retention.repository.models import Item, ItemKind, RepoPath
from build_retention.repository.service import RepositoryService

logger = logging.getLogger(__name__)


class FilesystemRepository(RepositoryService):
    """
    Repository service over a local directory tree.

    Children are listed ascending by modification time, then by name.
    """

    DEFAULT_STORAGE_ROOT = Path("var/repositories")

    guarantees_order = True

    def __init__(
        self,
        storage_root: Path | None = None,
        *,
        event_bus: StorageEventBus | None = None,
    ):
        """
        Initialize filesystem repository.

        Args:
            storage_root: Directory holding one subdirectory per repository
            event_bus: Optional bus receiving create/delete notifications
        """
        super().__init__(event_bus)
        self._root = storage_root or self.DEFAULT_STORAGE_ROOT
        self._lock = threading.RLock()
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def storage_root(self) -> Path:
        return self._root

    def add_repository(self, repo_key: str) -> Path:
        """Create the directory backing ``repo_key``."""
        repo_dir = self._repo_dir(repo_key)
        repo_dir.mkdir(parents=True, exist_ok=True)
        return repo_dir

    @property
    def repositories(self) -> list[str]:
        return sorted(p.name for p in self._root.iterdir() if p.is_dir())

    def get_children(self, path: RepoPath) -> list[Item]:
        location = self._existing(path)
        if not location.is_dir():
            return []
        entries = []
        for entry in location.iterdir():
            entries.append((entry.stat().st_mtime, entry.name, entry))
        entries.sort(key=lambda e: (e[0], e[1]))
        return [self._to_item(path.child(name), entry) for _, name, entry in entries]

    def get_item(self, path: RepoPath) -> Item:
        return self._to_item(path, self._existing(path))

    def exists(self, path: RepoPath) -> bool:
        try:
            return self._resolve(path).exists()
        except ServiceOperationError:
            return False

    def delete(self, path: RepoPath) -> None:
        with self._lock:
            if path.is_root:
                raise ServiceOperationError(
                    "Cannot delete a repository root", operation="delete", source=str(path)
                )
            location = self._resolve(path)
            if not location.exists():
                raise ServiceOperationError(
                    "Item to delete does not exist", operation="delete", source=str(path)
                )
            self._notify_before_delete(self._to_item(path, location))
            try:
                if location.is_dir():
                    shutil.rmtree(location)
                else:
                    location.unlink()
            except OSError as e:
                raise ServiceOperationError(
                    f"Failed to delete: {e}", operation="delete", source=str(path)
                ) from e
        logger.debug(f"Deleted {path}")

    def move(self, source: RepoPath, target: RepoPath) -> None:
        with self._lock:
            if source.is_root or target.is_root:
                raise ServiceOperationError(
                    "Cannot move a repository root",
                    operation="move",
                    source=str(source),
                    target=str(target),
                )
            source_location = self._resolve(source)
            if not source_location.exists():
                raise ServiceOperationError(
                    "Item to move does not exist",
                    operation="move",
                    source=str(source),
                    target=str(target),
                )
            if not self._repo_dir(target.repo_key).is_dir():
                raise ServiceOperationError(
                    f"Target repository '{target.repo_key}' does not exist",
                    operation="move",
                    source=str(source),
                    target=str(target),
                )
            target_location = self._resolve(target)
            try:
                target_location.parent.mkdir(parents=True, exist_ok=True)
                self._merge_move(source_location, target_location)
            except (OSError, shutil.Error) as e:
                raise ServiceOperationError(
                    f"Failed to move: {e}",
                    operation="move",
                    source=str(source),
                    target=str(target),
                ) from e
        logger.debug(f"Moved {source} to {target}")

    def create_folder(self, path: RepoPath) -> Item:
        with self._lock:
            location = self._creatable(path)
            if location.is_dir():
                return self._to_item(path, location)
            parents = self._make_parents(path)
            try:
                location.mkdir()
            except OSError as e:
                raise ServiceOperationError(
                    f"Failed to create folder: {e}", operation="create", source=str(path)
                ) from e
            item = self._to_item(path, location)
        for parent in parents:
            self._notify_created(parent)
        self._notify_created(item)
        return item

    def deploy(self, path: RepoPath, content: bytes = b"") -> Item:
        with self._lock:
            location = self._creatable(path)
            if path.is_root:
                raise ServiceOperationError(
                    "Cannot deploy to a repository root", operation="create", source=str(path)
                )
            parents = self._make_parents(path)
        # Folder events go out while the folders are still empty
        for parent in parents:
            self._notify_created(parent)

        with self._lock:
            try:
                location.parent.mkdir(parents=True, exist_ok=True)
                location.write_bytes(content)
            except OSError as e:
                raise ServiceOperationError(
                    f"Failed to deploy: {e}", operation="create", source=str(path)
                ) from e
            item = self._to_item(path, location)
        self._notify_created(item)
        return item

    # -- internals -------------------------------------------------------

    def _repo_dir(self, repo_key: str) -> Path:
        if repo_key in (".", "..") or "/" in repo_key or os.sep in repo_key:
            raise ServiceOperationError(f"Invalid repository key: {repo_key!r}")
        return self._root / repo_key

    def _resolve(self, path: RepoPath) -> Path:
        if any(segment in (".", "..") for segment in path.segments):
            raise ServiceOperationError(f"Invalid path: {path}", source=str(path))
        location = self._repo_dir(path.repo_key)
        for segment in path.segments:
            location = location / segment
        return location

    def _existing(self, path: RepoPath) -> Path:
        try:
            location = self._resolve(path)
        except ServiceOperationError as e:
            raise ItemNotFoundError(repo_key=path.repo_key, path=path.path) from e
        if not location.exists():
            raise ItemNotFoundError(repo_key=path.repo_key, path=path.path)
        return location

    def _creatable(self, path: RepoPath) -> Path:
        if not self._repo_dir(path.repo_key).is_dir():
            raise ServiceOperationError(
                f"Repository '{path.repo_key}' does not exist",
                operation="create",
                source=str(path),
            )
        return self._resolve(path)

    def _make_parents(self, path: RepoPath) -> list[Item]:
        """Create missing ancestor directories of ``path``, outermost first."""
        created = []
        parent = self._repo_dir(path.repo_key)
        for depth, segment in enumerate(path.segments[:-1], start=1):
            parent = parent / segment
            if parent.is_dir():
                continue
            try:
                parent.mkdir()
            except OSError as e:
                raise ServiceOperationError(
                    f"Failed to create folder: {e}", operation="create", source=str(path)
                ) from e
            created.append(RepoPath(repo_key=path.repo_key, path="/".join(path.segments[:depth])))
        return [self._to_item(p, self._resolve(p)) for p in created]

    def _merge_move(self, source: Path, target: Path) -> None:
        """Move ``source`` onto ``target``, merging into existing directories."""
        if source.is_dir() and target.is_dir():
            for entry in list(source.iterdir()):
                self._merge_move(entry, target / entry.name)
            source.rmdir()
            return
        if target.is_dir():
            shutil.rmtree(target)
        shutil.move(str(source), str(target))

    @staticmethod
    def _to_item(path: RepoPath, location: Path) -> Item:
        if location.is_dir():
            holds_files = any(entry.is_file() for entry in location.iterdir())
            kind = ItemKind.ARTIFACT if holds_files else ItemKind.FOLDER
        else:
            kind = ItemKind.ARTIFACT
        last_modified = datetime.fromtimestamp(location.stat().st_mtime, tz=timezone.utc)
        return Item(repo_path=path, kind=kind, last_modified=last_modified)
