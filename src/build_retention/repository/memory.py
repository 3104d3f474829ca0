"""
In-memory repository service.

Dict-backed repository trees with explicit item kinds and timestamps. Used
by the test suite, for policy rehearsals, and when embedding the engine in a
host that feeds it snapshots of its own tree.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone

from build_retention.core.exceptions import ItemNotFoundError, ServiceOperationError
from build_retention.repository.events import StorageEventBus
from build_retention.repository.models import Item, ItemKind, RepoPath
from build_retention.repository.service import RepositoryService

logger = logging.getLogger(__name__)


@dataclass
class _Node:
    kind: ItemKind
    last_modified: datetime
    content: bytes = b""
    sequence: int = field(default=0)


class InMemoryRepository(RepositoryService):
    """
    Repository service holding every repository tree in memory.

    Children are returned ascending by last-modified time (then creation
    sequence) unless ``ordered=False``, in which case they come back in
    reverse creation order and ``guarantees_order`` is False.
    """

    def __init__(
        self,
        repositories: list[str] | None = None,
        *,
        ordered: bool = True,
        event_bus: StorageEventBus | None = None,
    ):
        super().__init__(event_bus)
        self.guarantees_order = ordered
        self._trees: dict[str, dict[str, _Node]] = {}
        self._sequence = 0
        self._lock = threading.RLock()
        for repo_key in repositories or []:
            self.add_repository(repo_key)

    # -- setup helpers ---------------------------------------------------

    def add_repository(self, repo_key: str) -> None:
        with self._lock:
            if repo_key not in self._trees:
                self._trees[repo_key] = {"": self._new_node(ItemKind.FOLDER, None)}

    @property
    def repositories(self) -> list[str]:
        return list(self._trees)

    def put(
        self,
        repo_key: str,
        path: str,
        kind: ItemKind = ItemKind.ARTIFACT,
        last_modified: datetime | None = None,
        content: bytes = b"",
    ) -> Item:
        """Seed an item without publishing storage events."""
        repo_path = RepoPath(repo_key=repo_key, path=path)
        with self._lock:
            self.add_repository(repo_key)
            self._ensure_parents(repo_path, last_modified)
            node = self._new_node(kind, last_modified)
            node.content = content
            self._trees[repo_key][repo_path.path] = node
            return self._to_item(repo_path, node)

    def content(self, path: RepoPath) -> bytes:
        return self._node(path).content

    def paths(self, repo_key: str) -> list[str]:
        """All non-root paths in a repository, sorted."""
        with self._lock:
            return sorted(p for p in self._trees.get(repo_key, {}) if p)

    # -- RepositoryService -----------------------------------------------

    def get_children(self, path: RepoPath) -> list[Item]:
        with self._lock:
            self._node(path)
            tree = self._trees[path.repo_key]
            children = [
                (key, node)
                for key, node in tree.items()
                if key and RepoPath(repo_key=path.repo_key, path=key).parent.path == path.path
            ]
            if self.guarantees_order:
                children.sort(key=lambda entry: (entry[1].last_modified, entry[1].sequence))
            else:
                children.sort(key=lambda entry: entry[1].sequence, reverse=True)
            return [
                self._to_item(RepoPath(repo_key=path.repo_key, path=key), node)
                for key, node in children
            ]

    def get_item(self, path: RepoPath) -> Item:
        with self._lock:
            return self._to_item(path, self._node(path))

    def exists(self, path: RepoPath) -> bool:
        with self._lock:
            return path.path in self._trees.get(path.repo_key, {})

    def delete(self, path: RepoPath) -> None:
        with self._lock:
            if path.is_root:
                raise ServiceOperationError(
                    "Cannot delete a repository root", operation="delete", source=str(path)
                )
            if not self.exists(path):
                raise ServiceOperationError(
                    "Item to delete does not exist", operation="delete", source=str(path)
                )
            self._notify_before_delete(self.get_item(path))
            tree = self._trees[path.repo_key]
            for key in self._subtree_keys(path):
                del tree[key]
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
            if not self.exists(source):
                raise ServiceOperationError(
                    "Item to move does not exist",
                    operation="move",
                    source=str(source),
                    target=str(target),
                )
            if target.repo_key not in self._trees:
                raise ServiceOperationError(
                    f"Target repository '{target.repo_key}' does not exist",
                    operation="move",
                    source=str(source),
                    target=str(target),
                )
            source_tree = self._trees[source.repo_key]
            target_tree = self._trees[target.repo_key]
            moved = {key: source_tree.pop(key) for key in self._subtree_keys(source)}
            self._ensure_parents(target, None)
            for key, node in moved.items():
                new_key = target.path + key[len(source.path):]
                if new_key in target_tree and node.kind is ItemKind.FOLDER:
                    continue
                target_tree[new_key] = node
        logger.debug(f"Moved {source} to {target}")

    def create_folder(self, path: RepoPath) -> Item:
        with self._lock:
            self._check_creatable(path)
            if self.exists(path):
                return self.get_item(path)
            parents = self._created_items(self._ensure_parents(path, None))
            item = self.put(path.repo_key, path.path, ItemKind.FOLDER)
        for parent in parents:
            self._notify_created(parent)
        self._notify_created(item)
        return item

    def deploy(self, path: RepoPath, content: bytes = b"") -> Item:
        """
        Store a file, creating missing folders first.

        Like a version directory on disk, the folder directly holding the
        file becomes a build artifact once the file is stored.
        """
        with self._lock:
            self._check_creatable(path)
            if path.is_root:
                raise ServiceOperationError(
                    "Cannot deploy to a repository root", operation="create", source=str(path)
                )
            parents = self._created_items(self._ensure_parents(path, None))
        for parent in parents:
            self._notify_created(parent)

        with self._lock:
            self._check_creatable(path)
            item = self.put(path.repo_key, path.path, ItemKind.ARTIFACT, content=content)
            holder = self._trees[path.repo_key].get(path.parent.path)
            if not path.parent.is_root and holder is not None:
                holder.kind = ItemKind.ARTIFACT
        self._notify_created(item)
        return item

    # -- internals -------------------------------------------------------

    def _new_node(self, kind: ItemKind, last_modified: datetime | None) -> _Node:
        self._sequence += 1
        last_modified = last_modified or datetime.now(timezone.utc)
        if last_modified.tzinfo is None:
            last_modified = last_modified.replace(tzinfo=timezone.utc)
        return _Node(
            kind=kind,
            last_modified=last_modified,
            sequence=self._sequence,
        )

    def _check_creatable(self, path: RepoPath) -> None:
        if path.repo_key not in self._trees:
            raise ServiceOperationError(
                f"Repository '{path.repo_key}' does not exist",
                operation="create",
                source=str(path),
            )

    def _created_items(self, paths: list[RepoPath]) -> list[Item]:
        tree = self._trees[paths[0].repo_key] if paths else {}
        return [self._to_item(p, tree[p.path]) for p in paths]

    def _node(self, path: RepoPath) -> _Node:
        tree = self._trees.get(path.repo_key)
        if tree is None or path.path not in tree:
            raise ItemNotFoundError(repo_key=path.repo_key, path=path.path)
        return tree[path.path]

    def _ensure_parents(self, path: RepoPath, last_modified: datetime | None) -> list[RepoPath]:
        """Create missing ancestor folders of ``path``, returning them outermost first."""
        tree = self._trees[path.repo_key]
        segments = path.segments[:-1]
        created = []
        for depth in range(1, len(segments) + 1):
            key = "/".join(segments[:depth])
            if key not in tree:
                tree[key] = self._new_node(ItemKind.FOLDER, last_modified)
                created.append(RepoPath(repo_key=path.repo_key, path=key))
        return created

    def _subtree_keys(self, path: RepoPath) -> list[str]:
        prefix = path.path + "/"
        return [
            key
            for key in self._trees[path.repo_key]
            if key == path.path or key.startswith(prefix)
        ]

    @staticmethod
    def _to_item(path: RepoPath, node: _Node) -> Item:
        return Item(repo_path=path, kind=node.kind, last_modified=node.last_modified)
