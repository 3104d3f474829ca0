"""
Repository service contract.

The retention engine never touches storage directly; it calls into a
repository service supplied by the hosting repository manager. Each call is
assumed atomic and is never retried by the engine.
"""

from abc import ABC, abstractmethod

from build_retention.repository.events import StorageEventBus
from build_retention.repository.models import Item, RepoPath


class RepositoryService(ABC):
    """
    Abstract repository service.

    Implementations must:
    - raise ItemNotFoundError from get_children/get_item for missing paths
    - raise ServiceOperationError when delete/move/create fail
    - publish ITEM_CREATED after creations and BEFORE_DELETE before deletions
      when an event bus is attached
    """

    #: Whether get_children returns items ascending by recency (oldest first).
    guarantees_order: bool = True

    def __init__(self, event_bus: StorageEventBus | None = None):
        self._event_bus = event_bus

    @property
    def event_bus(self) -> StorageEventBus | None:
        return self._event_bus

    def attach_event_bus(self, event_bus: StorageEventBus | None) -> None:
        self._event_bus = event_bus

    @abstractmethod
    def get_children(self, path: RepoPath) -> list[Item]:
        """Return the direct children of ``path``."""

    @abstractmethod
    def get_item(self, path: RepoPath) -> Item:
        """Return the item stored at ``path``."""

    @abstractmethod
    def exists(self, path: RepoPath) -> bool:
        """Return True if an item exists at ``path``."""

    @abstractmethod
    def delete(self, path: RepoPath) -> None:
        """Delete the item at ``path`` and everything below it."""

    @abstractmethod
    def move(self, source: RepoPath, target: RepoPath) -> None:
        """Relocate ``source`` (and its subtree) to ``target``."""

    @abstractmethod
    def create_folder(self, path: RepoPath) -> Item:
        """Create a folder (and missing parents) at ``path``."""

    @abstractmethod
    def deploy(self, path: RepoPath, content: bytes = b"") -> Item:
        """Store a file at ``path``, creating parent folders as needed."""

    def _notify_created(self, item: Item) -> None:
        if self._event_bus is not None:
            self._event_bus.publish_item_created(item)

    def _notify_before_delete(self, item: Item) -> None:
        if self._event_bus is not None:
            self._event_bus.publish_before_delete(item)
