"""
Build Retention Repository Module.

Models for repository paths and items, the repository service contract the
retention engine calls into, and two service implementations.
"""

from .models import Item, ItemKind, RepoPath
from .events import StorageEvent, StorageEventBus, StorageEventType
from .service import RepositoryService
from .memory import InMemoryRepository
from .filesystem import FilesystemRepository

__all__ = [
    # Models
    "Item",
    "ItemKind",
    "RepoPath",
    # Events
    "StorageEvent",
    "StorageEventBus",
    "StorageEventType",
    # Services
    "RepositoryService",
    "InMemoryRepository",
    "FilesystemRepository",
]
