"""Archive persistence.

Public API:
    get_archive_store() -> ArchiveStore
        Process-wide store: SQLite when CONTENT_ARCHIVE_STORE_PATH is set,
        in-memory otherwise.
"""

from linkradar_archive.config import get_settings
from linkradar_archive.storage.base import ArchiveStore, DuplicateArchiveError
from linkradar_archive.storage.memory import InMemoryArchiveStore
from linkradar_archive.storage.sqlite import SqliteArchiveStore

_store: ArchiveStore | None = None


def get_archive_store() -> ArchiveStore:
    """Return the cached archive store, creating it on first call."""
    global _store
    if _store is None:
        settings = get_settings()
        if settings.store_path:
            _store = SqliteArchiveStore(settings.store_path)
        else:
            _store = InMemoryArchiveStore()
    return _store


def reset_store() -> None:
    """Reset the cached store. Used for testing."""
    global _store
    if isinstance(_store, SqliteArchiveStore):
        _store.close()
    _store = None


__all__ = [
    "ArchiveStore",
    "DuplicateArchiveError",
    "InMemoryArchiveStore",
    "SqliteArchiveStore",
    "get_archive_store",
    "reset_store",
]
