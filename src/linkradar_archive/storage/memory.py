"""In-process archive store, the default when no store_path is configured."""

from linkradar_archive.models.archive import Archive
from linkradar_archive.storage.base import DuplicateArchiveError


class InMemoryArchiveStore:
    """Dict-backed ArchiveStore. Holds deep copies so callers cannot mutate stored state."""

    def __init__(self) -> None:
        self._archives: dict[str, Archive] = {}
        self._by_link: dict[str, str] = {}

    async def create(self, archive: Archive) -> Archive:
        if archive.link_id in self._by_link:
            raise DuplicateArchiveError(archive.link_id)
        self._archives[archive.id] = archive.model_copy(deep=True)
        self._by_link[archive.link_id] = archive.id
        return archive.model_copy(deep=True)

    async def get(self, archive_id: str) -> Archive | None:
        archive = self._archives.get(archive_id)
        return archive.model_copy(deep=True) if archive is not None else None

    async def get_for_link(self, link_id: str) -> Archive | None:
        archive_id = self._by_link.get(link_id)
        if archive_id is None:
            return None
        return await self.get(archive_id)

    async def save(self, archive: Archive) -> Archive:
        if archive.id not in self._archives:
            raise KeyError(f"Unknown archive {archive.id}")
        self._archives[archive.id] = archive.model_copy(deep=True)
        return archive.model_copy(deep=True)

    async def delete_for_link(self, link_id: str) -> bool:
        archive_id = self._by_link.pop(link_id, None)
        if archive_id is None:
            return False
        del self._archives[archive_id]
        return True

    def __len__(self) -> int:
        return len(self._archives)
