"""Storage interface for Archive records."""

from typing import Protocol

from linkradar_archive.models.archive import Archive


class DuplicateArchiveError(Exception):
    """Raised when a second Archive is created for a link that already has one."""

    def __init__(self, link_id: str) -> None:
        super().__init__(f"Archive already exists for link {link_id}")
        self.link_id = link_id


class ArchiveStore(Protocol):
    """Persistence for archives and their transition logs.

    Stores hand out copies: mutating a returned Archive never changes stored state,
    only save() does.
    """

    async def create(self, archive: Archive) -> Archive: ...

    async def get(self, archive_id: str) -> Archive | None: ...

    async def get_for_link(self, link_id: str) -> Archive | None: ...

    async def save(self, archive: Archive) -> Archive: ...

    async def delete_for_link(self, link_id: str) -> bool: ...
