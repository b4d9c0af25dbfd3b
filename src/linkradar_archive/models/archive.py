"""Archive record, its lifecycle status and transition log."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator

from linkradar_archive.models.content import ArchiveMetadata
from linkradar_archive.models.errors import ErrorCode


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ArchiveStatus(str, Enum):
    """Lifecycle status of an Archive."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    BLOCKED = "blocked"

    @property
    def is_terminal(self) -> bool:
        return self in (ArchiveStatus.COMPLETED, ArchiveStatus.FAILED, ArchiveStatus.BLOCKED)


class LinkRef(BaseModel):
    """The parts of a Link the archive pipeline needs. The Link itself lives elsewhere."""

    id: str
    url: str


class ArchiveTransition(BaseModel):
    """One entry in an Archive's state history."""

    to_state: ArchiveStatus
    sort_key: int
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)


class Archive(BaseModel):
    """Archived content for exactly one Link.

    Invariants (checked on every construction, including state transitions):
    - content_html and content_text are written together, and only when completed
    - error_reason is present exactly when the status is failed or blocked
    - fetched_at is present exactly when the status is completed
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    link_id: str
    url: str
    status: ArchiveStatus = ArchiveStatus.PENDING
    content_html: str | None = None
    content_text: str | None = None
    title: str | None = None
    description: str | None = None
    image_url: str | None = None
    metadata: ArchiveMetadata | None = None
    error_reason: ErrorCode | None = None
    error_message: str | None = None
    fetched_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    transitions: list[ArchiveTransition] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_invariants(self) -> "Archive":
        completed = self.status == ArchiveStatus.COMPLETED
        has_html = self.content_html is not None
        has_text = self.content_text is not None

        if has_html != has_text:
            raise ValueError("content_html and content_text must be written together")
        if completed != has_html:
            raise ValueError("content is present if and only if the archive is completed")

        errored = self.status in (ArchiveStatus.FAILED, ArchiveStatus.BLOCKED)
        if errored != (self.error_reason is not None):
            raise ValueError("error_reason is set if and only if the archive failed or was blocked")

        if completed != (self.fetched_at is not None):
            raise ValueError("fetched_at is set if and only if the archive is completed")
        return self

    @classmethod
    def pending_for(cls, link: LinkRef) -> "Archive":
        """Build the initial pending Archive for a freshly created Link."""
        return cls(link_id=link.id, url=link.url)
