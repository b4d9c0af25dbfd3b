"""Background archive job payload and per-attempt outcome."""

from enum import Enum

from pydantic import BaseModel, Field


class JobOutcome(str, Enum):
    """Result of a single perform_archive_job attempt."""

    DONE = "done"  # Archive reached (or already was in) a terminal state
    RETRY = "retry"  # Transient failure; run again after backoff
    DISCARDED = "discarded"  # Archive no longer exists


class ArchiveJob(BaseModel):
    """Unit of background work. Retry state travels with the job."""

    archive_id: str
    url: str
    attempt: int = Field(default=1, ge=1)
