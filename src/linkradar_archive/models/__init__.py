"""Data models and enums for the content archive pipeline."""

from linkradar_archive.models.archive import Archive, ArchiveStatus, ArchiveTransition, LinkRef
from linkradar_archive.models.content import (
    ArchiveMetadata,
    ContentKind,
    FetchedContent,
    OpenGraph,
    ParsedContent,
    TwitterCard,
)
from linkradar_archive.models.errors import ErrorCode, ExtractionError, FetchError, Retryable
from linkradar_archive.models.job import ArchiveJob, JobOutcome

__all__ = [
    "Archive",
    "ArchiveStatus",
    "ArchiveTransition",
    "LinkRef",
    "ArchiveMetadata",
    "ContentKind",
    "FetchedContent",
    "OpenGraph",
    "ParsedContent",
    "TwitterCard",
    "ErrorCode",
    "ExtractionError",
    "FetchError",
    "Retryable",
    "ArchiveJob",
    "JobOutcome",
]
