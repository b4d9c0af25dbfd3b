"""Archive orchestration: wires validation, fetching, extraction and storage.

create_archive_for() runs inline with Link creation and never blocks on the
network beyond DNS. perform_archive_job() runs one background attempt and
drives the Archive through its state machine:

    pending -> processing -> completed | failed | blocked
    pending -> blocked (pre-flight SSRF check) | failed (archival disabled)
"""

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

from linkradar_archive.archive.state_machine import transition
from linkradar_archive.config import Settings, get_settings
from linkradar_archive.extraction import extract_content
from linkradar_archive.fetching import fetch_url, validate_url
from linkradar_archive.models.archive import Archive, ArchiveStatus, LinkRef, utcnow
from linkradar_archive.models.content import (
    ArchiveMetadata,
    ContentKind,
    ParsedContent,
    classify_content_type,
)
from linkradar_archive.models.errors import ErrorCode, ExtractionError, FetchError, Retryable
from linkradar_archive.models.job import ArchiveJob, JobOutcome
from linkradar_archive.storage import ArchiveStore, get_archive_store

logger = logging.getLogger(__name__)


async def create_archive_for(
    link: Any,
    *,
    store: ArchiveStore | None = None,
    enqueue: Callable[[ArchiveJob], None] | None = None,
    settings: Settings | None = None,
) -> Archive:
    """Create the pending Archive for a new Link and schedule its background job.

    Args:
        link: Any object (or dict) with ``id`` and ``url``.
        store: Archive store; defaults to the process-wide store.
        enqueue: Job sink; defaults to the process-wide ArchiveQueue.
        settings: Archival settings; defaults to get_settings().

    Returns:
        The Archive as stored after this call: pending with a job enqueued,
        blocked (URL failed pre-flight validation) or failed (archival disabled).

    Raises:
        DuplicateArchiveError: If the link already has an archive.
    """
    link = link if isinstance(link, LinkRef) else LinkRef.model_validate(link, from_attributes=True)
    if store is None:
        store = get_archive_store()
    settings = settings or get_settings()

    archive = await store.create(Archive.pending_for(link))

    if not settings.enabled:
        logger.info("Content archival disabled, skipping archive %s", archive.id)
        error = FetchError(
            error_code=ErrorCode.DISABLED,
            error_message="Content archival is disabled",
            url=link.url,
        )
        return await _record_failure(store, archive, ArchiveStatus.FAILED, error, attempt=0)

    # Pre-flight: unsafe or malformed URLs never reach the job queue
    validated = await validate_url(link.url)
    if isinstance(validated, FetchError):
        logger.warning(
            "Archive %s blocked before fetch: %s (%s)",
            archive.id,
            validated.error_message,
            link.url,
        )
        return await _record_failure(store, archive, ArchiveStatus.BLOCKED, validated, attempt=0)

    if enqueue is None:
        # Lazy import to avoid circular dependency (jobs -> orchestrator -> jobs)
        from linkradar_archive.archive.jobs import get_archive_queue

        enqueue = get_archive_queue().enqueue

    try:
        enqueue(ArchiveJob(archive_id=archive.id, url=link.url))
    except Exception as exc:
        logger.exception("Failed to enqueue archive job for %s", archive.id)
        error = FetchError(
            error_code=ErrorCode.UNEXPECTED_ERROR,
            error_message=f"Failed to enqueue archive job: {exc}",
            url=link.url,
        )
        return await _record_failure(store, archive, ArchiveStatus.FAILED, error, attempt=0)

    return archive


async def perform_archive_job(
    job: ArchiveJob,
    *,
    store: ArchiveStore | None = None,
    settings: Settings | None = None,
) -> JobOutcome:
    """Run one archive attempt for job.archive_id.

    Returns:
        JobOutcome.RETRY when the fetch timed out and attempts remain,
        JobOutcome.DISCARDED when the archive no longer exists,
        JobOutcome.DONE otherwise (the archive is terminal).
    """
    if store is None:
        store = get_archive_store()
    settings = settings or get_settings()

    archive = await store.get(job.archive_id)
    if archive is None:
        logger.warning("Archive %s not found, discarding job", job.archive_id)
        return JobOutcome.DISCARDED

    if archive.status.is_terminal:
        logger.info("Archive %s already %s, skipping", archive.id, archive.status.value)
        return JobOutcome.DONE

    try:
        return await _process(archive, job, store, settings)
    except Exception as exc:
        logger.exception("Unexpected error archiving %s (%s)", job.archive_id, job.url)
        await _fail_unexpected(job, exc, store)
        return JobOutcome.DONE


async def _process(
    archive: Archive, job: ArchiveJob, store: ArchiveStore, settings: Settings
) -> JobOutcome:
    if not settings.enabled:
        error = FetchError(
            error_code=ErrorCode.DISABLED,
            error_message="Content archival is disabled",
            url=job.url,
        )
        await _record_failure(store, archive, ArchiveStatus.FAILED, error, attempt=job.attempt)
        return JobOutcome.DONE

    if archive.status == ArchiveStatus.PENDING:
        archive = await store.save(
            transition(archive, ArchiveStatus.PROCESSING, {"attempt": job.attempt})
        )

    logger.info(
        "Archiving %s (attempt %d/%d)", job.url, job.attempt, settings.max_attempts
    )
    started = time.monotonic()
    result = await fetch_url(job.url, settings)

    if isinstance(result, Retryable):
        if job.attempt < settings.max_attempts:
            logger.warning(
                "Timeout fetching %s on attempt %d/%d, will retry",
                job.url,
                job.attempt,
                settings.max_attempts,
            )
            return JobOutcome.RETRY
        await _record_failure(
            store, archive, ArchiveStatus.FAILED, result.error, attempt=job.attempt
        )
        return JobOutcome.DONE

    if isinstance(result, FetchError):
        status = (
            ArchiveStatus.BLOCKED
            if result.error_code == ErrorCode.BLOCKED
            else ArchiveStatus.FAILED
        )
        await _record_failure(store, archive, status, result, attempt=job.attempt)
        return JobOutcome.DONE

    kind = classify_content_type(result.content_type)
    if kind is ContentKind.HTML:
        parsed = await asyncio.to_thread(extract_content, result.body, result.final_url)
        if isinstance(parsed, ExtractionError):
            await _record_failure(
                store, archive, ArchiveStatus.FAILED, parsed, attempt=job.attempt
            )
            return JobOutcome.DONE
    else:
        # Non-HTML content is archived as metadata only
        parsed = ParsedContent(
            content_html="",
            content_text="",
            metadata=ArchiveMetadata(final_url=result.final_url, content_type=kind),
        )

    fetch_duration_ms = int((time.monotonic() - started) * 1000)
    completed = transition(
        archive,
        ArchiveStatus.COMPLETED,
        {"fetch_duration_ms": fetch_duration_ms, "retry_count": job.attempt},
        content_html=parsed.content_html,
        content_text=parsed.content_text,
        title=parsed.title,
        description=parsed.description,
        image_url=parsed.image_url,
        metadata=parsed.metadata,
        fetched_at=utcnow(),
    )
    await store.save(completed)
    logger.info(
        "Archive completed",
        extra={
            "archive_id": archive.id,
            "url": job.url,
            "final_url": result.final_url,
            "content_type": kind.value,
            "fetch_duration_ms": fetch_duration_ms,
            "attempt": job.attempt,
        },
    )
    return JobOutcome.DONE


async def _record_failure(
    store: ArchiveStore,
    archive: Archive,
    status: ArchiveStatus,
    error: FetchError | ExtractionError,
    attempt: int,
) -> Archive:
    """Move the archive to failed/blocked, storing the error on it and on its transition."""
    details: dict[str, Any] = {
        "error_reason": error.error_code.value,
        "error_message": error.error_message,
        "retry_count": attempt,
    }
    http_status = getattr(error, "http_status", None)
    if http_status is not None:
        details["http_status"] = http_status

    updated = transition(
        archive,
        status,
        details,
        error_reason=error.error_code,
        error_message=error.error_message,
    )
    saved = await store.save(updated)
    logger.warning(
        "Archive %s %s: %s (%s)",
        archive.id,
        status.value,
        error.error_code.value,
        error.error_message,
    )
    return saved


async def _fail_unexpected(job: ArchiveJob, exc: Exception, store: ArchiveStore) -> None:
    """Best-effort move to failed/unexpected_error after a crash inside a job."""
    try:
        archive = await store.get(job.archive_id)
        if archive is None or archive.status.is_terminal:
            return
        error = FetchError(
            error_code=ErrorCode.UNEXPECTED_ERROR,
            error_message=f"Unexpected error: {exc}",
            url=job.url,
            details={"error_class": type(exc).__name__},
        )
        await _record_failure(store, archive, ArchiveStatus.FAILED, error, attempt=job.attempt)
    except Exception:
        logger.exception("Could not record failure for archive %s", job.archive_id)
