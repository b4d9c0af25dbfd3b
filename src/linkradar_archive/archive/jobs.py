"""Background job runtime: retry driver and in-process worker queue.

run_archive_job() owns the retry sequence for one archive: it calls
perform_archive_job() until the archive is terminal, backing off
exponentially between timeout retries. ArchiveQueue runs jobs on a fixed
pool of asyncio worker tasks; one job holds one worker for its whole
retry sequence.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from linkradar_archive.archive.orchestrator import perform_archive_job
from linkradar_archive.config import Settings, get_settings
from linkradar_archive.models.job import ArchiveJob, JobOutcome
from linkradar_archive.storage import ArchiveStore

logger = logging.getLogger(__name__)


async def run_archive_job(
    job: ArchiveJob,
    *,
    store: ArchiveStore | None = None,
    settings: Settings | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> JobOutcome:
    """Run an archive job to completion, retrying timeouts with exponential backoff.

    With the defaults (max_attempts=3, retry_backoff_base=2) attempts run at
    0s, +2s and +4s. Each attempt sees job.attempt set to its 1-based number.
    """
    settings = settings or get_settings()
    outcome = JobOutcome.DISCARDED

    retrying = AsyncRetrying(
        retry=retry_if_result(lambda result: result is JobOutcome.RETRY),
        wait=wait_exponential(multiplier=settings.retry_backoff_base),
        stop=stop_after_attempt(settings.max_attempts),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        retry_error_callback=lambda retry_state: retry_state.outcome.result(),
        sleep=sleep,
    )
    async for attempt in retrying:
        with attempt:
            outcome = await perform_archive_job(
                job.model_copy(update={"attempt": attempt.retry_state.attempt_number}),
                store=store,
                settings=settings,
            )
        if not attempt.retry_state.outcome.failed:
            attempt.retry_state.set_result(outcome)

    logger.info("Archive job %s finished: %s", job.archive_id, outcome.value)
    return outcome


class ArchiveQueue:
    """asyncio.Queue of ArchiveJobs drained by a pool of worker tasks."""

    def __init__(
        self, handler: Callable[[ArchiveJob], Awaitable[object]] | None = None
    ) -> None:
        self._queue: asyncio.Queue[ArchiveJob] = asyncio.Queue()
        self._handler = handler or run_archive_job
        self._workers: list[asyncio.Task] = []

    @property
    def pending(self) -> int:
        """Jobs waiting for a worker (not counting jobs being run)."""
        return self._queue.qsize()

    @property
    def running(self) -> bool:
        return bool(self._workers)

    def enqueue(self, job: ArchiveJob) -> None:
        self._queue.put_nowait(job)
        logger.info("Enqueued archive job %s (%s)", job.archive_id, job.url)

    def start(self, worker_count: int) -> None:
        """Start worker_count workers. Must be called from a running event loop."""
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"archive-worker-{i}")
            for i in range(worker_count)
        ]
        logger.info("Started %d archive workers", worker_count)

    async def join(self) -> None:
        """Wait until every enqueued job has been processed."""
        await self._queue.join()

    async def stop(self) -> None:
        """Cancel all workers. Jobs still queued stay queued."""
        workers, self._workers = self._workers, []
        for task in workers:
            task.cancel()
        await asyncio.gather(*workers, return_exceptions=True)
        if workers:
            logger.info("Stopped %d archive workers", len(workers))

    async def _worker(self, index: int) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self._handler(job)
            except Exception:
                # A failing job must not take the worker down with it
                logger.exception("Archive worker %d failed on job %s", index, job.archive_id)
            finally:
                self._queue.task_done()


_queue: ArchiveQueue | None = None


def get_archive_queue() -> ArchiveQueue:
    """Return the cached process-wide ArchiveQueue."""
    global _queue
    if _queue is None:
        _queue = ArchiveQueue()
    return _queue


def reset_queue() -> None:
    """Reset the cached queue. Used for testing."""
    global _queue
    _queue = None
