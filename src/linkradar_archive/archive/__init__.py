"""Archive orchestration, lifecycle state machine and background jobs.

Public API:
    create_archive_for(link) -> Archive
        Called when a Link is created. Never raises for archival problems.
    run_archive_job(job) -> JobOutcome
        Background entry point; retries timeouts with exponential backoff.
"""

from linkradar_archive.archive.jobs import (
    ArchiveQueue,
    get_archive_queue,
    reset_queue,
    run_archive_job,
)
from linkradar_archive.archive.orchestrator import create_archive_for, perform_archive_job
from linkradar_archive.archive.state_machine import InvalidTransitionError, transition

__all__ = [
    "ArchiveQueue",
    "InvalidTransitionError",
    "create_archive_for",
    "get_archive_queue",
    "perform_archive_job",
    "reset_queue",
    "run_archive_job",
    "transition",
]
