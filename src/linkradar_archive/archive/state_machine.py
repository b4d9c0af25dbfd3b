"""Archive lifecycle transitions.

pending -> processing | failed | blocked
processing -> completed | failed | blocked

Terminal states (completed, failed, blocked) never change again.
"""

from typing import Any

from linkradar_archive.models.archive import (
    Archive,
    ArchiveStatus,
    ArchiveTransition,
    utcnow,
)

ALLOWED_TRANSITIONS: dict[ArchiveStatus, frozenset[ArchiveStatus]] = {
    ArchiveStatus.PENDING: frozenset(
        {ArchiveStatus.PROCESSING, ArchiveStatus.FAILED, ArchiveStatus.BLOCKED}
    ),
    ArchiveStatus.PROCESSING: frozenset(
        {ArchiveStatus.COMPLETED, ArchiveStatus.FAILED, ArchiveStatus.BLOCKED}
    ),
}


class InvalidTransitionError(Exception):
    """Raised when a transition is not allowed from the archive's current status."""

    def __init__(self, from_state: ArchiveStatus, to_state: ArchiveStatus) -> None:
        super().__init__(f"Cannot transition archive from {from_state.value} to {to_state.value}")
        self.from_state = from_state
        self.to_state = to_state


def can_transition(from_state: ArchiveStatus, to_state: ArchiveStatus) -> bool:
    return to_state in ALLOWED_TRANSITIONS.get(from_state, frozenset())


def transition(
    archive: Archive,
    to_state: ArchiveStatus,
    details: dict[str, Any] | None = None,
    **fields: Any,
) -> Archive:
    """Return a new Archive in to_state with fields applied and a transition appended.

    details becomes the metadata of the appended ArchiveTransition.

    The new Archive is fully re-validated, so field updates that would break
    the model invariants (e.g. completing without content) raise
    pydantic.ValidationError. The input archive is not modified.
    """
    if not can_transition(archive.status, to_state):
        raise InvalidTransitionError(archive.status, to_state)

    now = utcnow()
    sort_key = archive.transitions[-1].sort_key + 1 if archive.transitions else 1
    entry = ArchiveTransition(
        to_state=to_state,
        sort_key=sort_key,
        metadata=dict(details or {}),
        created_at=now,
    )

    data = archive.model_dump()
    data.update(fields)
    data["status"] = to_state
    data["updated_at"] = now
    data["transitions"] = [*data["transitions"], entry.model_dump()]
    return Archive.model_validate(data)
