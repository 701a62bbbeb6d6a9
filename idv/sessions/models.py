from dataclasses import dataclass
from enum import Enum

from idv.database.models import SessionRecord


class SessionStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    PROCESSING_IMAGES = "PROCESSING_IMAGES"
    IN_REVIEW = "IN_REVIEW"
    PROCESSING_FAILED = "PROCESSING_FAILED"


ENTRY_STATUSES: frozenset[str] = frozenset(
    {SessionStatus.NOT_STARTED.value, SessionStatus.IN_PROGRESS.value}
)


@dataclass(frozen=True)
class SessionChange:
    """Before/after view of one session update handed to the orchestrator."""

    before: SessionRecord | None
    after: SessionRecord | None


@dataclass(frozen=True)
class ProcessingOutcome:
    """Informational summary of one orchestration unit.

    The persisted session record is the authoritative result.
    """

    success: bool
    status: SessionStatus
    error: str | None = None
