"""Data models for recordings, meeting jobs and their progress reporting."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class ProcessingStatus(StrEnum):
    """Persisted job state. ``pending`` moves to exactly one terminal value."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not ProcessingStatus.PENDING


class ProgressStage(StrEnum):
    """Presentation-only stage derived from elapsed time and persisted state."""

    UPLOADING = "uploading"
    TRANSCRIBING = "transcribing"
    COMPLETE = "complete"
    FAILED = "failed"


class PollStatus(StrEnum):
    """How a poll session ended."""

    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class OutcomeKind(StrEnum):
    """User-visible outcome of one recording run through the pipeline."""

    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"
    DISPATCH_FAILED = "dispatch_failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class Recording:
    """Immutable reference to captured audio."""

    id: str
    user_id: str
    duration_seconds: float | None
    file_path: str | None = None
    payload: bytes | None = field(default=None, repr=False)
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any], payload: bytes | None = None) -> Recording:
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            duration_seconds=row.get("duration_seconds"),
            file_path=row.get("file_path"),
            payload=payload,
            created_at=row.get("created_at"),
        )


@dataclass
class Participant:
    name: str
    relationship: str | None = None


@dataclass
class MeetingMetadata:
    """Caller-supplied context attached to a job and forwarded to the service."""

    title: str = "Untitled Recording"
    meeting_type: str = "general"
    participants: list[Participant] = field(default_factory=list)
    context: str = ""


@dataclass
class Meeting:
    """The unit of orchestration wrapping one Recording through processing."""

    id: str
    user_id: str
    recording_id: str | None
    meeting_title: str
    meeting_type: str = "general"
    participants: list[dict[str, Any]] = field(default_factory=list)
    meeting_context: str = ""
    is_active: bool = True
    started_at: str | None = None
    ended_at: str | None = None
    processing_status: ProcessingStatus = ProcessingStatus.PENDING
    processing_error: str | None = None
    processing_error_code: str | None = None
    transcript: str | None = None
    processing_completed_at: str | None = None
    created_at: str | None = None

    @property
    def has_transcript(self) -> bool:
        return bool(self.transcript)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Meeting:
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            recording_id=row.get("recording_id"),
            meeting_title=row.get("meeting_title") or "",
            meeting_type=row.get("meeting_type") or "general",
            participants=row.get("participants") or [],
            meeting_context=row.get("meeting_context") or "",
            is_active=bool(row.get("is_active", True)),
            started_at=row.get("started_at"),
            ended_at=row.get("ended_at"),
            processing_status=ProcessingStatus(row.get("processing_status") or "pending"),
            processing_error=row.get("processing_error"),
            processing_error_code=row.get("processing_error_code"),
            transcript=row.get("transcript"),
            processing_completed_at=row.get("processing_completed_at"),
            created_at=row.get("created_at"),
        )


@dataclass
class JobHandle:
    """Explicit handle threaded from intake through dispatch and polling.

    Replaces any notion of a module-level "current meeting"; the
    ``dispatched`` flag guards a handle against a second dispatch.
    """

    meeting_id: str
    user_id: str
    recording: Recording
    metadata: MeetingMetadata
    estimated_total_seconds: float
    dispatched: bool = False


@dataclass(frozen=True)
class ProcessingProgress:
    """Transient progress value passed to callbacks. Never persisted."""

    stage: ProgressStage
    progress: int
    elapsed_seconds: float
    estimated_remaining_seconds: float
    message: str


@dataclass(frozen=True)
class PollResult:
    status: PollStatus
    actions_count: int = 0
    has_transcript: bool = False
    error: str | None = None
    error_code: str | None = None
    attempts: int = 0


@dataclass(frozen=True)
class PipelineOutcome:
    """What the orchestrator reports back to the UI layer."""

    kind: OutcomeKind
    success: bool
    message: str
    meeting_id: str | None = None
    actions_count: int = 0
    has_transcript: bool = False
    error: str | None = None
