"""Pydantic request/response schemas for the recording-to-action API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from src.extraction.models import ActionStatus, ConfirmationDecision, ExtractedAction
from src.pipeline.models import (
    OutcomeKind,
    ProcessingProgress,
    ProcessingStatus,
    ProgressStage,
)


class ProgressModel(BaseModel):
    """Time-based progress for display only."""

    stage: ProgressStage
    progress: int
    elapsed_seconds: float
    estimated_remaining_seconds: float
    message: str

    @classmethod
    def from_progress(cls, p: ProcessingProgress) -> ProgressModel:
        return cls(
            stage=p.stage,
            progress=p.progress,
            elapsed_seconds=round(p.elapsed_seconds, 1),
            estimated_remaining_seconds=round(p.estimated_remaining_seconds, 1),
            message=p.message,
        )


class JobResponse(BaseModel):
    """Response body for POST /api/recordings."""

    meeting_id: str
    recording_id: str
    processing_status: ProcessingStatus = ProcessingStatus.PENDING
    estimated_total_seconds: float
    progress: ProgressModel


class OutcomeModel(BaseModel):
    kind: OutcomeKind
    success: bool
    message: str
    actions_count: int = 0
    has_transcript: bool = False
    error: str | None = None


class StatusResponse(BaseModel):
    """Response body for GET /api/meetings/{id}/status (one poll tick)."""

    meeting_id: str
    processing_status: ProcessingStatus
    actions_count: int
    has_transcript: bool
    processing_error: str | None = None
    progress: ProgressModel
    outcome: OutcomeModel | None = None


class MeetingSummary(BaseModel):
    """Summary representation of a meeting for history views."""

    id: str
    meeting_title: str
    meeting_type: str | None = None
    processing_status: ProcessingStatus
    is_active: bool = False
    started_at: str | None = None
    ended_at: str | None = None
    created_at: str | None = None


class MeetingDetail(MeetingSummary):
    recording_id: str | None = None
    participants: list[dict[str, Any]] = []
    meeting_context: str | None = None
    processing_error: str | None = None
    transcript: str | None = None


class ActionModel(BaseModel):
    id: str
    meeting_recording_id: str
    action_text: str
    assigned_to: str | None = None
    due_context: str | None = None
    priority_level: int | None = None
    category: str
    validation_score: int
    validation_issues: list[str] = []
    confidence_score: float
    requires_review: bool
    status: ActionStatus
    extraction_method: str
    user_notes: str | None = None
    completion_date: str | None = None
    created_at: str | None = None

    @classmethod
    def from_action(cls, a: ExtractedAction) -> ActionModel:
        return cls(
            id=a.id,
            meeting_recording_id=a.meeting_recording_id,
            action_text=a.action_text,
            assigned_to=a.assigned_to,
            due_context=a.due_context,
            priority_level=a.priority_level,
            category=a.category,
            validation_score=a.validation_score,
            validation_issues=a.validation_issues,
            confidence_score=a.confidence_score,
            requires_review=a.requires_review,
            status=a.status,
            extraction_method=a.extraction_method,
            user_notes=a.user_notes,
            completion_date=a.completion_date,
            created_at=a.created_at,
        )


class ActionEdits(BaseModel):
    """Fields a reviewer may change while confirming."""

    action_text: str | None = None
    assigned_to: str | None = None
    due_context: str | None = None
    priority_level: int | None = Field(default=None, ge=1, le=5)
    category: str | None = None


class ConfirmRequest(BaseModel):
    edits: ActionEdits | None = None
    note: str | None = None


class RejectRequest(BaseModel):
    note: str | None = None


class ConfirmationModel(BaseModel):
    id: str
    extracted_action_id: str
    confirmation_status: ConfirmationDecision
    user_modifications: dict[str, Any] = {}
    confirmation_note: str | None = None
    created_at: str | None = None


class BulkConfirmResponse(BaseModel):
    confirmed: list[str]
    failed: dict[str, str] = {}


class StatusUpdateRequest(BaseModel):
    status: ActionStatus
    note: str | None = None
    notify_watchers: bool = True


class StatusUpdateResponse(BaseModel):
    action_id: str
    previous_status: ActionStatus
    new_status: ActionStatus
    timestamp: str
    note: str | None = None
    watchers_notified: bool = False


class ProgressSummaryResponse(BaseModel):
    total_actions: int
    completed_actions: int
    completion_rate: int
    status_breakdown: dict[str, int]
    timeframe: str


class ParticipantModel(BaseModel):
    name: str
    relationship: str | None = None


class JobMetadataModel(BaseModel):
    title: str = "Untitled Recording"
    type: str = "general"
    participants: list[ParticipantModel] = []
    context: str = ""
    recording_id: str | None = None


class ProcessJobRequest(BaseModel):
    """Request body for POST /api/jobs/process (the extraction service)."""

    meeting_id: str
    user_id: str
    audio_path: str | None = None
    audio_data: str | None = None
    metadata: JobMetadataModel = JobMetadataModel()


class ProcessJobResponse(BaseModel):
    accepted: bool = True
    meeting_id: str
