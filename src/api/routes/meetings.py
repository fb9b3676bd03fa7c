"""Meeting endpoints: history, detail, one-shot status and per-meeting actions."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, HTTPException

from src.api.deps import Config, Store, UserId
from src.api.models import (
    ActionModel,
    MeetingDetail,
    MeetingSummary,
    OutcomeModel,
    ProgressModel,
    StatusResponse,
)
from src.errors import StoreError
from src.extraction.models import ExtractedAction
from src.pipeline.models import Meeting, PollResult, PollStatus, ProcessingStatus
from src.pipeline.orchestrator import outcome_from_poll
from src.pipeline.progress import estimate_total_seconds, snapshot_progress
from src.storage import PipelineStore

router = APIRouter()


def _load_meeting(store: PipelineStore, meeting_id: str, user_id: str) -> Meeting:
    try:
        row = store.get_meeting(meeting_id, user_id)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    if row is None:
        raise HTTPException(status_code=404, detail="Meeting not found")
    return Meeting.from_row(row)


def _elapsed_seconds(started_at: str | None) -> float:
    if not started_at:
        return 0.0
    started = datetime.fromisoformat(started_at)
    if started.tzinfo is None:
        started = started.replace(tzinfo=UTC)
    return max(0.0, (datetime.now(UTC) - started).total_seconds())


def _summary(m: Meeting) -> MeetingSummary:
    return MeetingSummary(
        id=m.id,
        meeting_title=m.meeting_title,
        meeting_type=m.meeting_type,
        processing_status=m.processing_status,
        is_active=m.is_active,
        started_at=m.started_at,
        ended_at=m.ended_at,
        created_at=m.created_at,
    )


@router.get("/api/meetings", response_model=list[MeetingSummary])
async def list_meetings(user_id: UserId, store: Store) -> list[MeetingSummary]:
    """List the caller's meetings, newest first."""
    try:
        rows = store.list_meetings(user_id)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return [_summary(Meeting.from_row(r)) for r in rows]


@router.get("/api/meetings/{meeting_id}", response_model=MeetingDetail)
async def get_meeting(meeting_id: str, user_id: UserId, store: Store) -> MeetingDetail:
    m = _load_meeting(store, meeting_id, user_id)
    return MeetingDetail(
        **_summary(m).model_dump(),
        recording_id=m.recording_id,
        participants=m.participants,
        meeting_context=m.meeting_context,
        processing_error=m.processing_error,
        transcript=m.transcript,
    )


@router.get("/api/meetings/{meeting_id}/status", response_model=StatusResponse)
async def get_meeting_status(
    meeting_id: str, user_id: UserId, store: Store, config: Config
) -> StatusResponse:
    """One poll tick for clients that drive their own polling loop.

    Progress is estimated from elapsed time; ``outcome`` is set once the
    meeting is terminal.
    """
    m = _load_meeting(store, meeting_id, user_id)
    try:
        count = store.count_actions(meeting_id, user_id)
        recording = store.get_recording(m.recording_id, user_id) if m.recording_id else None
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    duration = recording.get("duration_seconds") if recording else None
    progress = snapshot_progress(
        m.processing_status.value,
        _elapsed_seconds(m.started_at),
        estimate_total_seconds(duration, config),
        actions_count=count,
        error=m.processing_error,
    )

    outcome: OutcomeModel | None = None
    if m.processing_status.is_terminal:
        result = PollResult(
            status=(
                PollStatus.COMPLETED
                if m.processing_status is ProcessingStatus.COMPLETED
                else PollStatus.FAILED
            ),
            actions_count=count,
            has_transcript=m.has_transcript,
            error=m.processing_error,
            error_code=m.processing_error_code,
        )
        o = outcome_from_poll(meeting_id, result)
        outcome = OutcomeModel(
            kind=o.kind,
            success=o.success,
            message=o.message,
            actions_count=o.actions_count,
            has_transcript=o.has_transcript,
            error=o.error,
        )

    return StatusResponse(
        meeting_id=meeting_id,
        processing_status=m.processing_status,
        actions_count=count,
        has_transcript=m.has_transcript,
        processing_error=m.processing_error,
        progress=ProgressModel.from_progress(progress),
        outcome=outcome,
    )


@router.get("/api/meetings/{meeting_id}/actions", response_model=list[ActionModel])
async def list_meeting_actions(meeting_id: str, user_id: UserId, store: Store) -> list[ActionModel]:
    _load_meeting(store, meeting_id, user_id)
    try:
        rows = store.list_actions(user_id, meeting_id=meeting_id)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return [ActionModel.from_action(ExtractedAction.from_row(r)) for r in rows]
