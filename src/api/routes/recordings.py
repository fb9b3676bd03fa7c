"""Recording intake endpoint: save audio, open a job and dispatch it."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, File, Form, HTTPException, UploadFile

from src.api.deps import Config, Service, Store, UserId
from src.api.models import JobResponse, ProgressModel
from src.errors import DispatchError, StoreError
from src.pipeline.dispatcher import JobDispatcher
from src.pipeline.intake import RecordingIntake
from src.pipeline.models import MeetingMetadata, Participant
from src.pipeline.progress import uploading_progress

router = APIRouter()

# 100 MB upload limit
MAX_UPLOAD_BYTES = 100 * 1024 * 1024


def _parse_participants(raw: str) -> list[Participant]:
    return [Participant(name=name.strip()) for name in raw.split(",") if name.strip()]


@router.post("/api/recordings", response_model=JobResponse, status_code=202)
async def create_recording(
    user_id: UserId,
    store: Store,
    service: Service,
    config: Config,
    file: Annotated[UploadFile | None, File()] = None,
    file_path: Annotated[str | None, Form()] = None,
    duration_seconds: Annotated[float | None, Form()] = None,
    title: Annotated[str, Form()] = "Untitled Recording",
    meeting_type: Annotated[str, Form()] = "general",
    participants: Annotated[str, Form()] = "",
    context: Annotated[str, Form()] = "",
) -> JobResponse:
    """Accept a finished recording and start processing it.

    Send either the audio ``file`` or the ``file_path`` of audio already in
    the recordings bucket. Returns as soon as the extraction service has
    acknowledged the job; poll ``/api/meetings/{id}/status`` for progress.

    - 400: neither or both of ``file`` / ``file_path`` supplied.
    - 413: upload larger than the limit.
    - 502: the extraction service could not be invoked (meeting is ``failed``).
    - 503: the store is unavailable (no meeting was created).
    """
    payload: bytes | None = None
    if file is not None:
        payload = await file.read()
        if len(payload) > MAX_UPLOAD_BYTES:
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Maximum size is {MAX_UPLOAD_BYTES // (1024 * 1024)} MB.",
            )

    metadata = MeetingMetadata(
        title=title,
        meeting_type=meeting_type,
        participants=_parse_participants(participants),
        context=context,
    )

    intake = RecordingIntake(store, config)
    try:
        recording = intake.create_recording(
            user_id,
            duration_seconds,
            file_path=file_path,
            payload=payload,
            title=title,
        )
        handle = intake.start_job(recording, metadata)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=f"Storage unavailable: {exc}") from exc

    try:
        await JobDispatcher(store, service).dispatch(handle)
    except DispatchError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return JobResponse(
        meeting_id=handle.meeting_id,
        recording_id=recording.id,
        estimated_total_seconds=handle.estimated_total_seconds,
        progress=ProgressModel.from_progress(uploading_progress(handle.estimated_total_seconds)),
    )
