"""Extraction service endpoint: acknowledge a job and process it in the background."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, HTTPException

from src.api.deps import Config, Store
from src.api.models import ProcessJobRequest, ProcessJobResponse
from src.worker.processor import JobRequest, run_job

router = APIRouter()


@router.post("/api/jobs/process", response_model=ProcessJobResponse, status_code=202)
async def process_job(
    body: ProcessJobRequest,
    background_tasks: BackgroundTasks,
    store: Store,
    config: Config,
) -> ProcessJobResponse:
    """Acknowledge receipt; the meeting row is updated when processing ends.

    The response means "accepted", not "done". Callers learn the result by
    reading the meeting's ``processing_status``.
    """
    if not body.audio_path and not body.audio_data:
        raise HTTPException(status_code=400, detail="Provide audio_path or audio_data")

    request = JobRequest(
        meeting_id=body.meeting_id,
        user_id=body.user_id,
        audio_path=body.audio_path,
        audio_data=body.audio_data,
        metadata=body.metadata.model_dump(),
    )
    # run_job is synchronous; Starlette runs it in the threadpool after the response.
    background_tasks.add_task(run_job, store, request, config)
    return ProcessJobResponse(meeting_id=body.meeting_id)
