"""Background job: transcribe -> save transcript -> extract -> score -> store.

This is the extraction service behind ``POST /api/jobs/process``. It owns the
meeting's terminal write. The transcript is saved before extraction starts,
so an extraction failure leaves a ``failed`` meeting that still has a
transcript (partial success).
"""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from src.errors import (
    ErrorCause,
    InvalidTransitionError,
    ProcessingError,
    StoreError,
    TranscriptionError,
)
from src.extraction.extractor import extract_from_transcript
from src.extraction.models import ActionCandidate
from src.extraction.validator import build_action_rows
from src.pipeline.models import ProcessingStatus
from src.pipeline.state import mark_completed, mark_failed
from src.pipeline_config import PipelineConfig
from src.storage import PipelineStore
from src.worker.transcription import transcribe_audio

logger = logging.getLogger(__name__)

Transcriber = Callable[[bytes], str]
Extractor = Callable[[str, dict[str, Any] | None], list[ActionCandidate]]


@dataclass
class JobRequest:
    meeting_id: str
    user_id: str
    audio_path: str | None = None
    audio_data: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


def _load_audio(store: PipelineStore, request: JobRequest) -> bytes:
    if request.audio_path:
        return store.download_audio(request.audio_path)
    if request.audio_data:
        try:
            return base64.b64decode(request.audio_data, validate=True)
        except binascii.Error as exc:
            raise TranscriptionError(f"Audio payload is not valid base64: {exc}") from exc
    raise TranscriptionError("No audio path or payload supplied")


def _fail(store: PipelineStore, meeting_id: str, message: str, cause: ErrorCause) -> None:
    try:
        mark_failed(store, meeting_id, message, cause.value)
    except InvalidTransitionError:
        logger.warning("Meeting %s already terminal; dropping failure: %s", meeting_id, message)


def process_meeting_job(
    store: PipelineStore,
    request: JobRequest,
    config: PipelineConfig | None = None,
    transcribe: Transcriber = transcribe_audio,
    extract: Extractor = extract_from_transcript,
) -> None:
    """Run one job to a terminal state. Never raises for processing failures."""
    config = config or PipelineConfig()
    meeting_id = request.meeting_id

    try:
        owned = store.get_meeting(meeting_id, request.user_id)
    except StoreError as exc:
        logger.error("Could not load meeting %s: %s", meeting_id, exc)
        _fail(store, meeting_id, str(exc), ErrorCause.GENERIC)
        return
    if owned is None:
        logger.warning("Meeting %s not found for owner %s; abandoning job", meeting_id, request.user_id)
        return

    try:
        audio = _load_audio(store, request)
        transcript = transcribe(audio)
    except ProcessingError as exc:
        logger.error("Transcription failed for meeting %s: %s", meeting_id, exc)
        _fail(store, meeting_id, str(exc), exc.cause)
        return
    except StoreError as exc:
        logger.error("Audio unavailable for meeting %s: %s", meeting_id, exc)
        _fail(store, meeting_id, str(exc), ErrorCause.GENERIC)
        return

    try:
        saved = store.update_meeting(
            meeting_id,
            {"transcript": transcript},
            only_if_status=ProcessingStatus.PENDING.value,
        )
    except StoreError as exc:
        logger.error("Could not save transcript for meeting %s: %s", meeting_id, exc)
        _fail(store, meeting_id, str(exc), ErrorCause.GENERIC)
        return
    if saved is None:
        logger.warning("Meeting %s is no longer pending; abandoning job", meeting_id)
        return
    logger.info("Saved transcript for meeting %s (%d chars)", meeting_id, len(transcript))

    try:
        candidates = extract(transcript, request.metadata)
        rows = build_action_rows(
            request.user_id, meeting_id, candidates, config.review_confidence_threshold
        )
        store.insert_actions(rows)
    except ProcessingError as exc:
        logger.error("Extraction failed for meeting %s: %s", meeting_id, exc)
        _fail(store, meeting_id, str(exc), exc.cause)
        return
    except StoreError as exc:
        logger.error("Could not store actions for meeting %s: %s", meeting_id, exc)
        _fail(store, meeting_id, str(exc), ErrorCause.GENERIC)
        return

    flagged = sum(1 for r in rows if r["requires_review"])
    logger.info(
        "Extracted %d actions for meeting %s (%d need review)", len(rows), meeting_id, flagged
    )
    try:
        mark_completed(store, meeting_id)
    except InvalidTransitionError:
        logger.warning("Meeting %s finished after another writer made it terminal", meeting_id)


def run_job(store: PipelineStore, request: JobRequest, config: PipelineConfig | None = None) -> None:
    """Background-task entry point; records unexpected errors as job failures."""
    try:
        process_meeting_job(store, request, config)
    except Exception as exc:
        logger.exception("Unexpected error processing meeting %s", request.meeting_id)
        try:
            _fail(store, request.meeting_id, f"Unexpected processing error: {exc}", ErrorCause.GENERIC)
        except StoreError:
            logger.exception("Could not record failure for meeting %s", request.meeting_id)
