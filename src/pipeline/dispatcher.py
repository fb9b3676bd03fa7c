"""Job dispatcher: fire-and-forget invocation of the extraction service."""

from __future__ import annotations

import asyncio
import base64
import logging
from dataclasses import asdict
from typing import Any, Protocol

import httpx

from src.config import settings
from src.errors import (
    AlreadyDispatchedError,
    DispatchError,
    InvalidTransitionError,
    StoreError,
)
from src.pipeline.models import JobHandle
from src.pipeline.state import mark_failed
from src.storage import PipelineStore

logger = logging.getLogger(__name__)


class ExtractionService(Protocol):
    """Request boundary to the transcription/extraction service.

    ``invoke`` returns once the service acknowledges receipt, not completion.
    """

    async def invoke(self, body: dict[str, Any]) -> None: ...


class HttpExtractionService:
    """Invokes the extraction service over HTTP (see ``POST /api/jobs/process``)."""

    def __init__(self, url: str | None = None, timeout: float | None = None) -> None:
        self.url = url or settings.extraction_service_url
        self.timeout = timeout if timeout is not None else settings.dispatch_timeout_seconds

    async def invoke(self, body: dict[str, Any]) -> None:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            r = await client.post(self.url, json=body)
            r.raise_for_status()


async def build_request(handle: JobHandle) -> dict[str, Any]:
    """Request body for one job. Audio is sent by storage path when available."""
    recording = handle.recording
    body: dict[str, Any] = {
        "meeting_id": handle.meeting_id,
        "user_id": handle.user_id,
        "audio_path": recording.file_path,
        "audio_data": None,
        "metadata": {
            "title": handle.metadata.title,
            "type": handle.metadata.meeting_type,
            "participants": [asdict(p) for p in handle.metadata.participants],
            "context": handle.metadata.context,
            "recording_id": recording.id,
        },
    }
    if recording.file_path is None:
        if recording.payload is None:
            raise DispatchError(f"Recording {recording.id} has neither a storage path nor a payload")
        # Encoding large audio is CPU-bound; keep it off the event loop.
        encoded = await asyncio.to_thread(base64.b64encode, recording.payload)
        body["audio_data"] = encoded.decode("ascii")
    return body


class JobDispatcher:
    """Issues exactly one invocation per job handle.

    A failure to invoke moves the meeting to ``failed`` and raises
    ``DispatchError``; the caller must not poll in that case.
    """

    def __init__(self, store: PipelineStore, service: ExtractionService | None = None) -> None:
        self.store = store
        self.service = service or HttpExtractionService()

    async def dispatch(self, handle: JobHandle) -> None:
        if handle.dispatched:
            raise AlreadyDispatchedError(f"Meeting {handle.meeting_id} was already dispatched")
        handle.dispatched = True

        try:
            body = await build_request(handle)
            await self.service.invoke(body)
        except Exception as exc:
            # Any invocation failure, httpx or otherwise, ends the job here.
            message = f"Failed to start processing: {exc}"
            logger.error("Dispatch failed for meeting %s: %s", handle.meeting_id, exc)
            try:
                mark_failed(self.store, handle.meeting_id, message)
            except InvalidTransitionError:
                # The service reached a terminal state before reporting the error.
                logger.warning("Meeting %s already terminal after dispatch error", handle.meeting_id)
            except StoreError:
                logger.exception("Could not record dispatch failure for %s", handle.meeting_id)
            raise DispatchError(message) from exc

        logger.info("Dispatched meeting %s", handle.meeting_id)
