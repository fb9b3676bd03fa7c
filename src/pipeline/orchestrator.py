"""Pipeline orchestrator: intake -> dispatch -> wait, reported as one outcome.

Dispatch and poll-loop errors are converted into a ``PipelineOutcome`` here
and never reach UI code as raw exceptions.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from src.errors import DispatchError, ErrorCause, StoreError, classify_error
from src.pipeline.dispatcher import ExtractionService, JobDispatcher
from src.pipeline.intake import RecordingIntake
from src.pipeline.models import (
    JobHandle,
    MeetingMetadata,
    OutcomeKind,
    PipelineOutcome,
    PollResult,
    PollStatus,
)
from src.pipeline.poller import CompletionPoller, CompletionSignal, ProgressCallback
from src.pipeline.progress import failed_progress, uploading_progress
from src.pipeline_config import PipelineConfig
from src.storage import PipelineStore

logger = logging.getLogger(__name__)

_PARTIAL_MESSAGES = {
    ErrorCause.MISCONFIGURATION: (
        "Your transcript was saved, but action extraction isn't configured right now. "
        "Your actions can be extracted later."
    ),
    ErrorCause.QUOTA: (
        "Your transcript was saved, but the extraction service is at capacity. "
        "Try extracting actions again in a little while."
    ),
    ErrorCause.GENERIC: "Your transcript was saved, but no actions could be extracted.",
}

_FAILURE_MESSAGES = {
    ErrorCause.MISCONFIGURATION: "Processing isn't available right now. Please try again later.",
    ErrorCause.QUOTA: "The processing service is busy. Please try again in a few minutes.",
    ErrorCause.GENERIC: "Processing failed. Please try recording again.",
}

TIMEOUT_MESSAGE = (
    "Still working on your recording. Your actions will appear in Review when ready."
)


def outcome_from_poll(meeting_id: str, result: PollResult) -> PipelineOutcome:
    """Map a poll result onto the user-visible outcome taxonomy."""
    if result.status is PollStatus.COMPLETED:
        if result.actions_count:
            message = f"Found {result.actions_count} SMART ACTs!"
        else:
            message = "Recording saved, but no clear actions were detected."
        return PipelineOutcome(
            kind=OutcomeKind.COMPLETED,
            success=True,
            message=message,
            meeting_id=meeting_id,
            actions_count=result.actions_count,
            has_transcript=result.has_transcript,
        )

    if result.status is PollStatus.TIMED_OUT:
        return PipelineOutcome(
            kind=OutcomeKind.TIMED_OUT,
            success=False,
            message=TIMEOUT_MESSAGE,
            meeting_id=meeting_id,
        )

    # Cause classification only picks the copy; it never changes success.
    cause = classify_error(result.error, result.error_code)
    if result.has_transcript:
        return PipelineOutcome(
            kind=OutcomeKind.PARTIAL,
            success=True,
            message=_PARTIAL_MESSAGES[cause],
            meeting_id=meeting_id,
            actions_count=result.actions_count,
            has_transcript=True,
            error=result.error,
        )
    return PipelineOutcome(
        kind=OutcomeKind.FAILED,
        success=False,
        message=_FAILURE_MESSAGES[cause],
        meeting_id=meeting_id,
        error=result.error,
    )


class PipelineOrchestrator:
    def __init__(
        self,
        store: PipelineStore,
        service: ExtractionService | None = None,
        signal: CompletionSignal | None = None,
        config: PipelineConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or PipelineConfig()
        self._clock = clock
        self.intake = RecordingIntake(store, self.config)
        self.dispatcher = JobDispatcher(store, service)
        self.signal = signal or CompletionPoller(store, self.config)

    async def wait_for_outcome(
        self,
        handle: JobHandle,
        on_progress: ProgressCallback | None = None,
        started_at: float | None = None,
    ) -> PipelineOutcome:
        """Wait on an already-dispatched job and report its outcome."""
        try:
            result = await self.signal.wait(handle, on_progress, started_at)
        except StoreError as exc:
            logger.exception("Polling aborted for meeting %s", handle.meeting_id)
            return PipelineOutcome(
                kind=OutcomeKind.FAILED,
                success=False,
                message=_FAILURE_MESSAGES[ErrorCause.GENERIC],
                meeting_id=handle.meeting_id,
                error=str(exc),
            )
        return outcome_from_poll(handle.meeting_id, result)

    async def run(
        self,
        user_id: str,
        metadata: MeetingMetadata,
        duration_seconds: float | None,
        file_path: str | None = None,
        payload: bytes | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> PipelineOutcome:
        """Process one finished recording end to end."""
        started_at = self._clock()

        try:
            recording = self.intake.create_recording(
                user_id,
                duration_seconds,
                file_path=file_path,
                payload=payload,
                title=metadata.title,
            )
            handle = self.intake.start_job(recording, metadata)
        except StoreError as exc:
            logger.exception("Intake failed for user %s", user_id)
            if on_progress is not None:
                on_progress(failed_progress(0.0, str(exc)))
            return PipelineOutcome(
                kind=OutcomeKind.FAILED,
                success=False,
                message="We couldn't save your recording. Please try again.",
                error=str(exc),
            )

        if on_progress is not None:
            on_progress(uploading_progress(handle.estimated_total_seconds))

        try:
            await self.dispatcher.dispatch(handle)
        except DispatchError as exc:
            if on_progress is not None:
                on_progress(failed_progress(self._clock() - started_at, str(exc)))
            return PipelineOutcome(
                kind=OutcomeKind.DISPATCH_FAILED,
                success=False,
                message="We couldn't start processing your recording. Please try again.",
                meeting_id=handle.meeting_id,
                error=str(exc),
            )

        return await self.wait_for_outcome(handle, on_progress, started_at)
