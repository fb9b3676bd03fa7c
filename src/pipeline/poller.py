"""Completion poller: bounded client-side wait for a dispatched job.

The extraction service has no push channel, so completion is detected by
re-reading the meeting row on a fixed interval. Callers depend on the
``CompletionSignal`` protocol rather than ``CompletionPoller`` so a push-based
source can replace polling without touching them.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import replace
from typing import Any, Protocol

from src.errors import NotFoundError, StoreError
from src.pipeline.models import (
    JobHandle,
    PollResult,
    PollStatus,
    ProcessingProgress,
    ProcessingStatus,
)
from src.pipeline.progress import (
    complete_progress,
    failed_progress,
    timed_out_progress,
    transcribing_progress,
)
from src.pipeline_config import PipelineConfig
from src.storage import PipelineStore, Row

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProcessingProgress], None]


class CompletionSignal(Protocol):
    async def wait(
        self,
        handle: JobHandle,
        on_progress: ProgressCallback | None = None,
        started_at: float | None = None,
    ) -> PollResult: ...


class CompletionPoller:
    """Polls the meeting row until it is terminal or the attempt budget runs out.

    There is no cancellation of the backing job: a caller that stops awaiting
    ``wait`` just stops polling, and the job finishes out-of-band.
    """

    def __init__(
        self,
        store: PipelineStore,
        config: PipelineConfig | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.config = config or PipelineConfig()
        self._sleep = sleep
        self._clock = clock

    async def _read(self, handle: JobHandle) -> tuple[int, Row | None]:
        count = await asyncio.to_thread(self.store.count_actions, handle.meeting_id, handle.user_id)
        row = await asyncio.to_thread(self.store.get_meeting, handle.meeting_id, handle.user_id)
        return count, row

    async def wait(
        self,
        handle: JobHandle,
        on_progress: ProgressCallback | None = None,
        started_at: float | None = None,
    ) -> PollResult:
        start = started_at if started_at is not None else self._clock()
        max_attempts = self.config.poll_max_attempts
        last_percent = 0

        def emit(progress: ProcessingProgress) -> None:
            if on_progress is not None:
                on_progress(progress)

        for attempt in range(1, max_attempts + 1):
            try:
                count, row = await self._read(handle)
            except StoreError as exc:
                # A failed read is not a job failure; try again next tick.
                logger.warning("Poll %d for meeting %s failed: %s", attempt, handle.meeting_id, exc)
                count, row = 0, None
            else:
                if row is None:
                    raise NotFoundError(f"Meeting {handle.meeting_id} not found")

            elapsed = self._clock() - start

            if row is not None:
                status = ProcessingStatus(row.get("processing_status") or "pending")
                has_transcript = bool(row.get("transcript"))

                if status is ProcessingStatus.COMPLETED:
                    emit(complete_progress(elapsed, count))
                    logger.info(
                        "Meeting %s completed after %d polls with %d actions",
                        handle.meeting_id,
                        attempt,
                        count,
                    )
                    return PollResult(
                        status=PollStatus.COMPLETED,
                        actions_count=count,
                        has_transcript=has_transcript,
                        attempts=attempt,
                    )

                if status is ProcessingStatus.FAILED:
                    error = row.get("processing_error")
                    emit(failed_progress(elapsed, error))
                    logger.info("Meeting %s failed after %d polls: %s", handle.meeting_id, attempt, error)
                    return PollResult(
                        status=PollStatus.FAILED,
                        actions_count=count,
                        has_transcript=has_transcript,
                        error=error,
                        error_code=row.get("processing_error_code"),
                        attempts=attempt,
                    )

            progress = transcribing_progress(elapsed, handle.estimated_total_seconds)
            if progress.progress < last_percent:
                progress = replace(progress, progress=last_percent)
            last_percent = progress.progress
            emit(progress)

            if attempt < max_attempts:
                await self._sleep(self.config.poll_interval_seconds)

        progress = timed_out_progress(self._clock() - start, handle.estimated_total_seconds)
        emit(replace(progress, progress=max(progress.progress, last_percent)))
        logger.warning(
            "Meeting %s still pending after %d polls; results may arrive later",
            handle.meeting_id,
            max_attempts,
        )
        return PollResult(status=PollStatus.TIMED_OUT, attempts=max_attempts)
