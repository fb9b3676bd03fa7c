"""Time-based progress estimation for a processing job.

Progress is a UX approximation computed from elapsed wall-clock time against
an estimated total; the extraction service is never consulted. The
``transcribing`` stage has no persisted counterpart and is derived here only.
"""

from __future__ import annotations

from src.pipeline.models import ProcessingProgress, ProgressStage
from src.pipeline_config import PipelineConfig

UPLOADING_PROGRESS = 5
TRANSCRIBING_FLOOR = 10
TRANSCRIBING_CEILING = 80


def estimate_total_seconds(duration_seconds: float | None, config: PipelineConfig) -> float:
    """Estimated processing time for audio of the given length."""
    if not duration_seconds or duration_seconds <= 0:
        return config.default_estimated_seconds
    return duration_seconds * config.processing_time_multiplier


def _remaining(elapsed: float, total: float) -> float:
    return max(0.0, total - elapsed)


def uploading_progress(estimated_total: float) -> ProcessingProgress:
    return ProcessingProgress(
        stage=ProgressStage.UPLOADING,
        progress=UPLOADING_PROGRESS,
        elapsed_seconds=0.0,
        estimated_remaining_seconds=estimated_total,
        message="Uploading recording...",
    )


def transcribing_progress(elapsed: float, estimated_total: float) -> ProcessingProgress:
    """Linear 10% -> 80% as elapsed approaches the estimate, clamped at 80%."""
    ratio = elapsed / estimated_total if estimated_total > 0 else 1.0
    ratio = min(max(ratio, 0.0), 1.0)
    span = TRANSCRIBING_CEILING - TRANSCRIBING_FLOOR
    percent = TRANSCRIBING_FLOOR + int(ratio * span)

    remaining = _remaining(elapsed, estimated_total)
    if remaining > 0:
        message = f"Transcribing and finding actions... about {int(round(remaining))}s left"
    else:
        message = "Almost there, finishing up..."

    return ProcessingProgress(
        stage=ProgressStage.TRANSCRIBING,
        progress=min(percent, TRANSCRIBING_CEILING),
        elapsed_seconds=elapsed,
        estimated_remaining_seconds=remaining,
        message=message,
    )


def complete_progress(elapsed: float, actions_count: int) -> ProcessingProgress:
    """Reported only once the terminal ``completed`` state has been observed."""
    return ProcessingProgress(
        stage=ProgressStage.COMPLETE,
        progress=100,
        elapsed_seconds=elapsed,
        estimated_remaining_seconds=0.0,
        message=f"Found {actions_count} SMART ACTs!",
    )


def failed_progress(elapsed: float, error: str | None) -> ProcessingProgress:
    """Resets progress to 0 and surfaces the persisted error verbatim."""
    return ProcessingProgress(
        stage=ProgressStage.FAILED,
        progress=0,
        elapsed_seconds=elapsed,
        estimated_remaining_seconds=0.0,
        message=error or "Processing failed",
    )


def snapshot_progress(
    status: str,
    elapsed: float,
    estimated_total: float,
    actions_count: int = 0,
    error: str | None = None,
) -> ProcessingProgress:
    """Derive the progress for a single status read (used by the status endpoint)."""
    if status == "completed":
        return complete_progress(elapsed, actions_count)
    if status == "failed":
        return failed_progress(elapsed, error)
    return transcribing_progress(elapsed, estimated_total)


def timed_out_progress(elapsed: float, estimated_total: float) -> ProcessingProgress:
    """Emitted when polling gives up; the job may still finish out-of-band."""
    last = transcribing_progress(elapsed, estimated_total)
    return ProcessingProgress(
        stage=ProgressStage.TRANSCRIBING,
        progress=last.progress,
        elapsed_seconds=elapsed,
        estimated_remaining_seconds=0.0,
        message="Still working... your actions will appear in Review when ready",
    )
