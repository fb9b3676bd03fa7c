"""Pipeline configuration: polling cadence, progress estimation and review gating."""

from __future__ import annotations

from dataclasses import dataclass

from src.config import Settings


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable configuration for the recording-to-action pipeline.

    Defaults mirror the production cadence: poll every 2 seconds for at most
    60 attempts, and estimate processing time as half the audio duration.
    """

    poll_interval_seconds: float = 2.0
    poll_max_attempts: int = 60
    processing_time_multiplier: float = 0.5
    default_estimated_seconds: float = 60.0
    review_confidence_threshold: float = 0.7
    audit_rejections: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> PipelineConfig:
        return cls(
            poll_interval_seconds=settings.poll_interval_seconds,
            poll_max_attempts=settings.poll_max_attempts,
            processing_time_multiplier=settings.processing_time_multiplier,
            default_estimated_seconds=settings.default_estimated_seconds,
            review_confidence_threshold=settings.review_confidence_threshold,
            audit_rejections=settings.audit_rejections,
        )
