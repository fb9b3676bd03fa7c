"""Exception hierarchy and failure-cause classification for the pipeline."""

from __future__ import annotations

from enum import StrEnum


class PipelineError(Exception):
    """Base class for all pipeline errors."""


class StoreError(PipelineError):
    """A read or write against the durable store failed."""


class NotFoundError(StoreError):
    """The requested row does not exist for this owner."""


class DispatchError(PipelineError):
    """The extraction service could not be invoked for a job."""


class AlreadyDispatchedError(DispatchError):
    """A job handle was dispatched a second time."""


class InvalidTransitionError(PipelineError):
    """A status change that the state machine does not allow."""


class ReviewError(PipelineError):
    """A review-queue mutation failed; the action keeps its prior state."""

    def __init__(self, action_id: str, message: str) -> None:
        super().__init__(message)
        self.action_id = action_id


class ErrorCause(StrEnum):
    """Structured cause of a processing failure, used to tailor user copy."""

    MISCONFIGURATION = "misconfiguration"
    QUOTA = "quota"
    GENERIC = "generic"


class ProcessingError(PipelineError):
    """A processing stage failed inside the worker; carries a structured cause."""

    def __init__(self, message: str, cause: ErrorCause = ErrorCause.GENERIC) -> None:
        super().__init__(message)
        self.cause = cause


class TranscriptionError(ProcessingError):
    """The audio could not be transcribed."""


class ExtractionError(ProcessingError):
    """Action extraction from a transcript failed."""


# Substring fallbacks for rows written without a structured cause code.
_MISCONFIGURATION_MARKERS = ("api key", "api_key", "not configured", "unauthorized", "401")
_QUOTA_MARKERS = ("quota", "rate limit", "429", "insufficient", "credit")


def classify_error(message: str | None, code: str | None = None) -> ErrorCause:
    """Return the failure cause for a processing error.

    A structured ``code`` written by the worker always wins. Message
    substring matching is kept only for rows written before cause codes
    existed and will misclassify if upstream error text changes.
    """
    if code:
        try:
            return ErrorCause(code)
        except ValueError:
            return ErrorCause.GENERIC

    text = (message or "").lower()
    if any(marker in text for marker in _MISCONFIGURATION_MARKERS):
        return ErrorCause.MISCONFIGURATION
    if any(marker in text for marker in _QUOTA_MARKERS):
        return ErrorCause.QUOTA
    return ErrorCause.GENERIC
