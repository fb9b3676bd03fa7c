"""Meeting job state machine: ``pending -> completed`` or ``pending -> failed``.

Terminal writes are conditional on the row still being ``pending`` so a
meeting leaves ``pending`` at most once and is never reversed.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from src.errors import InvalidTransitionError
from src.pipeline.models import Meeting, ProcessingStatus
from src.storage import PipelineStore, Row

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _transition(store: PipelineStore, meeting_id: str, target: ProcessingStatus, fields: Row) -> Meeting:
    now = _now()
    update = {
        **fields,
        "processing_status": target.value,
        "processing_completed_at": now,
        "ended_at": now,
        "is_active": False,
    }
    row = store.update_meeting(meeting_id, update, only_if_status=ProcessingStatus.PENDING.value)
    if row is None:
        current = store.get_meeting(meeting_id)
        state = current.get("processing_status") if current else "missing"
        raise InvalidTransitionError(
            f"Meeting {meeting_id} cannot move to {target.value} from {state}"
        )
    logger.info("Meeting %s -> %s", meeting_id, target.value)
    return Meeting.from_row(row)


def mark_completed(store: PipelineStore, meeting_id: str, transcript: str | None = None) -> Meeting:
    fields: Row = {"processing_error": None, "processing_error_code": None}
    if transcript is not None:
        fields["transcript"] = transcript
    return _transition(store, meeting_id, ProcessingStatus.COMPLETED, fields)


def mark_failed(
    store: PipelineStore,
    meeting_id: str,
    error: str,
    code: str | None = None,
) -> Meeting:
    """Record a terminal failure. Any transcript already saved is left in place."""
    fields: Row = {"processing_error": error, "processing_error_code": code}
    return _transition(store, meeting_id, ProcessingStatus.FAILED, fields)
