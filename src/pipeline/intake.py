"""Recording intake: persist the audio reference and open a pending meeting job."""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict
from datetime import UTC, datetime

from src.pipeline.models import JobHandle, Meeting, MeetingMetadata, ProcessingStatus, Recording
from src.pipeline.progress import estimate_total_seconds
from src.pipeline_config import PipelineConfig
from src.storage import PipelineStore

logger = logging.getLogger(__name__)


class RecordingIntake:
    """Creates Recordings and their Meeting jobs.

    ``start_job`` returns only after the ``pending`` meeting row is committed,
    so any later poll is guaranteed to observe it.
    """

    def __init__(self, store: PipelineStore, config: PipelineConfig | None = None) -> None:
        self.store = store
        self.config = config or PipelineConfig()

    def create_recording(
        self,
        user_id: str,
        duration_seconds: float | None,
        file_path: str | None = None,
        payload: bytes | None = None,
        title: str = "Untitled Recording",
        upload: bool = True,
    ) -> Recording:
        """Persist an immutable recording reference.

        Exactly one of ``file_path`` (audio already in storage) or ``payload``
        (raw bytes) must be given. With ``upload`` the payload is written to
        storage so the job can be dispatched by reference.
        """
        if (file_path is None) == (payload is None):
            raise ValueError("Provide exactly one of file_path or payload")

        if payload is not None and upload:
            file_path = self.store.upload_audio(f"{user_id}/{uuid.uuid4().hex}.webm", payload)

        row = self.store.create_recording(
            {
                "user_id": user_id,
                "title": title,
                "category": "memory_bridge",
                "file_path": file_path,
                "file_size_bytes": len(payload) if payload is not None else None,
                "duration_seconds": duration_seconds,
                "access_level": "private",
            }
        )
        recording = Recording.from_row(row, payload=payload)
        logger.info("Created recording %s for user %s", recording.id, user_id)
        return recording

    def start_job(self, recording: Recording, metadata: MeetingMetadata) -> JobHandle:
        """Create the meeting row in ``pending`` and return its job handle."""
        now = datetime.now(UTC).isoformat()
        row = self.store.create_meeting(
            {
                "user_id": recording.user_id,
                "recording_id": recording.id,
                "meeting_title": metadata.title,
                "meeting_type": metadata.meeting_type,
                "meeting_context": metadata.context,
                "participants": [asdict(p) for p in metadata.participants],
                "is_active": True,
                "started_at": recording.created_at or now,
                "processing_status": ProcessingStatus.PENDING.value,
            }
        )
        meeting = Meeting.from_row(row)
        logger.info("Opened meeting job %s for recording %s", meeting.id, recording.id)
        return JobHandle(
            meeting_id=meeting.id,
            user_id=recording.user_id,
            recording=recording,
            metadata=metadata,
            estimated_total_seconds=estimate_total_seconds(recording.duration_seconds, self.config),
        )
