"""In-memory test doubles for the store, the extraction service and the clock."""

from __future__ import annotations

import copy
import itertools
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

from src.errors import StoreError

Row = dict[str, Any]


class FakeStore:
    """In-memory PipelineStore. Methods named in ``fail_on`` raise StoreError."""

    def __init__(self) -> None:
        self.recordings: dict[str, Row] = {}
        self.meetings: dict[str, Row] = {}
        self.actions: dict[str, Row] = {}
        self.confirmations: list[Row] = []
        self.alerts: list[Row] = []
        self.audio: dict[str, bytes] = {}
        self.fail_on: set[str] = set()
        self.calls: list[str] = []
        self._tick = itertools.count()
        # Recent enough for timeframe filters; one second apart for stable ordering.
        self._base = datetime.now(UTC) - timedelta(hours=1)

    def _check(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise StoreError(f"{name} failed")

    def _stamp(self) -> str:
        return (self._base + timedelta(seconds=next(self._tick))).isoformat()

    def _new(self, row: Row) -> Row:
        created = {"id": str(uuid.uuid4()), "created_at": self._stamp(), **row}
        return created

    # --- audio
    def upload_audio(self, path: str, payload: bytes) -> str:
        self._check("upload_audio")
        self.audio[path] = payload
        return path

    def download_audio(self, path: str) -> bytes:
        self._check("download_audio")
        if path not in self.audio:
            raise StoreError(f"Object not found: {path}")
        return self.audio[path]

    # --- recordings / meetings
    def create_recording(self, row: Row) -> Row:
        self._check("create_recording")
        created = self._new(row)
        self.recordings[created["id"]] = created
        return copy.deepcopy(created)

    def get_recording(self, recording_id: str, user_id: str) -> Row | None:
        self._check("get_recording")
        row = self.recordings.get(recording_id)
        if row is None or row["user_id"] != user_id:
            return None
        return copy.deepcopy(row)

    def create_meeting(self, row: Row) -> Row:
        self._check("create_meeting")
        created = self._new(row)
        self.meetings[created["id"]] = created
        return copy.deepcopy(created)

    def get_meeting(self, meeting_id: str, user_id: str | None = None) -> Row | None:
        self._check("get_meeting")
        row = self.meetings.get(meeting_id)
        if row is None or (user_id is not None and row["user_id"] != user_id):
            return None
        return copy.deepcopy(row)

    def list_meetings(self, user_id: str) -> list[Row]:
        self._check("list_meetings")
        rows = [r for r in self.meetings.values() if r["user_id"] == user_id]
        return copy.deepcopy(sorted(rows, key=lambda r: r["created_at"], reverse=True))

    def update_meeting(
        self, meeting_id: str, fields: Row, only_if_status: str | None = None
    ) -> Row | None:
        self._check("update_meeting")
        row = self.meetings.get(meeting_id)
        if row is None:
            return None
        if only_if_status is not None and row.get("processing_status") != only_if_status:
            return None
        row.update(copy.deepcopy(fields))
        return copy.deepcopy(row)

    # --- actions
    def count_actions(self, meeting_id: str, user_id: str) -> int:
        self._check("count_actions")
        return sum(
            1
            for r in self.actions.values()
            if r["meeting_recording_id"] == meeting_id and r["user_id"] == user_id
        )

    def insert_actions(self, rows: list[Row]) -> list[Row]:
        self._check("insert_actions")
        inserted = []
        for row in rows:
            created = self._new(row)
            self.actions[created["id"]] = created
            inserted.append(copy.deepcopy(created))
        return inserted

    def list_actions(
        self,
        user_id: str,
        meeting_id: str | None = None,
        requires_review: bool | None = None,
        created_since: str | None = None,
    ) -> list[Row]:
        self._check("list_actions")
        rows = [
            r
            for r in self.actions.values()
            if r["user_id"] == user_id
            and (meeting_id is None or r["meeting_recording_id"] == meeting_id)
            and (requires_review is None or r.get("requires_review") == requires_review)
            and (created_since is None or r["created_at"] >= created_since)
        ]
        return copy.deepcopy(sorted(rows, key=lambda r: r["created_at"], reverse=True))

    def get_action(self, action_id: str, user_id: str) -> Row | None:
        self._check("get_action")
        row = self.actions.get(action_id)
        if row is None or row["user_id"] != user_id:
            return None
        return copy.deepcopy(row)

    def update_action(
        self, action_id: str, user_id: str, fields: Row, only_if_status: str | None = None
    ) -> Row | None:
        self._check("update_action")
        row = self.actions.get(action_id)
        if row is None or row["user_id"] != user_id:
            return None
        if only_if_status is not None and row.get("status") != only_if_status:
            return None
        row.update(copy.deepcopy(fields))
        return copy.deepcopy(row)

    def delete_action(self, action_id: str, user_id: str) -> bool:
        self._check("delete_action")
        row = self.actions.get(action_id)
        if row is None or row["user_id"] != user_id:
            return False
        del self.actions[action_id]
        return True

    # --- audit / alerts
    def insert_confirmation(self, row: Row) -> Row:
        self._check("insert_confirmation")
        created = self._new(row)
        self.confirmations.append(created)
        return copy.deepcopy(created)

    def list_confirmations(self, user_id: str, action_id: str | None = None) -> list[Row]:
        self._check("list_confirmations")
        rows = [
            r
            for r in self.confirmations
            if r["user_id"] == user_id
            and (action_id is None or r["extracted_action_id"] == action_id)
        ]
        return copy.deepcopy(list(reversed(rows)))

    def insert_alert(self, row: Row) -> Row:
        self._check("insert_alert")
        created = self._new(row)
        self.alerts.append(created)
        return copy.deepcopy(created)

    # --- helpers for tests
    def add_action(self, user_id: str, meeting_id: str, **fields: Any) -> Row:
        row: Row = {
            "user_id": user_id,
            "meeting_recording_id": meeting_id,
            "action_text": "CALL Dr. Smith about the test results",
            "assigned_to": "me",
            "due_context": "by Friday",
            "priority_level": 2,
            "category": "action",
            "validation_score": 100,
            "validation_issues": [],
            "confidence_score": 0.95,
            "requires_review": False,
            "status": "not_started",
            "extraction_method": "automatic",
        }
        row.update(fields)
        return self.insert_actions([row])[0]


class RecordingService:
    """ExtractionService double that records request bodies."""

    def __init__(self, error: Exception | None = None) -> None:
        self.bodies: list[dict[str, Any]] = []
        self.error = error

    async def invoke(self, body: dict[str, Any]) -> None:
        self.bodies.append(body)
        if self.error is not None:
            raise self.error


class FakeClock:
    """Monotonic clock advanced by the fake sleep."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


USER_A = "user-a"
USER_B = "user-b"
