"""Supabase storage for recordings, meeting jobs, extracted actions and confirmations.

Every action and confirmation query is filtered by ``user_id``; nothing in
this module reads across owners.
"""

from __future__ import annotations

import os
from typing import Any, Protocol, cast

import httpx
from postgrest import APIError, CountMethod
from supabase import Client, create_client

from src.config import settings
from src.errors import StoreError

Row = dict[str, Any]

RECORDINGS_TABLE = "voice_recordings"
MEETINGS_TABLE = "meeting_recordings"
ACTIONS_TABLE = "extracted_actions"
CONFIRMATIONS_TABLE = "action_confirmations"
ALERTS_TABLE = "accountability_alerts"


class PipelineStore(Protocol):
    """CRUD contract the pipeline needs from the durable store."""

    def upload_audio(self, path: str, payload: bytes) -> str: ...

    def download_audio(self, path: str) -> bytes: ...

    def create_recording(self, row: Row) -> Row: ...

    def get_recording(self, recording_id: str, user_id: str) -> Row | None: ...

    def create_meeting(self, row: Row) -> Row: ...

    def get_meeting(self, meeting_id: str, user_id: str | None = None) -> Row | None: ...

    def list_meetings(self, user_id: str) -> list[Row]: ...

    def update_meeting(
        self, meeting_id: str, fields: Row, only_if_status: str | None = None
    ) -> Row | None: ...

    def count_actions(self, meeting_id: str, user_id: str) -> int: ...

    def insert_actions(self, rows: list[Row]) -> list[Row]: ...

    def list_actions(
        self,
        user_id: str,
        meeting_id: str | None = None,
        requires_review: bool | None = None,
        created_since: str | None = None,
    ) -> list[Row]: ...

    def get_action(self, action_id: str, user_id: str) -> Row | None: ...

    def update_action(
        self, action_id: str, user_id: str, fields: Row, only_if_status: str | None = None
    ) -> Row | None: ...

    def delete_action(self, action_id: str, user_id: str) -> bool: ...

    def insert_confirmation(self, row: Row) -> Row: ...

    def list_confirmations(self, user_id: str, action_id: str | None = None) -> list[Row]: ...

    def insert_alert(self, row: Row) -> Row: ...


def get_supabase_client() -> Client:
    """Create and return a Supabase client from environment variables."""
    return create_client(
        os.getenv("SUPABASE_URL", settings.supabase_url),
        os.getenv("SUPABASE_KEY", settings.supabase_key),
    )


def _rows(result: Any) -> list[Row]:
    # Supabase .data is typed as JSON (broad union); cast to concrete type.
    return cast(list[Row], result.data or [])


class SupabaseStore:
    """PipelineStore backed by Supabase tables and a storage bucket."""

    def __init__(self, client: Client | None = None, bucket: str | None = None) -> None:
        self.client = client or get_supabase_client()
        self.bucket = bucket or settings.recordings_bucket

    def _execute(self, query: Any, what: str) -> Any:
        try:
            return query.execute()
        except (APIError, httpx.HTTPError) as exc:
            raise StoreError(f"Failed to {what}: {exc}") from exc

    def _first(self, query: Any, what: str) -> Row | None:
        rows = _rows(self._execute(query, what))
        return rows[0] if rows else None

    # --- audio ---------------------------------------------------------------

    def upload_audio(self, path: str, payload: bytes) -> str:
        try:
            self.client.storage.from_(self.bucket).upload(path, payload)
        except Exception as exc:
            raise StoreError(f"Failed to upload audio to {path}: {exc}") from exc
        return path

    def download_audio(self, path: str) -> bytes:
        try:
            return self.client.storage.from_(self.bucket).download(path)
        except Exception as exc:
            raise StoreError(f"Failed to download audio from {path}: {exc}") from exc

    # --- recordings / meetings -----------------------------------------------

    def create_recording(self, row: Row) -> Row:
        created = self._first(
            self.client.table(RECORDINGS_TABLE).insert(row), "create recording"
        )
        if created is None:
            raise StoreError("Recording insert returned no row")
        return created

    def get_recording(self, recording_id: str, user_id: str) -> Row | None:
        query = (
            self.client.table(RECORDINGS_TABLE)
            .select("*")
            .eq("id", recording_id)
            .eq("user_id", user_id)
        )
        return self._first(query, f"read recording {recording_id}")

    def create_meeting(self, row: Row) -> Row:
        created = self._first(self.client.table(MEETINGS_TABLE).insert(row), "create meeting")
        if created is None:
            raise StoreError("Meeting insert returned no row")
        return created

    def get_meeting(self, meeting_id: str, user_id: str | None = None) -> Row | None:
        query = self.client.table(MEETINGS_TABLE).select("*").eq("id", meeting_id)
        if user_id is not None:
            query = query.eq("user_id", user_id)
        return self._first(query, f"read meeting {meeting_id}")

    def list_meetings(self, user_id: str) -> list[Row]:
        query = (
            self.client.table(MEETINGS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
        )
        return _rows(self._execute(query, "list meetings"))

    def update_meeting(
        self, meeting_id: str, fields: Row, only_if_status: str | None = None
    ) -> Row | None:
        """Update a meeting; with ``only_if_status`` the write is conditional.

        Returns the updated row, or None when no row matched.
        """
        query = self.client.table(MEETINGS_TABLE).update(fields).eq("id", meeting_id)
        if only_if_status is not None:
            query = query.eq("processing_status", only_if_status)
        return self._first(query, f"update meeting {meeting_id}")

    # --- actions -------------------------------------------------------------

    def count_actions(self, meeting_id: str, user_id: str) -> int:
        query = (
            self.client.table(ACTIONS_TABLE)
            .select("id", count=CountMethod.exact)
            .eq("meeting_recording_id", meeting_id)
            .eq("user_id", user_id)
        )
        return self._execute(query, f"count actions for {meeting_id}").count or 0

    def insert_actions(self, rows: list[Row]) -> list[Row]:
        if not rows:
            return []
        inserted: list[Row] = []
        # Insert in batches of 50
        batch_size = 50
        for i in range(0, len(rows), batch_size):
            result = self._execute(
                self.client.table(ACTIONS_TABLE).insert(rows[i : i + batch_size]),
                "insert actions",
            )
            inserted.extend(_rows(result))
        return inserted

    def list_actions(
        self,
        user_id: str,
        meeting_id: str | None = None,
        requires_review: bool | None = None,
        created_since: str | None = None,
    ) -> list[Row]:
        query = self.client.table(ACTIONS_TABLE).select("*").eq("user_id", user_id)
        if meeting_id is not None:
            query = query.eq("meeting_recording_id", meeting_id)
        if requires_review is not None:
            query = query.eq("requires_review", requires_review)
        if created_since is not None:
            query = query.gte("created_at", created_since)
        query = query.order("created_at", desc=True)
        return _rows(self._execute(query, "list actions"))

    def get_action(self, action_id: str, user_id: str) -> Row | None:
        query = (
            self.client.table(ACTIONS_TABLE).select("*").eq("id", action_id).eq("user_id", user_id)
        )
        return self._first(query, f"read action {action_id}")

    def update_action(
        self, action_id: str, user_id: str, fields: Row, only_if_status: str | None = None
    ) -> Row | None:
        query = (
            self.client.table(ACTIONS_TABLE)
            .update(fields)
            .eq("id", action_id)
            .eq("user_id", user_id)
        )
        if only_if_status is not None:
            query = query.eq("status", only_if_status)
        return self._first(query, f"update action {action_id}")

    def delete_action(self, action_id: str, user_id: str) -> bool:
        query = self.client.table(ACTIONS_TABLE).delete().eq("id", action_id).eq("user_id", user_id)
        return bool(_rows(self._execute(query, f"delete action {action_id}")))

    # --- audit / alerts ------------------------------------------------------

    def insert_confirmation(self, row: Row) -> Row:
        created = self._first(
            self.client.table(CONFIRMATIONS_TABLE).insert(row), "record confirmation"
        )
        if created is None:
            raise StoreError("Confirmation insert returned no row")
        return created

    def list_confirmations(self, user_id: str, action_id: str | None = None) -> list[Row]:
        query = self.client.table(CONFIRMATIONS_TABLE).select("*").eq("user_id", user_id)
        if action_id is not None:
            query = query.eq("extracted_action_id", action_id)
        query = query.order("created_at", desc=True)
        return _rows(self._execute(query, "list confirmations"))

    def insert_alert(self, row: Row) -> Row:
        created = self._first(self.client.table(ALERTS_TABLE).insert(row), "insert alert")
        if created is None:
            raise StoreError("Alert insert returned no row")
        return created
