"""Tests for the Supabase-backed store (mocked client, no network)."""

from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest
from postgrest import APIError, CountMethod

from src.errors import StoreError
from src.storage import ACTIONS_TABLE, MEETINGS_TABLE, SupabaseStore


def _client(data=None, count=None):
    """Supabase client whose query builder methods all return the same chainable mock."""
    query = MagicMock()
    for method in ("select", "eq", "gte", "order", "insert", "update", "delete"):
        getattr(query, method).return_value = query
    query.execute.return_value = MagicMock(data=data, count=count)
    client = MagicMock()
    client.table.return_value = query
    return client, query


class TestMeetings:
    def test_conditional_update_filters_on_status(self) -> None:
        client, query = _client(data=[{"id": "m1", "processing_status": "completed"}])
        store = SupabaseStore(client, bucket="b")

        row = store.update_meeting("m1", {"processing_status": "completed"}, only_if_status="pending")

        client.table.assert_called_with(MEETINGS_TABLE)
        query.update.assert_called_once_with({"processing_status": "completed"})
        query.eq.assert_any_call("id", "m1")
        query.eq.assert_any_call("processing_status", "pending")
        assert row == {"id": "m1", "processing_status": "completed"}

    def test_conditional_update_no_match_returns_none(self) -> None:
        client, _ = _client(data=[])
        store = SupabaseStore(client, bucket="b")
        assert store.update_meeting("m1", {"transcript": "x"}, only_if_status="pending") is None

    def test_get_meeting_scoped_to_owner(self) -> None:
        client, query = _client(data=[{"id": "m1"}])
        SupabaseStore(client, bucket="b").get_meeting("m1", "u1")
        query.eq.assert_any_call("user_id", "u1")

    def test_create_meeting_requires_row(self) -> None:
        client, _ = _client(data=[])
        with pytest.raises(StoreError):
            SupabaseStore(client, bucket="b").create_meeting({"user_id": "u1"})


class TestActions:
    def test_count_uses_exact_count(self) -> None:
        client, query = _client(data=[], count=4)

        assert SupabaseStore(client, bucket="b").count_actions("m1", "u1") == 4

        client.table.assert_called_with(ACTIONS_TABLE)
        query.select.assert_called_once_with("id", count=CountMethod.exact)
        query.eq.assert_any_call("meeting_recording_id", "m1")
        query.eq.assert_any_call("user_id", "u1")

    def test_insert_is_batched(self) -> None:
        client, query = _client(data=[{"id": "x"}])
        rows = [{"action_text": f"Do thing {i}"} for i in range(120)]

        inserted = SupabaseStore(client, bucket="b").insert_actions(rows)

        assert query.insert.call_count == 3
        assert len(query.insert.call_args_list[0].args[0]) == 50
        assert len(query.insert.call_args_list[2].args[0]) == 20
        assert len(inserted) == 3

    def test_insert_nothing(self) -> None:
        client, query = _client()
        assert SupabaseStore(client, bucket="b").insert_actions([]) == []
        query.insert.assert_not_called()

    def test_list_review_queue(self) -> None:
        client, query = _client(data=[{"id": "a1"}])

        rows = SupabaseStore(client, bucket="b").list_actions("u1", requires_review=True)

        assert rows == [{"id": "a1"}]
        query.eq.assert_any_call("requires_review", True)
        query.order.assert_called_once_with("created_at", desc=True)

    def test_conditional_status_update(self) -> None:
        client, query = _client(data=[])
        store = SupabaseStore(client, bucket="b")

        row = store.update_action("a1", "u1", {"status": "completed"}, only_if_status="in_progress")

        client.table.assert_called_with(ACTIONS_TABLE)
        query.eq.assert_any_call("user_id", "u1")
        query.eq.assert_any_call("status", "in_progress")
        assert row is None

    def test_delete_reports_match(self) -> None:
        client, _ = _client(data=[])
        assert SupabaseStore(client, bucket="b").delete_action("a1", "u1") is False

    @pytest.mark.parametrize(
        "error",
        [
            APIError({"message": "permission denied", "code": "42501"}),
            httpx.ConnectError("connection refused"),
        ],
    )
    def test_client_errors_become_store_errors(self, error) -> None:
        client, query = _client()
        query.execute.side_effect = error

        with pytest.raises(StoreError, match="list actions"):
            SupabaseStore(client, bucket="b").list_actions("u1")


class TestAudio:
    def test_upload_to_bucket(self) -> None:
        client = MagicMock()
        store = SupabaseStore(client, bucket="voice-recordings")

        path = store.upload_audio("u1/a.webm", b"audio")

        assert path == "u1/a.webm"
        client.storage.from_.assert_called_once_with("voice-recordings")
        client.storage.from_.return_value.upload.assert_called_once_with("u1/a.webm", b"audio")

    def test_download_failure(self) -> None:
        client = MagicMock()
        client.storage.from_.return_value.download.side_effect = RuntimeError("not found")

        with pytest.raises(StoreError, match="u1/a.webm"):
            SupabaseStore(client, bucket="b").download_audio("u1/a.webm")
