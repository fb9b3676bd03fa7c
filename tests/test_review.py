"""Tests for the review queue: confirm, edit, reject and bulk confirm."""

from __future__ import annotations

import pytest

from src.errors import NotFoundError, ReviewError
from src.extraction.models import ConfirmationDecision, ExtractionMethod
from src.review.queue import ReviewQueue
from tests.fakes import USER_A, USER_B


def _flagged(store, meeting_id="m1", **fields):
    defaults = {
        "action_text": "Maybe look into the insurance forms",
        "assigned_to": None,
        "due_context": None,
        "validation_score": 45,
        "validation_issues": ["Action should start with a clear verb", "No one is assigned"],
        "confidence_score": 0.5,
        "requires_review": True,
    }
    defaults.update(fields)
    return store.add_action(USER_A, meeting_id, **defaults)


class TestListPending:
    def test_only_flagged_actions_for_owner_newest_first(self, store) -> None:
        first = _flagged(store)
        store.add_action(USER_A, "m1")  # already validated
        second = _flagged(store)
        store.add_action(USER_B, "m2", requires_review=True)

        pending = ReviewQueue(store).list_pending(USER_A)

        assert [a.id for a in pending] == [second["id"], first["id"]]


class TestConfirm:
    def test_confirm_with_edits(self, store) -> None:
        action = _flagged(store)
        edits = {"action_text": "FILL OUT the insurance forms", "assigned_to": "me"}

        confirmed = ReviewQueue(store).confirm(USER_A, action["id"], edits=edits)

        assert confirmed.action_text == "FILL OUT the insurance forms"
        assert confirmed.assigned_to == "me"
        assert confirmed.validation_score == 100
        assert confirmed.validation_issues == []
        assert confirmed.requires_review is False
        assert confirmed.extraction_method == ExtractionMethod.MANUAL

        assert len(store.confirmations) == 1
        record = store.confirmations[0]
        assert record["confirmation_status"] == ConfirmationDecision.MODIFIED
        assert record["user_modifications"] == edits
        assert record["extracted_action_id"] == action["id"]

    def test_confirm_without_edits_records_confirmed(self, store) -> None:
        action = _flagged(store)
        ReviewQueue(store).confirm(USER_A, action["id"], note="looks right")

        record = store.confirmations[0]
        assert record["confirmation_status"] == "confirmed"
        assert record["user_modifications"] == {}
        assert record["confirmation_note"] == "looks right"
        assert store.actions[action["id"]]["requires_review"] is False

    def test_confirm_twice_is_a_noop(self, store) -> None:
        action = _flagged(store)
        queue = ReviewQueue(store)
        first = queue.confirm(USER_A, action["id"])
        second = queue.confirm(USER_A, action["id"])

        assert len(store.confirmations) == 1
        assert second.validation_score == first.validation_score == 100
        assert second.requires_review is False

    def test_unknown_edit_field_rejected(self, store) -> None:
        action = _flagged(store)
        with pytest.raises(ValueError):
            ReviewQueue(store).confirm(USER_A, action["id"], edits={"status": "completed"})
        assert store.actions[action["id"]]["requires_review"] is True

    def test_explicit_null_clears_optional_field(self, store) -> None:
        action = _flagged(store, assigned_to="Sam")

        confirmed = ReviewQueue(store).confirm(USER_A, action["id"], edits={"assigned_to": None})

        assert confirmed.assigned_to is None
        assert store.confirmations[0]["confirmation_status"] == ConfirmationDecision.MODIFIED

    def test_required_field_cannot_be_cleared(self, store) -> None:
        action = _flagged(store)
        with pytest.raises(ValueError):
            ReviewQueue(store).confirm(USER_A, action["id"], edits={"category": None})
        assert store.actions[action["id"]]["category"] is not None

    def test_other_owner_cannot_confirm(self, store) -> None:
        action = _flagged(store)
        with pytest.raises(NotFoundError):
            ReviewQueue(store).confirm(USER_B, action["id"])
        assert store.actions[action["id"]]["requires_review"] is True
        assert store.confirmations == []

    def test_update_failure_keeps_prior_state(self, store) -> None:
        action = _flagged(store)
        store.fail_on.add("update_action")

        with pytest.raises(ReviewError) as exc_info:
            ReviewQueue(store).confirm(USER_A, action["id"], edits={"assigned_to": "me"})

        assert exc_info.value.action_id == action["id"]
        row = store.actions[action["id"]]
        assert row["requires_review"] is True
        assert row["assigned_to"] is None
        assert store.confirmations == []

    def test_audit_failure_restores_action(self, store) -> None:
        action = _flagged(store)
        store.fail_on.add("insert_confirmation")

        with pytest.raises(ReviewError):
            ReviewQueue(store).confirm(USER_A, action["id"], edits={"assigned_to": "me"})

        row = store.actions[action["id"]]
        assert row["requires_review"] is True
        assert row["validation_score"] == 45
        assert row["assigned_to"] is None
        assert row["extraction_method"] == "automatic"


class TestReject:
    def test_reject_records_audit_then_deletes(self, store) -> None:
        action = _flagged(store)

        ReviewQueue(store).reject(USER_A, action["id"], note="not mine")

        assert action["id"] not in store.actions
        assert len(store.confirmations) == 1
        record = store.confirmations[0]
        assert record["confirmation_status"] == "rejected"
        assert record["confirmation_note"] == "not mine"
        assert record["user_modifications"]["rejected_action"]["action_text"] == (
            "Maybe look into the insurance forms"
        )

    def test_reject_without_audit(self, store) -> None:
        action = _flagged(store)
        ReviewQueue(store, audit_rejections=False).reject(USER_A, action["id"])

        assert action["id"] not in store.actions
        assert store.confirmations == []

    def test_audit_failure_keeps_action(self, store) -> None:
        action = _flagged(store)
        store.fail_on.add("insert_confirmation")

        with pytest.raises(ReviewError):
            ReviewQueue(store).reject(USER_A, action["id"])
        assert action["id"] in store.actions

    def test_other_owner_cannot_reject(self, store) -> None:
        action = _flagged(store)
        with pytest.raises(NotFoundError):
            ReviewQueue(store).reject(USER_B, action["id"])
        assert action["id"] in store.actions


class TestBulkConfirm:
    def test_confirms_everything_pending(self, store) -> None:
        ids = {_flagged(store)["id"] for _ in range(3)}

        result = ReviewQueue(store).bulk_confirm(USER_A)

        assert set(result.confirmed) == ids
        assert result.failed == {}
        assert ReviewQueue(store).list_pending(USER_A) == []
        assert len(store.confirmations) == 3

    def test_failures_are_reported_per_item(self, store) -> None:
        _flagged(store)
        _flagged(store)
        store.fail_on.add("insert_confirmation")

        result = ReviewQueue(store).bulk_confirm(USER_A)

        assert result.confirmed == []
        assert len(result.failed) == 2
        assert len(ReviewQueue(store).list_pending(USER_A)) == 2


class TestHistory:
    def test_decisions_newest_first_including_rejections(self, store) -> None:
        kept = _flagged(store)
        dropped = _flagged(store)
        queue = ReviewQueue(store)
        queue.confirm(USER_A, kept["id"], edits={"assigned_to": "me"})
        queue.reject(USER_A, dropped["id"])

        history = queue.history(USER_A)

        assert [h.confirmation_status for h in history] == [
            ConfirmationDecision.REJECTED,
            ConfirmationDecision.MODIFIED,
        ]
        assert history[0].extracted_action_id == dropped["id"]
        assert queue.history(USER_B) == []

    def test_filtered_by_action(self, store) -> None:
        first = _flagged(store)
        second = _flagged(store)
        queue = ReviewQueue(store)
        queue.confirm(USER_A, first["id"])
        queue.confirm(USER_A, second["id"])

        history = queue.history(USER_A, second["id"])

        assert len(history) == 1
        assert history[0].extracted_action_id == second["id"]
