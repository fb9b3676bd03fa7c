"""Review queue: human confirm / edit / reject of actions flagged for review.

A human decision is definitionally full validation, so confirming clears the
review flag, forces ``validation_score`` to 100 and marks the action manual.
Each decision writes exactly one ``action_confirmations`` audit row.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from src.errors import NotFoundError, ReviewError, StoreError
from src.extraction.models import (
    EDITABLE_FIELDS,
    ActionConfirmation,
    ConfirmationDecision,
    ExtractedAction,
    ExtractionMethod,
)
from src.storage import PipelineStore, Row

logger = logging.getLogger(__name__)


@dataclass
class BulkConfirmResult:
    confirmed: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


# Nullable columns may be cleared by an explicit null; these may not.
REQUIRED_FIELDS = ("action_text", "category")


def _clean_edits(edits: dict[str, Any] | None) -> dict[str, Any]:
    if not edits:
        return {}
    unknown = set(edits) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValueError(f"Fields cannot be edited during review: {sorted(unknown)}")
    cleared = [key for key in REQUIRED_FIELDS if key in edits and edits[key] is None]
    if cleared:
        raise ValueError(f"Fields cannot be cleared: {cleared}")
    return dict(edits)


class ReviewQueue:
    def __init__(self, store: PipelineStore, audit_rejections: bool = True) -> None:
        self.store = store
        self.audit_rejections = audit_rejections

    def list_pending(self, user_id: str) -> list[ExtractedAction]:
        """Actions awaiting review for this owner, most recent first."""
        rows = self.store.list_actions(user_id, requires_review=True)
        return [ExtractedAction.from_row(r) for r in rows]

    def history(self, user_id: str, action_id: str | None = None) -> list[ActionConfirmation]:
        """Review decisions for this owner, newest first. Rejections stay listed after delete."""
        rows = self.store.list_confirmations(user_id, action_id)
        return [ActionConfirmation.from_row(r) for r in rows]

    def _load(self, user_id: str, action_id: str) -> Row:
        try:
            row = self.store.get_action(action_id, user_id)
        except StoreError as exc:
            raise ReviewError(action_id, str(exc)) from exc
        if row is None:
            raise NotFoundError(f"Action {action_id} not found")
        return row

    def _record(
        self,
        user_id: str,
        action_id: str,
        decision: ConfirmationDecision,
        modifications: dict[str, Any],
        note: str | None,
    ) -> ActionConfirmation:
        row = self.store.insert_confirmation(
            {
                "user_id": user_id,
                "extracted_action_id": action_id,
                "confirmation_status": decision.value,
                "user_modifications": modifications,
                "confirmation_note": note,
                "created_at": datetime.now(UTC).isoformat(),
            }
        )
        return ActionConfirmation.from_row(row)

    def confirm(
        self,
        user_id: str,
        action_id: str,
        edits: dict[str, Any] | None = None,
        note: str | None = None,
    ) -> ExtractedAction:
        """Confirm an action, optionally applying reviewer edits.

        Confirming an already-confirmed action without edits is a no-op.

        Raises:
            NotFoundError: No such action for this owner.
            ReviewError: The store rejected the write; the action is unchanged.
        """
        changes = _clean_edits(edits)
        row = self._load(user_id, action_id)
        current = ExtractedAction.from_row(row)

        if not changes and not current.requires_review and current.validation_score == 100:
            return current

        fields: Row = {
            **changes,
            "requires_review": False,
            "validation_score": 100,
            "validation_issues": [],
            "extraction_method": ExtractionMethod.MANUAL.value,
        }
        if note is not None:
            fields["user_notes"] = note
        previous = {key: row.get(key) for key in fields}

        try:
            updated = self.store.update_action(action_id, user_id, fields)
        except StoreError as exc:
            raise ReviewError(action_id, f"Failed to confirm action: {exc}") from exc
        if updated is None:
            raise NotFoundError(f"Action {action_id} not found")

        decision = ConfirmationDecision.MODIFIED if changes else ConfirmationDecision.CONFIRMED
        try:
            self._record(user_id, action_id, decision, changes, note)
        except StoreError as exc:
            # Put the action back so it stays in the queue without an audit gap.
            try:
                self.store.update_action(action_id, user_id, previous)
            except StoreError:
                logger.exception("Could not restore action %s after audit failure", action_id)
            raise ReviewError(action_id, f"Failed to record confirmation: {exc}") from exc

        logger.info("Action %s %s by %s", action_id, decision.value, user_id)
        return ExtractedAction.from_row(updated)

    def reject(self, user_id: str, action_id: str, note: str | None = None) -> None:
        """Delete an action, recording a ``rejected`` decision first when auditing."""
        row = self._load(user_id, action_id)

        if self.audit_rejections:
            snapshot = {key: row.get(key) for key in EDITABLE_FIELDS}
            try:
                self._record(
                    user_id,
                    action_id,
                    ConfirmationDecision.REJECTED,
                    {"rejected_action": snapshot},
                    note,
                )
            except StoreError as exc:
                raise ReviewError(action_id, f"Failed to record rejection: {exc}") from exc

        try:
            deleted = self.store.delete_action(action_id, user_id)
        except StoreError as exc:
            raise ReviewError(action_id, f"Failed to reject action: {exc}") from exc
        if not deleted:
            raise NotFoundError(f"Action {action_id} not found")
        logger.info("Action %s rejected by %s", action_id, user_id)

    def bulk_confirm(self, user_id: str) -> BulkConfirmResult:
        """Confirm every listed action without edits; failures are per item."""
        result = BulkConfirmResult()
        for action in self.list_pending(user_id):
            try:
                self.confirm(user_id, action.id)
            except (ReviewError, NotFoundError) as exc:
                result.failed[action.id] = str(exc)
            else:
                result.confirmed.append(action.id)
        return result
