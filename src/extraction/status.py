"""Action status workflow: not_started -> in_progress -> completed, with hold/cancel.

``completed`` and ``cancelled`` are terminal. Completion is the only change
that reaches the watcher notifier.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from src.errors import InvalidTransitionError, NotFoundError
from src.extraction.models import ActionStatus, ExtractedAction, StatusUpdate
from src.notifications import CompletionNotice, WatcherNotifier
from src.storage import PipelineStore

logger = logging.getLogger(__name__)

TIMEFRAME_DAYS = {"week": 7, "month": 30, "quarter": 90}


class ActionStatusService:
    def __init__(self, store: PipelineStore, notifier: WatcherNotifier | None = None) -> None:
        self.store = store
        self.notifier = notifier

    def update_status(
        self,
        user_id: str,
        action_id: str,
        new_status: ActionStatus | str,
        note: str | None = None,
        notify_watchers: bool = True,
    ) -> StatusUpdate:
        """Move an action to ``new_status``.

        Raises:
            NotFoundError: No such action for this owner.
            InvalidTransitionError: The action is already completed or cancelled.
        """
        new_status = ActionStatus(new_status)
        row = self.store.get_action(action_id, user_id)
        if row is None:
            raise NotFoundError(f"Action {action_id} not found")
        action = ExtractedAction.from_row(row)
        previous = action.status

        if previous.is_terminal:
            raise InvalidTransitionError(
                f"Action {action_id} is {previous.value} and cannot become {new_status.value}"
            )

        now = datetime.now(UTC)
        fields: dict[str, Any] = {"status": new_status.value, "updated_at": now.isoformat()}
        if note is not None:
            fields["user_notes"] = note
        if new_status is ActionStatus.COMPLETED:
            fields["completion_date"] = now.date().isoformat()

        updated = self.store.update_action(
            action_id, user_id, fields, only_if_status=previous.value
        )
        if updated is None:
            if self.store.get_action(action_id, user_id) is None:
                raise NotFoundError(f"Action {action_id} not found")
            raise InvalidTransitionError(
                f"Action {action_id} changed from {previous.value} while being updated"
            )
        logger.info("Action %s: %s -> %s", action_id, previous.value, new_status.value)

        notified = False
        if new_status is ActionStatus.COMPLETED and notify_watchers:
            notified = self._notify(action)

        return StatusUpdate(
            action_id=action_id,
            previous_status=previous,
            new_status=new_status,
            timestamp=now.isoformat(),
            note=note,
            watchers_notified=notified,
        )

    def _notify(self, action: ExtractedAction) -> bool:
        if self.notifier is None:
            return False
        notice = CompletionNotice(
            action_id=action.id,
            user_id=action.user_id,
            action_title=action.action_text,
            completion_status=ActionStatus.COMPLETED.value,
        )
        try:
            self.notifier.notify_completion(notice)
        except Exception:
            logger.exception("Failed to notify watchers for action %s", action.id)
            return False
        return True

    def progress_summary(self, user_id: str, timeframe: str = "week") -> dict[str, Any]:
        """Per-status counts and completion rate for actions created in ``timeframe``."""
        if timeframe not in TIMEFRAME_DAYS:
            raise ValueError(f"Unknown timeframe: {timeframe}")
        since = datetime.now(UTC) - timedelta(days=TIMEFRAME_DAYS[timeframe])
        rows = self.store.list_actions(user_id, created_since=since.isoformat())

        breakdown: dict[str, int] = {}
        for row in rows:
            status = row.get("status") or ActionStatus.NOT_STARTED.value
            breakdown[status] = breakdown.get(status, 0) + 1

        total = len(rows)
        completed = breakdown.get(ActionStatus.COMPLETED.value, 0)
        return {
            "total_actions": total,
            "completed_actions": completed,
            "completion_rate": round(completed / total * 100) if total else 0,
            "status_breakdown": breakdown,
            "timeframe": timeframe,
        }
