"""Watcher notification boundary for completed actions.

Delivery is best-effort: callers log and drop notifier failures so that a
delivery fault never blocks the status change it reports.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Protocol

from src.storage import PipelineStore


@dataclass(frozen=True)
class CompletionNotice:
    action_id: str
    user_id: str
    action_title: str
    completion_status: str


class WatcherNotifier(Protocol):
    def notify_completion(self, notice: CompletionNotice) -> None: ...


class AlertTableNotifier:
    """Queues a completion alert row for the support-circle delivery job."""

    def __init__(self, store: PipelineStore) -> None:
        self.store = store

    def notify_completion(self, notice: CompletionNotice) -> None:
        self.store.insert_alert(
            {
                "user_id": notice.user_id,
                "alert_type": "task_completed",
                "title": f"Status Update: {notice.action_title}",
                "message": f"Completed: \"{notice.action_title}\"",
                "severity": "info",
                "related_action_id": notice.action_id,
                "payload": asdict(notice),
            }
        )
