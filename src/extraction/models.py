"""Data models for extracted actions and their review audit trail."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class ActionStatus(StrEnum):
    """Operational status of an extracted action."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (ActionStatus.COMPLETED, ActionStatus.CANCELLED)


class ExtractionMethod(StrEnum):
    AUTOMATIC = "automatic"
    MANUAL = "manual"


class ConfirmationDecision(StrEnum):
    CONFIRMED = "confirmed"
    MODIFIED = "modified"
    REJECTED = "rejected"


class ActionCategory(StrEnum):
    """ACT categories produced by the extraction prompt."""

    ACTION = "action"
    WATCH_OUT = "watch_out"
    DEPENDS_ON = "depends_on"
    NOTE = "note"


# Fields a reviewer may change when confirming an action.
EDITABLE_FIELDS = ("action_text", "assigned_to", "due_context", "priority_level", "category")


def _int_or(value: Any, default: int) -> int:
    return default if value is None else int(value)


def _float_or(value: Any, default: float) -> float:
    return default if value is None else float(value)


@dataclass
class ActionCandidate:
    """A single ACT as returned by the extraction model, before scoring."""

    action_text: str
    category: str = ActionCategory.ACTION
    assigned_to: str | None = None
    due_context: str | None = None
    priority_level: int = 3
    confidence: float = 1.0


@dataclass
class ExtractedAction:
    """A persisted candidate actionable commitment derived from a Meeting."""

    id: str
    user_id: str
    meeting_recording_id: str
    action_text: str
    assigned_to: str | None = None
    due_context: str | None = None
    priority_level: int | None = None
    category: str = ActionCategory.ACTION
    validation_score: int = 100
    validation_issues: list[str] = field(default_factory=list)
    confidence_score: float = 1.0
    requires_review: bool = False
    status: ActionStatus = ActionStatus.NOT_STARTED
    extraction_method: ExtractionMethod = ExtractionMethod.AUTOMATIC
    user_notes: str | None = None
    completion_date: str | None = None
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> ExtractedAction:
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            meeting_recording_id=str(row["meeting_recording_id"]),
            action_text=row.get("action_text") or "",
            assigned_to=row.get("assigned_to"),
            due_context=row.get("due_context"),
            priority_level=row.get("priority_level"),
            category=row.get("category") or ActionCategory.ACTION,
            validation_score=_int_or(row.get("validation_score"), 100),
            validation_issues=list(row.get("validation_issues") or []),
            confidence_score=_float_or(row.get("confidence_score"), 1.0),
            requires_review=bool(row.get("requires_review", False)),
            status=ActionStatus(row.get("status") or "not_started"),
            extraction_method=ExtractionMethod(row.get("extraction_method") or "automatic"),
            user_notes=row.get("user_notes"),
            completion_date=row.get("completion_date"),
            created_at=row.get("created_at"),
        )


@dataclass(frozen=True)
class ActionConfirmation:
    """Append-only audit record of one review decision."""

    id: str
    user_id: str
    extracted_action_id: str
    confirmation_status: ConfirmationDecision
    user_modifications: dict[str, Any] = field(default_factory=dict)
    confirmation_note: str | None = None
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> ActionConfirmation:
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            extracted_action_id=str(row["extracted_action_id"]),
            confirmation_status=ConfirmationDecision(row["confirmation_status"]),
            user_modifications=row.get("user_modifications") or {},
            confirmation_note=row.get("confirmation_note"),
            created_at=row.get("created_at"),
        )


@dataclass(frozen=True)
class StatusUpdate:
    """Result of one action status change."""

    action_id: str
    previous_status: ActionStatus
    new_status: ActionStatus
    timestamp: str
    note: str | None = None
    watchers_notified: bool = False
