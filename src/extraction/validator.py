"""Quality scoring for extracted ACTs and the review-gating rule built on it."""

from __future__ import annotations

import re
from typing import Any

from src.extraction.models import ActionCandidate, ActionCategory, ActionStatus, ExtractionMethod

MIN_ACTION_WORDS = 3
MAX_ACTION_WORDS = 30

# Deductions per failed SMART check; a candidate that passes all keeps 100.
_PENALTIES = {
    "verb_first": 20,
    "too_short": 20,
    "too_long": 10,
    "no_owner": 15,
    "no_time_context": 15,
    "bad_priority": 10,
    "bad_category": 10,
}

_VAGUE_OPENERS = {"maybe", "probably", "should", "might", "possibly", "perhaps", "try", "think"}
_WORD = re.compile(r"[A-Za-z']+")


def score_action(candidate: ActionCandidate) -> tuple[int, list[str]]:
    """Score one candidate 0-100 and list the issues that cost points."""
    issues: list[str] = []
    penalty = 0
    words = _WORD.findall(candidate.action_text or "")

    if not words:
        return 0, ["Action text is empty"]

    first = words[0].lower()
    if first in _VAGUE_OPENERS:
        issues.append("Action should start with a clear verb")
        penalty += _PENALTIES["verb_first"]
    if len(words) < MIN_ACTION_WORDS:
        issues.append("Action is too vague to act on")
        penalty += _PENALTIES["too_short"]
    if len(words) > MAX_ACTION_WORDS:
        issues.append("Action is too long; split it into smaller steps")
        penalty += _PENALTIES["too_long"]
    if not (candidate.assigned_to or "").strip():
        issues.append("No one is assigned to this action")
        penalty += _PENALTIES["no_owner"]
    # Only actions need a time context; watch-outs and notes do not.
    if candidate.category == ActionCategory.ACTION and not (candidate.due_context or "").strip():
        issues.append("No time frame mentioned")
        penalty += _PENALTIES["no_time_context"]
    if not 1 <= candidate.priority_level <= 5:
        issues.append("Priority must be between 1 and 5")
        penalty += _PENALTIES["bad_priority"]
    if candidate.category not in {c.value for c in ActionCategory}:
        issues.append(f"Unknown category '{candidate.category}'")
        penalty += _PENALTIES["bad_category"]

    return max(0, 100 - penalty), issues


def requires_review(
    validation_score: int,
    validation_issues: list[str],
    confidence_score: float,
    confidence_threshold: float,
) -> bool:
    """An action needs human review unless it is fully validated and confident."""
    return validation_score < 100 or bool(validation_issues) or confidence_score < confidence_threshold


def build_action_rows(
    user_id: str,
    meeting_id: str,
    candidates: list[ActionCandidate],
    confidence_threshold: float,
) -> list[dict[str, Any]]:
    """Score candidates and shape them as ``extracted_actions`` rows."""
    rows: list[dict[str, Any]] = []
    for candidate in candidates:
        score, issues = score_action(candidate)
        confidence = min(max(candidate.confidence, 0.0), 1.0)
        rows.append(
            {
                "user_id": user_id,
                "meeting_recording_id": meeting_id,
                "action_text": candidate.action_text,
                "assigned_to": candidate.assigned_to,
                "due_context": candidate.due_context,
                "priority_level": min(max(candidate.priority_level, 1), 5),
                "category": candidate.category,
                "validation_score": score,
                "validation_issues": issues,
                "confidence_score": confidence,
                "requires_review": requires_review(score, issues, confidence, confidence_threshold),
                "status": ActionStatus.NOT_STARTED.value,
                "extraction_method": ExtractionMethod.AUTOMATIC.value,
            }
        )
    return rows
