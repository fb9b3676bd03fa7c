"""Claude-powered extraction of ACTs (actions, watch-outs, dependencies, notes)."""

from __future__ import annotations

import json
from typing import Any

import anthropic
from anthropic import Anthropic

from src.config import settings
from src.errors import ErrorCause, ExtractionError
from src.extraction.models import ActionCandidate, ActionCategory

# Tool definition for Claude structured output
EXTRACTION_TOOL: dict[str, Any] = {
    "name": "store_extracted_acts",
    "description": (
        "Store the ACTs extracted from a conversation transcript. "
        "Call this once with every extracted item."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "extracted_acts": {
                "type": "array",
                "description": "Actions, watch-outs, dependencies and notes from the conversation.",
                "items": {
                    "type": "object",
                    "properties": {
                        "action_text": {
                            "type": "string",
                            "description": "VERB-first action (e.g. 'CALL Dr. Smith about results').",
                        },
                        "category": {
                            "type": "string",
                            "enum": [c.value for c in ActionCategory],
                        },
                        "assigned_to": {
                            "type": "string",
                            "description": "Who should do this: 'me', a person's name, or 'us'.",
                        },
                        "due_context": {
                            "type": "string",
                            "description": "Time context as spoken (e.g. 'by Friday', 'this week').",
                        },
                        "priority_level": {
                            "type": "integer",
                            "description": "1 (most urgent) to 5 (least urgent).",
                        },
                        "confidence": {
                            "type": "number",
                            "description": "Confidence score 0-1.",
                        },
                    },
                    "required": ["action_text", "category", "priority_level", "confidence"],
                },
            },
        },
        "required": ["extracted_acts"],
    },
}

SYSTEM_PROMPT = (
    "You help people who find it hard to keep track of commitments turn "
    "conversations into clear, doable next steps.\n\n"
    "Extract ACTs from the transcript:\n"
    "- **action**: something someone committed to do, phrased VERB-first.\n"
    "- **watch_out**: a risk or thing to be careful about.\n"
    "- **depends_on**: something that must happen first.\n"
    "- **note**: useful context worth remembering.\n\n"
    "Include who owns each item and any time frame mentioned. "
    "Use the store_extracted_acts tool to return your results. "
    "Only extract items clearly supported by the transcript and assign a "
    "confidence score (0-1) to each."
)


def _context_block(metadata: dict[str, Any] | None) -> str:
    if not metadata:
        return ""
    parts: list[str] = []
    if metadata.get("title"):
        parts.append(f"Title: {metadata['title']}")
    participants = metadata.get("participants") or []
    if participants:
        names = ", ".join(p.get("name", "") for p in participants if isinstance(p, dict))
        parts.append(f"Participants: {names}")
    if metadata.get("context"):
        parts.append(f"Context: {metadata['context']}")
    return "\n".join(parts) + "\n\n" if parts else ""


def extract_from_transcript(
    transcript: str,
    metadata: dict[str, Any] | None = None,
) -> list[ActionCandidate]:
    """Extract ACT candidates from a transcript using Claude.

    Args:
        transcript: The conversation transcript text.
        metadata: Optional job metadata (title, participants, context).

    Returns:
        A list of ActionCandidate instances (unscored).

    Raises:
        ExtractionError: The model call failed; ``cause`` says why.
    """
    if not settings.anthropic_api_key:
        raise ExtractionError(
            "Action extraction is not configured (set ANTHROPIC_API_KEY)",
            ErrorCause.MISCONFIGURATION,
        )

    client = Anthropic(api_key=settings.anthropic_api_key)

    try:
        response = client.messages.create(
            model=settings.llm_model,
            max_tokens=4096,
            system=SYSTEM_PROMPT,
            tools=[EXTRACTION_TOOL],
            tool_choice={"type": "tool", "name": "store_extracted_acts"},
            messages=[
                {
                    "role": "user",
                    "content": (
                        f"{_context_block(metadata)}"
                        f"Extract ACTs from this conversation transcript:\n\n{transcript}"
                    ),
                }
            ],
        )
    except anthropic.AuthenticationError as exc:
        raise ExtractionError(f"LLM not configured: {exc}", ErrorCause.MISCONFIGURATION) from exc
    except anthropic.RateLimitError as exc:
        raise ExtractionError(f"LLM quota exceeded: {exc}", ErrorCause.QUOTA) from exc
    except anthropic.APIError as exc:
        raise ExtractionError(f"LLM unavailable: {exc}") from exc

    # Parse tool_use response
    return _parse_tool_response(response)


def _parse_tool_response(response: Any) -> list[ActionCandidate]:
    """Parse the Claude tool_use response into an ActionCandidate list."""
    candidates: list[ActionCandidate] = []

    for block in response.content:
        if block.type != "tool_use":
            continue
        if block.name != "store_extracted_acts":
            continue

        data = block.input
        if isinstance(data, str):
            data = json.loads(data)

        for act in data.get("extracted_acts", []):
            text = (act.get("action_text") or "").strip()
            if not text:
                continue
            candidates.append(
                ActionCandidate(
                    action_text=text,
                    category=act.get("category") or ActionCategory.ACTION,
                    assigned_to=act.get("assigned_to"),
                    due_context=act.get("due_context"),
                    priority_level=int(act.get("priority_level") or 3),
                    confidence=float(act.get("confidence", 1.0)),
                )
            )

    return candidates
