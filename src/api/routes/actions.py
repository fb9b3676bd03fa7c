"""Action status endpoints."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, HTTPException

from src.api.deps import Store, UserId
from src.api.models import ProgressSummaryResponse, StatusUpdateRequest, StatusUpdateResponse
from src.errors import InvalidTransitionError, NotFoundError, StoreError
from src.extraction.status import ActionStatusService
from src.notifications import AlertTableNotifier

router = APIRouter()


@router.get("/api/actions/progress", response_model=ProgressSummaryResponse)
async def action_progress(
    user_id: UserId,
    store: Store,
    timeframe: Literal["week", "month", "quarter"] = "week",
) -> ProgressSummaryResponse:
    """Completion rate and per-status counts for recently created actions."""
    try:
        summary = ActionStatusService(store).progress_summary(user_id, timeframe)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return ProgressSummaryResponse(**summary)


@router.patch("/api/actions/{action_id}/status", response_model=StatusUpdateResponse)
async def update_action_status(
    action_id: str,
    body: StatusUpdateRequest,
    user_id: UserId,
    store: Store,
) -> StatusUpdateResponse:
    """Change an action's status. Completion notifies watchers (best-effort)."""
    service = ActionStatusService(store, AlertTableNotifier(store))
    try:
        update = service.update_status(
            user_id,
            action_id,
            body.status,
            note=body.note,
            notify_watchers=body.notify_watchers,
        )
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    return StatusUpdateResponse(
        action_id=update.action_id,
        previous_status=update.previous_status,
        new_status=update.new_status,
        timestamp=update.timestamp,
        note=update.note,
        watchers_notified=update.watchers_notified,
    )
