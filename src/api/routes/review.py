"""Review queue endpoints: list, confirm (with edits), reject, confirm all."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from src.api.deps import Config, Store, UserId
from src.api.models import (
    ActionModel,
    BulkConfirmResponse,
    ConfirmationModel,
    ConfirmRequest,
    RejectRequest,
)
from src.errors import NotFoundError, ReviewError, StoreError
from src.review.queue import ReviewQueue

router = APIRouter()


@router.get("/api/review", response_model=list[ActionModel])
async def list_review_queue(user_id: UserId, store: Store, config: Config) -> list[ActionModel]:
    """Actions needing review for the caller, most recent first."""
    queue = ReviewQueue(store, audit_rejections=config.audit_rejections)
    try:
        actions = queue.list_pending(user_id)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return [ActionModel.from_action(a) for a in actions]


@router.get("/api/review/history", response_model=list[ConfirmationModel])
async def review_history(
    user_id: UserId, store: Store, action_id: str | None = None
) -> list[ConfirmationModel]:
    """Past confirm/modify/reject decisions, optionally for one action."""
    try:
        records = ReviewQueue(store).history(user_id, action_id)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return [
        ConfirmationModel(
            id=r.id,
            extracted_action_id=r.extracted_action_id,
            confirmation_status=r.confirmation_status,
            user_modifications=r.user_modifications,
            confirmation_note=r.confirmation_note,
            created_at=r.created_at,
        )
        for r in records
    ]


@router.post("/api/review/confirm-all", response_model=BulkConfirmResponse)
async def confirm_all(user_id: UserId, store: Store, config: Config) -> BulkConfirmResponse:
    queue = ReviewQueue(store, audit_rejections=config.audit_rejections)
    try:
        result = queue.bulk_confirm(user_id)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return BulkConfirmResponse(confirmed=result.confirmed, failed=result.failed)


@router.post("/api/review/{action_id}/confirm", response_model=ActionModel)
async def confirm_action(
    action_id: str,
    user_id: UserId,
    store: Store,
    config: Config,
    body: ConfirmRequest | None = None,
) -> ActionModel:
    """Confirm an action; supplied edits make the decision ``modified``."""
    body = body or ConfirmRequest()
    edits = body.edits.model_dump(exclude_unset=True) if body.edits else None
    queue = ReviewQueue(store, audit_rejections=config.audit_rejections)
    try:
        action = queue.confirm(user_id, action_id, edits=edits, note=body.note)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ReviewError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return ActionModel.from_action(action)


@router.post("/api/review/{action_id}/reject", status_code=204)
async def reject_action(
    action_id: str,
    user_id: UserId,
    store: Store,
    config: Config,
    body: RejectRequest | None = None,
) -> None:
    queue = ReviewQueue(store, audit_rejections=config.audit_rejections)
    try:
        queue.reject(user_id, action_id, note=body.note if body else None)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ReviewError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
