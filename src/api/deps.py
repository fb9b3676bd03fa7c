"""Shared FastAPI dependencies: owner identity, store and pipeline config.

Authentication is handled upstream; the gateway forwards the authenticated
owner as the ``X-User-Id`` header.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, HTTPException

from src.config import settings
from src.pipeline.dispatcher import ExtractionService, HttpExtractionService
from src.pipeline_config import PipelineConfig
from src.storage import PipelineStore, SupabaseStore


def get_user_id(x_user_id: Annotated[str | None, Header()] = None) -> str:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id


def get_store() -> PipelineStore:
    return SupabaseStore()


def get_config() -> PipelineConfig:
    return PipelineConfig.from_settings(settings)


UserId = Annotated[str, Depends(get_user_id)]
Store = Annotated[PipelineStore, Depends(get_store)]
Config = Annotated[PipelineConfig, Depends(get_config)]


def get_extraction_service() -> ExtractionService:
    return HttpExtractionService()


Service = Annotated[ExtractionService, Depends(get_extraction_service)]
