"""Shared fixtures: an in-memory store, a recording extraction service and a fake clock."""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from src.api.deps import get_extraction_service, get_store
from src.api.main import app
from src.pipeline.models import MeetingMetadata, Participant
from src.pipeline_config import PipelineConfig
from tests.fakes import FakeClock, FakeStore, RecordingService


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def service() -> RecordingService:
    return RecordingService()


@pytest.fixture
def failing_service() -> RecordingService:
    request = httpx.Request("POST", "http://extraction.test/api/jobs/process")
    return RecordingService(error=httpx.ConnectError("connection refused", request=request))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> PipelineConfig:
    return PipelineConfig()


@pytest.fixture
def metadata() -> MeetingMetadata:
    return MeetingMetadata(
        title="Check-in with Sam",
        meeting_type="personal",
        participants=[Participant(name="Sam", relationship="partner")],
        context="Weekly planning",
    )


@pytest.fixture
def client(store: FakeStore, service: RecordingService) -> TestClient:
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_extraction_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()
