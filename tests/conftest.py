import os

os.environ.setdefault("ENVIRONMENT", "testing")

from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from stepflow.main import app
from stepflow.services.flow_store import MemoryFlowStore, get_flow_store
from stepflow.services.submission import SubmissionResult, get_consultation_client


class FakeConsultationClient:
    """Records payloads and replies with queued results (success by default)."""

    def __init__(self) -> None:
        self.payloads: List[Dict[str, Any]] = []
        self.results: List[SubmissionResult] = []
        self.error: Optional[Exception] = None

    async def submit(self, payload: Dict[str, Any]) -> SubmissionResult:
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error
        if self.results:
            return self.results.pop(0)
        return SubmissionResult(success=True, status=201, message="")


@pytest.fixture
def store():
    return MemoryFlowStore(ttl_seconds=60)


@pytest.fixture
def consultation_client():
    return FakeConsultationClient()


@pytest.fixture
def client(store, consultation_client):
    app.dependency_overrides[get_flow_store] = lambda: store
    app.dependency_overrides[get_consultation_client] = lambda: consultation_client
    yield TestClient(app)
    app.dependency_overrides.clear()
