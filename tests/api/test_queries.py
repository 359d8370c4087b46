"""
Test suite for the query routing endpoint.

System role: Verification of the chat query dispatch HTTP API
"""

import uuid
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from retrieval_backend.api.deps import get_query_routing_service, get_settings_dependency
from retrieval_backend.api.main import create_app
from retrieval_backend.application.services.query_routing_service import DispatchDecision
from retrieval_backend.boundary.db.base import utcnow
from retrieval_backend.boundary.db.models.job_model import JobModel, JobStatus, JobType
from retrieval_backend.configs import Settings
from retrieval_backend.configs.jobs import JobSettings
from retrieval_backend.core.exceptions import ValidationError
from retrieval_backend.models.query_cache import EnhancementData

SECRET = "s3cret"
AUTH = {"Authorization": f"Bearer {SECRET}"}

BODY = {
    "message": "Compare article 5 with article 7",
    "analysis": {"intent": "comparison", "comparativeTerms": ["article 5", "article 7"]},
    "enhancement": {"enhanced": "compare article 5 with article 7", "articleNumber": 5},
    "conversationId": "conv-1",
    "conversationHistoryLength": 3,
    "webSearchEnabled": True,
    "traceId": "trace-api",
}


def _queued_job() -> JobModel:
    now = utcnow()
    return JobModel(
        id=uuid.uuid4(),
        job_type=JobType.COMPARISON,
        status=JobStatus.QUEUED,
        queue_name="async_jobs",
        job_metadata={"conversationId": "conv-1"},
        payload={"message": "Compare article 5 with article 7"},
        progress=0,
        attempt_count=0,
        max_attempts=3,
        priority=3,
        trace_id="trace-api",
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def mock_routing() -> AsyncMock:
    """Provide mock QueryRoutingService."""
    return AsyncMock()


@pytest.fixture
def client(mock_routing: AsyncMock) -> TestClient:
    """Provide TestClient with a mocked routing service and an internal secret."""
    app = create_app()
    settings = Settings(jobs=JobSettings(dispatch_secret=SECRET))
    app.dependency_overrides[get_settings_dependency] = lambda: settings
    app.dependency_overrides[get_query_routing_service] = lambda: mock_routing
    return TestClient(app)


class TestDispatchQuery:
    """Test suite for POST /queries/dispatch."""

    def test_sync_decision(self, client: TestClient, mock_routing: AsyncMock) -> None:
        # Arrange
        mock_routing.dispatch_or_queue.return_value = DispatchDecision(mode="sync")

        # Act
        response = client.post(
            "/api/v1/queries/dispatch",
            json={"message": "What is article 5?", "enhancement": {"enhanced": "article 5"}},
            headers=AUTH,
        )

        # Assert
        assert response.status_code == 200
        assert response.json() == {"mode": "sync", "reason": None, "job": None}

    def test_async_decision_returns_job(self, client: TestClient, mock_routing: AsyncMock) -> None:
        # Arrange
        job = _queued_job()
        mock_routing.dispatch_or_queue.return_value = DispatchDecision(
            mode="async", job=job, reason="comparative-query"
        )

        # Act
        response = client.post("/api/v1/queries/dispatch", json=BODY, headers=AUTH)

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["mode"] == "async"
        assert data["reason"] == "comparative-query"
        assert data["job"]["id"] == str(job.id)
        assert data["job"]["priority"] == 3
        assert "payload" not in data["job"]

    def test_request_fields_passed_through(self, client: TestClient, mock_routing: AsyncMock) -> None:
        # Arrange
        mock_routing.dispatch_or_queue.return_value = DispatchDecision(mode="sync")

        # Act
        client.post("/api/v1/queries/dispatch", json=BODY, headers=AUTH)

        # Assert
        kwargs = mock_routing.dispatch_or_queue.await_args.kwargs
        assert kwargs["message"] == BODY["message"]
        assert kwargs["analysis"] == BODY["analysis"]
        assert kwargs["enhancement"] == EnhancementData(enhanced="compare article 5 with article 7", article_number=5)
        assert kwargs["conversation_id"] == "conv-1"
        assert kwargs["conversation_history_length"] == 3
        assert kwargs["web_search_enabled"] is True
        assert kwargs["skip_cache"] is False
        assert kwargs["trace_id"] == "trace-api"

    def test_requires_token(self, client: TestClient, mock_routing: AsyncMock) -> None:
        # Act
        response = client.post("/api/v1/queries/dispatch", json=BODY)

        # Assert
        assert response.status_code == 401
        mock_routing.dispatch_or_queue.assert_not_called()

    def test_empty_message_rejected(self, client: TestClient, mock_routing: AsyncMock) -> None:
        # Act
        response = client.post(
            "/api/v1/queries/dispatch",
            json={**BODY, "message": ""},
            headers=AUTH,
        )

        # Assert
        assert response.status_code == 422
        mock_routing.dispatch_or_queue.assert_not_called()

    def test_validation_error_maps_to_400(self, client: TestClient, mock_routing: AsyncMock) -> None:
        # Arrange
        mock_routing.dispatch_or_queue.side_effect = ValidationError("priority cannot be negative", field="priority")

        # Act
        response = client.post("/api/v1/queries/dispatch", json=BODY, headers=AUTH)

        # Assert
        assert response.status_code == 400
