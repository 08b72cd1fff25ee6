"""Tests for decision API endpoints."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from decision_engine.api.decisions import router
from decision_engine.engine.schemas import HistoryFilters
from decision_engine.errors import (
    AlreadyProcessedError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from decision_engine.models.recommendation import (
    ConfidenceLevel,
    DecisionRecommendation,
    RecommendationStatus,
)
from decision_engine.models.rule import DecisionType, RecommendedAction


def make_recommendation(**overrides) -> DecisionRecommendation:
    fields = {
        "workspace_id": "ws-1",
        "decision_type": DecisionType.EXPENSE_APPROVAL,
        "reference_id": "exp-001",
        "reference_type": "expense_request",
        "recommended_action": RecommendedAction.ESCALATE,
        "confidence": ConfidenceLevel.LOW,
        "confidence_score": 30,
        "reasoning": "no applicable rule; escalate for manual review",
    }
    fields.update(overrides)
    return DecisionRecommendation(**fields)


@pytest.fixture
def mock_engine():
    """Create mock DecisionEngine."""
    engine = MagicMock()
    engine.request_decision = AsyncMock()
    engine.apply_decision = AsyncMock()
    engine.get_pending_recommendations = AsyncMock(return_value=[])
    engine.get_decision_history = AsyncMock(return_value=[])
    return engine


@pytest.fixture
def test_client(mock_engine):
    """Create test client with mocked dependencies."""
    app = FastAPI()
    app.include_router(router)
    app.state.decision_engine = mock_engine
    return TestClient(app)


DECISION_BODY = {
    "decision_type": "expense_approval",
    "reference_id": "exp-001",
    "reference_type": "expense_request",
    "reference_data": {"amount": 5000},
    "requested_by_id": "user-1",
    "requested_by_name": "Awa Diop",
    "workspace_id": "ws-1",
}


class TestRequestDecisionEndpoint:
    """Tests for POST /decisions."""

    def test_returns_recommendation(self, test_client, mock_engine):
        """Should return 201 with the recommendation."""
        rec = make_recommendation()
        mock_engine.request_decision.return_value = rec

        response = test_client.post("/decisions", json=DECISION_BODY)

        assert response.status_code == 201
        data = response.json()
        assert data["id"] == str(rec.id)
        assert data["recommended_action"] == "escalate"
        assert data["confidence_score"] == 30
        request = mock_engine.request_decision.call_args.args[0]
        assert request.reference_data == {"amount": 5000}

    def test_invalid_decision_type(self, test_client):
        response = test_client.post(
            "/decisions", json={**DECISION_BODY, "decision_type": "lunch"}
        )
        assert response.status_code == 422

    def test_store_unavailable(self, test_client, mock_engine):
        mock_engine.request_decision.side_effect = StoreUnavailableError("timeout")

        response = test_client.post("/decisions", json=DECISION_BODY)

        assert response.status_code == 503

    def test_engine_not_initialized(self):
        app = FastAPI()
        app.include_router(router)

        response = TestClient(app).post("/decisions", json=DECISION_BODY)

        assert response.status_code == 500


class TestApplyDecisionEndpoint:
    """Tests for POST /decisions/{id}/apply."""

    def test_apply_with_override(self, test_client, mock_engine):
        rec = make_recommendation(
            status=RecommendationStatus.APPROVED, was_overridden=True
        )
        mock_engine.apply_decision.return_value = rec

        response = test_client.post(
            f"/decisions/{rec.id}/apply",
            json={
                "applied_by_id": "mgr-1",
                "applied_by_name": "Kofi Mensah",
                "override_action": "approve",
                "override_reason": "Known supplier",
            },
        )

        assert response.status_code == 200
        assert response.json()["status"] == "approved"
        kwargs = mock_engine.apply_decision.call_args.kwargs
        assert kwargs["override_action"] == RecommendedAction.APPROVE
        assert kwargs["override_reason"] == "Known supplier"

    @pytest.mark.parametrize(
        ("error", "status_code"),
        [
            (NotFoundError("Recommendation", "x"), 404),
            (AlreadyProcessedError("x", "approved"), 409),
            (ValidationError("bad"), 422),
            (StoreUnavailableError("down"), 503),
        ],
    )
    def test_error_mapping(self, test_client, mock_engine, error, status_code):
        mock_engine.apply_decision.side_effect = error

        response = test_client.post(
            f"/decisions/{uuid4()}/apply",
            json={"applied_by_id": "mgr-1", "applied_by_name": "Kofi Mensah"},
        )

        assert response.status_code == status_code

    def test_unknown_override_action(self, test_client, mock_engine):
        response = test_client.post(
            f"/decisions/{uuid4()}/apply",
            json={
                "applied_by_id": "mgr-1",
                "applied_by_name": "Kofi Mensah",
                "override_action": "defer",
            },
        )

        assert response.status_code == 422
        mock_engine.apply_decision.assert_not_called()


class TestListEndpoints:
    """Tests for GET /decisions/pending and /decisions/history."""

    def test_pending(self, test_client, mock_engine):
        mock_engine.get_pending_recommendations.return_value = [
            make_recommendation(),
            make_recommendation(reference_id="exp-002"),
        ]

        response = test_client.get("/decisions/pending", params={"workspace_id": "ws-1"})

        assert response.status_code == 200
        assert response.json()["total"] == 2
        mock_engine.get_pending_recommendations.assert_awaited_once_with("ws-1")

    def test_pending_requires_workspace(self, test_client):
        assert test_client.get("/decisions/pending").status_code == 422

    def test_history_filters(self, test_client, mock_engine):
        rule_id = uuid4()

        response = test_client.get(
            "/decisions/history",
            params={
                "workspace_id": "ws-1",
                "status": "approved",
                "rule_id": str(rule_id),
            },
        )

        assert response.status_code == 200
        assert response.json() == {"items": [], "total": 0}
        mock_engine.get_decision_history.assert_awaited_once_with(
            "ws-1",
            HistoryFilters(status=RecommendationStatus.APPROVED, rule_id=rule_id),
        )
