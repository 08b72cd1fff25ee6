"""Pytest configuration and fixtures."""

from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import Any

import pytest

from decision_engine.db.turso import TursoClient
from decision_engine.engine.schemas import DecisionRequest
from decision_engine.engine.service import DecisionEngine
from decision_engine.events.bus import EventBus
from decision_engine.models.rule import (
    DecisionRule,
    DecisionType,
    RecommendedAction,
    RuleCondition,
)
from decision_engine.repositories.recommendation_repo import RecommendationRepository
from decision_engine.repositories.rule_repo import RuleRepository
from decision_engine.repositories.template_repo import TemplateRepository

WORKSPACE = "ws-1"


@pytest.fixture
async def db_client(tmp_path: Path) -> AsyncIterator[TursoClient]:
    """Create a temp file database client for testing."""
    db_path = tmp_path / "test_decisions.db"
    client = TursoClient(url=f"file:{db_path}")
    await client.connect()
    yield client
    await client.close()


@pytest.fixture
async def rule_repo(db_client: TursoClient) -> RuleRepository:
    """RuleRepository with initialized table."""
    repo = RuleRepository(db_client)
    await repo.initialize()
    return repo


@pytest.fixture
async def recommendation_repo(db_client: TursoClient) -> RecommendationRepository:
    """RecommendationRepository with initialized table."""
    repo = RecommendationRepository(db_client)
    await repo.initialize()
    return repo


@pytest.fixture
async def template_repo(db_client: TursoClient) -> TemplateRepository:
    """TemplateRepository with initialized table."""
    repo = TemplateRepository(db_client)
    await repo.initialize()
    return repo


@pytest.fixture
def event_bus() -> EventBus:
    """Event bus with no subscribers."""
    return EventBus()


@pytest.fixture
def engine(
    rule_repo: RuleRepository,
    recommendation_repo: RecommendationRepository,
    event_bus: EventBus,
) -> DecisionEngine:
    """DecisionEngine backed by the temp database."""
    return DecisionEngine(
        rule_store=rule_repo,
        recommendation_store=recommendation_repo,
        event_bus=event_bus,
    )


@pytest.fixture
def make_rule() -> Callable[..., DecisionRule]:
    """Factory for rules with sensible defaults."""

    def _make(
        conditions: list[dict[str, Any]] | None = None,
        **overrides: Any,
    ) -> DecisionRule:
        fields: dict[str, Any] = {
            "name": "Small expenses",
            "description": "Approve small expenses",
            "workspace_id": WORKSPACE,
            "decision_type": DecisionType.EXPENSE_APPROVAL,
            "priority": 100,
            "recommended_action": RecommendedAction.APPROVE,
            "conditions": [
                RuleCondition(**condition) for condition in (conditions or [])
            ],
        }
        fields.update(overrides)
        return DecisionRule(**fields)

    return _make


@pytest.fixture
def make_request() -> Callable[..., DecisionRequest]:
    """Factory for decision requests."""

    def _make(reference_data: dict[str, Any] | None = None, **overrides: Any):
        fields: dict[str, Any] = {
            "decision_type": DecisionType.EXPENSE_APPROVAL,
            "reference_id": "exp-001",
            "reference_type": "expense_request",
            "reference_number": "EXP-2026-001",
            "reference_data": reference_data or {},
            "requested_by_id": "user-1",
            "requested_by_name": "Awa Diop",
            "workspace_id": WORKSPACE,
        }
        fields.update(overrides)
        return DecisionRequest(**fields)

    return _make
