"""Decision API endpoints.

Request a recommendation for a business event, apply (or override) a
pending recommendation, and list pending and historical decisions.
"""

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from decision_engine.api.errors import to_http_exception
from decision_engine.engine.schemas import DecisionRequest, HistoryFilters
from decision_engine.engine.service import DecisionEngine
from decision_engine.errors import DecisionEngineError
from decision_engine.models.recommendation import (
    DecisionRecommendation,
    RecommendationStatus,
)
from decision_engine.models.rule import DecisionType, RecommendedAction

logger = structlog.get_logger()

router = APIRouter(prefix="/decisions", tags=["decisions"])


class ApplyDecisionRequest(BaseModel):
    """Request to finalize a pending recommendation."""

    applied_by_id: str = Field(min_length=1, description="Who applies the decision")
    applied_by_name: str = Field(min_length=1, description="Display name")
    override_action: RecommendedAction | None = Field(
        default=None,
        description="Apply this action instead of the recommended one",
    )
    override_reason: str | None = Field(default=None)


class RecommendationList(BaseModel):
    """List of recommendations with a count."""

    items: list[DecisionRecommendation]
    total: int


def get_decision_engine(request: Request) -> DecisionEngine:
    """Dependency to get DecisionEngine from app state."""
    engine = getattr(request.app.state, "decision_engine", None)
    if engine is None:
        raise HTTPException(status_code=500, detail="DecisionEngine not initialized")
    return engine


@router.post("", response_model=DecisionRecommendation, status_code=201)
async def request_decision(
    body: DecisionRequest,
    engine: DecisionEngine = Depends(get_decision_engine),
) -> DecisionRecommendation:
    """Evaluate a business event and return the recommendation.

    Always returns a recommendation when the store is reachable; events
    no rule matches are escalated.
    """
    try:
        return await engine.request_decision(body)
    except DecisionEngineError as e:
        logger.error("decision request failed", error=str(e))
        raise to_http_exception(e) from e


@router.post("/{recommendation_id}/apply", response_model=DecisionRecommendation)
async def apply_decision(
    recommendation_id: UUID,
    body: ApplyDecisionRequest,
    engine: DecisionEngine = Depends(get_decision_engine),
) -> DecisionRecommendation:
    """Finalize a pending recommendation.

    Returns 404 for unknown ids and 409 when already processed.
    """
    try:
        return await engine.apply_decision(
            recommendation_id,
            applied_by_id=body.applied_by_id,
            applied_by_name=body.applied_by_name,
            override_action=body.override_action,
            override_reason=body.override_reason,
        )
    except DecisionEngineError as e:
        raise to_http_exception(e) from e


@router.get("/pending", response_model=RecommendationList)
async def get_pending(
    workspace_id: str = Query(..., min_length=1),
    engine: DecisionEngine = Depends(get_decision_engine),
) -> RecommendationList:
    """Pending recommendations, newest first."""
    try:
        items = await engine.get_pending_recommendations(workspace_id)
    except DecisionEngineError as e:
        raise to_http_exception(e) from e
    return RecommendationList(items=items, total=len(items))


@router.get("/history", response_model=RecommendationList)
async def get_history(
    workspace_id: str = Query(..., min_length=1),
    decision_type: DecisionType | None = Query(default=None),
    status: RecommendationStatus | None = Query(default=None),
    rule_id: UUID | None = Query(default=None),
    engine: DecisionEngine = Depends(get_decision_engine),
) -> RecommendationList:
    """Decision history with optional filters, newest first."""
    filters = HistoryFilters(decision_type=decision_type, status=status, rule_id=rule_id)
    try:
        items = await engine.get_decision_history(workspace_id, filters)
    except DecisionEngineError as e:
        raise to_http_exception(e) from e
    return RecommendationList(items=items, total=len(items))
