"""Rule management API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from decision_engine.api.errors import to_http_exception
from decision_engine.errors import DecisionEngineError
from decision_engine.models.rule import DecisionRule, DecisionType
from decision_engine.models.template import RuleTemplate, TemplateCategory
from decision_engine.rules.schemas import (
    RuleCreate,
    RuleFromTemplate,
    RulePerformance,
    RulesDashboard,
    RuleUpdate,
    TemplateCreate,
)
from decision_engine.rules.service import RuleService

router = APIRouter(prefix="/rules", tags=["rules"])


class ToggleRequest(BaseModel):
    """Request to activate or deactivate a rule."""

    is_active: bool


class DuplicateRequest(BaseModel):
    """Request to copy a rule."""

    new_name: str = Field(min_length=1)
    user_id: str
    user_name: str


def get_rule_service(request: Request) -> RuleService:
    """Dependency to get RuleService from app state."""
    service = getattr(request.app.state, "rule_service", None)
    if service is None:
        raise HTTPException(status_code=500, detail="RuleService not initialized")
    return service


@router.get("", response_model=list[DecisionRule])
async def list_rules(
    workspace_id: str = Query(..., min_length=1),
    decision_type: DecisionType | None = Query(default=None),
    is_active: bool | None = Query(default=None),
    tags: list[str] | None = Query(default=None),
    service: RuleService = Depends(get_rule_service),
) -> list[DecisionRule]:
    """List rules by priority descending."""
    try:
        return await service.list_rules(
            workspace_id, decision_type=decision_type, is_active=is_active, tags=tags
        )
    except DecisionEngineError as e:
        raise to_http_exception(e) from e


@router.post("", response_model=DecisionRule, status_code=201)
async def create_rule(
    body: RuleCreate,
    service: RuleService = Depends(get_rule_service),
) -> DecisionRule:
    """Create a rule."""
    try:
        return await service.create_rule(body)
    except DecisionEngineError as e:
        raise to_http_exception(e) from e


@router.get("/dashboard", response_model=RulesDashboard)
async def rules_dashboard(
    workspace_id: str = Query(..., min_length=1),
    service: RuleService = Depends(get_rule_service),
) -> RulesDashboard:
    """Workspace rule summary."""
    try:
        return await service.get_rules_dashboard(workspace_id)
    except DecisionEngineError as e:
        raise to_http_exception(e) from e


@router.get("/templates", response_model=list[RuleTemplate])
async def list_templates(
    category: TemplateCategory | None = Query(default=None),
    service: RuleService = Depends(get_rule_service),
) -> list[RuleTemplate]:
    """List active rule templates, most used first."""
    try:
        return await service.list_rule_templates(category)
    except DecisionEngineError as e:
        raise to_http_exception(e) from e


@router.post("/templates", response_model=RuleTemplate, status_code=201)
async def create_template(
    body: TemplateCreate,
    service: RuleService = Depends(get_rule_service),
) -> RuleTemplate:
    """Create a rule template."""
    try:
        return await service.create_rule_template(body)
    except DecisionEngineError as e:
        raise to_http_exception(e) from e


@router.post(
    "/templates/{template_id}/rules", response_model=DecisionRule, status_code=201
)
async def create_rule_from_template(
    template_id: UUID,
    body: RuleFromTemplate,
    service: RuleService = Depends(get_rule_service),
) -> DecisionRule:
    """Create a rule from a template."""
    try:
        return await service.create_rule_from_template(template_id, body)
    except DecisionEngineError as e:
        raise to_http_exception(e) from e


@router.get("/{rule_id}", response_model=DecisionRule)
async def get_rule(
    rule_id: UUID,
    service: RuleService = Depends(get_rule_service),
) -> DecisionRule:
    """Get a rule."""
    try:
        return await service.get_rule(rule_id)
    except DecisionEngineError as e:
        raise to_http_exception(e) from e


@router.patch("/{rule_id}", response_model=DecisionRule)
async def update_rule(
    rule_id: UUID,
    body: RuleUpdate,
    service: RuleService = Depends(get_rule_service),
) -> DecisionRule:
    """Update a rule."""
    try:
        return await service.update_rule(rule_id, body)
    except DecisionEngineError as e:
        raise to_http_exception(e) from e


@router.delete("/{rule_id}", status_code=204)
async def delete_rule(
    rule_id: UUID,
    service: RuleService = Depends(get_rule_service),
) -> None:
    """Delete a rule. Recommendations referring to it are kept."""
    try:
        await service.delete_rule(rule_id)
    except DecisionEngineError as e:
        raise to_http_exception(e) from e


@router.post("/{rule_id}/toggle", response_model=DecisionRule)
async def toggle_rule(
    rule_id: UUID,
    body: ToggleRequest,
    service: RuleService = Depends(get_rule_service),
) -> DecisionRule:
    """Activate or deactivate a rule."""
    try:
        return await service.toggle_rule(rule_id, body.is_active)
    except DecisionEngineError as e:
        raise to_http_exception(e) from e


@router.post("/{rule_id}/duplicate", response_model=DecisionRule, status_code=201)
async def duplicate_rule(
    rule_id: UUID,
    body: DuplicateRequest,
    service: RuleService = Depends(get_rule_service),
) -> DecisionRule:
    """Copy a rule with auto-execution disabled."""
    try:
        return await service.duplicate_rule(
            rule_id, body.new_name, body.user_id, body.user_name
        )
    except DecisionEngineError as e:
        raise to_http_exception(e) from e


@router.get("/{rule_id}/performance", response_model=RulePerformance)
async def rule_performance(
    rule_id: UUID,
    service: RuleService = Depends(get_rule_service),
) -> RulePerformance:
    """Outcome statistics for a rule."""
    try:
        return await service.get_rule_performance(rule_id)
    except DecisionEngineError as e:
        raise to_http_exception(e) from e
