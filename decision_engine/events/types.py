"""Typed decision events.

- RuleTriggered: A rule matched an event context
- RecommendationCreated: A recommendation was persisted
- RecommendationApplied: A recommendation reached a terminal status
"""

from typing import ClassVar
from uuid import UUID

from pydantic import Field

from decision_engine.events.base import Event
from decision_engine.models.recommendation import RecommendationStatus
from decision_engine.models.rule import DecisionType, RecommendedAction


class RuleTriggered(Event):
    """Emitted when a rule is selected for an event."""

    record_type: ClassVar[str] = "Rule"

    rule_name: str
    decision_type: DecisionType
    recommendation_id: UUID
    reference_id: str
    recommended_action: RecommendedAction
    notify_on_trigger: bool = False
    notify_users: list[str] = Field(default_factory=list)


class RecommendationCreated(Event):
    """Emitted when a recommendation is persisted."""

    decision_type: DecisionType
    reference_id: str
    reference_type: str
    rule_id: UUID | None = Field(default=None, description="None on fallback")
    recommended_action: RecommendedAction
    confidence_score: int
    status: RecommendationStatus
    auto_executed: bool = False


class RecommendationApplied(Event):
    """Emitted when a recommendation is finalized."""

    rule_id: UUID | None = None
    final_action: RecommendedAction
    status: RecommendationStatus
    applied_by_id: str | None = None
    auto_executed: bool = False
    was_overridden: bool = False
    override_reason: str | None = None
