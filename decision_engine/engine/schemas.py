"""Inputs for decision engine operations."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from decision_engine.models.recommendation import RecommendationStatus
from decision_engine.models.rule import DecisionType


class DecisionRequest(BaseModel):
    """A business event submitted for a recommendation."""

    decision_type: DecisionType = Field(description="Family of the event")
    reference_id: str = Field(min_length=1, description="Business object id")
    reference_type: str = Field(min_length=1, description="Business object type")
    reference_number: str | None = Field(default=None)
    reference_data: dict[str, Any] = Field(
        default_factory=dict,
        description="Context the rule conditions are evaluated against",
    )
    requested_by_id: str = Field(description="Caller id (audit only)")
    requested_by_name: str = Field(description="Caller name (audit only)")
    workspace_id: str = Field(min_length=1)


class HistoryFilters(BaseModel):
    """Optional equality filters for decision history queries."""

    decision_type: DecisionType | None = None
    status: RecommendationStatus | None = None
    rule_id: UUID | None = None


class RuleCounterDelta(BaseModel):
    """Increments applied atomically to a rule's running counters."""

    triggered: int = Field(default=0, ge=0)
    auto_executed: int = Field(default=0, ge=0)
    approved: int = Field(default=0, ge=0)
    rejected: int = Field(default=0, ge=0)
    overridden: int = Field(default=0, ge=0)

    @property
    def is_empty(self) -> bool:
        """True if applying this delta would change nothing."""
        return not (
            self.triggered
            or self.auto_executed
            or self.approved
            or self.rejected
            or self.overridden
        )
