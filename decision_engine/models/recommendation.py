"""Decision recommendation model: one persisted evaluation outcome."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from decision_engine.models.base import BaseEntity
from decision_engine.models.rule import DecisionType, RecommendedAction


class ConfidenceLevel(str, Enum):
    """Categorical label derived from the numeric confidence score."""

    VERY_LOW = "very_low"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class RecommendationStatus(str, Enum):
    """Lifecycle state; approved and rejected are terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class FactorImpact(str, Enum):
    """Direction a factor pushes the recommendation."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class DecisionFactor(BaseModel):
    """A context value that took part in the matched rule's conditions."""

    factor: str = Field(description="Context field path")
    value: Any = Field(default=None, description="Value found in the context")
    weight: float = Field(default=1.0)
    impact: FactorImpact = Field(default=FactorImpact.NEUTRAL)


class DecisionRecommendation(BaseEntity):
    """Outcome of evaluating one business event against the rule set.

    Recommendations are audit artifacts: they keep a snapshot of the
    evaluated context and outlive the business object they refer to.
    """

    workspace_id: str = Field(description="Owning workspace")
    decision_type: DecisionType
    reference_id: str = Field(description="Business object this is about")
    reference_type: str
    reference_number: str | None = None
    reference_data: dict[str, Any] = Field(
        default_factory=dict,
        description="Context snapshot that was evaluated",
    )

    rule_id: UUID | None = Field(default=None, description="Matched rule, if any")
    rule_name: str | None = None

    recommended_action: RecommendedAction
    confidence: ConfidenceLevel
    confidence_score: int = Field(ge=0, le=100)
    reasoning: str
    factors_considered: list[DecisionFactor] = Field(default_factory=list)

    status: RecommendationStatus = Field(default=RecommendationStatus.PENDING)
    auto_executed: bool = False
    was_overridden: bool = False
    override_reason: str | None = None

    requested_by_id: str | None = None
    requested_by_name: str | None = None
    applied_by_id: str | None = None
    applied_by_name: str | None = None
    applied_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        """Check if the recommendation still awaits a decision."""
        return self.status == RecommendationStatus.PENDING
