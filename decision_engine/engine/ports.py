"""Store ports consumed by the decision engine.

The engine depends on these capabilities only; the libSQL repositories
implement them structurally.
"""

from datetime import datetime
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from decision_engine.engine.schemas import HistoryFilters, RuleCounterDelta
from decision_engine.models.recommendation import (
    DecisionRecommendation,
    RecommendationStatus,
)
from decision_engine.models.rule import DecisionRule, DecisionType


@runtime_checkable
class RuleStore(Protocol):
    """Read access to rules plus atomic counter increments."""

    async def list_active_rules(
        self, workspace_id: str, decision_type: DecisionType
    ) -> list[DecisionRule]:
        """Active rules for a workspace and decision type, priority desc."""
        ...

    async def get_rule(self, rule_id: UUID) -> DecisionRule | None:
        """Get a rule by id."""
        ...

    async def increment_counters(
        self, rule_id: UUID, delta: RuleCounterDelta
    ) -> bool:
        """Apply a counter delta in one atomic store operation.

        Returns:
            False if the rule no longer exists
        """
        ...


@runtime_checkable
class RecommendationStore(Protocol):
    """Persistence for recommendations."""

    async def create(
        self, recommendation: DecisionRecommendation
    ) -> DecisionRecommendation:
        """Persist a new recommendation."""
        ...

    async def get_by_id(
        self, recommendation_id: UUID
    ) -> DecisionRecommendation | None:
        """Get a recommendation by id."""
        ...

    async def update(
        self, recommendation_id: UUID, patch: dict[str, Any]
    ) -> DecisionRecommendation | None:
        """Apply a field patch."""
        ...

    async def finalize(
        self,
        recommendation_id: UUID,
        *,
        status: RecommendationStatus,
        applied_at: datetime,
        applied_by_id: str | None,
        applied_by_name: str | None,
        was_overridden: bool = False,
        override_reason: str | None = None,
    ) -> DecisionRecommendation | None:
        """Move a pending recommendation to a terminal status.

        Check-and-set: returns None when the recommendation was not
        pending at write time.
        """
        ...

    async def list_by_workspace(
        self, workspace_id: str, filters: HistoryFilters | None = None
    ) -> list[DecisionRecommendation]:
        """Recommendations for a workspace, newest first."""
        ...
