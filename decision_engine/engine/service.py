"""Decision engine: rule selection, recommendations and rule statistics.

Flow of ``request_decision``:

1. Load the active rules for the event's workspace and decision type,
   highest priority first.
2. The first rule whose conditions hold is the matched rule.
3. Build a recommendation from it. When the rule executes unattended the
   recommendation is built already finalized by the system actor, so it
   is never stored as pending. Persist it, then apply one counter delta
   to the rule.
4. Without a match, persist a low-confidence escalate recommendation.

The engine holds no state between calls. Rule counters are changed with
store-level atomic increments, and finalization is a check-and-set on
``status = pending``, so concurrent callers neither lose increments nor
finalize a recommendation twice.
"""

from collections.abc import Sequence
from typing import Any
from uuid import UUID

import structlog

from decision_engine.engine.ports import RecommendationStore, RuleStore
from decision_engine.engine.schemas import (
    DecisionRequest,
    HistoryFilters,
    RuleCounterDelta,
)
from decision_engine.engine.scoring import (
    DEFAULT_CONFIDENCE_SCORE,
    DEFAULT_REASONING,
    build_reasoning,
    calculate_confidence_score,
    confidence_level,
    extract_factors,
)
from decision_engine.errors import (
    AlreadyProcessedError,
    NotFoundError,
    ValidationError,
)
from decision_engine.evaluation.conditions import evaluate_conditions
from decision_engine.events.base import Event
from decision_engine.events.bus import EventBus
from decision_engine.events.types import (
    RecommendationApplied,
    RecommendationCreated,
    RuleTriggered,
)
from decision_engine.models.base import utc_now
from decision_engine.models.recommendation import (
    DecisionRecommendation,
    RecommendationStatus,
)
from decision_engine.models.rule import DecisionRule, RecommendedAction

logger = structlog.get_logger()

# Recorded as the actor on recommendations finalized without a human
SYSTEM_ACTOR_ID = "system:auto-execute"
SYSTEM_ACTOR_NAME = "Automatic execution"


def status_for_action(action: RecommendedAction) -> RecommendationStatus:
    """Terminal status reached by finalizing with ``action``.

    Only approve maps to approved. Every other action, escalate
    included, finalizes as rejected.
    """
    if action == RecommendedAction.APPROVE:
        return RecommendationStatus.APPROVED
    return RecommendationStatus.REJECTED


def select_rule(
    rules: Sequence[DecisionRule],
    context: dict[str, Any],
) -> DecisionRule | None:
    """Return the first rule (in the given order) whose conditions hold."""
    for rule in rules:
        if not rule.is_active:
            continue
        if evaluate_conditions(rule.conditions, context):
            return rule
    return None


class DecisionEngine:
    """Turns business events into persisted recommendations."""

    def __init__(
        self,
        rule_store: RuleStore,
        recommendation_store: RecommendationStore,
        event_bus: EventBus | None = None,
    ):
        """Initialize the engine with its stores.

        Args:
            rule_store: Source of rules and target of counter updates
            recommendation_store: Persistence for recommendations
            event_bus: Optional bus receiving decision events
        """
        self._rules = rule_store
        self._recommendations = recommendation_store
        self._event_bus = event_bus

    async def request_decision(
        self, request: DecisionRequest
    ) -> DecisionRecommendation:
        """Evaluate an event against the rule set and persist the outcome.

        Args:
            request: The business event and its context

        Returns:
            The persisted recommendation, already finalized when the
            matched rule executes unattended

        Raises:
            StoreUnavailableError: If a store call fails
        """
        rules = await self._rules.list_active_rules(
            request.workspace_id, request.decision_type
        )
        rule = select_rule(rules, request.reference_data)

        if rule is None:
            recommendation = await self._recommendations.create(
                self._default_recommendation(request)
            )
            logger.info(
                "no rule matched, escalating",
                recommendation_id=str(recommendation.id),
                decision_type=request.decision_type.value,
                reference_id=request.reference_id,
                rules_evaluated=len(rules),
            )
            await self._publish(self._created_event(recommendation))
            return recommendation

        recommendation = await self._recommendations.create(
            self._rule_recommendation(request, rule)
        )
        logger.info(
            "rule matched",
            recommendation_id=str(recommendation.id),
            rule_id=str(rule.id),
            rule_name=rule.name,
            action=recommendation.recommended_action.value,
            confidence_score=recommendation.confidence_score,
            status=recommendation.status.value,
        )

        await self._rules.increment_counters(
            rule.id, self._trigger_delta(recommendation)
        )
        await self._publish(
            RuleTriggered(
                record_id=rule.id,
                workspace_id=rule.workspace_id,
                rule_name=rule.name,
                decision_type=rule.decision_type,
                recommendation_id=recommendation.id,
                reference_id=request.reference_id,
                recommended_action=rule.recommended_action,
                notify_on_trigger=rule.notify_on_trigger,
                notify_users=rule.notify_users,
            )
        )
        await self._publish(self._created_event(recommendation))

        if recommendation.auto_executed:
            logger.info(
                "recommendation auto-executed",
                recommendation_id=str(recommendation.id),
                rule_id=str(rule.id),
                status=recommendation.status.value,
            )
            await self._publish(
                self._applied_event(recommendation, recommendation.recommended_action)
            )

        return recommendation

    async def apply_decision(
        self,
        recommendation_id: UUID,
        applied_by_id: str,
        applied_by_name: str,
        override_action: RecommendedAction | str | None = None,
        override_reason: str | None = None,
    ) -> DecisionRecommendation:
        """Finalize a pending recommendation, optionally overriding it.

        Supplying ``override_action`` marks the recommendation as
        overridden even when it equals the recommended action.

        Args:
            recommendation_id: Recommendation to finalize
            applied_by_id: Who is applying the decision
            applied_by_name: Display name of who is applying it
            override_action: Action to apply instead of the recommended one
            override_reason: Why the recommendation was overridden

        Returns:
            The finalized recommendation

        Raises:
            ValidationError: If override_action is not a known action
            NotFoundError: If the recommendation does not exist
            AlreadyProcessedError: If it is no longer pending
            StoreUnavailableError: If a store call fails
        """
        if override_action is not None:
            try:
                override_action = RecommendedAction(override_action)
            except ValueError as e:
                msg = f"Unknown override action: {override_action}"
                raise ValidationError(msg) from e

        recommendation = await self._recommendations.get_by_id(recommendation_id)
        if recommendation is None:
            raise NotFoundError("Recommendation", recommendation_id)
        if not recommendation.is_pending:
            raise AlreadyProcessedError(
                recommendation_id, recommendation.status.value
            )

        was_overridden = override_action is not None
        final_action = (
            override_action if was_overridden else recommendation.recommended_action
        )
        status = status_for_action(final_action)

        finalized = await self._recommendations.finalize(
            recommendation_id,
            status=status,
            applied_at=utc_now(),
            applied_by_id=applied_by_id,
            applied_by_name=applied_by_name,
            was_overridden=was_overridden,
            override_reason=override_reason,
        )
        if finalized is None:
            # Another caller finalized it between the read and the write
            raise AlreadyProcessedError(recommendation_id)

        if finalized.rule_id is not None:
            await self._rules.increment_counters(
                finalized.rule_id,
                RuleCounterDelta(
                    approved=int(status == RecommendationStatus.APPROVED),
                    rejected=int(status == RecommendationStatus.REJECTED),
                    overridden=int(was_overridden),
                ),
            )

        logger.info(
            "decision applied",
            recommendation_id=str(recommendation_id),
            status=status.value,
            applied_by=applied_by_id,
            overridden=was_overridden,
        )
        await self._publish(self._applied_event(finalized, final_action))
        return finalized

    async def get_pending_recommendations(
        self, workspace_id: str
    ) -> list[DecisionRecommendation]:
        """Pending recommendations for a workspace, newest first."""
        return await self._recommendations.list_by_workspace(
            workspace_id,
            HistoryFilters(status=RecommendationStatus.PENDING),
        )

    async def get_decision_history(
        self,
        workspace_id: str,
        filters: HistoryFilters | None = None,
    ) -> list[DecisionRecommendation]:
        """Recommendations for a workspace, newest first.

        Args:
            workspace_id: Owning workspace
            filters: Optional equality filters on decision type, status
                and rule id

        Returns:
            Matching recommendations
        """
        return await self._recommendations.list_by_workspace(workspace_id, filters)

    @staticmethod
    def _rule_recommendation(
        request: DecisionRequest,
        rule: DecisionRule,
    ) -> DecisionRecommendation:
        score = calculate_confidence_score(rule)
        unattended = rule.executes_unattended
        return DecisionRecommendation(
            workspace_id=request.workspace_id,
            decision_type=request.decision_type,
            reference_id=request.reference_id,
            reference_type=request.reference_type,
            reference_number=request.reference_number,
            reference_data=request.reference_data,
            rule_id=rule.id,
            rule_name=rule.name,
            recommended_action=rule.recommended_action,
            confidence=confidence_level(score),
            confidence_score=score,
            reasoning=build_reasoning(rule),
            factors_considered=extract_factors(rule, request.reference_data),
            status=(
                status_for_action(rule.recommended_action)
                if unattended
                else RecommendationStatus.PENDING
            ),
            auto_executed=unattended,
            requested_by_id=request.requested_by_id,
            requested_by_name=request.requested_by_name,
            applied_by_id=SYSTEM_ACTOR_ID if unattended else None,
            applied_by_name=SYSTEM_ACTOR_NAME if unattended else None,
            applied_at=utc_now() if unattended else None,
        )

    @staticmethod
    def _trigger_delta(recommendation: DecisionRecommendation) -> RuleCounterDelta:
        """Counter changes for a freshly matched rule.

        An unattended recommendation is already final, so its outcome is
        counted together with the trigger.
        """
        if not recommendation.auto_executed:
            return RuleCounterDelta(triggered=1)
        return RuleCounterDelta(
            triggered=1,
            auto_executed=1,
            approved=int(recommendation.status == RecommendationStatus.APPROVED),
            rejected=int(recommendation.status == RecommendationStatus.REJECTED),
        )

    @staticmethod
    def _default_recommendation(request: DecisionRequest) -> DecisionRecommendation:
        return DecisionRecommendation(
            workspace_id=request.workspace_id,
            decision_type=request.decision_type,
            reference_id=request.reference_id,
            reference_type=request.reference_type,
            reference_number=request.reference_number,
            reference_data=request.reference_data,
            recommended_action=RecommendedAction.ESCALATE,
            confidence=confidence_level(DEFAULT_CONFIDENCE_SCORE),
            confidence_score=DEFAULT_CONFIDENCE_SCORE,
            reasoning=DEFAULT_REASONING,
            factors_considered=[],
            status=RecommendationStatus.PENDING,
            auto_executed=False,
            requested_by_id=request.requested_by_id,
            requested_by_name=request.requested_by_name,
        )

    @staticmethod
    def _created_event(recommendation: DecisionRecommendation) -> RecommendationCreated:
        return RecommendationCreated(
            record_id=recommendation.id,
            workspace_id=recommendation.workspace_id,
            decision_type=recommendation.decision_type,
            reference_id=recommendation.reference_id,
            reference_type=recommendation.reference_type,
            rule_id=recommendation.rule_id,
            recommended_action=recommendation.recommended_action,
            confidence_score=recommendation.confidence_score,
            status=recommendation.status,
            auto_executed=recommendation.auto_executed,
        )

    @staticmethod
    def _applied_event(
        recommendation: DecisionRecommendation,
        final_action: RecommendedAction,
    ) -> RecommendationApplied:
        return RecommendationApplied(
            record_id=recommendation.id,
            workspace_id=recommendation.workspace_id,
            rule_id=recommendation.rule_id,
            final_action=final_action,
            status=recommendation.status,
            applied_by_id=recommendation.applied_by_id,
            auto_executed=recommendation.auto_executed,
            was_overridden=recommendation.was_overridden,
            override_reason=recommendation.override_reason,
        )

    async def _publish(self, event: Event) -> None:
        if self._event_bus is not None:
            await self._event_bus.publish(event)
