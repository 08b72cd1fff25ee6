"""Tests for decision events, the event bus and the audit log."""

from uuid import uuid4

import pytest
from pydantic import ValidationError

from decision_engine.events import AUDITED_EVENT_TYPES, EventBus, EventStore
from decision_engine.events.types import (
    RecommendationApplied,
    RecommendationCreated,
    RuleTriggered,
)
from decision_engine.models.recommendation import RecommendationStatus
from decision_engine.models.rule import DecisionType, RecommendedAction


def created_event(**overrides) -> RecommendationCreated:
    fields = {
        "record_id": uuid4(),
        "workspace_id": "ws-1",
        "decision_type": DecisionType.EXPENSE_APPROVAL,
        "reference_id": "exp-001",
        "reference_type": "expense_request",
        "recommended_action": RecommendedAction.ESCALATE,
        "confidence_score": 30,
        "status": RecommendationStatus.PENDING,
    }
    fields.update(overrides)
    return RecommendationCreated(**fields)


class TestEvents:
    """Tests for event models."""

    def test_events_are_immutable(self):
        event = created_event()
        with pytest.raises(ValidationError):
            event.confidence_score = 99

    def test_event_type_and_record_type(self):
        event = created_event()
        assert event.event_type == "RecommendationCreated"
        assert event.record_type == "Recommendation"

        triggered = RuleTriggered(
            record_id=uuid4(),
            workspace_id="ws-1",
            rule_name="Small expenses",
            decision_type=DecisionType.EXPENSE_APPROVAL,
            recommendation_id=uuid4(),
            reference_id="exp-001",
            recommended_action=RecommendedAction.APPROVE,
        )
        assert triggered.record_type == "Rule"
        assert triggered.notify_on_trigger is False
        assert triggered.notify_users == []

    def test_payload_excludes_envelope(self):
        event = created_event()
        data = event.payload()

        assert data["recommended_action"] == "escalate"
        assert data["rule_id"] is None
        assert data["status"] == "pending"
        for key in ("event_id", "occurred_at", "record_id", "workspace_id"):
            assert key not in data


class TestEventBus:
    """Tests for EventBus."""

    @pytest.mark.asyncio
    async def test_async_and_sync_handlers(self):
        bus = EventBus()
        seen = []

        async def async_handler(event):
            seen.append(("async", event.event_id))

        def sync_handler(event):
            seen.append(("sync", event.event_id))

        bus.subscribe(RecommendationCreated, async_handler)
        bus.subscribe(RecommendationCreated, sync_handler)
        event = created_event()

        await bus.publish(event)

        assert sorted(seen) == [("async", event.event_id), ("sync", event.event_id)]
        assert bus.subscriber_count(RecommendationCreated) == 2
        assert bus.subscriber_count(RuleTriggered) == 0

    @pytest.mark.asyncio
    async def test_handler_failure_is_isolated(self):
        """A failing handler neither raises nor blocks the others."""
        bus = EventBus()
        seen = []

        async def broken(event):
            raise RuntimeError("boom")

        async def healthy(event):
            seen.append(event)

        bus.subscribe(RecommendationCreated, broken)
        bus.subscribe(RecommendationCreated, healthy)

        await bus.publish(created_event())

        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_publish_without_subscribers(self):
        await EventBus().publish(created_event())


class TestEventStore:
    """Tests for the decision audit log."""

    @pytest.mark.asyncio
    async def test_append_and_read(self, db_client):
        store = EventStore(db_client)
        await store.init_schema()
        recommendation_id = uuid4()

        await store.append(created_event(record_id=recommendation_id))
        await store.append(
            RecommendationApplied(
                record_id=recommendation_id,
                workspace_id="ws-1",
                final_action=RecommendedAction.REJECT,
                status=RecommendationStatus.REJECTED,
                applied_by_id="mgr-1",
                was_overridden=True,
                override_reason="Over budget",
            )
        )

        events = await store.get_events_for_record(recommendation_id)

        assert [e["event_type"] for e in events] == [
            "RecommendationCreated",
            "RecommendationApplied",
        ]
        assert events[1]["payload"]["override_reason"] == "Over budget"
        assert await store.count_events() == 2
        assert await store.count_events("RecommendationApplied") == 1

    @pytest.mark.asyncio
    async def test_engine_decisions_are_audited(
        self, db_client, engine, event_bus, rule_repo, make_rule, make_request
    ):
        store = EventStore(db_client)
        await store.init_schema()
        for event_type in AUDITED_EVENT_TYPES:
            event_bus.subscribe(event_type, store.append)
        rule = await rule_repo.create(make_rule(auto_execute=True))

        result = await engine.request_decision(make_request({"amount": 10}))

        events = await store.get_events_for_record(result.id)
        assert [e["event_type"] for e in events] == [
            "RecommendationCreated",
            "RecommendationApplied",
        ]
        rule_events = await store.get_events_for_record(rule.id)
        assert [e["event_type"] for e in rule_events] == ["RuleTriggered"]
