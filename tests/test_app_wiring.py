"""Tests for application wiring."""

import pytest
from fastapi import FastAPI

from decision_engine.engine.service import DecisionEngine
from decision_engine.events import (
    AUDITED_EVENT_TYPES,
    RecommendationApplied,
    RecommendationCreated,
    RuleTriggered,
    RuleTriggerNotifier,
)
from decision_engine.main import app, build_services
from decision_engine.rules.service import RuleService


class TestBuildServices:
    """Tests for build_services."""

    @pytest.mark.asyncio
    async def test_services_on_app_state(self, db_client):
        target = FastAPI()

        await build_services(target, db_client)

        assert isinstance(target.state.decision_engine, DecisionEngine)
        assert isinstance(target.state.rule_service, RuleService)
        assert isinstance(target.state.notifier, RuleTriggerNotifier)
        bus = target.state.event_bus
        assert len(AUDITED_EVENT_TYPES) == 3
        # audit log plus the trigger notifier
        assert bus.subscriber_count(RuleTriggered) == 2
        assert bus.subscriber_count(RecommendationCreated) == 1
        assert bus.subscriber_count(RecommendationApplied) == 1

    def test_routes_registered(self):
        paths = {route.path for route in app.routes}
        assert "/decisions" in paths
        assert "/decisions/{recommendation_id}/apply" in paths
        assert "/rules/{rule_id}/duplicate" in paths
        assert "/rules/templates" in paths
        assert "/rules/templates/{template_id}/rules" in paths
        assert "/health/ready" in paths
