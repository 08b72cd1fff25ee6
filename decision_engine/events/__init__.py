"""Decision events.

Provides:
- Event: Base class for all decision events
- EventBus: In-process pub/sub for event routing
- EventStore: Append-only decision audit log
- RuleTriggerNotifier: Notifies the users of rules flagged to notify on trigger
"""

from decision_engine.events.base import Event
from decision_engine.events.bus import EventBus
from decision_engine.events.notifications import RuleTriggerNotifier
from decision_engine.events.store import EventStore
from decision_engine.events.types import (
    RecommendationApplied,
    RecommendationCreated,
    RuleTriggered,
)

AUDITED_EVENT_TYPES: tuple[type[Event], ...] = (
    RuleTriggered,
    RecommendationCreated,
    RecommendationApplied,
)

__all__ = [
    "AUDITED_EVENT_TYPES",
    # Base
    "Event",
    # Infrastructure
    "EventBus",
    "EventStore",
    "RuleTriggerNotifier",
    # Event types
    "RecommendationApplied",
    "RecommendationCreated",
    "RuleTriggered",
]
