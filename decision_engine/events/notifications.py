"""Notifications sent when a rule flagged ``notify_on_trigger`` matches.

Delivery is a structured log entry per recipient; a transport (email,
chat) can subscribe to the same event later without touching the engine.
"""

import structlog

from decision_engine.events.types import RuleTriggered

logger = structlog.get_logger()


class RuleTriggerNotifier:
    """Event bus subscriber for RuleTriggered."""

    def __init__(self) -> None:
        self.sent = 0

    async def handle(self, event: RuleTriggered) -> None:
        """Notify the rule's recipients, if the rule asks for it.

        Args:
            event: The trigger event published by the engine
        """
        if not event.notify_on_trigger:
            return

        if not event.notify_users:
            logger.warning(
                "rule notifies on trigger but has no recipients",
                rule_id=str(event.record_id),
                rule_name=event.rule_name,
            )
            return

        for user in event.notify_users:
            logger.info(
                "rule triggered",
                recipient=user,
                rule_id=str(event.record_id),
                rule_name=event.rule_name,
                recommendation_id=str(event.recommendation_id),
                recommended_action=event.recommended_action.value,
                reference_id=event.reference_id,
            )
            self.sent += 1
