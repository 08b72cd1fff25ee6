"""Base class for decision events."""

from datetime import datetime
from typing import Any, ClassVar
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from decision_engine.models.base import utc_now

_ENVELOPE = {"event_id", "occurred_at", "record_id", "workspace_id"}


class Event(BaseModel):
    """Something the engine did to a recommendation or a rule.

    ``record_id`` names the recommendation or rule; subclasses set
    ``record_type`` to say which. Everything beyond the envelope is the
    payload written to the audit log.
    """

    model_config = ConfigDict(frozen=True)

    record_type: ClassVar[str] = "Recommendation"

    event_id: UUID = Field(default_factory=uuid4)
    occurred_at: datetime = Field(default_factory=utc_now)
    record_id: UUID
    workspace_id: str

    @property
    def event_type(self) -> str:
        """Return the event type name (class name)."""
        return self.__class__.__name__

    def payload(self) -> dict[str, Any]:
        """JSON-compatible event fields outside the envelope."""
        return self.model_dump(mode="json", exclude=_ENVELOPE)
