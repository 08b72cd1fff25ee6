"""Error taxonomy for the decision engine.

Condition evaluation never raises; everything here is raised by the
engine, the repositories, or the rule service and propagates unchanged
to the caller. Nothing is retried internally.
"""


class DecisionEngineError(Exception):
    """Base class for decision engine errors."""


class ValidationError(DecisionEngineError):
    """Raised when input to an operation is malformed."""


class NotFoundError(DecisionEngineError):
    """Raised when a recommendation, rule or template does not exist."""

    def __init__(self, entity: str, entity_id: object):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class AlreadyProcessedError(ValidationError):
    """Raised when finalizing a recommendation that is no longer pending."""

    def __init__(self, recommendation_id: object, status: str | None = None):
        self.recommendation_id = recommendation_id
        self.status = status
        detail = f" (status: {status})" if status else ""
        super().__init__(
            f"Recommendation {recommendation_id} has already been processed{detail}"
        )


class StoreUnavailableError(DecisionEngineError):
    """Raised when the underlying record store fails or times out."""
