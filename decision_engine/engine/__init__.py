"""Decision engine: selects a rule for a business event and records a
recommendation with a confidence score and reasoning.
"""

from decision_engine.engine.schemas import (
    DecisionRequest,
    HistoryFilters,
    RuleCounterDelta,
)
from decision_engine.engine.service import DecisionEngine

__all__ = [
    "DecisionEngine",
    "DecisionRequest",
    "HistoryFilters",
    "RuleCounterDelta",
]
