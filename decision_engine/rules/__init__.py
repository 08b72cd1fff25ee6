"""Rule management for operators."""

from decision_engine.rules.schemas import RuleCreate, RuleUpdate
from decision_engine.rules.service import RuleService

__all__ = ["RuleCreate", "RuleService", "RuleUpdate"]
