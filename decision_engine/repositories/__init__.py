"""Repository layer for data persistence.

Provides the rule store and recommendation store the decision engine
reads from and writes back to, plus the rule template store.
"""

from decision_engine.repositories.recommendation_repo import RecommendationRepository
from decision_engine.repositories.rule_repo import RuleRepository
from decision_engine.repositories.template_repo import TemplateRepository

__all__ = [
    "RecommendationRepository",
    "RuleRepository",
    "TemplateRepository",
]
