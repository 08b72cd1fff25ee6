"""Domain models for the decision engine.

- BaseEntity: Base class with id, timestamps
- DecisionRule: Configured policy for one decision type
- DecisionRecommendation: Persisted outcome of a rule evaluation
- RuleTemplate: Reusable condition skeleton for new rules
"""

from decision_engine.models.base import BaseEntity
from decision_engine.models.recommendation import (
    ConfidenceLevel,
    DecisionFactor,
    DecisionRecommendation,
    FactorImpact,
    RecommendationStatus,
)
from decision_engine.models.rule import (
    ConditionOperator,
    DecisionRule,
    DecisionType,
    LogicalOperator,
    RecommendedAction,
    RuleCondition,
)
from decision_engine.models.template import (
    ConditionTemplate,
    RuleTemplate,
    TemplateCategory,
    TemplateFieldType,
    TemplateOption,
)

__all__ = [
    # Base
    "BaseEntity",
    # Rules
    "ConditionOperator",
    "DecisionRule",
    "DecisionType",
    "LogicalOperator",
    "RecommendedAction",
    "RuleCondition",
    # Recommendations
    "ConfidenceLevel",
    "DecisionFactor",
    "DecisionRecommendation",
    "FactorImpact",
    "RecommendationStatus",
    # Templates
    "ConditionTemplate",
    "RuleTemplate",
    "TemplateCategory",
    "TemplateFieldType",
    "TemplateOption",
]
