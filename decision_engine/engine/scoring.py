"""Confidence scoring and explanation helpers.

The confidence score is a deterministic heuristic over rule state, not a
statistical model:

- Base score of 70
- +15 when the rule's stored success rate is above 80
- +10 when the rule has 3 or more conditions
- -5 when the rule executes unattended
- Clamped to [0, 100]
"""

from collections.abc import Mapping
from typing import Any

from decision_engine.evaluation.conditions import get_nested_value
from decision_engine.models.recommendation import (
    ConfidenceLevel,
    DecisionFactor,
    FactorImpact,
)
from decision_engine.models.rule import DecisionRule

BASE_CONFIDENCE_SCORE = 70
SUCCESS_RATE_BONUS_THRESHOLD = 80.0
SUCCESS_RATE_BONUS = 15
MANY_CONDITIONS_THRESHOLD = 3
MANY_CONDITIONS_BONUS = 10
UNATTENDED_PENALTY = 5

DEFAULT_CONFIDENCE_SCORE = 30
DEFAULT_REASONING = "no applicable rule; escalate for manual review"

FACTOR_WEIGHT = 1.0


def calculate_confidence_score(rule: DecisionRule) -> int:
    """Score how trustworthy a recommendation from ``rule`` is.

    Args:
        rule: The matched rule

    Returns:
        Score between 0 and 100
    """
    score = BASE_CONFIDENCE_SCORE

    if rule.success_rate > SUCCESS_RATE_BONUS_THRESHOLD:
        score += SUCCESS_RATE_BONUS

    if len(rule.conditions) >= MANY_CONDITIONS_THRESHOLD:
        score += MANY_CONDITIONS_BONUS

    if rule.executes_unattended:
        score -= UNATTENDED_PENALTY

    return min(max(score, 0), 100)


def confidence_level(score: float) -> ConfidenceLevel:
    """Map a numeric score to its categorical label."""
    if score >= 90:
        return ConfidenceLevel.VERY_HIGH
    if score >= 75:
        return ConfidenceLevel.HIGH
    if score >= 50:
        return ConfidenceLevel.MEDIUM
    if score >= 25:
        return ConfidenceLevel.LOW
    return ConfidenceLevel.VERY_LOW


def build_reasoning(rule: DecisionRule) -> str:
    """Templated explanation for a matched rule."""
    parts = [f'Rule "{rule.name}" applied.']
    if rule.conditions:
        parts.append(f"{len(rule.conditions)} condition(s) met.")
    if rule.auto_execute:
        parts.append("Automatic execution enabled.")
    if rule.description:
        parts.append(rule.description)
    return " ".join(parts)


def determine_impact(operator: str) -> FactorImpact:
    """Coarse direction of a condition, read from its operator name."""
    if "greater" in operator:
        return FactorImpact.POSITIVE
    if "less" in operator:
        return FactorImpact.NEGATIVE
    return FactorImpact.NEUTRAL


def extract_factors(
    rule: DecisionRule,
    context: Mapping[str, Any],
) -> list[DecisionFactor]:
    """One factor per rule condition, with the context value it saw."""
    return [
        DecisionFactor(
            factor=condition.field,
            value=get_nested_value(context, condition.field),
            weight=FACTOR_WEIGHT,
            impact=determine_impact(condition.operator),
        )
        for condition in rule.conditions
    ]


def success_rate(approved: int, rejected: int) -> float:
    """Percentage of approved outcomes, 0 when there are none."""
    total = approved + rejected
    if total == 0:
        return 0.0
    return approved / total * 100
