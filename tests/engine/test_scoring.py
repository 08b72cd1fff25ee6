"""Tests for confidence scoring and reasoning."""

import pytest

from decision_engine.engine.scoring import (
    DEFAULT_CONFIDENCE_SCORE,
    build_reasoning,
    calculate_confidence_score,
    confidence_level,
    determine_impact,
    extract_factors,
    success_rate,
)
from decision_engine.models.recommendation import ConfidenceLevel, FactorImpact

THREE_CONDITIONS = [
    {"field": "amount", "operator": "less_than", "value": 10000},
    {"field": "category", "operator": "equals", "value": "office"},
    {"field": "urgent", "operator": "equals", "value": False},
]


class TestCalculateConfidenceScore:
    """Tests for calculate_confidence_score."""

    def test_base_score(self, make_rule):
        """A plain rule scores the base 70."""
        rule = make_rule(conditions=[{"field": "a", "operator": "equals", "value": 1}])
        assert calculate_confidence_score(rule) == 70

    def test_high_success_rate_and_many_conditions(self, make_rule):
        """Success rate above 80 and 3 conditions add 25."""
        rule = make_rule(conditions=THREE_CONDITIONS, success_rate=90.0)
        assert calculate_confidence_score(rule) == 95

    def test_success_rate_bonus_is_strictly_above_80(self, make_rule):
        rule = make_rule(success_rate=80.0)
        assert calculate_confidence_score(rule) == 70

    def test_unattended_penalty(self, make_rule):
        """Auto-execution without approval costs 5 points."""
        rule = make_rule(auto_execute=True, requires_approval=False)
        assert calculate_confidence_score(rule) == 65

    def test_no_penalty_when_approval_required(self, make_rule):
        rule = make_rule(auto_execute=True, requires_approval=True)
        assert calculate_confidence_score(rule) == 70

    def test_all_adjustments(self, make_rule):
        rule = make_rule(
            conditions=THREE_CONDITIONS,
            success_rate=100.0,
            auto_execute=True,
        )
        assert calculate_confidence_score(rule) == 90


class TestConfidenceLevel:
    """Tests for confidence_level thresholds."""

    @pytest.mark.parametrize(
        ("score", "expected"),
        [
            (100, ConfidenceLevel.VERY_HIGH),
            (95, ConfidenceLevel.VERY_HIGH),
            (90, ConfidenceLevel.VERY_HIGH),
            (89, ConfidenceLevel.HIGH),
            (75, ConfidenceLevel.HIGH),
            (74, ConfidenceLevel.MEDIUM),
            (65, ConfidenceLevel.MEDIUM),
            (50, ConfidenceLevel.MEDIUM),
            (49, ConfidenceLevel.LOW),
            (25, ConfidenceLevel.LOW),
            (24, ConfidenceLevel.VERY_LOW),
            (0, ConfidenceLevel.VERY_LOW),
        ],
    )
    def test_thresholds(self, score, expected):
        assert confidence_level(score) == expected

    def test_default_score_is_low(self):
        """The fallback escalation is always labelled low."""
        assert confidence_level(DEFAULT_CONFIDENCE_SCORE) == ConfidenceLevel.LOW


class TestReasoningAndFactors:
    """Tests for reasoning text and factor extraction."""

    def test_reasoning_mentions_rule_and_conditions(self, make_rule):
        rule = make_rule(
            name="Small office expenses",
            description="Office supplies under 10k",
            conditions=THREE_CONDITIONS[:2],
            auto_execute=True,
        )
        assert build_reasoning(rule) == (
            'Rule "Small office expenses" applied. 2 condition(s) met. '
            "Automatic execution enabled. Office supplies under 10k"
        )

    def test_reasoning_without_conditions_or_description(self, make_rule):
        rule = make_rule(name="Catch all", description="")
        assert build_reasoning(rule) == 'Rule "Catch all" applied.'

    @pytest.mark.parametrize(
        ("operator", "expected"),
        [
            ("greater_than", FactorImpact.POSITIVE),
            ("greater_than_or_equal", FactorImpact.POSITIVE),
            ("less_than", FactorImpact.NEGATIVE),
            ("less_than_or_equal", FactorImpact.NEGATIVE),
            ("equals", FactorImpact.NEUTRAL),
            ("between", FactorImpact.NEUTRAL),
        ],
    )
    def test_determine_impact(self, operator, expected):
        assert determine_impact(operator) == expected

    def test_extract_factors_reads_context(self, make_rule):
        """One factor per condition, missing values become None."""
        rule = make_rule(
            conditions=[
                {"field": "customer.totalSpent", "operator": "greater_than", "value": 1000},
                {"field": "region", "operator": "equals", "value": "EU"},
            ]
        )
        factors = extract_factors(rule, {"customer": {"totalSpent": 1500}})

        assert [f.factor for f in factors] == ["customer.totalSpent", "region"]
        assert factors[0].value == 1500
        assert factors[0].impact == FactorImpact.POSITIVE
        assert factors[1].value is None
        assert all(f.weight == 1.0 for f in factors)


class TestSuccessRate:
    """Tests for success_rate."""

    def test_no_outcomes_is_zero(self):
        assert success_rate(0, 0) == 0.0

    def test_percentage(self):
        assert success_rate(3, 1) == 75.0
        assert success_rate(1, 0) == 100.0
