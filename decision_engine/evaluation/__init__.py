"""Condition evaluation for decision rules."""

from decision_engine.evaluation.conditions import (
    evaluate_condition,
    evaluate_conditions,
    get_nested_value,
    to_number,
    to_text,
)

__all__ = [
    "evaluate_condition",
    "evaluate_conditions",
    "get_nested_value",
    "to_number",
    "to_text",
]
