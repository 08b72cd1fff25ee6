"""Condition evaluator for decision rules.

Decides whether a single condition holds against a context value and
folds an ordered list of conditions into one boolean.

Context values are untyped JSON (None, bool, number, str, list, dict).
Comparisons never rely on implicit coercion; the rules are:

- Numeric operators coerce both sides with ``to_number``. Anything that
  cannot be read as a number becomes NaN, and every NaN comparison is
  False.
- ``equals``/``not_equals`` compare numerically when either side is a
  number or bool and the other is a number, bool or numeric string
  (``"5000" == 5000``). Otherwise plain equality applies. None only
  equals None.
- ``contains``/``not_contains`` coerce both sides with ``to_text``.
- ``in``/``not_in`` use strict membership (no string/number coercion,
  bools never equal numbers).

Nothing here raises: a malformed condition evaluates to False so a
single bad condition fails closed instead of aborting rule evaluation.
"""

import math
from collections.abc import Callable, Mapping, Sequence
from enum import Enum
from typing import Any

import structlog

from decision_engine.models.rule import (
    ConditionOperator,
    LogicalOperator,
    RuleCondition,
)

logger = structlog.get_logger()

NAN = float("nan")


def to_number(value: Any) -> float:
    """Coerce a context value to a float, NaN when not numeric.

    Args:
        value: Any JSON-like value

    Returns:
        The numeric reading of ``value``. Missing values (None) are NaN
        so that comparisons against absent fields never match.
    """
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return NAN
    return NAN


def to_text(value: Any) -> str:
    """Coerce a context value to a string for substring tests."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(to_text(item) for item in value)
    return str(value)


def _is_numeric(value: Any) -> bool:
    return isinstance(value, (int, float))


def loose_equals(left: Any, right: Any) -> bool:
    """Equality with explicit number/string coercion.

    Args:
        left: Value found in the context
        right: Value configured on the condition

    Returns:
        True if both sides are considered equal
    """
    if left is None or right is None:
        return left is None and right is None
    if _is_numeric(left) or _is_numeric(right):
        if isinstance(left, (list, dict)) or isinstance(right, (list, dict)):
            return False
        left_num, right_num = to_number(left), to_number(right)
        if math.isnan(left_num) or math.isnan(right_num):
            return False
        return left_num == right_num
    return left == right


def strict_equals(left: Any, right: Any) -> bool:
    """Equality without coercion; bools never equal numbers."""
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def _contains(field_value: Any, condition_value: Any) -> bool:
    return to_text(condition_value) in to_text(field_value)


def _member_of(field_value: Any, condition_value: Any) -> bool:
    return any(strict_equals(field_value, item) for item in condition_value)


def _between(field_value: Any, condition_value: Any) -> bool:
    if not isinstance(condition_value, (list, tuple)) or len(condition_value) != 2:
        return False
    number = to_number(field_value)
    low, high = to_number(condition_value[0]), to_number(condition_value[1])
    return low <= number <= high


def _greater_than(field_value: Any, condition_value: Any) -> bool:
    return to_number(field_value) > to_number(condition_value)


def _greater_than_or_equal(field_value: Any, condition_value: Any) -> bool:
    return to_number(field_value) >= to_number(condition_value)


def _less_than(field_value: Any, condition_value: Any) -> bool:
    return to_number(field_value) < to_number(condition_value)


def _less_than_or_equal(field_value: Any, condition_value: Any) -> bool:
    return to_number(field_value) <= to_number(condition_value)


def _in(field_value: Any, condition_value: Any) -> bool:
    return isinstance(condition_value, (list, tuple)) and _member_of(
        field_value, condition_value
    )


def _not_in(field_value: Any, condition_value: Any) -> bool:
    return isinstance(condition_value, (list, tuple)) and not _member_of(
        field_value, condition_value
    )


_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    ConditionOperator.EQUALS.value: loose_equals,
    ConditionOperator.NOT_EQUALS.value: lambda a, b: not loose_equals(a, b),
    ConditionOperator.GREATER_THAN.value: _greater_than,
    ConditionOperator.GREATER_THAN_OR_EQUAL.value: _greater_than_or_equal,
    ConditionOperator.LESS_THAN.value: _less_than,
    ConditionOperator.LESS_THAN_OR_EQUAL.value: _less_than_or_equal,
    ConditionOperator.CONTAINS.value: _contains,
    ConditionOperator.NOT_CONTAINS.value: lambda a, b: not _contains(a, b),
    ConditionOperator.IN.value: _in,
    ConditionOperator.NOT_IN.value: _not_in,
    ConditionOperator.BETWEEN.value: _between,
}


def evaluate_condition(field_value: Any, operator: str, condition_value: Any) -> bool:
    """Decide whether a single condition holds.

    Args:
        field_value: Value looked up in the event context
        operator: Operator name (see ConditionOperator)
        condition_value: Value configured on the rule

    Returns:
        True if the condition holds. Unknown operators and malformed
        values yield False; this function never raises.
    """
    if isinstance(operator, Enum):
        operator = operator.value
    if not isinstance(operator, str):
        return False
    compare = _OPERATORS.get(operator)
    if compare is None:
        return False
    try:
        return bool(compare(field_value, condition_value))
    except Exception as e:
        logger.warning(
            "condition evaluation failed",
            operator=operator,
            error=str(e),
        )
        return False


def get_nested_value(context: Mapping[str, Any] | None, path: str) -> Any:
    """Look up a dotted path such as ``"customer.totalSpent"``.

    Numeric segments index into lists. Any missing intermediate key
    yields None rather than an error.
    """
    current: Any = context
    for key in path.split("."):
        if isinstance(current, Mapping):
            current = current.get(key)
        elif (
            isinstance(current, Sequence)
            and not isinstance(current, str)
            and key.isdigit()
            and int(key) < len(current)
        ):
            current = current[int(key)]
        else:
            return None
    return current


def evaluate_conditions(
    conditions: Sequence[RuleCondition],
    context: Mapping[str, Any] | None,
) -> bool:
    """Fold an ordered condition list into one boolean.

    The running result starts as condition 0. Each later condition i is
    combined with the running result using the logical operator stored
    on condition i-1. An empty list always matches.

    Args:
        conditions: Rule conditions in configured order
        context: Event context (reference data)

    Returns:
        True if the rule's conditions hold for this context
    """
    if not conditions:
        return True

    result = False
    combinator = LogicalOperator.AND
    for index, condition in enumerate(conditions):
        field_value = get_nested_value(context, condition.field)
        holds = evaluate_condition(field_value, condition.operator, condition.value)

        if index == 0:
            result = holds
        elif combinator == LogicalOperator.AND:
            result = result and holds
        else:
            result = result or holds

        combinator = condition.logical_operator

    return result
