"""Condition evaluation and AND/OR chaining."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from .dates import parse_date, resolve_date_value
from .service import (
    LogicalOperator,
    RuleCondition,
    RuleEvaluationContext,
    RuleOperator,
    TraceStep,
    normalize_operator,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Coercion Helpers
# =============================================================================


def to_number(value: Any) -> float | None:
    """Numeric value of ``value``, or None if it is not numeric.

    Numbers and plain numeric strings convert. Bools, None, blank strings,
    digit-group underscores, NaN and infinities are treated as non-numeric.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float, Decimal)):
            number = float(value)
        elif isinstance(value, str):
            text = value.strip()
            if not text or "_" in text:
                return None
            number = float(text)
        else:
            return None
    except (ValueError, OverflowError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def to_text(value: Any) -> str:
    """Render a value as text for substring and pattern tests."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(to_text(item) for item in value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def values_equal(actual: Any, expected: Any) -> bool:
    """Strict equality: nulls only equal nulls, bools never equal numbers."""
    if actual is None and expected is None:
        return True
    if actual is None or expected is None:
        return False
    if isinstance(actual, bool) != isinstance(expected, bool):
        return False
    return bool(actual == expected)


def is_empty(value: Any) -> bool:
    """True for None, empty string, empty list/tuple/set and empty mapping."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return len(value) == 0
    return False


def _pair(value: Any) -> tuple[Any, Any] | None:
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return value[0], value[1]
    return None


# =============================================================================
# Operators
# =============================================================================


def _contains(actual: Any, expected: Any) -> bool:
    if actual is None or expected is None:
        return False
    return to_text(expected).lower() in to_text(actual).lower()


def _compare(actual: Any, expected: Any, op: RuleOperator) -> bool:
    left = to_number(actual)
    right = to_number(expected)
    if left is None or right is None:
        return False

    if op == RuleOperator.GREATER_THAN:
        return left > right
    if op == RuleOperator.GREATER_THAN_OR_EQUAL:
        return left >= right
    if op == RuleOperator.LESS_THAN:
        return left < right
    return left <= right


def _in(actual: Any, expected: Any) -> bool:
    if actual is None:
        return False
    return any(values_equal(actual, item) for item in expected)


def _between(actual: Any, expected: Any) -> bool:
    bounds = _pair(expected)
    if bounds is None:
        return False
    number = to_number(actual)
    low = to_number(bounds[0])
    high = to_number(bounds[1])
    if number is None or low is None or high is None:
        return False
    return low <= number <= high


def _regex(actual: Any, pattern: Any) -> bool:
    if actual is None or not isinstance(pattern, str):
        return False
    try:
        compiled = re.compile(pattern)
    except (re.error, OverflowError, RecursionError):
        logger.debug("Invalid regex pattern: %r", pattern)
        return False
    return compiled.search(to_text(actual)) is not None


def _date_between(actual: Any, expected: Any) -> bool:
    bounds = _pair(expected)
    if bounds is None:
        return False
    value = parse_date(actual)
    start = parse_date(bounds[0])
    end = parse_date(bounds[1])
    if value is None or start is None or end is None:
        return False
    return start <= value <= end


def evaluate_condition(
    condition: RuleCondition,
    context: RuleEvaluationContext,
    now: datetime | None = None,
) -> bool:
    """Evaluate one condition against the answers in ``context``.

    Missing or ill-typed data makes the condition false; this function does
    not raise for bad data. Unknown operators evaluate to False.
    """
    op = normalize_operator(condition.operator)
    actual = context.answers.get(condition.field)
    expected = condition.value

    if op == RuleOperator.EQUALS:
        return values_equal(actual, expected)
    if op == RuleOperator.NOT_EQUALS:
        return not values_equal(actual, expected)
    if op == RuleOperator.CONTAINS:
        return _contains(actual, expected)
    if op == RuleOperator.NOT_CONTAINS:
        if actual is None or expected is None:
            return False
        return not _contains(actual, expected)
    if op in (
        RuleOperator.GREATER_THAN,
        RuleOperator.GREATER_THAN_OR_EQUAL,
        RuleOperator.LESS_THAN,
        RuleOperator.LESS_THAN_OR_EQUAL,
    ):
        return _compare(actual, expected, op)
    if op == RuleOperator.IN:
        if not isinstance(expected, (list, tuple)):
            return False
        return _in(actual, expected)
    if op == RuleOperator.NOT_IN:
        if not isinstance(expected, (list, tuple)):
            return False
        return not _in(actual, expected)
    if op == RuleOperator.BETWEEN:
        return _between(actual, expected)
    if op == RuleOperator.REGEX:
        return _regex(actual, expected)
    if op == RuleOperator.IS_EMPTY:
        return is_empty(actual)
    if op == RuleOperator.IS_NOT_EMPTY:
        return not is_empty(actual)
    if op in (RuleOperator.DATE_BEFORE, RuleOperator.DATE_AFTER):
        value = parse_date(actual)
        if value is None:
            return False
        threshold = resolve_date_value(expected, context.metadata, now)
        if threshold is None:
            return False
        if op == RuleOperator.DATE_BEFORE:
            return value < threshold
        return value > threshold
    if op == RuleOperator.DATE_BETWEEN:
        return _date_between(actual, expected)

    return False


# =============================================================================
# Logical Chaining
# =============================================================================


def evaluate_conditions_with_trace(
    conditions: Sequence[RuleCondition],
    context: RuleEvaluationContext,
    now: datetime | None = None,
) -> tuple[bool, list[TraceStep]]:
    """Fold conditions left to right, recording each condition's outcome.

    The ``logical_operator`` on condition ``i - 1`` decides how condition
    ``i`` joins the running result. There is no grouping: ``a OR b AND c``
    evaluates as ``(a OR b) AND c``. An empty list is true.
    """
    trace: list[TraceStep] = []
    result = True

    for i, condition in enumerate(conditions):
        if normalize_operator(condition.operator) is None:
            logger.warning(
                "Unknown operator %r on field %r", condition.operator, condition.field
            )
        outcome = evaluate_condition(condition, context, now)
        trace.append(
            TraceStep(
                field=condition.field,
                operator=condition.operator,
                expected=condition.value,
                value_checked=context.answers.get(condition.field),
                result=outcome,
            )
        )

        if i == 0:
            result = outcome
        elif conditions[i - 1].logical_operator == LogicalOperator.OR:
            result = result or outcome
        else:
            result = result and outcome

    return result, trace


def evaluate_conditions(
    conditions: Sequence[RuleCondition],
    context: RuleEvaluationContext,
    now: datetime | None = None,
) -> bool:
    """Evaluate a condition chain to a single boolean."""
    result, _ = evaluate_conditions_with_trace(conditions, context, now)
    return result
