"""Operator and action metadata for rule authoring screens."""

from __future__ import annotations

from .conditions import to_text
from .serialization import serialize_condition
from .service import (
    NO_VALUE_OPERATORS,
    ActionType,
    RuleAction,
    RuleCondition,
    RuleOperator,
    normalize_operator,
)

OPERATOR_DISPLAY_NAMES: dict[RuleOperator, str] = {
    RuleOperator.EQUALS: "Equals",
    RuleOperator.NOT_EQUALS: "Not Equals",
    RuleOperator.CONTAINS: "Contains",
    RuleOperator.NOT_CONTAINS: "Does Not Contain",
    RuleOperator.GREATER_THAN: "Greater Than",
    RuleOperator.GREATER_THAN_OR_EQUAL: "Greater Than or Equal",
    RuleOperator.LESS_THAN: "Less Than",
    RuleOperator.LESS_THAN_OR_EQUAL: "Less Than or Equal",
    RuleOperator.IN: "Is One Of",
    RuleOperator.NOT_IN: "Is Not One Of",
    RuleOperator.BETWEEN: "Between",
    RuleOperator.REGEX: "Matches Pattern",
    RuleOperator.IS_EMPTY: "Is Empty",
    RuleOperator.IS_NOT_EMPTY: "Is Not Empty",
    RuleOperator.DATE_BEFORE: "Date Before",
    RuleOperator.DATE_AFTER: "Date After",
    RuleOperator.DATE_BETWEEN: "Date Between",
}

ACTION_DISPLAY_NAMES: dict[ActionType, str] = {
    ActionType.SHOW_QUESTION: "Show Question",
    ActionType.HIDE_QUESTION: "Hide Question",
    ActionType.VALIDATE: "Validate",
    ActionType.REQUIRE_DOCUMENT: "Require Document",
    ActionType.BLOCK_SUBMISSION: "Block Submission",
    ActionType.SET_VALUE: "Set Value",
    ActionType.SHOW_WARNING: "Show Warning",
    ActionType.CALCULATE_VALUE: "Calculate Value",
}

_EMPTINESS = [RuleOperator.IS_EMPTY, RuleOperator.IS_NOT_EMPTY]

OPERATORS_BY_FIELD_TYPE: dict[str, list[RuleOperator]] = {
    "text": [
        RuleOperator.EQUALS,
        RuleOperator.NOT_EQUALS,
        RuleOperator.CONTAINS,
        RuleOperator.NOT_CONTAINS,
        *_EMPTINESS,
        RuleOperator.REGEX,
    ],
    "number": [
        RuleOperator.EQUALS,
        RuleOperator.NOT_EQUALS,
        RuleOperator.GREATER_THAN,
        RuleOperator.GREATER_THAN_OR_EQUAL,
        RuleOperator.LESS_THAN,
        RuleOperator.LESS_THAN_OR_EQUAL,
        RuleOperator.BETWEEN,
        *_EMPTINESS,
    ],
    "date": [
        RuleOperator.EQUALS,
        RuleOperator.NOT_EQUALS,
        RuleOperator.DATE_BEFORE,
        RuleOperator.DATE_AFTER,
        RuleOperator.DATE_BETWEEN,
        *_EMPTINESS,
    ],
    "select": [RuleOperator.EQUALS, RuleOperator.NOT_EQUALS, RuleOperator.IN, RuleOperator.NOT_IN, *_EMPTINESS],
    "file": list(_EMPTINESS),
}

ARRAY_OPERATORS = {RuleOperator.IN, RuleOperator.NOT_IN, RuleOperator.BETWEEN, RuleOperator.DATE_BETWEEN}
DATE_OPERATORS = {RuleOperator.DATE_BEFORE, RuleOperator.DATE_AFTER, RuleOperator.DATE_BETWEEN}


def get_operator_display_name(operator: str) -> str:
    op = normalize_operator(operator)
    return OPERATOR_DISPLAY_NAMES[op] if op else operator


def get_action_type_display_name(action_type: str) -> str:
    try:
        return ACTION_DISPLAY_NAMES[ActionType(action_type)]
    except ValueError:
        return action_type


def operators_for_field_type(field_type: str) -> list[RuleOperator]:
    """Operators that make sense for a question's field type ([] if unknown)."""
    return list(OPERATORS_BY_FIELD_TYPE.get(field_type, []))


def operator_requires_array(operator: str) -> bool:
    return normalize_operator(operator) in ARRAY_OPERATORS


def operator_requires_date(operator: str) -> bool:
    return normalize_operator(operator) in DATE_OPERATORS


def operator_requires_no_value(operator: str) -> bool:
    return normalize_operator(operator) in NO_VALUE_OPERATORS


def describe_operators() -> list[dict]:
    """Operator metadata for the authoring UI."""
    return [
        {
            "operator": op.value,
            "label": OPERATOR_DISPLAY_NAMES[op],
            "requires_array": op in ARRAY_OPERATORS,
            "requires_date": op in DATE_OPERATORS,
            "requires_no_value": op in NO_VALUE_OPERATORS,
        }
        for op in RuleOperator
    ]


def format_condition_for_display(condition: RuleCondition) -> str:
    """One-line summary, e.g. ``claim_amount Greater Than 1000``."""
    label = get_operator_display_name(condition.operator)
    if operator_requires_no_value(condition.operator):
        return f"{condition.field} {label}"

    value = serialize_condition(condition)["value"]
    if isinstance(value, list):
        return f"{condition.field} {label} [{', '.join(to_text(v) for v in value)}]"
    if isinstance(value, dict) and value.get("type") == "relative":
        return f"{condition.field} {label} {_describe_relative(value)}"
    return f"{condition.field} {label} {to_text(value)}"


def _describe_relative(value: dict) -> str:
    parts = [
        f"{value[unit]:+d} {unit}"
        for unit in ("days", "months", "years")
        if isinstance(value.get(unit), int) and value[unit]
    ]
    anchor = value.get("from", "now")
    return f"{anchor} {' '.join(parts)}" if parts else anchor


def format_action_for_display(action: RuleAction) -> str:
    """One-line summary, e.g. ``Show Question: q1_country``."""
    label = get_action_type_display_name(action.type)

    if action.type in (ActionType.SHOW_QUESTION.value, ActionType.HIDE_QUESTION.value):
        return f"{label}: {action.target_question_id}"
    if action.type == ActionType.VALIDATE.value:
        return f"{label}: {action.error_message or 'Validation failed'}"
    if action.type == ActionType.REQUIRE_DOCUMENT.value:
        return f"{label}: {', '.join(action.document_types or []) or 'Documents'}"
    if action.type == ActionType.BLOCK_SUBMISSION.value:
        return f"{label}: {action.error_message or 'Submission blocked'}"
    if action.type == ActionType.SET_VALUE.value:
        return f"{label}: {action.target_question_id} = {to_text(action.value)}"
    if action.type == ActionType.SHOW_WARNING.value:
        return f"{label}: {action.warning_message or action.error_message or 'Warning'}"
    return label
