"""JSON (de)serialization of rule conditions, actions and rule records.

Stored rules keep their conditions and actions as JSON blobs. Loading is
lenient: malformed entries are dropped instead of failing the whole load.
The ``load_*`` functions also report what was dropped and why, so callers
can tell "no conditions" from "conditions present but corrupt". The
``parse_rule_*`` functions used by the engine are strict and reject a rule
with any malformed entry.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError
from pydantic_core import to_jsonable_python

from .service import (
    NO_VALUE_OPERATORS,
    LogicalOperator,
    Rule,
    RuleAction,
    RuleCondition,
    normalize_operator,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_LOGICAL_VALUES = {op.value for op in LogicalOperator}


class RuleDefinitionError(ValueError):
    """A rule's stored conditions or actions cannot be used as written."""


@dataclass
class DroppedEntry:
    """An entry skipped during deserialization."""

    index: int
    reason: str


@dataclass
class DeserializationResult(Generic[T]):
    """Parsed entries plus a record of everything that was skipped."""

    items: list[T] = field(default_factory=list)
    dropped: list[DroppedEntry] = field(default_factory=list)
    valid_container: bool = True

    @property
    def ok(self) -> bool:
        """True when the blob was a list and nothing was dropped."""
        return self.valid_container and not self.dropped


# =============================================================================
# Shape Validation
# =============================================================================


def _condition_problem(item: Any) -> str | None:
    if not isinstance(item, dict):
        return "not an object"
    for key in ("field", "operator"):
        if key not in item:
            return f"missing '{key}'"
    if not isinstance(item["field"], str):
        return "'field' is not a string"
    if not isinstance(item["operator"], str):
        return "'operator' is not a string"
    if "value" not in item and normalize_operator(item["operator"]) not in NO_VALUE_OPERATORS:
        return "missing 'value'"
    for key in ("logicalOperator", "logical_operator"):
        if item.get(key) is not None and item[key] not in _LOGICAL_VALUES:
            return f"invalid logical operator {item[key]!r}"
    return None


def _action_problem(item: Any) -> str | None:
    if not isinstance(item, dict):
        return "not an object"
    if not isinstance(item.get("type"), str):
        return "missing 'type'"
    return None


def validate_rule_condition(item: Any) -> bool:
    """True if ``item`` has the stored shape of a condition."""
    return _condition_problem(item) is None


def validate_rule_action(item: Any) -> bool:
    """True if ``item`` has the stored shape of an action."""
    return _action_problem(item) is None


# =============================================================================
# Serialization
# =============================================================================


def _value_to_json(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    return to_jsonable_python(value)


def serialize_condition(condition: RuleCondition | dict[str, Any]) -> dict[str, Any]:
    if isinstance(condition, dict):
        return to_jsonable_python(condition)
    data = {
        "field": condition.field,
        "operator": condition.operator,
        "value": _value_to_json(condition.value),
    }
    if "logical_operator" in condition.model_fields_set:
        data["logicalOperator"] = condition.logical_operator.value
    return data


def serialize_action(action: RuleAction | dict[str, Any]) -> dict[str, Any]:
    if isinstance(action, dict):
        return to_jsonable_python(action)
    return action.model_dump(mode="json", by_alias=True, exclude_unset=True)


def serialize_rule_conditions(conditions: Iterable[RuleCondition | dict[str, Any]]) -> list[dict[str, Any]]:
    """Conditions as JSON-ready dicts in the stored (camelCase) shape."""
    return [serialize_condition(c) for c in conditions]


def serialize_rule_actions(actions: Iterable[RuleAction | dict[str, Any]]) -> list[dict[str, Any]]:
    """Actions as JSON-ready dicts in the stored (camelCase) shape."""
    return [serialize_action(a) for a in actions]


def serialize_rule(rule: Rule) -> dict[str, Any]:
    """A rule record with its conditions and actions in stored shape."""
    data = rule.model_dump(mode="json", exclude={"conditions", "actions"})
    data["conditions"] = _blob_to_json(rule.conditions, serialize_condition)
    data["actions"] = _blob_to_json(rule.actions, serialize_action)
    return data


def _blob_to_json(blob: Any, convert) -> Any:
    if isinstance(blob, (list, tuple)):
        return [
            convert(item) if isinstance(item, (BaseModel, dict)) else to_jsonable_python(item)
            for item in blob
        ]
    return to_jsonable_python(blob)


# =============================================================================
# Deserialization
# =============================================================================


def _as_list(blob: Any) -> list | None:
    if isinstance(blob, str):
        try:
            blob = json.loads(blob)
        except json.JSONDecodeError:
            return None
    if isinstance(blob, (list, tuple)):
        return list(blob)
    return None


def _load(blob: Any, model: type[BaseModel], problem) -> DeserializationResult:
    entries = _as_list(blob)
    if entries is None:
        return DeserializationResult(valid_container=False)

    result = DeserializationResult()
    for index, item in enumerate(entries):
        if isinstance(item, model):
            result.items.append(item)
            continue
        reason = problem(item)
        if reason is None:
            try:
                result.items.append(model.model_validate(item))
                continue
            except ValidationError as e:
                reason = f"invalid: {e.error_count()} validation error(s)"
        logger.debug("Dropping %s entry %d: %s", model.__name__, index, reason)
        result.dropped.append(DroppedEntry(index=index, reason=reason))
    return result


def load_conditions(blob: Any) -> DeserializationResult[RuleCondition]:
    """Parse a stored condition blob, reporting dropped entries."""
    return _load(blob, RuleCondition, _condition_problem)


def load_actions(blob: Any) -> DeserializationResult[RuleAction]:
    """Parse a stored action blob, reporting dropped entries."""
    return _load(blob, RuleAction, _action_problem)


def load_rules(rows: Any) -> DeserializationResult[Rule]:
    """Parse stored rule records; rows that are not valid rules are dropped."""
    return _load(rows, Rule, lambda item: None if isinstance(item, dict) else "not an object")


def deserialize_rule_conditions(blob: Any) -> list[RuleCondition]:
    """Well-formed conditions from a stored blob; anything else is dropped."""
    return load_conditions(blob).items


def deserialize_rule_actions(blob: Any) -> list[RuleAction]:
    """Well-formed actions from a stored blob; anything else is dropped."""
    return load_actions(blob).items


def _strict(rule: Rule, what: str, loaded: DeserializationResult) -> list:
    if not loaded.valid_container:
        raise RuleDefinitionError(f"Rule {rule.id}: {what} are not a list")
    if loaded.dropped:
        entry = loaded.dropped[0]
        raise RuleDefinitionError(f"Rule {rule.id}: {what} entry {entry.index} {entry.reason}")
    return loaded.items


def parse_rule_conditions(rule: Rule) -> list[RuleCondition]:
    """Conditions of ``rule`` for evaluation.

    Unlike ``load_conditions`` nothing is dropped: a blob that is not a list,
    or any malformed entry, raises RuleDefinitionError so the whole rule is
    skipped instead of running on a weakened condition chain.
    """
    return _strict(rule, "conditions", load_conditions(rule.conditions))


def parse_rule_actions(rule: Rule) -> list[RuleAction]:
    """Actions of ``rule``; raises RuleDefinitionError like ``parse_rule_conditions``."""
    return _strict(rule, "actions", load_actions(rule.actions))


# =============================================================================
# Builders
# =============================================================================


def create_condition(
    field: str,
    operator: str,
    value: Any,
    logical_operator: LogicalOperator | str | None = None,
) -> RuleCondition:
    """Build a condition; ``logical_operator`` is only recorded when given."""
    data: dict[str, Any] = {"field": field, "operator": operator, "value": value}
    if logical_operator is not None:
        data["logical_operator"] = logical_operator
    return RuleCondition.model_validate(data)


def create_action(type: str, **options: Any) -> RuleAction:
    """Build an action from its type and snake_case or camelCase options."""
    return RuleAction.model_validate({"type": type, **options})


def clone_condition(condition: RuleCondition) -> RuleCondition:
    return condition.model_copy(deep=True)


def clone_action(action: RuleAction) -> RuleAction:
    return action.model_copy(deep=True)
