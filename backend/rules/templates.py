"""Rule template catalog and placeholder substitution."""

from __future__ import annotations

import copy
from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from .conditions import to_text
from .service import (
    AppliedTemplate,
    RuleAction,
    RuleCondition,
    RuleTemplate,
    RuleType,
    TemplateCategory,
)

DEFAULT_TEMPLATES_FILE = Path(__file__).parent / "data" / "templates.yaml"

# Suggested priority per rule type (eligibility checks run first)
PRIORITY_BY_RULE_TYPE: dict[str, int] = {
    RuleType.ELIGIBILITY.value: 100,
    RuleType.VALIDATION.value: 75,
    RuleType.DOCUMENT.value: 50,
    RuleType.CONDITIONAL.value: 25,
    RuleType.CALCULATION.value: 10,
}

# Keys whose string values may carry {placeholder} tokens
_CONDITION_KEYS = ("field", "value")
_ACTION_KEYS = (
    "targetQuestionId",
    "target_question_id",
    "errorMessage",
    "error_message",
    "warningMessage",
    "warning_message",
)


def load_templates(path: str | Path) -> list[RuleTemplate]:
    """Load a template catalog from a YAML list."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Template catalog not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        content = yaml.safe_load(f) or []

    return [RuleTemplate.model_validate(item) for item in content]


@lru_cache
def get_templates() -> tuple[RuleTemplate, ...]:
    """The shipped template catalog (cached)."""
    return tuple(load_templates(DEFAULT_TEMPLATES_FILE))


def get_template_by_id(
    template_id: str, templates: Iterable[RuleTemplate] | None = None
) -> RuleTemplate | None:
    for template in get_templates() if templates is None else templates:
        if template.id == template_id:
            return template
    return None


def get_templates_by_category(
    category: TemplateCategory | str, templates: Iterable[RuleTemplate] | None = None
) -> list[RuleTemplate]:
    category = TemplateCategory(category)
    catalog = get_templates() if templates is None else templates
    return [t for t in catalog if t.category == category]


def replace_placeholders(text: str, values: dict[str, Any]) -> str:
    """Replace each ``{key}`` in ``text`` with its value, literally.

    Tokens without a matching key are left untouched.
    """
    for key, value in values.items():
        text = text.replace("{" + key + "}", to_text(value))
    return text


def _fill(item: dict[str, Any], keys: tuple[str, ...], values: dict[str, Any]) -> dict[str, Any]:
    for key in keys:
        if isinstance(item.get(key), str):
            item[key] = replace_placeholders(item[key], values)
    return item


def apply_template(template: RuleTemplate, values: dict[str, Any]) -> AppliedTemplate:
    """Materialize a template into concrete conditions and actions.

    The template itself is not modified.
    """
    conditions = [
        RuleCondition.model_validate(_fill(copy.deepcopy(c), _CONDITION_KEYS, values))
        for c in template.conditions
    ]
    actions = [
        RuleAction.model_validate(_fill(copy.deepcopy(a), _ACTION_KEYS, values))
        for a in template.actions
    ]
    return AppliedTemplate(conditions=conditions, actions=actions)


def suggest_priority(rule_type: RuleType | str) -> int:
    """Suggested priority for a new rule of the given type (0 if unknown)."""
    key = rule_type.value if isinstance(rule_type, RuleType) else rule_type
    return PRIORITY_BY_RULE_TYPE.get(key, 0)


def get_priority_label(priority: int) -> str:
    if priority >= 100:
        return "Critical"
    if priority >= 75:
        return "High"
    if priority >= 50:
        return "Medium"
    if priority >= 25:
        return "Low"
    return "Normal"
