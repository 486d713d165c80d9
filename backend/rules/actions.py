"""Applying fired rule actions to an evaluation result."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from .service import (
    DEFAULT_ALLOWED_FORMATS,
    DEFAULT_MAX_FILES,
    DEFAULT_MIN_FILES,
    ActionType,
    DocumentRequirement,
    Rule,
    RuleAction,
    RuleEvaluationResult,
)

logger = logging.getLogger(__name__)

ActionHandler = Callable[[Rule, RuleAction, RuleEvaluationResult], bool]


def _show_question(rule: Rule, action: RuleAction, result: RuleEvaluationResult) -> bool:
    target = action.target_question_id
    if not target:
        return False
    result.visible_questions.add(target)
    result.hidden_questions.discard(target)
    return True


def _hide_question(rule: Rule, action: RuleAction, result: RuleEvaluationResult) -> bool:
    target = action.target_question_id
    if not target:
        return False
    result.hidden_questions.add(target)
    result.visible_questions.discard(target)
    return True


def _validate(rule: Rule, action: RuleAction, result: RuleEvaluationResult) -> bool:
    result.passed = False
    result.errors.append(action.error_message or rule.error_message or "Validation failed")
    return True


def _require_document(rule: Rule, action: RuleAction, result: RuleEvaluationResult) -> bool:
    if not action.target_question_id:
        return False
    result.required_documents.append(
        DocumentRequirement(
            question_id=action.target_question_id,
            document_types=list(action.document_types or []),
            min_files=action.min_files if action.min_files is not None else DEFAULT_MIN_FILES,
            max_files=action.max_files if action.max_files is not None else DEFAULT_MAX_FILES,
            allowed_formats=list(action.allowed_formats or DEFAULT_ALLOWED_FORMATS),
            max_file_size=action.max_file_size,
            message=action.error_message,
        )
    )
    return True


def _block_submission(rule: Rule, action: RuleAction, result: RuleEvaluationResult) -> bool:
    reason = action.error_message or rule.error_message or "Submission blocked"
    result.blocked_submission = True
    result.block_reason = reason
    result.errors.append(reason)
    return True


def _set_value(rule: Rule, action: RuleAction, result: RuleEvaluationResult) -> bool:
    if not action.target_question_id or not action.has_value:
        return False
    result.field_values[action.target_question_id] = action.value
    return True


def _show_warning(rule: Rule, action: RuleAction, result: RuleEvaluationResult) -> bool:
    result.warnings.append(action.warning_message or action.error_message or "Warning")
    return True


def _calculate_value(rule: Rule, action: RuleAction, result: RuleEvaluationResult) -> bool:
    # Reserved: no calculation semantics defined yet.
    logger.debug("Rule %s: calculate_value has no runtime behavior, skipped", rule.id)
    return False


# Registry of action handlers
ACTION_HANDLERS: dict[ActionType, ActionHandler] = {
    ActionType.SHOW_QUESTION: _show_question,
    ActionType.HIDE_QUESTION: _hide_question,
    ActionType.VALIDATE: _validate,
    ActionType.REQUIRE_DOCUMENT: _require_document,
    ActionType.BLOCK_SUBMISSION: _block_submission,
    ActionType.SET_VALUE: _set_value,
    ActionType.SHOW_WARNING: _show_warning,
    ActionType.CALCULATE_VALUE: _calculate_value,
}


def apply_action(rule: Rule, action: RuleAction, result: RuleEvaluationResult) -> bool:
    """Apply one action to ``result`` in place.

    Returns True if the action changed the result. Actions missing their
    required payload and unknown action types are no-ops.
    """
    try:
        action_type = ActionType(action.type)
    except ValueError:
        logger.warning("Rule %s: unknown action type %r ignored", rule.id, action.type)
        return False
    return ACTION_HANDLERS[action_type](rule, action, result)


def apply_actions(
    rule: Rule,
    actions: Sequence[RuleAction],
    result: RuleEvaluationResult,
) -> list[str]:
    """Apply a fired rule's actions in order; return the types that took effect."""
    applied = []
    for action in actions:
        if apply_action(rule, action, result):
            applied.append(action.type)
    return applied
