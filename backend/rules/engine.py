"""Rule evaluation engine.

``evaluate(rules, context)`` is a pure function: it sorts the rules by
priority (highest first, ties keep their input order), drops inactive
ones, evaluates each rule's conditions and applies the actions of every
rule that fires. A rule that raises is logged and skipped; the rest of the
batch still runs. Inputs are never mutated and nothing is kept between
calls.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

from .actions import apply_actions
from .conditions import evaluate_conditions, evaluate_conditions_with_trace
from .dates import utc_now
from .serialization import load_rules, parse_rule_actions, parse_rule_conditions
from .service import (
    EvaluationMetadata,
    EvaluationTrace,
    Rule,
    RuleEvaluationContext,
    RuleEvaluationResult,
    RuleExecutionLog,
    RuleTestCase,
    RuleTestOutcome,
    RuleTestResult,
    RuleType,
)

logger = logging.getLogger(__name__)

RuleInput = Rule | dict[str, Any]


# =============================================================================
# Ordering and Filtering
# =============================================================================


def sort_by_priority(rules: Iterable[Rule]) -> list[Rule]:
    """Highest priority first; equal priorities keep their input order.

    Relies on ``sorted`` being stable.
    """
    return sorted(rules, key=lambda rule: -rule.priority)


def active_rules(rules: Iterable[Rule]) -> list[Rule]:
    return [rule for rule in rules if rule.is_active]


def rules_for_coverage_type(rules: Iterable[Rule], coverage_type_id: str) -> list[Rule]:
    return [rule for rule in rules if rule.coverage_type_id == coverage_type_id]


def rules_by_type(rules: Iterable[Rule], rule_type: RuleType | str) -> list[Rule]:
    rule_type = RuleType(rule_type)
    return [rule for rule in rules if rule.rule_type == rule_type]


def _coerce_rules(rules: Iterable[RuleInput]) -> list[Rule]:
    loaded = load_rules(list(rules))
    for entry in loaded.dropped:
        logger.warning("Skipping rule at position %d: %s", entry.index, entry.reason)
    return loaded.items


def _evaluation_order(rules: Iterable[RuleInput]) -> list[Rule]:
    return active_rules(sort_by_priority(_coerce_rules(rules)))


# =============================================================================
# Evaluation
# =============================================================================


def _run(
    rules: Iterable[RuleInput],
    context: RuleEvaluationContext,
    now: datetime | None,
    logs: list[RuleExecutionLog] | None = None,
) -> RuleEvaluationResult:
    result = RuleEvaluationResult()
    executed_at = now or utc_now()

    for rule in _evaluation_order(rules):
        started = time.perf_counter()
        log = RuleExecutionLog(rule_id=rule.id, rule_name=rule.name, executed_at=executed_at)
        try:
            conditions = parse_rule_conditions(rule)
            met, log.condition_trace = evaluate_conditions_with_trace(conditions, context, now)
            log.conditions_met = met
            if met:
                actions = parse_rule_actions(rule)
                log.actions_applied = apply_actions(rule, actions, result)
        except Exception as e:
            logger.exception("Error evaluating rule %s", rule.id)
            log.error = str(e)

        if logs is not None:
            log.execution_time_ms = (time.perf_counter() - started) * 1000
            logs.append(log)

    return result


def evaluate(
    rules: Iterable[RuleInput],
    context: RuleEvaluationContext,
    now: datetime | None = None,
) -> RuleEvaluationResult:
    """Evaluate a rule set against one answer context.

    Args:
        rules: Rule records, as ``Rule`` models or stored dicts. Dicts that
            are not valid rules are logged and skipped.
        context: Answers and anchor metadata.
        now: Wall-clock override used for relative dates.

    Returns:
        The net effect of all fired rules, applied in priority order.
    """
    return _run(rules, context, now)


def trace(
    rules: Iterable[RuleInput],
    context: RuleEvaluationContext,
    now: datetime | None = None,
) -> EvaluationTrace:
    """Evaluate like ``evaluate`` and also return a per-rule execution log."""
    logs: list[RuleExecutionLog] = []
    result = _run(rules, context, now, logs)
    return EvaluationTrace(result=result, rules=logs)


def evaluate_rule(
    rule: Rule,
    context: RuleEvaluationContext,
    now: datetime | None = None,
) -> bool:
    """True if the rule's conditions hold (its actions are not applied)."""
    return evaluate_conditions(parse_rule_conditions(rule), context, now)


def test_rule(
    rule: Rule,
    context: RuleEvaluationContext,
    now: datetime | None = None,
) -> RuleTestResult:
    """Check whether a rule would fire and list the actions it would apply."""
    triggered = evaluate_rule(rule, context, now)
    actions = parse_rule_actions(rule) if triggered else []
    return RuleTestResult(triggered=triggered, actions=actions)


# =============================================================================
# Test Cases and Merging
# =============================================================================


def _check(mismatches: list[str], name: str, expected: Any, actual: Any) -> None:
    if expected is not None and expected != actual:
        mismatches.append(f"{name}: expected {expected!r}, got {actual!r}")


def run_test_case(
    rules: Sequence[RuleInput],
    case: RuleTestCase,
    now: datetime | None = None,
) -> RuleTestOutcome:
    """Evaluate ``rules`` for a test case and compare with its expectations."""
    context = RuleEvaluationContext(
        answers=case.answers,
        metadata=EvaluationMetadata.model_validate(case.metadata),
    )
    result = evaluate(rules, context, now)
    expected = case.expected_result

    mismatches: list[str] = []
    _check(mismatches, "passed", expected.passed, result.passed)
    if expected.visible_questions is not None:
        _check(mismatches, "visibleQuestions", sorted(expected.visible_questions), sorted(result.visible_questions))
    if expected.hidden_questions is not None:
        _check(mismatches, "hiddenQuestions", sorted(expected.hidden_questions), sorted(result.hidden_questions))
    _check(mismatches, "errors", expected.errors, result.errors)
    _check(mismatches, "warnings", expected.warnings, result.warnings)
    _check(mismatches, "blockedSubmission", expected.blocked_submission, result.blocked_submission)

    return RuleTestOutcome(
        name=case.name,
        passed=not mismatches,
        mismatches=mismatches,
        result=result,
    )


def _unique(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))


def merge_results(results: Iterable[RuleEvaluationResult]) -> RuleEvaluationResult:
    """Combine results from separate evaluations (e.g. per coverage type).

    Later results win show/hide conflicts and field values. Errors and
    warnings are de-duplicated, keeping first occurrence order.
    """
    merged = RuleEvaluationResult()
    errors: list[str] = []
    warnings: list[str] = []

    for result in results:
        merged.passed = merged.passed and result.passed
        errors.extend(result.errors)
        warnings.extend(result.warnings)
        for question_id in result.visible_questions:
            merged.visible_questions.add(question_id)
            merged.hidden_questions.discard(question_id)
        for question_id in result.hidden_questions:
            merged.hidden_questions.add(question_id)
            merged.visible_questions.discard(question_id)
        merged.required_documents.extend(result.required_documents)
        if result.blocked_submission:
            merged.blocked_submission = True
            merged.block_reason = result.block_reason
        merged.field_values.update(result.field_values)

    merged.errors = _unique(errors)
    merged.warnings = _unique(warnings)
    return merged
