"""Tests for applying rule actions to an evaluation result."""

import logging

from backend.rules import (
    DEFAULT_ALLOWED_FORMATS,
    RuleAction,
    RuleEvaluationResult,
    apply_action,
    apply_actions,
)

from conftest import make_rule


def apply(action: dict, rule_error: str | None = None) -> tuple[bool, RuleEvaluationResult]:
    rule = make_rule("r1", [], [action], error_message=rule_error)
    result = RuleEvaluationResult()
    changed = apply_action(rule, RuleAction.model_validate(action), result)
    return changed, result


class TestVisibility:
    def test_show_question(self):
        changed, result = apply({"type": "show_question", "targetQuestionId": "receipts"})
        assert changed is True
        assert result.visible_questions == {"receipts"}
        assert result.passed is True

    def test_show_then_hide_keeps_sets_disjoint(self):
        rule = make_rule("r1", [], [])
        result = RuleEvaluationResult()
        apply_action(rule, RuleAction(type="show_question", target_question_id="q"), result)
        apply_action(rule, RuleAction(type="hide_question", target_question_id="q"), result)

        assert result.hidden_questions == {"q"}
        assert result.visible_questions == set()

        apply_action(rule, RuleAction(type="show_question", target_question_id="q"), result)
        assert result.visible_questions == {"q"}
        assert result.hidden_questions == set()

    def test_idempotent(self):
        rule = make_rule("r1", [], [])
        result = RuleEvaluationResult()
        action = RuleAction(type="show_question", target_question_id="q")
        apply_action(rule, action, result)
        apply_action(rule, action, result)
        assert result.visible_questions == {"q"}

    def test_missing_target_is_noop(self):
        changed, result = apply({"type": "hide_question"})
        assert changed is False
        assert result.hidden_questions == set()


class TestValidate:
    def test_action_message(self):
        _, result = apply({"type": "validate", "errorMessage": "Amount too high"}, rule_error="Rule says no")
        assert result.passed is False
        assert result.errors == ["Amount too high"]

    def test_falls_back_to_rule_message(self):
        _, result = apply({"type": "validate"}, rule_error="Rule says no")
        assert result.errors == ["Rule says no"]

    def test_default_message(self):
        _, result = apply({"type": "validate"})
        assert result.errors == ["Validation failed"]
        assert result.blocked_submission is False


class TestRequireDocument:
    def test_defaults(self):
        _, result = apply({"type": "require_document", "targetQuestionId": "receipts"})
        [doc] = result.required_documents
        assert doc.question_id == "receipts"
        assert doc.document_types == []
        assert doc.min_files == 1
        assert doc.max_files == 10
        assert doc.allowed_formats == DEFAULT_ALLOWED_FORMATS
        assert doc.max_file_size is None

    def test_overrides(self):
        _, result = apply(
            {
                "type": "require_document",
                "targetQuestionId": "medical_bills",
                "documentTypes": ["invoice"],
                "minFiles": 2,
                "maxFiles": 5,
                "allowedFormats": ["pdf"],
                "maxFileSize": 5_000_000,
                "errorMessage": "Upload your bills",
            }
        )
        [doc] = result.required_documents
        assert doc.document_types == ["invoice"]
        assert (doc.min_files, doc.max_files) == (2, 5)
        assert doc.allowed_formats == ["pdf"]
        assert doc.max_file_size == 5_000_000
        assert doc.message == "Upload your bills"

    def test_zero_min_files_is_kept(self):
        _, result = apply({"type": "require_document", "targetQuestionId": "photos", "minFiles": 0})
        assert result.required_documents[0].min_files == 0

    def test_defaults_are_not_shared(self):
        _, first = apply({"type": "require_document", "targetQuestionId": "a"})
        first.required_documents[0].allowed_formats.append("exe")
        assert "exe" not in DEFAULT_ALLOWED_FORMATS

    def test_missing_target_is_noop(self):
        changed, result = apply({"type": "require_document"})
        assert changed is False
        assert result.required_documents == []


class TestBlockSubmission:
    def test_blocks_with_one_error(self):
        _, result = apply({"type": "block_submission", "errorMessage": "Filed too late"})
        assert result.blocked_submission is True
        assert result.block_reason == "Filed too late"
        assert result.errors == ["Filed too late"]

    def test_does_not_touch_passed(self):
        _, result = apply({"type": "block_submission"})
        assert result.passed is True
        assert result.block_reason == "Submission blocked"

    def test_rule_message_fallback(self):
        _, result = apply({"type": "block_submission"}, rule_error="Outside policy period")
        assert result.block_reason == "Outside policy period"


class TestSetValue:
    def test_sets_value(self):
        _, result = apply({"type": "set_value", "targetQuestionId": "needs_review", "value": True})
        assert result.field_values == {"needs_review": True}

    def test_explicit_null_is_written(self):
        changed, result = apply({"type": "set_value", "targetQuestionId": "note", "value": None})
        assert changed is True
        assert result.field_values == {"note": None}

    def test_missing_value_is_noop(self):
        changed, result = apply({"type": "set_value", "targetQuestionId": "note"})
        assert changed is False
        assert result.field_values == {}

    def test_last_write_wins(self):
        rule = make_rule("r1", [], [])
        result = RuleEvaluationResult()
        apply_actions(
            rule,
            [
                RuleAction(type="set_value", target_question_id="tier", value="gold"),
                RuleAction(type="set_value", target_question_id="tier", value="silver"),
            ],
            result,
        )
        assert result.field_values == {"tier": "silver"}


class TestShowWarning:
    def test_warning_message(self):
        _, result = apply({"type": "show_warning", "warningMessage": "Check receipts"})
        assert result.warnings == ["Check receipts"]
        assert result.passed is True

    def test_error_message_fallback(self):
        _, result = apply({"type": "show_warning", "errorMessage": "Heads up"})
        assert result.warnings == ["Heads up"]

    def test_default(self):
        _, result = apply({"type": "show_warning"})
        assert result.warnings == ["Warning"]


class TestNoOps:
    def test_calculate_value(self):
        changed, result = apply({"type": "calculate_value", "targetQuestionId": "payout"})
        assert changed is False
        assert result == RuleEvaluationResult()

    def test_unknown_type_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="backend.rules.actions"):
            changed, result = apply({"type": "send_email"})
        assert changed is False
        assert result == RuleEvaluationResult()
        assert "send_email" in caplog.text

    def test_apply_actions_reports_applied_types(self):
        rule = make_rule("r1", [], [])
        applied = apply_actions(
            rule,
            [
                RuleAction(type="show_question", target_question_id="q"),
                RuleAction(type="calculate_value"),
                RuleAction(type="show_warning"),
            ],
            RuleEvaluationResult(),
        )
        assert applied == ["show_question", "show_warning"]
