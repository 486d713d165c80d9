"""Tests for the YAML rule loader."""

import logging

import pytest
import yaml

from backend.rules import RuleLoader, RuleType, create_condition
from backend.rules.serialization import parse_rule_conditions

from conftest import make_rule


class TestRuleLoader:
    def test_load_shipped_rules(self, rule_loader):
        rules = rule_loader.get_all_rules()
        assert len(rules) == 14
        assert rule_loader.get_rule("templates") is None

    def test_rules_per_coverage_type(self, rule_loader):
        counts = {
            coverage: len(rule_loader.get_rules_for_coverage_type(coverage))
            for coverage in ("medical", "trip_cancellation", "baggage", "flight_delay")
        }
        assert counts == {"medical": 6, "trip_cancellation": 3, "baggage": 3, "flight_delay": 2}

    def test_get_rule(self, rule_loader):
        rule = rule_loader.get_rule("medical_require_bills")
        assert rule.rule_type == RuleType.DOCUMENT
        assert rule.priority == 20
        assert rule.actions[0]["targetQuestionId"] == "medical_bills"
        assert rule_loader.get_rule("nonexistent") is None

    def test_rules_by_type(self, rule_loader):
        eligibility = rule_loader.get_rules_by_type("eligibility")
        assert {r.id for r in eligibility} == {
            "medical_filing_deadline",
            "cancellation_before_policy_start",
            "delay_minimum_duration",
        }

    def test_inactive_rule_is_loaded(self, rule_loader):
        assert rule_loader.get_rule("delay_calculated_compensation").is_active is False

    def test_single_record_file(self, tmp_path):
        path = tmp_path / "one.yaml"
        path.write_text("id: solo\nconditions: []\nactions: [{type: validate}]\n")
        [rule] = RuleLoader().load_file(path)
        assert rule.id == "solo"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert RuleLoader().load_file(path) == []

    def test_bad_file_is_skipped(self, tmp_path, caplog):
        (tmp_path / "a_good.yaml").write_text("- id: good\n")
        (tmp_path / "b_invalid.yaml").write_text("- name: missing id\n")
        (tmp_path / "c_broken.yaml").write_text("- id: [unclosed\n")

        loader = RuleLoader(tmp_path)
        with caplog.at_level(logging.WARNING, logger="backend.rules.loader"):
            rules = loader.load_directory()

        assert [r.id for r in rules] == ["good"]
        assert "b_invalid.yaml" in caplog.text
        assert "c_broken.yaml" in caplog.text

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            RuleLoader(tmp_path / "missing").load_directory()

    def test_no_directory(self):
        with pytest.raises(ValueError):
            RuleLoader().load_directory()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            RuleLoader().load_file(tmp_path / "missing.yaml")


class TestSaveRule:
    def test_save_and_reload(self, tmp_path):
        rule = make_rule(
            "deadline",
            [create_condition("incident_date", "date_before", {"type": "relative", "days": -90, "from": "now"})],
            [{"type": "block_submission", "errorMessage": "Too late"}],
            priority=50,
            rule_type="eligibility",
        )
        loader = RuleLoader(tmp_path)
        path = loader.save_rule(rule)

        assert path == tmp_path / "deadline.yaml"
        stored = yaml.safe_load(path.read_text())
        assert stored["conditions"][0]["value"] == {"type": "relative", "days": -90, "from": "now"}
        assert stored["actions"] == [{"type": "block_submission", "errorMessage": "Too late"}]

        [reloaded] = RuleLoader(tmp_path).load_directory()
        assert reloaded.priority == 50
        assert reloaded.rule_type == RuleType.ELIGIBILITY
        [condition] = parse_rule_conditions(reloaded)
        assert condition.value.days == -90

    def test_save_requires_a_destination(self):
        with pytest.raises(ValueError):
            RuleLoader().save_rule(make_rule("r", [], []))
