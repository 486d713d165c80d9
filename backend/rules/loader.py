"""YAML rule file loader."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from .serialization import serialize_rule
from .service import Rule, RuleType

logger = logging.getLogger(__name__)

# Files in a rules directory that are not rule sets
_NON_RULE_FILES = {"templates.yaml"}


class RuleLoader:
    """Loads rule records from YAML files or directories."""

    def __init__(self, rules_dir: str | Path | None = None):
        self.rules_dir = Path(rules_dir) if rules_dir else None
        self._rules: dict[str, Rule] = {}

    def load_file(self, path: str | Path) -> list[Rule]:
        """Load rules from a single YAML file (one record or a list)."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Rule file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            content = yaml.safe_load(f)

        if content is None:
            return []
        items = content if isinstance(content, list) else [content]

        rules = []
        for item in items:
            rule = Rule.model_validate(item)
            rules.append(rule)
            self._rules[rule.id] = rule
        return rules

    def load_directory(self, path: str | Path | None = None) -> list[Rule]:
        """Load every ``*.yaml`` rule file in a directory, in name order.

        A file that fails to load is logged and skipped.
        """
        path = Path(path) if path else self.rules_dir
        if not path:
            raise ValueError("No rules directory specified")
        if not path.exists():
            raise FileNotFoundError(f"Rules directory not found: {path}")

        rules = []
        for yaml_file in sorted(path.glob("*.yaml")):
            if yaml_file.name in _NON_RULE_FILES:
                continue
            try:
                rules.extend(self.load_file(yaml_file))
            except (OSError, yaml.YAMLError, ValidationError) as e:
                logger.warning("Failed to load %s: %s", yaml_file, e)

        return rules

    def get_rule(self, rule_id: str) -> Rule | None:
        return self._rules.get(rule_id)

    def get_all_rules(self) -> list[Rule]:
        """All loaded rules, in load order."""
        return list(self._rules.values())

    def get_rules_for_coverage_type(self, coverage_type_id: str) -> list[Rule]:
        return [r for r in self._rules.values() if r.coverage_type_id == coverage_type_id]

    def get_rules_by_type(self, rule_type: RuleType | str) -> list[Rule]:
        rule_type = RuleType(rule_type)
        return [r for r in self._rules.values() if r.rule_type == rule_type]

    def save_rule(self, rule: Rule, path: str | Path | None = None) -> Path:
        """Save a rule to a YAML file.

        Args:
            rule: The rule to save.
            path: Optional path. If not provided, saves to rules_dir/{id}.yaml

        Returns:
            Path to the saved file.
        """
        if path is None:
            if self.rules_dir is None:
                raise ValueError("No rules directory specified and no path provided")
            path = self.rules_dir / f"{rule.id}.yaml"
        else:
            path = Path(path)

        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                serialize_rule(rule), f, default_flow_style=False, allow_unicode=True, sort_keys=False
            )

        self._rules[rule.id] = rule
        return path
