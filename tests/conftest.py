"""Pytest fixtures for test suite."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

from backend.rules import (
    EvaluationMetadata,
    Rule,
    RuleEvaluationContext,
    RuleLoader,
)

# Fixed wall clock for anything involving relative dates
NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def days_ago(days: int) -> str:
    """ISO date string ``days`` before NOW."""
    return (NOW - timedelta(days=days)).date().isoformat()


def make_context(answers: dict[str, Any] | None = None, **metadata: Any) -> RuleEvaluationContext:
    return RuleEvaluationContext(
        answers=answers or {},
        metadata=EvaluationMetadata.model_validate(metadata),
    )


def make_rule(rule_id: str, conditions: list, actions: list, **kwargs: Any) -> Rule:
    return Rule(id=rule_id, name=rule_id, conditions=conditions, actions=actions, **kwargs)


# =============================================================================
# Core Fixtures
# =============================================================================


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def rules_dir() -> Path:
    """Path to the shipped rules directory."""
    return Path(__file__).parent.parent / "backend" / "rules" / "data"


@pytest.fixture
def rule_loader(rules_dir: Path) -> RuleLoader:
    """Rule loader with the shipped rules loaded."""
    loader = RuleLoader(rules_dir)
    loader.load_directory()
    return loader


@pytest.fixture
def medical_rules(rule_loader: RuleLoader) -> list[Rule]:
    return rule_loader.get_rules_for_coverage_type("medical")
