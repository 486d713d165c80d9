"""Claim Rules Engine - declarative rule evaluation for claim questionnaires.

Decides, for a set of collected answers, which questions are shown or
hidden, which validations fail, which documents are required, whether
submission is blocked and which fields are auto-populated.
"""

from .rules import (
    Rule,
    RuleEvaluationContext,
    RuleEvaluationResult,
    RuleLoader,
    evaluate,
)

__version__ = "0.1.0"

__all__ = [
    "Rule",
    "RuleEvaluationContext",
    "RuleEvaluationResult",
    "RuleLoader",
    "evaluate",
]
