"""Pydantic models for rules API requests and responses."""

from typing import Any

from pydantic import BaseModel, Field

from .service import Rule, RuleEvaluationContext


# =============================================================================
# Evaluation Models
# =============================================================================


class EvaluateRequest(BaseModel):
    """Request to evaluate a rule set against collected answers."""

    context: RuleEvaluationContext
    rules: list[dict[str, Any]] | None = Field(
        None, description="Inline rule records; loaded rules are used when omitted"
    )
    coverage_type_id: str | None = Field(
        None, description="Restrict loaded rules to one coverage type"
    )


class RuleTestRequest(BaseModel):
    """Request to check whether a single rule would fire."""

    rule: Rule
    context: RuleEvaluationContext


# =============================================================================
# Catalog Models
# =============================================================================


class RuleInfo(BaseModel):
    """Summary information about a loaded rule."""

    id: str
    name: str
    rule_type: str
    coverage_type_id: str | None
    priority: int
    priority_label: str
    is_active: bool


class RulesListResponse(BaseModel):
    """List of loaded rules."""

    rules: list[RuleInfo]
    total: int


class ApplyTemplateRequest(BaseModel):
    """Placeholder values for a template."""

    values: dict[str, Any] = Field(default_factory=dict)


class OperatorInfo(BaseModel):
    """Metadata for one condition operator."""

    operator: str
    label: str
    requires_array: bool
    requires_date: bool
    requires_no_value: bool
