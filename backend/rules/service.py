"""Rules domain models - conditions, actions, rules, contexts and results."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum, IntEnum
from typing import Any, Literal, Union

from pydantic import (
    BaseModel,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_serializer,
    field_validator,
)


# =============================================================================
# Vocabularies
# =============================================================================


class RuleOperator(str, Enum):
    """Comparison operators for conditions."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    GREATER_THAN = "greater_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN = "less_than"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    IN = "in"
    NOT_IN = "not_in"
    BETWEEN = "between"
    REGEX = "regex"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"
    DATE_BEFORE = "date_before"
    DATE_AFTER = "date_after"
    DATE_BETWEEN = "date_between"


# Short spellings accepted in stored rules
OPERATOR_ALIASES: dict[str, RuleOperator] = {
    "gte": RuleOperator.GREATER_THAN_OR_EQUAL,
    "lte": RuleOperator.LESS_THAN_OR_EQUAL,
}


def normalize_operator(operator: str) -> RuleOperator | None:
    """Map an operator name (or alias) to RuleOperator, None if unknown."""
    if operator in OPERATOR_ALIASES:
        return OPERATOR_ALIASES[operator]
    try:
        return RuleOperator(operator)
    except ValueError:
        return None


# Operators that ignore the condition value; stored conditions may omit it
NO_VALUE_OPERATORS = frozenset({RuleOperator.IS_EMPTY, RuleOperator.IS_NOT_EMPTY})


class LogicalOperator(str, Enum):
    """Join between a condition and the next one in the list."""

    AND = "AND"
    OR = "OR"


class ActionType(str, Enum):
    """Effects a fired rule can apply."""

    SHOW_QUESTION = "show_question"
    HIDE_QUESTION = "hide_question"
    VALIDATE = "validate"
    REQUIRE_DOCUMENT = "require_document"
    BLOCK_SUBMISSION = "block_submission"
    SET_VALUE = "set_value"
    SHOW_WARNING = "show_warning"
    CALCULATE_VALUE = "calculate_value"


class RuleType(str, Enum):
    """Rule type tag."""

    CONDITIONAL = "conditional"
    VALIDATION = "validation"
    DOCUMENT = "document"
    ELIGIBILITY = "eligibility"
    CALCULATION = "calculation"


class RulePriority(IntEnum):
    """Predefined priority levels (higher runs first)."""

    CRITICAL = 100
    HIGH = 75
    MEDIUM = 50
    LOW = 25
    DEFAULT = 0


class RelativeAnchor(str, Enum):
    """Anchor dates a relative date can be computed from."""

    NOW = "now"
    SUBMISSION_DATE = "submission_date"
    POLICY_START_DATE = "policy_start_date"


DEFAULT_ALLOWED_FORMATS = ["pdf", "jpg", "jpeg", "png"]
DEFAULT_MIN_FILES = 1
DEFAULT_MAX_FILES = 10


# =============================================================================
# Conditions
# =============================================================================


class RelativeDateValue(BaseModel):
    """Offset from an anchor date, resolved at evaluation time."""

    type: Literal["relative"] = "relative"
    days: int | None = None
    months: int | None = None
    years: int | None = None
    from_: str = Field(
        RelativeAnchor.NOW.value,
        alias="from",
        description="Anchor: now, submission_date or policy_start_date",
    )

    model_config = {"populate_by_name": True, "extra": "forbid"}


# Tried left to right: a relative-date descriptor, a list, a strict scalar,
# a date, then any other mapping. Mappings with unknown keys are not
# descriptors.
ConditionValue = Union[
    RelativeDateValue,
    list[Any],
    StrictBool,
    StrictInt,
    StrictFloat,
    StrictStr,
    datetime,
    date,
    dict[str, Any],
    None,
]


class RuleCondition(BaseModel):
    """A single predicate over one answer field."""

    field: str = Field(..., description="Question ID or field name")
    operator: str = Field(..., description="One of RuleOperator (or an alias)")
    value: ConditionValue = Field(None, union_mode="left_to_right")
    logical_operator: LogicalOperator = Field(
        LogicalOperator.AND,
        alias="logicalOperator",
        description="Join with the next condition in the list",
    )

    model_config = {"populate_by_name": True}

    @field_validator("logical_operator", mode="before")
    @classmethod
    def _null_join_is_and(cls, value: Any) -> Any:
        return LogicalOperator.AND if value is None else value


# =============================================================================
# Actions
# =============================================================================


class RuleAction(BaseModel):
    """An effect applied when a rule's conditions hold."""

    type: str = Field(..., description="One of ActionType")
    target_question_id: str | None = Field(None, alias="targetQuestionId")
    error_message: str | None = Field(None, alias="errorMessage")
    warning_message: str | None = Field(None, alias="warningMessage")
    document_types: list[str] | None = Field(None, alias="documentTypes")
    min_files: int | None = Field(None, alias="minFiles")
    max_files: int | None = Field(None, alias="maxFiles")
    allowed_formats: list[str] | None = Field(None, alias="allowedFormats")
    max_file_size: int | None = Field(None, alias="maxFileSize", description="Bytes")
    value: Any = None

    model_config = {"populate_by_name": True}

    @property
    def has_value(self) -> bool:
        """True when the stored action carried a value key (null included)."""
        return "value" in self.model_fields_set


# =============================================================================
# Rules
# =============================================================================


class Rule(BaseModel):
    """A persisted rule record.

    ``conditions`` and ``actions`` hold the stored JSON as-is; they are
    parsed at evaluation time so that one corrupt record cannot break
    loading of the rest.
    """

    id: str
    name: str = ""
    description: str | None = None
    coverage_type_id: str | None = None
    questionnaire_id: str | None = None
    question_id: str | None = None
    rule_type: RuleType = RuleType.CONDITIONAL
    conditions: Any = Field(default_factory=list)
    actions: Any = Field(default_factory=list)
    priority: int = 0
    is_active: bool = True
    error_message: str | None = None
    tags: list[str] = Field(default_factory=list)


# =============================================================================
# Evaluation Context
# =============================================================================


class EvaluationMetadata(BaseModel):
    """Anchor values and caller metadata for one evaluation pass."""

    user_id: str | None = Field(None, alias="userId")
    policy_id: str | None = Field(None, alias="policyId")
    coverage_type_id: str | None = Field(None, alias="coverageTypeId")
    submission_date: Any = Field(None, alias="submissionDate")
    policy_start_date: Any = Field(None, alias="policyStartDate")

    model_config = {"populate_by_name": True, "extra": "allow", "frozen": True}


class RuleEvaluationContext(BaseModel):
    """Answers collected so far plus anchor metadata."""

    answers: dict[str, Any] = Field(default_factory=dict)
    metadata: EvaluationMetadata = Field(default_factory=EvaluationMetadata)

    model_config = {"frozen": True}


# =============================================================================
# Evaluation Result
# =============================================================================


class DocumentRequirement(BaseModel):
    """A document upload requirement produced by a fired rule."""

    question_id: str = Field(..., alias="questionId")
    document_types: list[str] = Field(default_factory=list, alias="documentTypes")
    min_files: int = Field(DEFAULT_MIN_FILES, alias="minFiles")
    max_files: int = Field(DEFAULT_MAX_FILES, alias="maxFiles")
    allowed_formats: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_FORMATS), alias="allowedFormats"
    )
    max_file_size: int | None = Field(None, alias="maxFileSize")
    message: str | None = None

    model_config = {"populate_by_name": True}


class RuleEvaluationResult(BaseModel):
    """Net effect of all fired rules for one evaluation call."""

    passed: bool = True
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    visible_questions: set[str] = Field(default_factory=set, alias="visibleQuestions")
    hidden_questions: set[str] = Field(default_factory=set, alias="hiddenQuestions")
    required_documents: list[DocumentRequirement] = Field(
        default_factory=list, alias="requiredDocuments"
    )
    blocked_submission: bool = Field(False, alias="blockedSubmission")
    block_reason: str | None = Field(None, alias="blockReason")
    field_values: dict[str, Any] = Field(default_factory=dict, alias="fieldValues")

    model_config = {"populate_by_name": True}

    @field_serializer("visible_questions", "hidden_questions")
    def _sorted_ids(self, ids: set[str]) -> list[str]:
        return sorted(ids)

    def to_json(self) -> dict[str, Any]:
        """JSON-ready dict using the stored (camelCase) keys."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# Tracing and Testing
# =============================================================================


class TraceStep(BaseModel):
    """Outcome of one condition during a traced evaluation."""

    field: str
    operator: str
    expected: Any = None
    value_checked: Any = None
    result: bool


class RuleExecutionLog(BaseModel):
    """What happened to one rule during a traced evaluation."""

    rule_id: str
    rule_name: str = ""
    executed_at: datetime
    conditions_met: bool = False
    actions_applied: list[str] = Field(default_factory=list)
    execution_time_ms: float = 0.0
    condition_trace: list[TraceStep] = Field(default_factory=list)
    error: str | None = None


class RuleTestResult(BaseModel):
    """Whether a single rule would fire, and what it would do."""

    triggered: bool
    actions: list[RuleAction] = Field(default_factory=list)


class ExpectedResult(BaseModel):
    """Expected outcome of a rule test case; unset fields are not checked."""

    passed: bool
    visible_questions: list[str] | None = Field(None, alias="visibleQuestions")
    hidden_questions: list[str] | None = Field(None, alias="hiddenQuestions")
    errors: list[str] | None = None
    warnings: list[str] | None = None
    blocked_submission: bool | None = Field(None, alias="blockedSubmission")

    model_config = {"populate_by_name": True}


class RuleTestCase(BaseModel):
    """A named scenario used to check a rule set."""

    name: str
    description: str | None = None
    answers: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)
    expected_result: ExpectedResult = Field(..., alias="expectedResult")

    model_config = {"populate_by_name": True}


class RuleTestOutcome(BaseModel):
    """Result of running a RuleTestCase."""

    name: str
    passed: bool
    mismatches: list[str] = Field(default_factory=list)
    result: RuleEvaluationResult


# =============================================================================
# Templates
# =============================================================================


class TemplateCategory(str, Enum):
    """Template catalog categories."""

    CONDITIONAL = "conditional"
    VALIDATION = "validation"
    DOCUMENT = "document"
    ELIGIBILITY = "eligibility"


class RuleTemplate(BaseModel):
    """A parameterized rule skeleton with ``{placeholder}`` tokens."""

    id: str
    name: str
    description: str = ""
    category: TemplateCategory
    rule_type: RuleType = Field(..., alias="ruleType")
    conditions: list[dict[str, Any]] = Field(default_factory=list)
    actions: list[dict[str, Any]] = Field(default_factory=list)
    placeholders: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class EvaluationTrace(BaseModel):
    """Evaluation result together with a per-rule execution log."""

    result: RuleEvaluationResult
    rules: list[RuleExecutionLog] = Field(default_factory=list)


class AppliedTemplate(BaseModel):
    """Concrete conditions and actions produced from a template."""

    conditions: list[RuleCondition] = Field(default_factory=list)
    actions: list[RuleAction] = Field(default_factory=list)
