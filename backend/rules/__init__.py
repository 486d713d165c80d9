"""Rules domain - rule evaluation engine, serialization and templates."""

from .router import router as rules_router, get_loader, get_template_catalog
from .schemas import (
    ApplyTemplateRequest,
    EvaluateRequest,
    OperatorInfo,
    RuleInfo,
    RulesListResponse,
    RuleTestRequest,
)
from .service import (
    # Constants
    DEFAULT_ALLOWED_FORMATS,
    DEFAULT_MAX_FILES,
    DEFAULT_MIN_FILES,
    NO_VALUE_OPERATORS,
    # Vocabularies
    ActionType,
    LogicalOperator,
    RelativeAnchor,
    RuleOperator,
    RulePriority,
    RuleType,
    TemplateCategory,
    normalize_operator,
    # Models
    AppliedTemplate,
    DocumentRequirement,
    EvaluationMetadata,
    EvaluationTrace,
    ExpectedResult,
    RelativeDateValue,
    Rule,
    RuleAction,
    RuleCondition,
    RuleEvaluationContext,
    RuleEvaluationResult,
    RuleExecutionLog,
    RuleTemplate,
    RuleTestCase,
    RuleTestOutcome,
    RuleTestResult,
    TraceStep,
)
from .dates import parse_date, resolve_date_value, resolve_relative_date
from .conditions import evaluate_condition, evaluate_conditions
from .actions import apply_action, apply_actions
from .engine import (
    active_rules,
    evaluate,
    evaluate_rule,
    merge_results,
    rules_by_type,
    rules_for_coverage_type,
    run_test_case,
    sort_by_priority,
    trace,
)
from .serialization import (
    DeserializationResult,
    DroppedEntry,
    RuleDefinitionError,
    clone_action,
    clone_condition,
    create_action,
    create_condition,
    deserialize_rule_actions,
    deserialize_rule_conditions,
    load_actions,
    load_conditions,
    load_rules,
    serialize_rule,
    serialize_rule_actions,
    serialize_rule_conditions,
    validate_rule_action,
    validate_rule_condition,
)
from .templates import (
    apply_template,
    get_priority_label,
    get_template_by_id,
    get_templates,
    get_templates_by_category,
    load_templates,
    suggest_priority,
)
from .display import (
    format_action_for_display,
    format_condition_for_display,
    get_action_type_display_name,
    get_operator_display_name,
    operator_requires_array,
    operator_requires_date,
    operator_requires_no_value,
    operators_for_field_type,
)
from .loader import RuleLoader

__all__ = [
    # Router
    "rules_router",
    "get_loader",
    "get_template_catalog",
    # API Schemas
    "ApplyTemplateRequest",
    "EvaluateRequest",
    "OperatorInfo",
    "RuleInfo",
    "RulesListResponse",
    "RuleTestRequest",
    # Constants
    "DEFAULT_ALLOWED_FORMATS",
    "DEFAULT_MAX_FILES",
    "DEFAULT_MIN_FILES",
    "NO_VALUE_OPERATORS",
    # Vocabularies
    "ActionType",
    "LogicalOperator",
    "RelativeAnchor",
    "RuleOperator",
    "RulePriority",
    "RuleType",
    "TemplateCategory",
    "normalize_operator",
    # Models
    "AppliedTemplate",
    "DocumentRequirement",
    "EvaluationMetadata",
    "EvaluationTrace",
    "ExpectedResult",
    "RelativeDateValue",
    "Rule",
    "RuleAction",
    "RuleCondition",
    "RuleEvaluationContext",
    "RuleEvaluationResult",
    "RuleExecutionLog",
    "RuleTemplate",
    "RuleTestCase",
    "RuleTestOutcome",
    "RuleTestResult",
    "TraceStep",
    # Dates
    "parse_date",
    "resolve_date_value",
    "resolve_relative_date",
    # Conditions
    "evaluate_condition",
    "evaluate_conditions",
    # Actions
    "apply_action",
    "apply_actions",
    # Engine
    "active_rules",
    "evaluate",
    "evaluate_rule",
    "merge_results",
    "rules_by_type",
    "rules_for_coverage_type",
    "run_test_case",
    "sort_by_priority",
    "trace",
    # Serialization
    "DeserializationResult",
    "DroppedEntry",
    "RuleDefinitionError",
    "clone_action",
    "clone_condition",
    "create_action",
    "create_condition",
    "deserialize_rule_actions",
    "deserialize_rule_conditions",
    "load_actions",
    "load_conditions",
    "load_rules",
    "serialize_rule",
    "serialize_rule_actions",
    "serialize_rule_conditions",
    "validate_rule_action",
    "validate_rule_condition",
    # Templates
    "apply_template",
    "get_priority_label",
    "get_template_by_id",
    "get_templates",
    "get_templates_by_category",
    "load_templates",
    "suggest_priority",
    # Display
    "format_action_for_display",
    "format_condition_for_display",
    "get_action_type_display_name",
    "get_operator_display_name",
    "operator_requires_array",
    "operator_requires_date",
    "operator_requires_no_value",
    "operators_for_field_type",
    # Loader
    "RuleLoader",
]
