"""Routes for rule evaluation, rule inspection and templates."""

import logging

from fastapi import APIRouter, HTTPException

from backend.core.config import get_settings

from .display import describe_operators
from .engine import evaluate, rules_for_coverage_type, test_rule, trace
from .loader import RuleLoader
from .schemas import (
    ApplyTemplateRequest,
    EvaluateRequest,
    OperatorInfo,
    RuleInfo,
    RulesListResponse,
    RuleTestRequest,
)
from .serialization import RuleDefinitionError
from .service import (
    AppliedTemplate,
    EvaluationTrace,
    Rule,
    RuleEvaluationResult,
    RuleTemplate,
    RuleTestResult,
    TemplateCategory,
)
from .templates import (
    apply_template,
    get_priority_label,
    get_template_by_id,
    get_templates_by_category,
    load_templates,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rules", tags=["Rules"])

# Global instances
_loader: RuleLoader | None = None
_templates: list[RuleTemplate] | None = None


def get_loader() -> RuleLoader:
    """Get or create the rule loader instance."""
    global _loader
    if _loader is None:
        settings = get_settings()
        _loader = RuleLoader(settings.rules_dir)
        try:
            _loader.load_directory()
        except FileNotFoundError as e:
            logger.warning("No rules loaded: %s", e)
    return _loader


def get_template_catalog() -> list[RuleTemplate]:
    """Get or load the template catalog."""
    global _templates
    if _templates is None:
        _templates = load_templates(get_settings().templates_file)
    return _templates


def _select_rules(request: EvaluateRequest) -> list:
    if request.rules is not None:
        return request.rules
    loader = get_loader()
    if request.coverage_type_id:
        return rules_for_coverage_type(loader.get_all_rules(), request.coverage_type_id)
    return loader.get_all_rules()


# =============================================================================
# Evaluation
# =============================================================================


@router.post("/evaluate", response_model=RuleEvaluationResult)
async def evaluate_rules(request: EvaluateRequest) -> RuleEvaluationResult:
    """Evaluate rules against the collected answers.

    Malformed inline rules are skipped, not rejected.
    """
    return evaluate(_select_rules(request), request.context)


@router.post("/trace", response_model=EvaluationTrace)
async def trace_rules(request: EvaluateRequest) -> EvaluationTrace:
    """Evaluate rules and return a per-rule execution log."""
    return trace(_select_rules(request), request.context)


@router.post("/test", response_model=RuleTestResult)
async def test_single_rule(request: RuleTestRequest) -> RuleTestResult:
    """Check whether one rule would fire for the given answers."""
    try:
        return test_rule(request.rule, request.context)
    except RuleDefinitionError as e:
        raise HTTPException(status_code=422, detail=str(e))


# =============================================================================
# Catalog
# =============================================================================


@router.get("/operators", response_model=list[OperatorInfo])
async def list_operators() -> list[dict]:
    """List condition operators with their value requirements."""
    return describe_operators()


@router.get("/templates", response_model=list[RuleTemplate])
async def list_templates(category: TemplateCategory | None = None) -> list[RuleTemplate]:
    """List rule templates, optionally for one category."""
    catalog = get_template_catalog()
    if category is None:
        return catalog
    return get_templates_by_category(category, catalog)


@router.get("/templates/{template_id}", response_model=RuleTemplate)
async def get_template(template_id: str) -> RuleTemplate:
    """Get a single template."""
    template = get_template_by_id(template_id, get_template_catalog())
    if template is None:
        raise HTTPException(status_code=404, detail=f"Template not found: {template_id}")
    return template


@router.post("/templates/{template_id}/apply", response_model=AppliedTemplate)
async def apply_rule_template(template_id: str, request: ApplyTemplateRequest) -> AppliedTemplate:
    """Fill a template's placeholders and return concrete conditions and actions."""
    template = get_template_by_id(template_id, get_template_catalog())
    if template is None:
        raise HTTPException(status_code=404, detail=f"Template not found: {template_id}")
    return apply_template(template, request.values)


@router.get("", response_model=RulesListResponse)
async def list_rules(coverage_type_id: str | None = None) -> RulesListResponse:
    """List loaded rules."""
    loader = get_loader()
    rules = loader.get_all_rules()
    if coverage_type_id:
        rules = rules_for_coverage_type(rules, coverage_type_id)

    infos = [
        RuleInfo(
            id=rule.id,
            name=rule.name,
            rule_type=rule.rule_type.value,
            coverage_type_id=rule.coverage_type_id,
            priority=rule.priority,
            priority_label=get_priority_label(rule.priority),
            is_active=rule.is_active,
        )
        for rule in rules
    ]
    return RulesListResponse(rules=infos, total=len(infos))


@router.get("/{rule_id}", response_model=Rule)
async def get_rule(rule_id: str) -> Rule:
    """Get a loaded rule by ID."""
    rule = get_loader().get_rule(rule_id)
    if rule is None:
        raise HTTPException(status_code=404, detail=f"Rule not found: {rule_id}")
    return rule
