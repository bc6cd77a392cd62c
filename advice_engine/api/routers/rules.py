"""
Rules Router
=============
Rule conversion, cleanup and evaluation endpoints.
"""

import logging
from fastapi import APIRouter, Depends

from api.routers.catalog import get_cache, resolve_catalog
from models.rule_tree import ConceptGroup, FieldGroup
from models.schemas import (
    CleanupRequest,
    CleanupResponse,
    EvaluateRequest,
    EvaluationResponse,
    LowerRequest,
    RaiseRequest,
)
from services.rule_converter import clean_rule_tree, count_conditions, lower_rule_tree, raise_rule_tree
from services.rules_evaluator import RuleEvaluator, max_score

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rules", tags=["rules"])


@router.post("/lower", response_model=FieldGroup, response_model_by_alias=True)
async def lower_rules(request: LowerRequest):
    """Convert a concept-addressed tree to field-addressed form."""
    return lower_rule_tree(request.tree)


@router.post("/raise", response_model=ConceptGroup, response_model_by_alias=True)
async def raise_rules(request: RaiseRequest):
    """Convert a field-addressed tree back to concept-addressed form."""
    return raise_rule_tree(request.tree)


@router.post("/evaluate", response_model=EvaluationResponse)
async def evaluate_rules(request: EvaluateRequest, cache=Depends(get_cache)):
    """Evaluate a rule tree against a lead's answers."""
    catalog = resolve_catalog(request, cache)
    result = RuleEvaluator(catalog).evaluate(request.tree, request.answers)
    logger.info(f"Evaluated rule tree: matched={result.matched} score={result.score}")
    return EvaluationResponse(matched=result.matched, score=result.score, max_score=max_score(request.tree))


@router.post("/cleanup", response_model=CleanupResponse, response_model_by_alias=True)
async def cleanup_rules(request: CleanupRequest, cache=Depends(get_cache)):
    """Remove conditions that compare against placeholder values."""
    catalog = resolve_catalog(request, cache)
    cleaned = clean_rule_tree(request.tree, catalog)
    return CleanupResponse(
        tree=cleaned,
        original_conditions=count_conditions(request.tree),
        remaining_conditions=count_conditions(cleaned),
    )
