"""Services module"""
from .cache import get_catalog_cache, CatalogCache
from .field_catalog import (
    build_catalog,
    find_field_by_concept,
    group_by_concept,
    custom_fields,
)
from .rule_converter import lower_rule_tree, raise_rule_tree, clean_rule_tree
from .rules_evaluator import evaluate, RuleEvaluator, EvaluationResult
from .advice_matcher import is_advice_applicable, filter_and_rank_advice, AdviceItem

__all__ = [
    "get_catalog_cache",
    "CatalogCache",
    "build_catalog",
    "find_field_by_concept",
    "group_by_concept",
    "custom_fields",
    "lower_rule_tree",
    "raise_rule_tree",
    "clean_rule_tree",
    "evaluate",
    "RuleEvaluator",
    "EvaluationResult",
    "is_advice_applicable",
    "filter_and_rank_advice",
    "AdviceItem",
]
