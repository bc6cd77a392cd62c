"""
Advice Matching Service
=======================
Decides which advice items apply to a lead and ranks them.

An advice item applies when:
1. its flow list is empty or contains the lead's flow
2. it has no rule groups (universal advice), or every rule group matches
   and the weighted match ratio reaches the item's minimum score

The match ratio is the sum of group scores over the sum of all leaf weights.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.flows import KnownField
from models.rule_tree import FieldGroup
from services.rules_evaluator import RuleEvaluator, max_score

logger = logging.getLogger(__name__)


class AdviceItem(BaseModel):
    """A piece of targeted advice with its applicability rules"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    title: str = ""
    flows: List[str] = Field(default_factory=list)
    rule_groups: List[FieldGroup] = Field(default_factory=list, alias="ruleGroups")
    min_match_score: Optional[float] = Field(default=None, ge=0.0, le=1.0, alias="minMatchScore")


@dataclass(frozen=True)
class AdviceApplicability:
    """Whether an advice item applies, with its match ratio and a reason"""
    applicable: bool
    match_score: float
    reason: str


@dataclass(frozen=True)
class RankedAdvice:
    advice: AdviceItem
    match_score: float
    reason: str


def is_advice_applicable(
    advice: AdviceItem,
    flow: str,
    answers: Mapping[str, str],
    catalog: Iterable[KnownField],
    default_min_score: Optional[float] = None,
) -> AdviceApplicability:
    """Check whether a single advice item applies to a lead"""
    if advice.flows and flow not in advice.flows:
        return AdviceApplicability(
            applicable=False,
            match_score=0.0,
            reason=f"Flow mismatch: advice is for {', '.join(advice.flows)}",
        )

    if not advice.rule_groups:
        return AdviceApplicability(applicable=True, match_score=1.0, reason="Universal advice")

    evaluator = RuleEvaluator(catalog)
    results = [evaluator.evaluate(group, answers) for group in advice.rule_groups]
    all_match = all(r.matched for r in results)

    total_weight = sum(max_score(group) for group in advice.rule_groups)
    matched_weight = sum(r.score for r in results)
    ratio = matched_weight / total_weight if total_weight > 0 else 0.0

    if advice.min_match_score is not None:
        min_score = advice.min_match_score
    elif default_min_score is not None:
        min_score = default_min_score
    else:
        from config.settings import settings
        min_score = settings.matching.default_min_match_score

    if all_match and ratio >= min_score:
        return AdviceApplicability(
            applicable=True,
            match_score=ratio,
            reason=f"Rules matched with score {ratio * 100:.0f}%",
        )

    if not all_match:
        reason = "Rule groups did not match"
    else:
        reason = f"Match score {ratio * 100:.0f}% below threshold {min_score * 100:.0f}%"
    return AdviceApplicability(applicable=False, match_score=ratio, reason=reason)


def filter_and_rank_advice(
    advice_items: Iterable[AdviceItem],
    flow: str,
    answers: Mapping[str, str],
    catalog: Iterable[KnownField],
    default_min_score: Optional[float] = None,
) -> List[RankedAdvice]:
    """Applicable advice, highest match score first"""
    catalog = list(catalog)
    ranked = []
    for advice in advice_items:
        result = is_advice_applicable(advice, flow, answers, catalog, default_min_score)
        if result.applicable:
            ranked.append(RankedAdvice(advice=advice, match_score=result.match_score, reason=result.reason))
        else:
            logger.debug(f"Advice '{advice.id}' skipped: {result.reason}")

    ranked.sort(key=lambda r: r.match_score, reverse=True)
    return ranked
