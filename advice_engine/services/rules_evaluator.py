"""
Rules Evaluation Service
========================
Recursively scores a rule tree against a lead's collected answers.

Missing data is a non-match, never an error:
- a leaf whose field or concept cannot be resolved does not match
- a leaf whose field has no answer, or an empty one, does not match

Group scores are the sum of their children's scores, and are zeroed
whenever the group itself does not match, at every level of the tree.
"""

import re
import logging
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Tuple, Union

from models.flows import KnownField
from models.rule_tree import (
    ConceptCondition,
    ConceptGroup,
    FieldCondition,
    FieldGroup,
    Logic,
    Operator,
    RuleNode,
    iter_conditions,
)
from rules.dictionaries.concepts import ConceptRegistry
from services.field_catalog import find_field_by_concept, get_field

logger = logging.getLogger(__name__)

# Leading-number parse: "12+" -> 12, "3.5 beds" -> 3.5, "$400k" -> not numeric
NUMBER_PREFIX = re.compile(r'^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of evaluating a node"""
    matched: bool
    score: float

    def to_dict(self) -> dict:
        return {"matched": self.matched, "score": self.score}


NO_MATCH = EvaluationResult(matched=False, score=0.0)


def parse_number(value: str) -> Optional[float]:
    """Parse the leading number of a string, or None if it does not start with one"""
    match = NUMBER_PREFIX.match(value or '')
    if not match:
        return None
    return float(match.group(1))


class RuleEvaluator:
    """
    Evaluates field- or concept-addressed rule trees for one tenant catalog.
    Holds no state between calls; safe to share across threads.
    """

    def __init__(self, catalog: Iterable[KnownField]):
        self.catalog: List[KnownField] = list(catalog)

    # ─── Main evaluation entry ──────────────────────────────────────────

    def evaluate(self, node: RuleNode, answers: Mapping[str, str]) -> EvaluationResult:
        """Evaluate a condition or group against the answers"""
        if isinstance(node, (FieldGroup, ConceptGroup)):
            return self._evaluate_group(node, answers)
        if isinstance(node, (FieldCondition, ConceptCondition)):
            return self._evaluate_condition(node, answers)
        raise TypeError(f"unknown rule node type: {type(node).__name__}")

    def _evaluate_group(self, group: Union[FieldGroup, ConceptGroup], answers: Mapping[str, str]) -> EvaluationResult:
        results = [self.evaluate(child, answers) for child in group.children]
        matched_count = sum(1 for r in results if r.matched)

        if group.logic == Logic.AND:
            matched = matched_count == len(results)
        else:
            matched = matched_count > 0

        score = sum(r.score for r in results) if matched else 0.0
        logger.debug(f"{group.logic.value} group: {matched_count}/{len(results)} matched, score={score}")
        return EvaluationResult(matched=matched, score=score)

    def _evaluate_condition(
        self,
        condition: Union[FieldCondition, ConceptCondition],
        answers: Mapping[str, str],
    ) -> EvaluationResult:
        observed, known = self._resolve_observed(condition, answers)
        if observed is None:
            logger.debug(f"No observed value for {condition.field_ref}")
            return NO_MATCH

        if known is not None and known.resolved_concept is not None:
            normalized = ConceptRegistry.normalize_value(known.resolved_concept, observed)
        else:
            normalized = observed

        matched = self._match(condition.operator, normalized, condition.value, condition.value_list)
        return EvaluationResult(matched=matched, score=condition.weight if matched else 0.0)

    # ─── Value resolution ───────────────────────────────────────────────

    def _resolve_observed(
        self,
        condition: Union[FieldCondition, ConceptCondition],
        answers: Mapping[str, str],
    ) -> Tuple[Optional[str], Optional[KnownField]]:
        """
        Find the observed raw value and the catalog field it came from.

        Concept references resolve through the catalog first, then fall
        back to a direct field id. A field id with no answer is retried as
        a concept id, which binds lowered concept rules to tenant fields.
        """
        ref = condition.field_ref
        concept_id = getattr(ref, "concept_id", None)
        field_id = ref.field_id

        if concept_id:
            known = find_field_by_concept(concept_id, self.catalog)
            if known is not None and answers.get(known.field_id):
                return answers[known.field_id], known

        if field_id:
            if answers.get(field_id):
                return answers[field_id], get_field(field_id, self.catalog)
            known = find_field_by_concept(field_id, self.catalog)
            if known is not None and answers.get(known.field_id):
                return answers[known.field_id], known

        return None, None

    # ─── Operators ──────────────────────────────────────────────────────

    @staticmethod
    def _equals(observed: str, expected: List[str]) -> bool:
        lowered = observed.lower()
        return any(lowered == str(v).lower() for v in expected)

    def _match(self, operator: Operator, observed: str, value, expected: List[str]) -> bool:
        if operator == Operator.EQUALS:
            return self._equals(observed, expected)

        if operator == Operator.NOT_EQUALS:
            return not self._equals(observed, expected)

        if operator == Operator.INCLUDES:
            if isinstance(value, list):
                return observed in value
            return str(value).lower() in observed.lower()

        if operator in (Operator.GREATER_THAN, Operator.LESS_THAN):
            observed_num = parse_number(observed)
            rule_num = parse_number(expected[0]) if expected else None
            if observed_num is None or rule_num is None:
                return False
            if operator == Operator.GREATER_THAN:
                return observed_num > rule_num
            return observed_num < rule_num

        if operator == Operator.BETWEEN:
            if len(expected) != 2:
                return False
            observed_num = parse_number(observed)
            low = parse_number(expected[0])
            high = parse_number(expected[1])
            if observed_num is None or low is None or high is None:
                return False
            return low <= observed_num <= high

        logger.warning(f"Unsupported operator: {operator}")
        return False


# ─── Helpers ────────────────────────────────────────────────────────────────

def evaluate(
    node: RuleNode,
    answers: Mapping[str, str],
    catalog: Iterable[KnownField],
) -> EvaluationResult:
    """Evaluate a rule node against answers using the tenant's field catalog"""
    return RuleEvaluator(catalog).evaluate(node, answers)


def max_score(node: RuleNode) -> float:
    """Sum of all leaf weights: the score of a tree where every leaf matches"""
    return sum(condition.weight for condition in iter_conditions(node))
