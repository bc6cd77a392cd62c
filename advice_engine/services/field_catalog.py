"""
Field Catalog Service
=====================
Discovers the fields a tenant's conversation flows expose.

For every question with a mapping key:
- resolve its concept (alias first, then example phrases in the question text)
- drop placeholder choice values such as "button-1" or two-letter tokens
- normalize the surviving values through the concept's table
- upsert by mapping key according to the collision policy

The catalog is a pure function of the flow definitions; callers decide when
to rebuild or cache it.
"""

import re
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Union

from models.flows import (
    ChoiceButton,
    FieldCollisionPolicy,
    FieldKind,
    FlowDefinition,
    KnownField,
    QuestionDefinition,
)
from rules.dictionaries.concepts import ConceptRegistry, get_concept_registry

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r'^(button|btn|option)-?\d+$', re.IGNORECASE)
GENERIC_PATTERN = re.compile(r'^[a-zA-Z]{1,2}$')

QuestionInput = Union[QuestionDefinition, Mapping[str, object]]
FlowInput = Union[FlowDefinition, Mapping[str, object], Iterable[QuestionInput]]


# ─── Value heuristics ───────────────────────────────────────────────────────

def is_placeholder_value(value: str) -> bool:
    """Auto-generated button ids like "button-1", "btn2", "option-3" """
    return bool(PLACEHOLDER_PATTERN.match(value.strip()))


def is_generic_value(value: str) -> bool:
    """One or two alphabetic characters carry no meaning ("a", "re")"""
    return bool(GENERIC_PATTERN.match(value.strip()))


def filter_meaningful_values(values: Iterable[str]) -> List[str]:
    """Drop empty, placeholder and generic values, keeping order"""
    kept = []
    for value in values:
        if not value or not value.strip():
            continue
        if is_placeholder_value(value) or is_generic_value(value):
            continue
        kept.append(value)
    return kept


def _button_value(button: ChoiceButton) -> str:
    return button.value if button.value is not None else button.label


def _flow_questions(flow: FlowInput) -> Iterable[QuestionInput]:
    """Questions of a flow given as a FlowDefinition, a {"questions": [...]} dict or a plain list"""
    if flow is None:
        return []
    if isinstance(flow, FlowDefinition):
        return flow.questions
    if isinstance(flow, Mapping):
        return flow.get("questions") or []
    return flow


# ─── Catalog construction ───────────────────────────────────────────────────

def build_known_field(
    flow_id: str,
    question: QuestionDefinition,
    registry: Optional[ConceptRegistry] = None,
) -> Optional[KnownField]:
    """Build the field for a single question, or None for unmapped questions"""
    if not question.mapping_key:
        return None

    registry = registry or get_concept_registry()
    concept = registry.find_concept_for_field(question.mapping_key, question.question)

    raw_values = filter_meaningful_values(_button_value(b) for b in (question.buttons or []))
    if concept is not None:
        normalized = [registry.normalize_value(concept, v) for v in raw_values]
    else:
        normalized = list(raw_values)

    return KnownField(
        field_id=question.mapping_key,
        label=question.question or question.label or question.mapping_key,
        origin_flow=flow_id,
        kind=FieldKind.SELECT if raw_values else FieldKind.TEXT,
        raw_values=raw_values,
        resolved_concept=concept,
        normalized_values=normalized,
    )


def build_catalog(
    flows: Union[Mapping[str, FlowInput], Iterable[FlowDefinition]],
    policy: Optional[FieldCollisionPolicy] = None,
    registry: Optional[ConceptRegistry] = None,
) -> List[KnownField]:
    """
    Build the de-duplicated field list for a tenant.

    Args:
        flows: flow id -> FlowDefinition, {"questions": [...]} dict or ordered
            question list (models or raw dicts); or a sequence of FlowDefinition
        policy: collision policy for mapping keys reused across flows;
            defaults to the configured policy
        registry: concept registry, defaults to the process-wide one

    Returns:
        Fields in first-seen order
    """
    if policy is None:
        from config.settings import settings
        policy = FieldCollisionPolicy(settings.matching.field_collision_policy)
    registry = registry or get_concept_registry()

    if not isinstance(flows, Mapping):
        flows = {flow.flow_id: flow.questions for flow in flows}

    fields: Dict[str, KnownField] = {}
    for flow_id, flow in flows.items():
        for raw_question in _flow_questions(flow):
            question = (
                raw_question if isinstance(raw_question, QuestionDefinition)
                else QuestionDefinition.model_validate(raw_question)
            )
            known = build_known_field(flow_id, question, registry)
            if known is None:
                continue

            existing = fields.get(known.field_id)
            if existing is not None:
                if policy == FieldCollisionPolicy.FIRST_WINS:
                    logger.debug(
                        f"Field '{known.field_id}' from flow '{flow_id}' ignored; "
                        f"already defined by flow '{existing.origin_flow}'"
                    )
                    continue
                logger.debug(
                    f"Field '{known.field_id}' from flow '{flow_id}' replaces "
                    f"definition from flow '{existing.origin_flow}'"
                )
            fields[known.field_id] = known

    catalog = list(fields.values())
    logger.info(
        f"Built field catalog with {len(catalog)} fields from {len(flows)} flows "
        f"({len(custom_fields(catalog))} custom)"
    )
    return catalog


# ─── Lookups ────────────────────────────────────────────────────────────────

def get_field(field_id: str, catalog: Iterable[KnownField]) -> Optional[KnownField]:
    """Field with the given id"""
    for known in catalog:
        if known.field_id == field_id:
            return known
    return None


def find_field_by_concept(concept_id: str, catalog: Iterable[KnownField]) -> Optional[KnownField]:
    """First field in catalog order resolved to the concept"""
    for known in catalog:
        if known.resolved_concept is not None and known.resolved_concept.concept_id == concept_id:
            return known
    return None


def group_by_concept(catalog: Iterable[KnownField]) -> Dict[str, List[KnownField]]:
    """Concept id -> fields resolved to it; custom fields are left out"""
    grouped: Dict[str, List[KnownField]] = {}
    for known in catalog:
        if known.resolved_concept is not None:
            grouped.setdefault(known.resolved_concept.concept_id, []).append(known)
    return grouped


def custom_fields(catalog: Iterable[KnownField]) -> List[KnownField]:
    """Fields with no resolved concept"""
    return [known for known in catalog if known.resolved_concept is None]


def fields_for_flow(flow_id: str, catalog: Iterable[KnownField]) -> List[KnownField]:
    """Fields whose winning definition came from the given flow"""
    return [known for known in catalog if known.origin_flow == flow_id]
