"""
Rule Converter
==============
Structure-preserving conversion between concept-addressed and
field-addressed rule trees.

Lowering is a pure projection: each leaf stores ``field_id or concept_id or ''``.
No catalog lookup happens here; concept -> field binding is resolved lazily
by the evaluator, so a concept rule can be lowered once per tenant.

Raising wraps the stored string as a field id and never guesses a concept,
so ``raise_rule_tree(lower_rule_tree(tree))`` only preserves
operator/value/weight/logic, not the original concept annotation.
"""

import logging
from typing import Iterable, List, Optional, Union

from models.flows import KnownField
from models.rule_tree import (
    ConceptCondition,
    ConceptGroup,
    ConceptRef,
    FieldCondition,
    FieldGroup,
    FieldRef,
    iter_conditions,
)
from services.field_catalog import (
    find_field_by_concept,
    get_field,
    is_generic_value,
    is_placeholder_value,
)

logger = logging.getLogger(__name__)


# ─── Lowering / raising ─────────────────────────────────────────────────────

def lower_condition(condition: ConceptCondition) -> FieldCondition:
    ref = condition.field_ref
    return FieldCondition(
        field_ref=FieldRef(field_id=ref.field_id or ref.concept_id or ''),
        operator=condition.operator,
        value=condition.value,
        weight=condition.weight,
    )


def lower_rule_tree(tree: ConceptGroup) -> FieldGroup:
    """Convert a concept-addressed tree to its field-addressed form"""
    children: List[Union[FieldCondition, FieldGroup]] = []
    for child in tree.children:
        if isinstance(child, ConceptGroup):
            children.append(lower_rule_tree(child))
        elif isinstance(child, ConceptCondition):
            children.append(lower_condition(child))
        else:
            raise TypeError(f"unexpected node in concept tree: {type(child).__name__}")
    return FieldGroup(logic=tree.logic, children=children)


def raise_condition(condition: FieldCondition) -> ConceptCondition:
    return ConceptCondition(
        field_ref=ConceptRef(field_id=condition.field_ref.field_id),
        operator=condition.operator,
        value=condition.value,
        weight=condition.weight,
    )


def raise_rule_tree(tree: FieldGroup) -> ConceptGroup:
    """Convert a field-addressed tree back to concept-addressed form (lossy)"""
    children: List[Union[ConceptCondition, ConceptGroup]] = []
    for child in tree.children:
        if isinstance(child, FieldGroup):
            children.append(raise_rule_tree(child))
        elif isinstance(child, FieldCondition):
            children.append(raise_condition(child))
        else:
            raise TypeError(f"unexpected node in field tree: {type(child).__name__}")
    return ConceptGroup(logic=tree.logic, children=children)


# ─── Cleanup ────────────────────────────────────────────────────────────────

def count_conditions(tree: Union[FieldGroup, ConceptGroup, None]) -> int:
    """Total number of leaf conditions in a tree"""
    if tree is None:
        return 0
    return sum(1 for _ in iter_conditions(tree))


def _catalog_field_for(
    condition: Union[FieldCondition, ConceptCondition],
    catalog: List[KnownField],
) -> Optional[KnownField]:
    ref = condition.field_ref
    field_id = ref.field_id
    concept_id = getattr(ref, "concept_id", None)

    if field_id:
        known = get_field(field_id, catalog) or find_field_by_concept(field_id, catalog)
        if known is not None:
            return known
    if concept_id:
        return find_field_by_concept(concept_id, catalog)
    return None


def _has_placeholder(values: Iterable[str]) -> bool:
    return any(is_placeholder_value(str(v)) or is_generic_value(str(v)) for v in values)


def clean_rule_tree(
    tree: Union[FieldGroup, ConceptGroup],
    catalog: Iterable[KnownField],
) -> Optional[Union[FieldGroup, ConceptGroup]]:
    """
    Remove conditions that compare against placeholder values.

    A condition is dropped when its values look like placeholders and the
    field it references offers real choice values. Conditions on unknown
    fields or free-text fields are kept. Groups left empty are dropped.

    Returns:
        The cleaned tree, or None when no condition survives
    """
    catalog = list(catalog)
    kept = []
    for child in tree.children:
        if isinstance(child, (FieldGroup, ConceptGroup)):
            cleaned = clean_rule_tree(child, catalog)
            if cleaned is not None:
                kept.append(cleaned)
            continue

        if _has_placeholder(child.value_list):
            known = _catalog_field_for(child, catalog)
            if known is not None and known.raw_values:
                logger.debug(f"Dropping placeholder condition on '{known.field_id}': {child.value}")
                continue
        kept.append(child)

    if not kept:
        return None
    return tree.model_copy(update={"children": kept})
