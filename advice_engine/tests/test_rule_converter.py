"""
Tests for Rule Conversion
=========================
Lowering concept trees, raising field trees and placeholder cleanup.
"""

import pytest
import sys
from pathlib import Path

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from models.rule_tree import (
    ConceptCondition,
    ConceptGroup,
    ConceptRef,
    FieldCondition,
    FieldGroup,
    FieldRef,
    Logic,
    Operator,
)
from services.field_catalog import build_catalog
from services.rule_converter import (
    clean_rule_tree,
    count_conditions,
    lower_condition,
    lower_rule_tree,
    raise_rule_tree,
)


def concept_leaf(concept_id=None, field_id=None, value="x", operator=Operator.EQUALS, weight=1.0):
    return ConceptCondition(
        field_ref=ConceptRef(concept_id=concept_id, field_id=field_id),
        operator=operator,
        value=value,
        weight=weight,
    )


def field_leaf(field_id, value="x", operator=Operator.EQUALS, weight=1.0):
    return FieldCondition(
        field_ref=FieldRef(field_id=field_id),
        operator=operator,
        value=value,
        weight=weight,
    )


@pytest.fixture
def concept_tree():
    return ConceptGroup(
        logic=Logic.OR,
        children=[
            ConceptGroup(
                logic=Logic.AND,
                children=[
                    concept_leaf(concept_id="timeline", value=["0-3", "3-6"], weight=2.0),
                    concept_leaf(concept_id="selling-reason", field_id="whySell", value="downsizing"),
                ],
            ),
            concept_leaf(concept_id="budget", value="500000", operator=Operator.GREATER_THAN, weight=0.5),
        ],
    )


class TestLowering:
    """Tests for concept -> field conversion"""

    def test_concept_id_used_when_no_field_hint(self):
        lowered = lower_condition(concept_leaf(concept_id="timeline"))
        assert lowered.field_ref.field_id == "timeline"

    def test_field_hint_takes_precedence(self):
        lowered = lower_condition(concept_leaf(concept_id="timeline", field_id="whenSell"))
        assert lowered.field_ref.field_id == "whenSell"

    def test_empty_reference_lowers_to_empty_field_id(self):
        lowered = lower_condition(concept_leaf())
        assert lowered.field_ref.field_id == ""

    def test_structure_preserved(self, concept_tree):
        lowered = lower_rule_tree(concept_tree)
        assert isinstance(lowered, FieldGroup)
        assert lowered.logic == Logic.OR
        inner, budget = lowered.children
        assert isinstance(inner, FieldGroup)
        assert inner.logic == Logic.AND
        assert [c.field_ref.field_id for c in inner.children] == ["timeline", "whySell"]
        assert inner.children[0].value == ["0-3", "3-6"]
        assert inner.children[0].weight == 2.0
        assert budget.operator == Operator.GREATER_THAN
        assert budget.weight == 0.5

    def test_empty_group(self):
        lowered = lower_rule_tree(ConceptGroup(logic=Logic.AND))
        assert lowered.children == []
        assert lowered.logic == Logic.AND


class TestRaising:
    """Tests for field -> concept conversion"""

    def test_raise_never_guesses_concept(self, concept_tree):
        """Raising a lowered tree keeps the field id but drops the concept annotation"""
        raised = raise_rule_tree(lower_rule_tree(concept_tree))
        inner, budget = raised.children
        refs = [c.field_ref for c in inner.children] + [budget.field_ref]
        assert [r.field_id for r in refs] == ["timeline", "whySell", "budget"]
        assert all(r.concept_id is None for r in refs)

    def test_round_trip_keeps_operator_value_weight_logic(self, concept_tree):
        raised = raise_rule_tree(lower_rule_tree(concept_tree))
        assert raised.logic == concept_tree.logic
        original = concept_tree.children[0].children[0]
        restored = raised.children[0].children[0]
        assert (restored.operator, restored.value, restored.weight) == (
            original.operator, original.value, original.weight
        )
        assert count_conditions(raised) == count_conditions(concept_tree)

    def test_lower_after_raise_is_identity(self):
        tree = FieldGroup(
            logic=Logic.AND,
            children=[field_leaf("timeline", value="0-3"), field_leaf("budget", value=["1", "2"], operator=Operator.BETWEEN)],
        )
        assert lower_rule_tree(raise_rule_tree(tree)) == tree


class TestWireFormat:
    """Tests for JSON serialization of rule trees"""

    def test_camel_case_keys(self):
        tree = FieldGroup(logic=Logic.AND, children=[field_leaf("timeline", value="0-3")])
        data = tree.model_dump(by_alias=True, mode="json")
        assert data["kind"] == "group"
        leaf = data["children"][0]
        assert leaf["kind"] == "condition"
        assert leaf["fieldRef"] == {"fieldId": "timeline"}
        assert leaf["operator"] == "equals"

    def test_parse_from_json(self):
        tree = ConceptGroup.model_validate({
            "kind": "group",
            "logic": "OR",
            "children": [
                {
                    "kind": "condition",
                    "fieldRef": {"conceptId": "timeline"},
                    "operator": "includes",
                    "value": ["0-3"],
                },
                {"kind": "group", "logic": "AND", "children": []},
            ],
        })
        assert isinstance(tree.children[0], ConceptCondition)
        assert tree.children[0].field_ref.concept_id == "timeline"
        assert tree.children[0].weight == 1.0
        assert isinstance(tree.children[1], ConceptGroup)

    def test_field_tree_rejects_concept_reference(self):
        with pytest.raises(ValueError):
            FieldGroup.model_validate({
                "logic": "AND",
                "children": [{"fieldRef": {"conceptId": "timeline"}, "operator": "equals", "value": "x"}],
            })


class TestCleanup:
    """Tests for placeholder condition cleanup"""

    @pytest.fixture
    def catalog(self):
        return build_catalog({
            "sell": [
                {
                    "question": "When do you want to sell?",
                    "mappingKey": "timeline",
                    "buttons": [{"label": "ASAP", "value": "asap"}, {"label": "Later", "value": "flexible"}],
                },
                {"question": "Anything else?", "mappingKey": "notes"},
            ]
        })

    def test_placeholder_condition_dropped(self, catalog):
        tree = FieldGroup(
            logic=Logic.AND,
            children=[field_leaf("timeline", value="button-1"), field_leaf("timeline", value="asap")],
        )
        cleaned = clean_rule_tree(tree, catalog)
        assert count_conditions(cleaned) == 1
        assert cleaned.children[0].value == "asap"

    def test_free_text_field_keeps_condition(self, catalog):
        tree = FieldGroup(logic=Logic.AND, children=[field_leaf("notes", value="ok")])
        assert clean_rule_tree(tree, catalog) == tree

    def test_unknown_field_keeps_condition(self, catalog):
        tree = FieldGroup(logic=Logic.AND, children=[field_leaf("mystery", value="btn-2")])
        assert count_conditions(clean_rule_tree(tree, catalog)) == 1

    def test_empty_groups_removed(self, catalog):
        tree = FieldGroup(
            logic=Logic.OR,
            children=[
                FieldGroup(logic=Logic.AND, children=[field_leaf("timeline", value=["option-2", "asap"])]),
                field_leaf("timeline", value="flexible"),
            ],
        )
        cleaned = clean_rule_tree(tree, catalog)
        assert len(cleaned.children) == 1
        assert isinstance(cleaned.children[0], FieldCondition)

    def test_nothing_survives(self, catalog):
        tree = FieldGroup(logic=Logic.AND, children=[field_leaf("timeline", value="ab")])
        assert clean_rule_tree(tree, catalog) is None

    def test_concept_tree_cleanup(self, catalog):
        tree = ConceptGroup(
            logic=Logic.AND,
            children=[concept_leaf(concept_id="timeline", value="btn-1"), concept_leaf(concept_id="timeline", value="asap")],
        )
        cleaned = clean_rule_tree(tree, catalog)
        assert isinstance(cleaned, ConceptGroup)
        assert count_conditions(cleaned) == 1

    def test_original_tree_untouched(self, catalog):
        tree = FieldGroup(logic=Logic.AND, children=[field_leaf("timeline", value="button-1"), field_leaf("timeline", value="asap")])
        clean_rule_tree(tree, catalog)
        assert count_conditions(tree) == 2

    def test_count_conditions_of_none(self):
        assert count_conditions(None) == 0
