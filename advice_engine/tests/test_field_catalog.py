"""
Tests for Field Discovery
=========================
Building the field catalog from flow definitions.
"""

import pytest
import sys
from pathlib import Path

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from models.flows import FieldCollisionPolicy, FieldKind, FlowDefinition, QuestionDefinition
from services.field_catalog import (
    build_catalog,
    build_known_field,
    custom_fields,
    fields_for_flow,
    filter_meaningful_values,
    find_field_by_concept,
    get_field,
    group_by_concept,
    is_generic_value,
    is_placeholder_value,
)


FLOWS = {
    "sell": [
        {
            "id": "q1",
            "question": "What type of property do you have?",
            "inputType": "buttons",
            "mappingKey": "propertyType",
            "buttons": [
                {"id": "house", "label": "House", "value": "house"},
                {"id": "condo", "label": "Condo", "value": "apartment"},
                {"id": "b1", "label": "Other", "value": "button-1"},
            ],
        },
        {
            "id": "q2",
            "question": "When do you want to sell?",
            "inputType": "buttons",
            "mappingKey": "timeline",
            "buttons": [
                {"label": "ASAP", "value": "asap"},
                {"label": "Soon", "value": "soon"},
                {"label": "Other", "value": "ab"},
            ],
        },
        {"id": "q3", "question": "Anything else we should know?"},
        {"id": "q4", "question": "What colour is your front door?", "mappingKey": "doorColour"},
    ],
    "buy": [
        {
            "id": "q5",
            "question": "What is your budget?",
            "inputType": "buttons",
            "mappingKey": "budget",
            "buttons": [
                {"label": "Under 400k", "value": "under-$400,000"},
                {"label": "Option", "value": "option-3"},
                {"label": "Btn", "value": "btn-2"},
            ],
        },
        {
            "id": "q6",
            "question": "How quickly do you need to buy?",
            "inputType": "buttons",
            "mappingKey": "timeline",
            "buttons": [{"label": "Urgent", "value": "urgent"}],
        },
        {"id": "q7", "question": "Why are you selling?", "mappingKey": "q7"},
    ],
}


class TestPlaceholderValues:
    """Tests for the placeholder value heuristics"""

    @pytest.mark.parametrize("value", ["button-1", "btn-2", "option-3", "BUTTON12", "btn3", "Option-10"])
    def test_placeholders(self, value):
        assert is_placeholder_value(value)

    @pytest.mark.parametrize("value", ["ab", "a", "RE"])
    def test_generic_values(self, value):
        assert is_generic_value(value)

    @pytest.mark.parametrize("value", ["under-$400,000", "condo", "12+", "3", "0-3", "buttons"])
    def test_meaningful_values(self, value):
        assert not is_placeholder_value(value)
        assert not is_generic_value(value)

    def test_filter_keeps_order(self):
        values = ["asap", "button-1", "", "  ", "ab", "under-$400,000", "soon"]
        assert filter_meaningful_values(values) == ["asap", "under-$400,000", "soon"]


class TestBuildCatalog:
    """Tests for catalog construction"""

    @pytest.fixture
    def catalog(self):
        return build_catalog(FLOWS, policy=FieldCollisionPolicy.LAST_WINS)

    def test_unmapped_questions_produce_no_field(self, catalog):
        assert [f.field_id for f in catalog] == ["propertyType", "timeline", "doorColour", "budget", "q7"]

    def test_concept_resolved_by_alias(self, catalog):
        field = get_field("propertyType", catalog)
        assert field.resolved_concept.concept_id == "property-type"
        assert field.label == "What type of property do you have?"
        assert field.kind == FieldKind.SELECT

    def test_placeholders_filtered_and_values_normalized(self, catalog):
        field = get_field("propertyType", catalog)
        assert field.raw_values == ["house", "apartment"]
        assert field.normalized_values == ["single-family house", "condo"]

    def test_placeholder_filter_retains_price_ranges(self, catalog):
        field = get_field("budget", catalog)
        assert field.raw_values == ["under-$400,000"]

    def test_concept_resolved_by_question_text(self, catalog):
        field = get_field("q7", catalog)
        assert field.resolved_concept.concept_id == "selling-reason"
        assert field.kind == FieldKind.TEXT

    def test_custom_field(self, catalog):
        field = get_field("doorColour", catalog)
        assert field.resolved_concept is None
        assert field.is_custom
        assert field.kind == FieldKind.TEXT
        assert field.raw_values == []
        assert [f.field_id for f in custom_fields(catalog)] == ["doorColour"]

    def test_last_wins_collision(self, catalog):
        """The later flow's definition replaces the earlier one in place"""
        field = get_field("timeline", catalog)
        assert field.origin_flow == "buy"
        assert field.raw_values == ["urgent"]
        assert field.normalized_values == ["0-3"]
        assert catalog.index(field) == 1

    def test_first_wins_collision(self):
        catalog = build_catalog(FLOWS, policy=FieldCollisionPolicy.FIRST_WINS)
        field = get_field("timeline", catalog)
        assert field.origin_flow == "sell"
        assert field.raw_values == ["asap", "soon"]
        assert field.normalized_values == ["0-3", "3-6"]

    def test_default_policy_is_last_wins(self):
        catalog = build_catalog(FLOWS)
        assert get_field("timeline", catalog).origin_flow == "buy"

    def test_accepts_question_models(self):
        question = QuestionDefinition(id="q", question="How many beds?", mapping_key="beds")
        catalog = build_catalog({"buy": [question]})
        assert catalog[0].resolved_concept.concept_id == "bedrooms"

    def test_accepts_flow_definitions(self):
        flows = [FlowDefinition.model_validate({"flowId": name, "questions": qs}) for name, qs in FLOWS.items()]
        catalog = build_catalog(flows)
        assert [f.field_id for f in catalog] == ["propertyType", "timeline", "doorColour", "budget", "q7"]
        assert get_field("timeline", catalog).origin_flow == "buy"

    def test_accepts_mapping_of_flow_definitions(self):
        flows = {
            "sell": FlowDefinition(
                flow_id="sell",
                questions=[QuestionDefinition(question="When?", mapping_key="timeline")],
            ),
            "buy": {"flowId": "buy", "questions": [{"question": "What is your budget?", "mappingKey": "budget"}]},
        }
        catalog = build_catalog(flows)
        assert [(f.field_id, f.origin_flow) for f in catalog] == [("timeline", "sell"), ("budget", "buy")]
        assert catalog[0].resolved_concept.concept_id == "timeline"

    def test_empty_flows(self):
        assert build_catalog({}) == []
        assert build_catalog({"sell": []}) == []

    def test_button_without_value_uses_label(self):
        question = QuestionDefinition.model_validate({
            "question": "Renovations?",
            "mappingKey": "renovations",
            "buttons": [{"label": "Kitchen update"}],
        })
        field = build_known_field("sell", question)
        assert field.raw_values == ["Kitchen update"]
        assert field.normalized_values == ["kitchen"]


class TestCatalogLookups:
    """Tests for catalog helper functions"""

    @pytest.fixture
    def catalog(self):
        return build_catalog(FLOWS)

    def test_find_field_by_concept(self, catalog):
        assert find_field_by_concept("timeline", catalog).field_id == "timeline"
        assert find_field_by_concept("selling-reason", catalog).field_id == "q7"
        assert find_field_by_concept("bedrooms", catalog) is None

    def test_find_field_by_concept_first_in_catalog_order(self):
        catalog = build_catalog({
            "sell": [
                {"question": "x", "mappingKey": "timeToSell"},
                {"question": "y", "mappingKey": "timeline"},
            ]
        })
        assert find_field_by_concept("timeline", catalog).field_id == "timeToSell"
        assert [f.field_id for f in group_by_concept(catalog)["timeline"]] == ["timeToSell", "timeline"]

    def test_group_by_concept_excludes_custom_fields(self, catalog):
        grouped = group_by_concept(catalog)
        assert set(grouped) == {"property-type", "timeline", "budget", "selling-reason"}
        assert all(f.field_id != "doorColour" for fields in grouped.values() for f in fields)

    def test_fields_for_flow(self, catalog):
        assert [f.field_id for f in fields_for_flow("sell", catalog)] == ["propertyType", "doorColour"]
        assert [f.field_id for f in fields_for_flow("buy", catalog)] == ["timeline", "budget", "q7"]

    def test_get_unknown_field(self, catalog):
        assert get_field("nope", catalog) is None
