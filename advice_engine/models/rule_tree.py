"""
Rule Tree Models
================
Boolean rule trees: AND/OR groups of leaf conditions.

Two tree families share the same shape:
- Concept-addressed (ConceptGroup / ConceptCondition): portable across tenants,
  used for authoring and recommendations.
- Field-addressed (FieldGroup / FieldCondition): tenant-bound, persisted and
  evaluated directly. A field-addressed leaf can only hold a FieldRef.

Every node carries a ``kind`` tag ("group" / "condition").
Pydantic v2 compatible; wire keys are camelCase.
"""

from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Logic(str, Enum):
    """Group combinator"""
    AND = "AND"
    OR = "OR"


class Operator(str, Enum):
    """Leaf match operator"""
    EQUALS = "equals"
    INCLUDES = "includes"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    BETWEEN = "between"


NUMERIC_OPERATORS = frozenset({Operator.GREATER_THAN, Operator.LESS_THAN, Operator.BETWEEN})

RuleValue = Union[str, List[str]]


# =============================================================================
# FIELD REFERENCES
# =============================================================================

class FieldRef(BaseModel):
    """Reference to a tenant field by id"""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    field_id: str = Field(alias="fieldId")


class ConceptRef(BaseModel):
    """
    Reference used by concept-addressed trees.

    Authored rules set ``concept_id`` (optionally with a ``field_id`` hint).
    Raised trees only carry ``field_id``: raising never guesses a concept.
    """
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    concept_id: Optional[str] = Field(default=None, alias="conceptId")
    field_id: Optional[str] = Field(default=None, alias="fieldId")
    label: Optional[str] = None


# =============================================================================
# CONDITIONS
# =============================================================================

class _ConditionBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    kind: Literal["condition"] = "condition"
    operator: Operator
    value: RuleValue
    weight: float = Field(default=1.0, gt=0)

    @model_validator(mode="after")
    def validate_value(self):
        if isinstance(self.value, list) and not self.value:
            raise ValueError("value list must not be empty")
        if self.operator == Operator.BETWEEN:
            if not isinstance(self.value, list) or len(self.value) != 2:
                raise ValueError("between requires exactly two values [min, max]")
        return self

    @property
    def value_list(self) -> List[str]:
        """Rule value coerced to a list"""
        return list(self.value) if isinstance(self.value, list) else [self.value]


class FieldCondition(_ConditionBase):
    """Leaf condition of a field-addressed tree"""
    field_ref: FieldRef = Field(alias="fieldRef")


class ConceptCondition(_ConditionBase):
    """Leaf condition of a concept-addressed tree"""
    field_ref: ConceptRef = Field(alias="fieldRef")


# =============================================================================
# GROUPS
# =============================================================================

class FieldGroup(BaseModel):
    """AND/OR group of a field-addressed tree"""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    kind: Literal["group"] = "group"
    logic: Logic
    children: List[Union[FieldCondition, "FieldGroup"]] = Field(default_factory=list)


class ConceptGroup(BaseModel):
    """AND/OR group of a concept-addressed tree"""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    kind: Literal["group"] = "group"
    logic: Logic
    children: List[Union[ConceptCondition, "ConceptGroup"]] = Field(default_factory=list)


FieldGroup.model_rebuild()
ConceptGroup.model_rebuild()


FieldNode = Union[FieldCondition, FieldGroup]
ConceptNode = Union[ConceptCondition, ConceptGroup]
RuleNode = Union[FieldCondition, FieldGroup, ConceptCondition, ConceptGroup]


def iter_conditions(node: RuleNode):
    """Yield every leaf condition of a tree in depth-first order"""
    if isinstance(node, (FieldGroup, ConceptGroup)):
        for child in node.children:
            yield from iter_conditions(child)
    else:
        yield node
