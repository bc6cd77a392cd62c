"""
Flow and Field Models
=====================
Question definitions supplied by the conversation configuration store,
and the tenant fields discovered from them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from rules.dictionaries.concepts import Concept


class QuestionInputType(str, Enum):
    """Input type of a conversational question"""
    BUTTONS = "buttons"
    TEXT = "text"
    EMAIL = "email"
    PHONE = "phone"
    NUMBER = "number"


class FieldKind(str, Enum):
    """Whether a field's values are constrained to a known set"""
    SELECT = "select"
    TEXT = "text"


class FieldCollisionPolicy(str, Enum):
    """Which definition wins when a mapping key appears in several flows"""
    LAST_WINS = "last_wins"
    FIRST_WINS = "first_wins"


class ChoiceButton(BaseModel):
    """A button option offered for a question"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    label: str = ""
    value: Optional[str] = None


class QuestionDefinition(BaseModel):
    """A customizable question in a chatbot flow"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = ""
    question: str = ""
    label: Optional[str] = None
    order: int = 0
    input_type: QuestionInputType = Field(default=QuestionInputType.TEXT, alias="inputType")
    mapping_key: Optional[str] = Field(default=None, alias="mappingKey")
    buttons: Optional[List[ChoiceButton]] = None


@dataclass
class KnownField:
    """A tenant field discovered from question definitions"""
    field_id: str
    label: str
    origin_flow: str
    kind: FieldKind
    raw_values: List[str] = field(default_factory=list)
    resolved_concept: Optional[Concept] = None
    normalized_values: List[str] = field(default_factory=list)

    @property
    def concept_id(self) -> Optional[str]:
        return self.resolved_concept.concept_id if self.resolved_concept else None

    @property
    def is_custom(self) -> bool:
        return self.resolved_concept is None

    def to_dict(self) -> dict:
        return {
            "field_id": self.field_id,
            "label": self.label,
            "origin_flow": self.origin_flow,
            "kind": self.kind.value,
            "raw_values": list(self.raw_values),
            "concept_id": self.concept_id,
            "normalized_values": list(self.normalized_values),
        }


class FlowDefinition(BaseModel):
    """An ordered list of questions making up one conversation flow"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    flow_id: str = Field(alias="flowId")
    questions: List[QuestionDefinition] = Field(default_factory=list)
