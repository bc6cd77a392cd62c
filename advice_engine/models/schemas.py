"""
Pydantic Models for the Advice Engine API
=========================================
Request and Response models for all API endpoints.
Pydantic v2 compatible.
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict, model_validator
from datetime import datetime

from models.flows import FieldCollisionPolicy, KnownField, QuestionDefinition
from models.rule_tree import ConceptGroup, FieldGroup
from rules.dictionaries.concepts import Concept
from services.advice_matcher import AdviceItem


# =============================================================================
# SHARED
# =============================================================================

class CatalogSource(BaseModel):
    """Either inline flow definitions or a tenant whose catalog is cached"""
    tenant_id: Optional[str] = Field(default=None, description="Tenant with a cached catalog")
    flows: Optional[Dict[str, List[QuestionDefinition]]] = Field(
        default=None, description="Flow id -> ordered question definitions"
    )

    @model_validator(mode="after")
    def require_source(self):
        if self.tenant_id is None and self.flows is None:
            raise ValueError("either tenant_id or flows is required")
        return self


# =============================================================================
# REQUEST MODELS
# =============================================================================

class CatalogRequest(BaseModel):
    """Request model for building a field catalog"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "flows": {
                    "sell": [
                        {
                            "id": "timeline",
                            "question": "When do you want to sell?",
                            "mappingKey": "timeline",
                            "buttons": [
                                {"label": "ASAP", "value": "asap"},
                                {"label": "Flexible", "value": "flexible"}
                            ]
                        }
                    ]
                }
            }
        }
    )

    flows: Dict[str, List[QuestionDefinition]]
    collision_policy: Optional[FieldCollisionPolicy] = None


class LowerRequest(BaseModel):
    tree: ConceptGroup


class RaiseRequest(BaseModel):
    tree: FieldGroup


class EvaluateRequest(CatalogSource):
    """Request model for evaluating a field-addressed rule tree"""
    tree: FieldGroup
    answers: Dict[str, str] = Field(default_factory=dict)


class CleanupRequest(CatalogSource):
    tree: FieldGroup


class AdviceRankRequest(CatalogSource):
    """Request model for filtering and ranking advice items"""
    flow: str
    answers: Dict[str, str] = Field(default_factory=dict)
    advice: List[AdviceItem]
    min_match_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class ConceptResponse(BaseModel):
    concept_id: str
    label: str
    description: str
    aliases: List[str]
    value_type: str
    common_values: List[str] = Field(default_factory=list)
    value_normalizations: Dict[str, str] = Field(default_factory=dict)
    examples: List[str] = Field(default_factory=list)

    @classmethod
    def from_concept(cls, concept: Concept) -> "ConceptResponse":
        return cls(**concept.to_dict())


class ConceptResolutionResponse(BaseModel):
    field_id: str
    question_text: Optional[str] = None
    concept: Optional[ConceptResponse] = None


class FieldResponse(BaseModel):
    field_id: str
    label: str
    origin_flow: str
    kind: str
    raw_values: List[str] = Field(default_factory=list)
    concept_id: Optional[str] = None
    normalized_values: List[str] = Field(default_factory=list)

    @classmethod
    def from_field(cls, known: KnownField) -> "FieldResponse":
        return cls(**known.to_dict())


class CatalogResponse(BaseModel):
    tenant_id: Optional[str] = None
    fields: List[FieldResponse]
    custom_field_ids: List[str] = Field(default_factory=list)
    concepts: Dict[str, List[str]] = Field(default_factory=dict, description="Concept id -> field ids")


class EvaluationResponse(BaseModel):
    matched: bool
    score: float
    max_score: float


class CleanupResponse(BaseModel):
    tree: Optional[FieldGroup] = None
    original_conditions: int
    remaining_conditions: int


class RankedAdviceResponse(BaseModel):
    id: str
    title: str
    match_score: float
    reason: str


class AdviceRankResponse(BaseModel):
    flow: str
    results: List[RankedAdviceResponse]


class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    concepts_loaded: int
    cache_enabled: bool
    timestamp: datetime


# =============================================================================
# ERROR MODELS
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response"""
    error: str
    detail: Optional[str] = None
    code: Optional[str] = None
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())
