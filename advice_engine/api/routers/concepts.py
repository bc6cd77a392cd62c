"""
Concepts Router
================
Read-only access to the concept registry.
"""

import logging
from typing import List, Optional
from fastapi import APIRouter, HTTPException

from models.schemas import ConceptResponse, ConceptResolutionResponse
from rules.dictionaries.concepts import get_concept_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/concepts", tags=["concepts"])


@router.get("", response_model=List[ConceptResponse])
async def list_concepts():
    """All concepts in registration order."""
    return [ConceptResponse.from_concept(c) for c in get_concept_registry().get_all_concepts()]


@router.get("/resolve", response_model=ConceptResolutionResponse)
async def resolve_concept(field_id: str, question_text: Optional[str] = None):
    """Resolve the concept for a field id, falling back to the question text."""
    concept = get_concept_registry().find_concept_for_field(field_id, question_text)
    return ConceptResolutionResponse(
        field_id=field_id,
        question_text=question_text,
        concept=ConceptResponse.from_concept(concept) if concept else None,
    )


@router.get("/{concept_id}", response_model=ConceptResponse)
async def get_concept(concept_id: str):
    """A single concept by id."""
    concept = get_concept_registry().get_concept(concept_id)
    if concept is None:
        raise HTTPException(status_code=404, detail=f"Concept not found: {concept_id}")
    return ConceptResponse.from_concept(concept)
