"""Rules module - concept dictionaries"""
from .dictionaries.concepts import (
    REAL_ESTATE_CONCEPTS,
    Concept,
    ConceptRegistry,
    ValueType,
    get_concept_registry,
    get_all_concepts,
    get_concept,
    find_concept_for_field,
    normalize_value,
)

__all__ = [
    "REAL_ESTATE_CONCEPTS",
    "Concept",
    "ConceptRegistry",
    "ValueType",
    "get_concept_registry",
    "get_all_concepts",
    "get_concept",
    "find_concept_for_field",
    "normalize_value",
]
