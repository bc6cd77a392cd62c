"""
Real Estate Concepts Dictionary
===============================
Stable, tenant-independent domain concepts that advice rules are written against.

Each concept carries:
- aliases: field-name spellings that identify it (the concept id is always one of them)
- common_values: canonical categorical values, empty for numeric/text concepts
- value_normalizations: lowercase free-form input -> canonical value
- examples: question phrases used when no alias matches

Developers can add/modify concepts here without changing core logic.
Registration order matters: lookups are first-match-wins.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Iterable

logger = logging.getLogger(__name__)


class ValueType(str, Enum):
    """Value domain of a concept"""
    CATEGORICAL = "categorical"
    NUMERIC = "numeric"
    TEXT = "text"


@dataclass(frozen=True)
class Concept:
    """A named domain notion with aliases and value normalization"""
    concept_id: str
    label: str
    description: str
    aliases: Tuple[str, ...]
    value_type: ValueType
    common_values: Tuple[str, ...] = ()
    value_normalizations: Dict[str, str] = field(default_factory=dict)
    examples: Tuple[str, ...] = ()

    @property
    def all_aliases(self) -> Tuple[str, ...]:
        """Aliases including the concept id itself"""
        if self.concept_id in self.aliases:
            return self.aliases
        return (self.concept_id,) + self.aliases

    def matches_alias(self, field_id: str) -> bool:
        lowered = field_id.lower()
        return any(alias.lower() == lowered for alias in self.all_aliases)

    def to_dict(self) -> Dict[str, object]:
        return {
            "concept_id": self.concept_id,
            "label": self.label,
            "description": self.description,
            "aliases": list(self.all_aliases),
            "value_type": self.value_type.value,
            "common_values": list(self.common_values),
            "value_normalizations": dict(self.value_normalizations),
            "examples": list(self.examples),
        }


# =============================================================================
# BUILT-IN CONCEPTS
# =============================================================================

REAL_ESTATE_CONCEPTS: Tuple[Concept, ...] = (
    Concept(
        concept_id="property-type",
        label="Property Type",
        description="The type of property (house, condo, townhouse, etc.)",
        aliases=("propertyType", "property", "homeType", "home", "dwelling", "propertyKind", "propKind"),
        value_type=ValueType.CATEGORICAL,
        common_values=("single-family house", "condo", "townhouse", "multi-family"),
        value_normalizations={
            "house": "single-family house",
            "home": "single-family house",
            "single family": "single-family house",
            "sfh": "single-family house",
            "apartment": "condo",
            "apt": "condo",
            "condominium": "condo",
            "townhome": "townhouse",
            "duplex": "multi-family",
            "triplex": "multi-family",
        },
        examples=("What type of property", "What kind of home", "Property type", "Type of dwelling"),
    ),
    Concept(
        concept_id="timeline",
        label="Timeline",
        description="How quickly the user wants to buy/sell (urgency)",
        aliases=("timeline", "timeframe", "when", "urgency", "timing", "timeToSell", "timeToBuy"),
        value_type=ValueType.CATEGORICAL,
        common_values=("0-3", "3-6", "6-12", "12+"),
        value_normalizations={
            "urgent": "0-3",
            "asap": "0-3",
            "quick": "0-3",
            "immediately": "0-3",
            "soon": "3-6",
            "within 6 months": "3-6",
            "flexible": "6-12",
            "no rush": "12+",
            "not urgent": "12+",
        },
        examples=("When do you want to", "How quickly", "What is your timeline", "Timeframe"),
    ),
    Concept(
        concept_id="selling-reason",
        label="Selling Reason",
        description="Why the user wants to sell their property",
        aliases=("sellingReason", "reason", "why", "motivation", "sellReason", "whySelling"),
        value_type=ValueType.CATEGORICAL,
        common_values=("upsizing", "downsizing", "relocating", "investment"),
        value_normalizations={
            "moving up": "upsizing",
            "bigger home": "upsizing",
            "growing family": "upsizing",
            "moving down": "downsizing",
            "smaller home": "downsizing",
            "empty nest": "downsizing",
            "relocation": "relocating",
            "moving": "relocating",
            "job transfer": "relocating",
            "investing": "investment",
            "flip": "investment",
        },
        examples=("Why are you selling", "What is your reason", "Selling motivation"),
    ),
    Concept(
        concept_id="buying-reason",
        label="Buying Reason",
        description="Why the user wants to buy a property",
        aliases=("buyingReason", "reason", "why", "motivation", "buyReason", "whyBuying"),
        value_type=ValueType.CATEGORICAL,
        common_values=("first-home", "upgrade", "downsize", "investment"),
        value_normalizations={
            "first time": "first-home",
            "first home": "first-home",
            "first-time buyer": "first-home",
            "moving up": "upgrade",
            "bigger": "upgrade",
            "moving down": "downsize",
            "smaller": "downsize",
            "investing": "investment",
            "rental": "investment",
        },
        examples=("Why are you buying", "What is your reason", "Buying motivation"),
    ),
    Concept(
        concept_id="budget",
        label="Budget",
        description="The user's price range or budget",
        aliases=("budget", "price", "priceRange", "affordability", "maxPrice", "budgetRange"),
        value_type=ValueType.NUMERIC,
        examples=("What is your budget", "Price range", "How much can you afford"),
    ),
    Concept(
        concept_id="location",
        label="Location",
        description="Geographic location or area preference",
        aliases=("location", "area", "neighborhood", "city", "region", "where"),
        value_type=ValueType.TEXT,
        examples=("Where are you looking", "What area", "Location preference"),
    ),
    Concept(
        concept_id="property-age",
        label="Property Age",
        description="How old the property is",
        aliases=("propertyAge", "age", "yearBuilt", "homeAge", "houseAge"),
        value_type=ValueType.CATEGORICAL,
        common_values=("0-10", "10-20", "20-30", "30+"),
        value_normalizations={
            "new": "0-10",
            "newer": "0-10",
            "recent": "10-20",
            "older": "30+",
            "historic": "30+",
        },
        examples=("How old is your home", "Property age", "Year built"),
    ),
    Concept(
        concept_id="bedrooms",
        label="Bedrooms",
        description="Number of bedrooms",
        aliases=("bedrooms", "beds", "bedroomCount", "bedroom"),
        value_type=ValueType.NUMERIC,
        common_values=("1", "2", "3", "4", "5+"),
        examples=("How many bedrooms", "Number of beds"),
    ),
    Concept(
        concept_id="renovations",
        label="Renovations",
        description="Renovations or updates needed/wanted",
        aliases=("renovations", "updates", "improvements", "renovated", "remodel"),
        value_type=ValueType.CATEGORICAL,
        common_values=("kitchen", "bathroom", "kitchen and bathroom", "none"),
        value_normalizations={
            "kitchen update": "kitchen",
            "bath update": "bathroom",
            "both": "kitchen and bathroom",
            "no updates": "none",
            "move-in ready": "none",
        },
        examples=("What renovations", "Updates needed", "Improvements"),
    ),
)


# =============================================================================
# REGISTRY
# =============================================================================

class ConceptRegistry:
    """
    Read-only catalog of concepts.

    The alias index is built once in registration order with
    first-registered-wins semantics, so shared aliases (e.g. ``reason``)
    always resolve to the earliest concept that declares them.
    Example-phrase matching stays a linear scan in registration order.
    """

    def __init__(self, concepts: Iterable[Concept] = REAL_ESTATE_CONCEPTS):
        self._concepts: Tuple[Concept, ...] = tuple(concepts)
        self._by_id: Dict[str, Concept] = {}
        self._alias_index: Dict[str, Concept] = {}

        for concept in self._concepts:
            self._by_id.setdefault(concept.concept_id, concept)
            for alias in concept.all_aliases:
                self._alias_index.setdefault(alias.lower(), concept)

        logger.info(
            f"Concept registry initialized with {len(self._concepts)} concepts "
            f"and {len(self._alias_index)} aliases"
        )

    def __len__(self) -> int:
        return len(self._concepts)

    def __iter__(self):
        return iter(self._concepts)

    def get_all_concepts(self) -> List[Concept]:
        return list(self._concepts)

    def get_concept(self, concept_id: str) -> Optional[Concept]:
        return self._by_id.get(concept_id)

    def find_concept_for_field(self, field_id: str, question_text: Optional[str] = None) -> Optional[Concept]:
        """
        Resolve the concept a field belongs to.

        Args:
            field_id: Field identifier, matched case-insensitively against aliases
            question_text: Question label, searched for example phrases when no alias matches

        Returns:
            The first matching concept, or None
        """
        concept = self._alias_index.get((field_id or "").lower())
        if concept is not None:
            return concept

        if question_text:
            lowered_question = question_text.lower()
            for candidate in self._concepts:
                if any(example.lower() in lowered_question for example in candidate.examples):
                    return candidate

        return None

    @staticmethod
    def normalize_value(concept: Concept, raw_value: str) -> str:
        """Map a free-form value to the concept's canonical value, if it has one"""
        return concept.value_normalizations.get(raw_value.lower(), raw_value)


def load_concepts_file(path: Path) -> List[Concept]:
    """
    Load additional concepts from a JSON file of the form
    ``{"concepts": [{"concept_id": ..., "label": ..., ...}]}``.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    entries = data.get("concepts", []) if isinstance(data, dict) else data
    concepts = []
    for entry in entries:
        concepts.append(Concept(
            concept_id=entry["concept_id"],
            label=entry.get("label", entry["concept_id"]),
            description=entry.get("description", ""),
            aliases=tuple(entry.get("aliases", [])),
            value_type=ValueType(entry.get("value_type", ValueType.TEXT.value)),
            common_values=tuple(entry.get("common_values", [])),
            value_normalizations={
                str(k).lower(): str(v) for k, v in entry.get("value_normalizations", {}).items()
            },
            examples=tuple(entry.get("examples", [])),
        ))
    return concepts


# Singleton instance
_registry: Optional[ConceptRegistry] = None


def get_concept_registry() -> ConceptRegistry:
    """Get the process-wide concept registry, loading extra concepts from settings once"""
    global _registry
    if _registry is None:
        from config.settings import settings

        concepts: List[Concept] = list(REAL_ESTATE_CONCEPTS)
        extra_file = settings.matching.concepts_extra_file
        if extra_file is not None:
            try:
                concepts.extend(load_concepts_file(extra_file))
                logger.info(f"Loaded extra concepts from {extra_file}")
            except (OSError, ValueError, KeyError) as e:
                logger.error(f"Error loading concepts file {extra_file}: {e}")
        _registry = ConceptRegistry(concepts)
    return _registry


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_all_concepts() -> List[Concept]:
    """Get all concepts in registration order"""
    return get_concept_registry().get_all_concepts()


def get_concept(concept_id: str) -> Optional[Concept]:
    """Get a concept by id"""
    return get_concept_registry().get_concept(concept_id)


def find_concept_for_field(field_id: str, question_text: Optional[str] = None) -> Optional[Concept]:
    """Find a concept by field name, falling back to question text"""
    return get_concept_registry().find_concept_for_field(field_id, question_text)


def normalize_value(concept: Concept, raw_value: str) -> str:
    """Normalize a value to the concept's standard format"""
    return ConceptRegistry.normalize_value(concept, raw_value)
