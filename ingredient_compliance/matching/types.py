"""
Type definitions for the ingredient matching engine.

Defines the reference entries consumed by the matchers, the match type and
confidence enums, and the matcher configuration.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, FrozenSet, Tuple, Iterable


class ReferenceBody(str, Enum):
    """Reference bodies an ingredient is checked against."""
    GRAS = "gras"
    NDI = "ndi"
    OLD_DIETARY_INGREDIENTS = "old_dietary_ingredients"


def body_id(body) -> str:
    """Plain string id for a ReferenceBody member or an arbitrary body name."""
    return body.value if isinstance(body, Enum) else str(body)


class ConfidenceLevel(Enum):
    """Confidence level categories implied by the match type."""
    HIGH = "high"  # exact
    MEDIUM = "medium"  # synonym
    LOW = "low"  # fuzzy
    NONE = "none"


class MatchType(Enum):
    """Strategies that can produce a match, strongest first."""
    EXACT = "exact"
    SYNONYM = "synonym"
    FUZZY = "fuzzy"
    NONE = "none"

    @property
    def rank(self) -> int:
        """Ordering key: higher means more confident."""
        return _MATCH_TYPE_RANK[self]

    @property
    def confidence_level(self) -> ConfidenceLevel:
        """Get the confidence level category."""
        return _MATCH_TYPE_CONFIDENCE[self]


_MATCH_TYPE_RANK = {
    MatchType.EXACT: 3,
    MatchType.SYNONYM: 2,
    MatchType.FUZZY: 1,
    MatchType.NONE: 0,
}

_MATCH_TYPE_CONFIDENCE = {
    MatchType.EXACT: ConfidenceLevel.HIGH,
    MatchType.SYNONYM: ConfidenceLevel.MEDIUM,
    MatchType.FUZZY: ConfidenceLevel.LOW,
    MatchType.NONE: ConfidenceLevel.NONE,
}


@dataclass(frozen=True)
class ReferenceEntry:
    """
    One entry of a reference body.

    Represents an authoritative substance record (a GRAS substance, an NDI
    notification, a pre-1994 dietary ingredient). Entries are loaded once per
    matching session and never mutated by the engine.
    """
    canonical_name: str
    synonyms: FrozenSet[str] = frozenset()
    source_metadata: Optional[str] = None
    is_active: bool = True
    category: Optional[str] = None

    def __post_init__(self):
        """Validate the canonical name and freeze the synonym collection."""
        if not isinstance(self.canonical_name, str) or not self.canonical_name.strip():
            raise ValueError("ReferenceEntry.canonical_name must be a non-empty string")
        object.__setattr__(
            self, 'synonyms', frozenset(s for s in (self.synonyms or ()) if s)
        )


@dataclass(frozen=True)
class AllergenEntry(ReferenceEntry):
    """
    A major food allergen with its derivative terms.

    A derivative is a substring (e.g. "shrimp", "whey") whose presence in an
    ingredient name indicates the allergen.
    """
    derivatives: Tuple[str, ...] = ()

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, 'derivatives', tuple(self.derivatives or ()))

    @property
    def allergen_category(self) -> str:
        """Category reported when this allergen is detected."""
        return self.category or self.canonical_name


DEFAULT_GENERIC_TERMS: Tuple[str, ...] = (
    'extract',
    'powder',
    'concentrate',
    'isolate',
    'blend',
    'complex',
    'root',
    'seed',
    'leaf',
    'fruit',
    'berry',
)


@dataclass(frozen=True)
class MatcherConfig:
    """
    Policy inputs for the fuzzy matching step.

    Tokens shorter than ``min_token_length`` and tokens in ``generic_terms``
    never drive a fuzzy lookup.
    """
    min_token_length: int = 4
    generic_terms: FrozenSet[str] = field(default_factory=lambda: frozenset(DEFAULT_GENERIC_TERMS))

    def __post_init__(self):
        if self.min_token_length < 1:
            raise ValueError(f"min_token_length must be >= 1, got {self.min_token_length}")
        object.__setattr__(
            self, 'generic_terms', frozenset(t.casefold() for t in self.generic_terms)
        )

    @classmethod
    def from_terms(cls, generic_terms: Iterable[str], min_token_length: int = 4) -> 'MatcherConfig':
        """Build a config from any iterable of stoplist terms."""
        return cls(min_token_length=min_token_length, generic_terms=frozenset(generic_terms))
