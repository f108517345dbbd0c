"""
Data structures for matching results.

Defines the verdict produced by matching one normalized ingredient name
against one reference body.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any

from ingredient_compliance.matching.types import MatchType, ConfidenceLevel, ReferenceEntry


@dataclass(frozen=True)
class MatchVerdict:
    """
    Result of matching one ingredient against one reference body.

    Attributes:
        matched: True if any strategy found an entry
        match_type: Strategy that produced the match ('exact', 'synonym', 'fuzzy', 'none')
        matched_entry: The reference entry matched, None when unmatched
        reference_body: Identifier of the reference body consulted
        matched_term: Synonym or fuzzy token that produced the hit
    """
    matched: bool
    match_type: MatchType
    matched_entry: Optional[ReferenceEntry] = None
    reference_body: Optional[str] = None
    matched_term: Optional[str] = None

    def __post_init__(self):
        """Validate the verdict is internally consistent."""
        if not isinstance(self.match_type, MatchType):
            raise ValueError(f"Invalid match type '{self.match_type}'")

        has_entry = self.matched_entry is not None
        is_hit = self.match_type is not MatchType.NONE
        if not (self.matched == has_entry == is_hit):
            raise ValueError(
                f"Inconsistent verdict: matched={self.matched}, "
                f"match_type={self.match_type.value}, entry={'set' if has_entry else 'none'}"
            )

    @classmethod
    def no_match(cls, reference_body: Optional[str] = None) -> 'MatchVerdict':
        """Verdict for an ingredient found by no strategy."""
        return cls(matched=False, match_type=MatchType.NONE, reference_body=reference_body)

    @classmethod
    def hit(cls, match_type: MatchType, entry: ReferenceEntry,
            reference_body: Optional[str] = None,
            matched_term: Optional[str] = None) -> 'MatchVerdict':
        """Verdict for a successful match."""
        return cls(
            matched=True,
            match_type=match_type,
            matched_entry=entry,
            reference_body=reference_body,
            matched_term=matched_term,
        )

    @property
    def confidence(self) -> ConfidenceLevel:
        """Confidence implied by the match type."""
        return self.match_type.confidence_level

    @property
    def matched_name(self) -> Optional[str]:
        """Canonical name of the matched entry."""
        return self.matched_entry.canonical_name if self.matched_entry else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        entry = self.matched_entry
        return {
            "reference_body": self.reference_body,
            "matched": self.matched,
            "match_type": self.match_type.value,
            "confidence": self.confidence.value,
            "matched_term": self.matched_term,
            "matched_entry": None if entry is None else {
                "canonical_name": entry.canonical_name,
                "source_metadata": entry.source_metadata,
                "category": entry.category,
            },
        }
