"""
Compliance records produced by the aggregator.

An IngredientComplianceRecord holds the verdicts for one label ingredient and
the regulatory flags derived from them; a LabelComplianceReport holds the
records of one label in input order together with summary counts.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from ingredient_compliance.matching.match_result import MatchVerdict


@dataclass(frozen=True)
class IngredientComplianceRecord:
    """
    Compliance outcome for one ingredient.

    Attributes:
        raw_name: Ingredient name as printed on the label
        normalized_name: Normalizer output used for matching
        verdicts: One verdict per reference body consulted, keyed by body id
        is_gras: Matched in the GRAS body
        has_ndi: Matched in the NDI notification body
        requires_ndi: Not matched in the old dietary ingredients body
        allergen_flags: Allergen categories detected in the name
        notes: Human-readable compliance notes derived from the verdicts
    """
    raw_name: str
    normalized_name: str
    verdicts: Mapping[str, MatchVerdict]
    is_gras: bool
    has_ndi: bool
    requires_ndi: bool
    allergen_flags: FrozenSet[str] = frozenset()
    notes: Tuple[str, ...] = ()

    def verdict_for(self, body: str) -> Optional[MatchVerdict]:
        """Verdict for a reference body, None if that body was not consulted."""
        return self.verdicts.get(body)

    @property
    def has_allergens(self) -> bool:
        return bool(self.allergen_flags)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "raw_name": self.raw_name,
            "normalized_name": self.normalized_name,
            "is_gras": self.is_gras,
            "has_ndi": self.has_ndi,
            "requires_ndi": self.requires_ndi,
            "allergen_flags": sorted(self.allergen_flags),
            "verdicts": {body: v.to_dict() for body, v in self.verdicts.items()},
            "notes": list(self.notes),
        }


@dataclass(frozen=True)
class ComplianceSummary:
    """Counts of ingredients per flag for one label."""
    total_ingredients: int = 0
    gras: int = 0
    non_gras: int = 0
    with_ndi: int = 0
    requires_ndi: int = 0
    with_allergens: int = 0
    allergen_counts: Mapping[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "total_ingredients": self.total_ingredients,
            "gras": self.gras,
            "non_gras": self.non_gras,
            "with_ndi": self.with_ndi,
            "requires_ndi": self.requires_ndi,
            "with_allergens": self.with_allergens,
            "allergen_counts": dict(self.allergen_counts),
        }


@dataclass(frozen=True)
class LabelComplianceReport:
    """
    Compliance report for one label.

    Records appear in the same order as the ingredients were supplied.
    """
    records: Tuple[IngredientComplianceRecord, ...]
    summary: ComplianceSummary
    snapshot_version: Optional[str] = None

    @property
    def non_gras_ingredients(self) -> List[str]:
        """Raw names of ingredients not found in the GRAS body."""
        return [r.raw_name for r in self.records if not r.is_gras]

    @property
    def ingredients_requiring_ndi(self) -> List[str]:
        """Raw names of ingredients absent from the grandfather list."""
        return [r.raw_name for r in self.records if r.requires_ndi]

    @property
    def allergen_categories(self) -> FrozenSet[str]:
        """Every allergen category detected on the label."""
        return frozenset(c for r in self.records for c in r.allergen_flags)

    @property
    def overall_gras_compliant(self) -> bool:
        """True when every ingredient is GRAS (vacuously true for an empty label)."""
        return self.summary.non_gras == 0

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "snapshot_version": self.snapshot_version,
            "summary": self.summary.to_dict(),
            "overall_gras_compliant": self.overall_gras_compliant,
            "records": [r.to_dict() for r in self.records],
        }
