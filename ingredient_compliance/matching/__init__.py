"""
Ingredient matching engine package.

Provides layered matching of a normalized ingredient name against one
reference body:
- Exact matching (canonical name equality)
- Synonym matching (synonym equality)
- Fuzzy matching (reference names containing a significant token)

and allergen detection (ingredient names containing a derivative term).
"""

from ingredient_compliance.matching.types import (
    AllergenEntry,
    ConfidenceLevel,
    DEFAULT_GENERIC_TERMS,
    MatchType,
    MatcherConfig,
    ReferenceBody,
    ReferenceEntry,
)
from ingredient_compliance.matching.match_result import MatchVerdict
from ingredient_compliance.matching.reference_index import ReferenceIndex
from ingredient_compliance.matching.exact_matcher import ExactMatcher
from ingredient_compliance.matching.fuzzy_matcher import FuzzyMatcher
from ingredient_compliance.matching.reference_matcher import ReferenceMatcher
from ingredient_compliance.matching.allergen_detector import (
    AllergenDetector,
    DEFAULT_FALSE_POSITIVES,
)

__all__ = [
    "AllergenEntry",
    "ConfidenceLevel",
    "DEFAULT_GENERIC_TERMS",
    "MatchType",
    "MatcherConfig",
    "ReferenceBody",
    "ReferenceEntry",
    "MatchVerdict",
    "ReferenceIndex",
    "ExactMatcher",
    "FuzzyMatcher",
    "ReferenceMatcher",
    "AllergenDetector",
    "DEFAULT_FALSE_POSITIVES",
]
