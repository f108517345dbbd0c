"""
Major food allergen detection.

Flags an ingredient when its name contains a curated derivative term of an
allergen (e.g. "shrimp" for shellfish, "whey" for milk). The ingredient is
searched for the derivative, which is the opposite direction from the fuzzy
matcher, where reference names are searched for an ingredient token.
"""

import logging
from typing import FrozenSet, Iterable, Optional

from ingredient_compliance.matching.types import AllergenEntry

logger = logging.getLogger(__name__)

# Names that contain a derivative term but are not allergens
DEFAULT_FALSE_POSITIVES = (
    'royal jelly',  # bee product, not a tree nut
    'royal gel',
    'bee jelly',
)


class AllergenDetector:
    """
    Containment-based allergen detector.

    Every derivative hit counts, regardless of length; derivative lists are
    curated upstream. Several categories can be flagged for one ingredient.
    """

    def __init__(self, false_positives: Optional[Iterable[str]] = None):
        """
        Initialize the detector.

        Args:
            false_positives: Whole ingredient names that are never flagged
                (defaults to DEFAULT_FALSE_POSITIVES)
        """
        if false_positives is None:
            false_positives = DEFAULT_FALSE_POSITIVES
        self.false_positives = frozenset(' '.join(n.casefold().split()) for n in false_positives)

    def detect(self, normalized_name: str,
               allergen_entries: Iterable[AllergenEntry]) -> FrozenSet[str]:
        """
        Categories of every active allergen whose derivative appears in the name.

        Args:
            normalized_name: Output of the ingredient normalizer
            allergen_entries: Allergen reference entries

        Returns:
            Frozen set of allergen categories (empty if none)
        """
        if not normalized_name:
            return frozenset()

        haystack = normalized_name.casefold()
        if ' '.join(haystack.split()) in self.false_positives:
            logger.debug(f"'{normalized_name}' is a known allergen false positive")
            return frozenset()

        flags = set()
        for allergen in allergen_entries:
            if not allergen.is_active:
                continue
            derivative = self._first_contained(haystack, allergen.derivatives)
            if derivative is not None:
                flags.add(allergen.allergen_category)
                logger.debug(
                    f"Allergen '{allergen.allergen_category}' in '{normalized_name}' "
                    f"(derivative '{derivative}')"
                )

        return frozenset(flags)

    @staticmethod
    def _first_contained(haystack: str, derivatives: Iterable[str]) -> Optional[str]:
        """First non-empty derivative contained in the name, or None."""
        for derivative in derivatives:
            if derivative and derivative.casefold() in haystack:
                return derivative
        return None
