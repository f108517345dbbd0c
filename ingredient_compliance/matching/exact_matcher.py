"""
Exact matching module for ingredient names.

Performs case-insensitive equality lookups against a reference index:
first on canonical names, then on synonyms. Literal reference names are
tried before their normalized forms.
"""

import logging
from typing import Optional

from ingredient_compliance.matching.match_result import MatchVerdict
from ingredient_compliance.matching.reference_index import ReferenceIndex
from ingredient_compliance.matching.types import MatchType, ReferenceEntry

logger = logging.getLogger(__name__)


class ExactMatcher:
    """
    Exact matching engine for ingredient names.

    Canonical-name equality yields an 'exact' verdict; synonym equality
    yields a 'synonym' verdict. Returns None when neither applies so the
    caller can fall through to fuzzy matching.

    Lookup order:
    1. Literal canonical name
    2. Literal synonym
    3. Normalized canonical name
    4. Normalized synonym
    """

    def match(self, normalized_name: str, index: ReferenceIndex,
              reference_body: Optional[str] = None) -> Optional[MatchVerdict]:
        """
        Attempt canonical-name then synonym equality.

        Args:
            normalized_name: Output of the ingredient normalizer
            index: Reference index for one reference body
            reference_body: Identifier recorded on the verdict

        Returns:
            MatchVerdict if found, None otherwise
        """
        if not normalized_name:
            return None

        entry = index.by_exact_name(normalized_name)
        if entry is not None:
            return MatchVerdict.hit(MatchType.EXACT, entry, reference_body)

        verdict = self._match_synonym(normalized_name, index.by_synonym(normalized_name),
                                      reference_body)
        if verdict is not None:
            return verdict

        entry = index.by_normalized_name(normalized_name)
        if entry is not None:
            logger.debug(f"Normalized name match '{normalized_name}' -> '{entry.canonical_name}'")
            return MatchVerdict.hit(MatchType.EXACT, entry, reference_body)

        return self._match_synonym(normalized_name, index.by_normalized_synonym(normalized_name),
                                   reference_body)

    def _match_synonym(self, normalized_name: str, entry: Optional[ReferenceEntry],
                       reference_body: Optional[str]) -> Optional[MatchVerdict]:
        """Build a synonym verdict for the entry a synonym lookup returned."""
        if entry is None:
            return None

        logger.debug(f"Synonym match '{normalized_name}' -> '{entry.canonical_name}'")
        return MatchVerdict.hit(
            MatchType.SYNONYM,
            entry,
            reference_body,
            matched_term=normalized_name,
        )
