"""
Fuzzy matching module for ingredient names.

Searches a reference index for canonical names that contain a significant
token of the ingredient name. Longer tokens are tried first; among the
candidates for a token the shortest canonical name wins.
"""

import logging
from typing import List, Optional

from ingredient_compliance.matching.match_result import MatchVerdict
from ingredient_compliance.matching.reference_index import ReferenceIndex
from ingredient_compliance.matching.types import MatchType, MatcherConfig

logger = logging.getLogger(__name__)


class FuzzyMatcher:
    """
    Token containment matcher.

    The index entries are searched for containing a token taken from the
    ingredient name. Short tokens and generic terms from the configured
    stoplist never drive a lookup.
    """

    def __init__(self, config: Optional[MatcherConfig] = None):
        """
        Initialize the fuzzy matcher.

        Args:
            config: Stoplist and token-length policy (defaults if None)
        """
        self.config = config or MatcherConfig()

    def search_terms(self, normalized_name: str) -> List[str]:
        """
        Significant tokens of a name in lookup order.

        Tokens are filtered by length and stoplist, de-duplicated and sorted
        longest first. Equal-length tokens keep their order in the name.

        Args:
            normalized_name: Output of the ingredient normalizer

        Returns:
            Ordered list of search tokens (possibly empty)

        Examples:
            >>> FuzzyMatcher().search_terms("panax ginseng root extract")
            ['ginseng', 'panax']
        """
        if not normalized_name:
            return []

        terms: List[str] = []
        for token in normalized_name.casefold().split():
            if len(token) < self.config.min_token_length:
                continue
            if token in self.config.generic_terms:
                continue
            if token not in terms:
                terms.append(token)

        # sorted() is stable, so ties keep name order
        return sorted(terms, key=len, reverse=True)

    def match(self, normalized_name: str, index: ReferenceIndex,
              reference_body: Optional[str] = None) -> Optional[MatchVerdict]:
        """
        Find the most specific entry containing a significant token.

        Args:
            normalized_name: Output of the ingredient normalizer
            index: Reference index for one reference body
            reference_body: Identifier recorded on the verdict

        Returns:
            MatchVerdict with match_type 'fuzzy', or None
        """
        for term in self.search_terms(normalized_name):
            candidates = index.by_name_contains(term)
            if not candidates:
                continue

            # min() keeps the first of equal-length names: index supply order
            best = min(candidates, key=lambda entry: len(entry.canonical_name))
            logger.debug(
                f"Fuzzy match '{normalized_name}' via '{term}' -> "
                f"'{best.canonical_name}' ({len(candidates)} candidates)"
            )
            return MatchVerdict.hit(MatchType.FUZZY, best, reference_body, matched_term=term)

        return None
