"""
Cascade matcher for one ingredient against one reference body.

Cascade order (short-circuits at the first hit):
  Step 1: Exact canonical-name equality
  Step 2: Synonym equality
  Step 3: Token containment (fuzzy)
  Step 4: No match
"""

import logging
from typing import Optional

from ingredient_compliance.matching.exact_matcher import ExactMatcher
from ingredient_compliance.matching.fuzzy_matcher import FuzzyMatcher
from ingredient_compliance.matching.match_result import MatchVerdict
from ingredient_compliance.matching.reference_index import ReferenceIndex
from ingredient_compliance.matching.types import MatcherConfig

logger = logging.getLogger(__name__)


class ReferenceMatcher:
    """
    Layered matcher coordinating exact, synonym and fuzzy strategies.

    Stateless: the verdict depends only on the normalized name and the
    index, so one instance can serve any number of concurrent callers.
    """

    def __init__(self,
                 config: Optional[MatcherConfig] = None,
                 exact_matcher: Optional[ExactMatcher] = None,
                 fuzzy_matcher: Optional[FuzzyMatcher] = None):
        """
        Initialize the matcher.

        Args:
            config: Fuzzy matching policy (defaults if None)
            exact_matcher: ExactMatcher instance (creates new if None)
            fuzzy_matcher: FuzzyMatcher instance (created from config if None)
        """
        self.config = config or MatcherConfig()
        self.exact_matcher = exact_matcher or ExactMatcher()
        self.fuzzy_matcher = fuzzy_matcher or FuzzyMatcher(self.config)

    def match(self, normalized_name: str, index: ReferenceIndex,
              reference_body: Optional[str] = None) -> MatchVerdict:
        """
        Match a normalized ingredient name against one reference body.

        Args:
            normalized_name: Output of the ingredient normalizer
            index: Reference index for the body
            reference_body: Identifier recorded on the verdict

        Returns:
            MatchVerdict; match_type 'none' when every strategy fails
        """
        if not normalized_name:
            return MatchVerdict.no_match(reference_body)

        # ── Steps 1-2: Exact and synonym ───────────────────────────────
        verdict = self.exact_matcher.match(normalized_name, index, reference_body)
        if verdict is not None:
            return verdict

        # ── Step 3: Fuzzy ──────────────────────────────────────────────
        verdict = self.fuzzy_matcher.match(normalized_name, index, reference_body)
        if verdict is not None:
            return verdict

        logger.debug(f"No match for '{normalized_name}' in {reference_body or 'reference body'}")
        return MatchVerdict.no_match(reference_body)
