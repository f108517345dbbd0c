"""
Text normalization module for ingredient names.

Canonicalizes raw ingredient names as printed on product labels into a
comparable form for lookup against the reference bodies (GRAS, NDI,
old dietary ingredients, major allergens).
"""

import re
from typing import Optional

# Versioned normalization: increment when rules change, rebuild reference indexes
NORMALIZATION_VERSION = 1


class IngredientNormalizer:
    """
    Normalizes label ingredient names to a standard form for matching.

    Handles:
    - Case folding
    - Whitespace collapse
    - Parenthetical qualifiers ("Calcium (Carbonate)")
    - Trailing clauses after a comma or semicolon ("Salt, Iodized")
    - Stereochemistry prefixes (d-, l-, dl-)
    - Trailing percentage annotations ("Green Tea Extract 5%")

    Every step is total: any input, including None or an empty string,
    produces a string. Normalizing an already normalized name is a no-op.
    """

    _WHITESPACE = re.compile(r'\s+')
    _PARENTHETICAL = re.compile(r'\s*\([^)]*\)')
    _TRAILING_CLAUSE = re.compile(r'[,;].*$', flags=re.DOTALL)
    _STEREO_PREFIX = re.compile(r'\b(?:dl|d|l)-(?=[^\W\d_])', flags=re.IGNORECASE)
    _TRAILING_PERCENT = re.compile(r'(?:\s*\b\d+(?:\.\d+)?\s*%)+\s*$')

    def normalize(self, text: Optional[str]) -> str:
        """
        Apply the complete normalization pipeline to an ingredient name.

        Pipeline order:
        1. Case folding (lowercase)
        2. Whitespace trim and collapse
        3. Parenthetical qualifier removal
        4. Truncation at the first comma or semicolon
        5. Stereochemistry prefix removal
        6. Trailing percentage removal
        7. Final whitespace cleanup

        Args:
            text: Raw ingredient name from a label

        Returns:
            Normalized ingredient name (possibly empty)

        Examples:
            >>> normalizer = IngredientNormalizer()
            >>> normalizer.normalize("Calcium (Carbonate)")
            'calcium'
            >>> normalizer.normalize("Salt, Iodized")
            'salt'
            >>> normalizer.normalize("Calcium D-Pantothenate 1%")
            'calcium pantothenate'
        """
        if not text or not isinstance(text, str):
            return ''

        # Step 1: Case folding
        text = self._case_fold(text)

        # Step 2: Trim and collapse whitespace
        text = self._collapse_whitespace(text).strip()

        # Step 3: Remove parenthetical qualifiers
        text = self._strip_parentheticals(text)

        # Step 4: Drop everything after the first comma or semicolon
        text = self._truncate_trailing_clause(text)

        # Step 5: Remove stereochemistry prefixes
        text = self._strip_stereo_prefixes(text)

        # Step 6: Remove trailing percentage
        text = self._strip_trailing_percentage(text)

        # Step 7: Final whitespace cleanup
        return self._collapse_whitespace(text).strip()

    def _case_fold(self, text: str) -> str:
        """
        Convert text to lowercase using case folding.

        Case folding is more aggressive than simple lowercasing and keeps
        upper- and lower-case spellings of the same name identical.
        """
        return text.casefold()

    def _collapse_whitespace(self, text: str) -> str:
        """Collapse runs of spaces, tabs and newlines to a single space."""
        return self._WHITESPACE.sub(' ', text)

    def _strip_parentheticals(self, text: str) -> str:
        """
        Remove parenthetical qualifiers together with their parentheses.

        Examples:
            >>> normalizer._strip_parentheticals("calcium (carbonate)")
            'calcium'
            >>> normalizer._strip_parentheticals("vitamin e (as d-alpha tocopherol) oil")
            'vitamin e oil'
        """
        return self._PARENTHETICAL.sub('', text)

    def _truncate_trailing_clause(self, text: str) -> str:
        """Discard everything from the first comma or semicolon onwards."""
        return self._TRAILING_CLAUSE.sub('', text)

    def _strip_stereo_prefixes(self, text: str) -> str:
        """
        Remove d-, l- and dl- stereochemistry prefixes preceding a word.

        Examples:
            >>> normalizer._strip_stereo_prefixes("l-carnitine")
            'carnitine'
            >>> normalizer._strip_stereo_prefixes("calcium d-pantothenate")
            'calcium pantothenate'
        """
        return self._STEREO_PREFIX.sub('', text)

    def _strip_trailing_percentage(self, text: str) -> str:
        """Remove a trailing "<number>%" annotation such as "5%" or "0.5 %"."""
        return self._TRAILING_PERCENT.sub('', text)


# Module-level singleton for convenience function
_normalizer_instance = None


def _get_normalizer() -> IngredientNormalizer:
    """Get or create the module-level IngredientNormalizer singleton."""
    global _normalizer_instance
    if _normalizer_instance is None:
        _normalizer_instance = IngredientNormalizer()
    return _normalizer_instance


def normalize_ingredient_name(text: Optional[str]) -> str:
    """
    Convenience function for ingredient name normalization.

    Uses a module-level IngredientNormalizer singleton to avoid
    repeated construction.

    Args:
        text: Raw ingredient name

    Returns:
        Normalized ingredient name
    """
    return _get_normalizer().normalize(text)
