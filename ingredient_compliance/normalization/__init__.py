"""
Text normalization package for ingredient name processing.

Turns label ingredient names into the comparable form used by every
reference-body lookup.
"""

from .text_normalizer import (
    IngredientNormalizer,
    normalize_ingredient_name,
    NORMALIZATION_VERSION,
)

__all__ = [
    'IngredientNormalizer',
    'normalize_ingredient_name',
    'NORMALIZATION_VERSION',
]
