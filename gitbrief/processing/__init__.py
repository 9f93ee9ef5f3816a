"""
Processing of raw remote data into derived values.
"""

from gitbrief.processing.languages import (
    LanguageNormalizer,
    NormalizedLanguages,
    aggregate_language_shares,
    normalize,
    week_bounds,
)

__all__ = [
    "LanguageNormalizer",
    "NormalizedLanguages",
    "aggregate_language_shares",
    "normalize",
    "week_bounds",
]
