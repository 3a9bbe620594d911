"""
Region extraction, filtering and merging.
"""

from .extraction import extract_regions, morphological_open, reduce_noise, threshold_mask
from .filtering import (
    combine_regions,
    compactness,
    filter_regions,
    merge_regions,
    passes_filter,
)

__all__ = [
    "combine_regions",
    "compactness",
    "extract_regions",
    "filter_regions",
    "merge_regions",
    "morphological_open",
    "passes_filter",
    "reduce_noise",
    "threshold_mask",
]
