"""
Minutiae-based feature extraction modules.

This package provides classical minutiae extraction:
- Thinning (skeletonization)
- Minutiae extraction (crossing number method + noise suppression)
"""

from .thinning import (
    MAX_ITERATIONS,
    ThinningStats,
    get_neighbors,
    count_transitions,
    count_nonzero_neighbors,
    is_removable,
    collect_foreground,
    thin,
    zhang_suen_thinning,
    Thinner
)
from .minutiae_extraction import (
    NOISE_THRESHOLD,
    MinutiaeType,
    Minutia,
    classify_pixel,
    detect_candidates,
    build_prefix_sum,
    window_count,
    dilate,
    noise_radius,
    suppress_noise,
    extract_minutiae,
    MinutiaeExtractor
)

__all__ = [
    # Thinning
    'MAX_ITERATIONS',
    'ThinningStats',
    'get_neighbors',
    'count_transitions',
    'count_nonzero_neighbors',
    'is_removable',
    'collect_foreground',
    'thin',
    'zhang_suen_thinning',
    'Thinner',
    # Minutiae extraction
    'NOISE_THRESHOLD',
    'MinutiaeType',
    'Minutia',
    'classify_pixel',
    'detect_candidates',
    'build_prefix_sum',
    'window_count',
    'dilate',
    'noise_radius',
    'suppress_noise',
    'extract_minutiae',
    'MinutiaeExtractor',
]
