"""
Fingerprint preprocessing modules.

This package provides intensity normalization of raw images.
"""

from .normalization import (
    normalize,
    normalize_pixel,
    Normalizer
)

__all__ = [
    'normalize',
    'normalize_pixel',
    'Normalizer',
]
