"""
Fingerprint minutiae feature extraction.

Pipeline:
1. Normalization of the raw grayscale image
2. Thinning of the binarized ridge mask
3. Minutiae extraction with noise suppression
"""

from .exceptions import (
    FeatureExtractionError,
    PreconditionError,
    ConfigurationError
)
from .preprocessing import normalize, Normalizer
from .minutiae import (
    thin,
    zhang_suen_thinning,
    Thinner,
    ThinningStats,
    MinutiaeType,
    Minutia,
    extract_minutiae,
    MinutiaeExtractor
)
from .pipeline import ExtractionResult, FeatureExtractionPipeline
from .utils import Config, load_config, setup_logging

__version__ = "0.1.0"

__all__ = [
    # Errors
    'FeatureExtractionError',
    'PreconditionError',
    'ConfigurationError',
    # Stages
    'normalize',
    'Normalizer',
    'thin',
    'zhang_suen_thinning',
    'Thinner',
    'ThinningStats',
    'MinutiaeType',
    'Minutia',
    'extract_minutiae',
    'MinutiaeExtractor',
    # Pipeline
    'ExtractionResult',
    'FeatureExtractionPipeline',
    # Utils
    'Config',
    'load_config',
    'setup_logging',
]
