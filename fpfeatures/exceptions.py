"""
Exception types for the fingerprint feature extraction package.

All stages are pure in-memory transforms, so every failure is a caller
contract violation raised at the point it is detected.
"""


class FeatureExtractionError(Exception):
    """Base class for errors raised by fpfeatures."""


class PreconditionError(FeatureExtractionError, ValueError):
    """
    Raised when an input violates a stage's preconditions.

    Examples: a constant-intensity image handed to the normalizer
    (zero standard deviation), mismatched grid shapes, or an orientation
    field that does not cover the skeleton.
    """


class ConfigurationError(FeatureExtractionError, ValueError):
    """Raised when configuration values are out of their valid range."""
