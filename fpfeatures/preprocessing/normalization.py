"""
Intensity normalization of raw fingerprint images.

This module maps a grayscale image onto a prescribed mean and variance,
flipping foreground/background polarity on the way.
"""

import math
from typing import Optional, Union

import numpy as np

from ..exceptions import PreconditionError
from ..utils.config import NormalizationConfig
from ..utils.iteration import reduce_sum_in
from ..utils.logger import get_logger


logger = get_logger(__name__)


# =============================================================================
# MATHEMATICAL BACKGROUND
# =============================================================================
#
# Given image I with mean μ and population standard deviation σ:
#
#     σ = sqrt( (1/N) * Σ (I(y,x) - μ)² )
#     k = sqrt(V0) / σ
#
# Each pixel is mapped to
#
#     N(y,x) = M0 + |I(y,x) - μ| * k     if I(y,x) < σ
#     N(y,x) = M0 - |I(y,x) - μ| * k     otherwise
#
# The input has bright ridges on a dark background; the output has dark
# ridges on a bright background. The polarity test compares the raw
# intensity against σ, not μ. Later stages are tuned against this rule,
# so it is kept as is.
#
# Reference:
# Hong, L., Wan, Y., & Jain, A. (1998).
# "Fingerprint image enhancement: Algorithm and performance evaluation."
# IEEE Transactions on PAMI, 20(8), 777-789.
# =============================================================================


def normalize_pixel(
    intensity: Union[float, np.ndarray],
    avg: float,
    std: float,
    target_mean: float,
    modifier: float
) -> Union[float, np.ndarray]:
    """
    Normalize an intensity value, or every value of an array.

    This is the only definition of the normalization rule; normalize()
    applies it to the whole image at once.

    Args:
        intensity: Raw pixel intensity, or an array of them
        avg: Image mean
        std: Image population standard deviation
        target_mean: Desired output mean (M0)
        modifier: sqrt(V0) / std

    Returns:
        Normalized intensity (float for scalar input, array otherwise)
    """
    coeff = np.abs(intensity - avg) * modifier
    # flip fg/bg here
    result = np.where(intensity < std, target_mean + coeff, target_mean - coeff)
    return result if result.ndim else float(result)


def normalize(
    image: np.ndarray,
    target_mean: float,
    target_variance: float
) -> np.ndarray:
    """
    Normalize image to a target mean and variance.

    Args:
        image: 2D grayscale image (white foreground, black background)
        target_mean: Desired mean value (M0)
        target_variance: Desired color spread (V0), must be >= 0

    Returns:
        Normalized image as float64 (black foreground, white background)

    Raises:
        PreconditionError: If the image is not a non-empty 2D grid, the
            target variance is negative, or the image has zero standard
            deviation
    """
    image = np.asarray(image)
    if image.ndim != 2:
        raise PreconditionError(f"Expected a 2D image, got shape {image.shape}")
    if image.size == 0:
        raise PreconditionError("Cannot normalize an empty image")
    if target_variance < 0:
        raise PreconditionError(f"target_variance must be >= 0, got {target_variance}")

    pixels = image.astype(np.float64)
    h, w = pixels.shape

    avg = reduce_sum_in(pixels, lambda y, x: pixels[y, x]) / (h * w)
    std = reduce_sum_in(pixels, lambda y, x: (pixels[y, x] - avg) ** 2)
    std = math.sqrt(std / (h * w))

    if std == 0:
        raise PreconditionError(
            "Image has zero standard deviation (constant intensity); cannot normalize"
        )

    modifier = math.sqrt(target_variance) / std
    logger.debug(f"Normalizing {h}x{w} image: mean={avg:.3f}, std={std:.3f}")

    return normalize_pixel(pixels, avg, std, target_mean, modifier)


class Normalizer:
    """
    Configurable intensity normalizer.
    """

    def __init__(
        self,
        target_mean: float = 100.0,
        target_variance: float = 100.0
    ):
        """
        Initialize normalizer.

        Args:
            target_mean: Desired output mean
            target_variance: Desired output spread
        """
        self.target_mean = target_mean
        self.target_variance = target_variance

    @classmethod
    def from_config(cls, config: Optional[NormalizationConfig] = None) -> 'Normalizer':
        """Create a normalizer from the normalization config section."""
        config = config or NormalizationConfig()
        return cls(config.target_mean, config.target_variance)

    def __call__(self, image: np.ndarray) -> np.ndarray:
        """
        Normalize a fingerprint image.

        Args:
            image: Input image

        Returns:
            Normalized float image
        """
        return normalize(image, self.target_mean, self.target_variance)
