"""
Minutiae extraction from fingerprint skeleton images.

This module implements minutiae detection using the crossing number
method on skeletonized fingerprint images, followed by removal of
minutiae that sit in implausibly dense clusters.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional

import cv2
import numpy as np
from scipy import ndimage

from ..exceptions import PreconditionError
from ..utils.config import MinutiaeConfig, ParallelConfig
from ..utils.iteration import (
    clamp_region,
    for_each,
    for_each_in,
    for_each_in_parallel,
    for_each_parallel,
)
from ..utils.logger import get_logger
from .thinning import count_transitions, get_neighbors


logger = get_logger(__name__)

NOISE_THRESHOLD = 4


# =============================================================================
# MATHEMATICAL BACKGROUND
# =============================================================================
#
# Minutiae:
# ---------
# - Ridge ending: A ridge that terminates abruptly
# - Ridge bifurcation: A single ridge that splits into two ridges
#
# Crossing Number Method:
# ----------------------
# For a skeleton pixel P with neighbors P2..P9 (clockwise from top), let
# T(P) be the number of 0→1 transitions in P2, P3, ..., P9, P2:
# - T = 1: Ridge ending
# - T = 2: Ridge continuing point
# - T > 2: Ridge bifurcation
#
# After a minutia is found at (y, x), no other minutia is accepted in
# rows [y, y + wl) and columns [x - wl, x + wl). Rows above y were
# already scanned, so the zone only extends downwards.
#
# Noise Suppression:
# -----------------
# With r = wl + wl/2, a pixel is noisy when the (2r+1)² window centered
# on it holds more than 4 candidates. The count uses an integral image:
#
#     S(y, x) = Σ_{i ≤ y, j ≤ x} C(i, j)
#     count   = S(y+r, x+r) - S(y+r, x-r-1) - S(y-r-1, x+r) + S(y-r-1, x-r-1)
#
# The noisy mask is dilated by r and every candidate under it is dropped.
#
# Reference:
# Maltoni, D., Maio, D., Jain, A. K., & Prabhakar, S. (2009).
# "Handbook of Fingerprint Recognition." Springer.
# =============================================================================


class MinutiaeType(IntEnum):
    """Enumeration of minutiae types, as stored in the type grid."""
    NONE = 0
    ENDING = 1
    BIFURCATION = 3


@dataclass(frozen=True)
class Minutia:
    """
    Represents a single minutia point.

    Attributes:
        minutiae_type: Type of minutia (ending or bifurcation)
        row: Y coordinate
        col: X coordinate
        orientation: Block ridge orientation (radians)
    """
    minutiae_type: MinutiaeType
    row: int
    col: int
    orientation: float

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'type': self.minutiae_type.name,
            'row': self.row,
            'col': self.col,
            'orientation': self.orientation
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'Minutia':
        """Create from dictionary."""
        return cls(
            minutiae_type=MinutiaeType[d['type']],
            row=d['row'],
            col=d['col'],
            orientation=d['orientation']
        )


def classify_pixel(skeleton: np.ndarray, y: int, x: int) -> MinutiaeType:
    """
    Classify a skeleton pixel by its crossing number.

    Args:
        skeleton: Binary skeleton image
        y, x: Interior pixel coordinates

    Returns:
        ENDING, BIFURCATION, or NONE (also for background pixels)
    """
    if not skeleton[y, x]:
        return MinutiaeType.NONE

    n = count_transitions(get_neighbors(skeleton, y, x))
    if n == 1:
        return MinutiaeType.ENDING
    if n > 2:
        return MinutiaeType.BIFURCATION
    return MinutiaeType.NONE


def detect_candidates(
    skeleton: np.ndarray,
    region_mask: np.ndarray,
    min_wavelength: int
) -> np.ndarray:
    """
    Scan the skeleton interior for candidate minutiae.

    Args:
        skeleton: Binary skeleton image
        region_mask: Valid fingerprint area (non-zero = valid)
        min_wavelength: Ridge period; sizes the exclusion zone

    Returns:
        uint8 type grid holding a MinutiaeType value per pixel
    """
    h, w = skeleton.shape
    wl = min_wavelength
    visited = np.zeros((h, w), dtype=bool)
    types = np.zeros((h, w), dtype=np.uint8)

    def visit(y: int, x: int) -> None:
        if not region_mask[y, x] or visited[y, x]:
            return

        t = classify_pixel(skeleton, y, x)
        if t == MinutiaeType.NONE:
            return

        types[y, x] = t
        # No more minutiae from this area
        top, left, bottom, right = clamp_region(visited, y, x - wl, y + wl, x + wl)
        visited[top:bottom, left:right] = True

    for_each(1, 1, h - 1, w - 1, visit)
    return types


def build_prefix_sum(types: np.ndarray) -> np.ndarray:
    """
    Inclusive 2D prefix sum of candidate presence.

    Returns:
        Integer grid with ``res[y, x]`` = number of candidates in
        ``types[0:y+1, 0:x+1]``
    """
    candidates = (types != MinutiaeType.NONE).astype(np.uint8)
    # cv2.integral pads a leading zero row and column
    return cv2.integral(candidates)[1:, 1:]


def window_count(prefix: np.ndarray, y: int, x: int, r: int) -> int:
    """
    Number of candidates in the (2r+1)² window centered on (y, x).

    Requires ``y - r - 1 >= 0`` and ``x - r - 1 >= 0``.
    """
    return int(
        prefix[y + r, x + r]
        - prefix[y + r, x - r - 1]
        - prefix[y - r - 1, x + r]
        + prefix[y - r - 1, x - r - 1]
    )


def dilate(mask: np.ndarray, radius: int) -> np.ndarray:
    """
    Grow a boolean mask by ``radius`` pixels in all 8 directions.

    Args:
        mask: Boolean mask
        radius: Chebyshev radius of the square structuring element

    Returns:
        Dilated boolean mask
    """
    if radius <= 0:
        return mask.copy()
    structure = np.ones((2 * radius + 1, 2 * radius + 1), dtype=bool)
    return ndimage.binary_dilation(mask, structure=structure)


def noise_radius(min_wavelength: int) -> int:
    """Radius r of the (2r+1)² noise window for a ridge period."""
    return min_wavelength + (min_wavelength >> 1)


def _check_margin(h: int, w: int, min_wavelength: int) -> None:
    # The window scan covers rows [r+1, h-r); it must not be empty
    r = noise_radius(min_wavelength)
    if h < 2 * r + 2 or w < 2 * r + 2:
        raise PreconditionError(
            f"A {h}x{w} image is too small for min_wavelength={min_wavelength}: "
            f"noise suppression needs at least {2 * r + 2}x{2 * r + 2}"
        )


def suppress_noise(
    types: np.ndarray,
    min_wavelength: int,
    noise_threshold: int = NOISE_THRESHOLD,
    num_workers: Optional[int] = None
) -> int:
    """
    Remove candidates lying in or next to dense clusters, in place.

    Args:
        types: uint8 type grid from detect_candidates (modified in place)
        min_wavelength: Ridge period; the window radius is wl + wl // 2
        noise_threshold: Window counts above this mark a pixel noisy
        num_workers: Row-parallel worker count

    Returns:
        Number of candidates removed

    Raises:
        PreconditionError: If the grid is too small for the noise window
    """
    h, w = types.shape
    r = noise_radius(min_wavelength)
    _check_margin(h, w, min_wavelength)
    prefix = build_prefix_sum(types)
    noisy = np.zeros((h, w), dtype=bool)

    def scan(y: int, x: int) -> None:
        if window_count(prefix, y, x, r) > noise_threshold:
            noisy[y, x] = True

    for_each_parallel(r + 1, r + 1, h - r, w - r, scan, num_workers=num_workers)
    noisy = dilate(noisy, r)

    before = int(np.count_nonzero(types))

    def clear(y: int, x: int) -> None:
        if noisy[y, x]:
            types[y, x] = MinutiaeType.NONE

    for_each_in_parallel(types, clear, num_workers=num_workers)

    removed = before - int(np.count_nonzero(types))
    logger.debug(f"Noise suppression removed {removed} of {before} candidates (r={r})")
    return removed


def _check_inputs(
    skeleton: np.ndarray,
    orientation_field: np.ndarray,
    region_mask: np.ndarray,
    min_wavelength: int,
    block_size: int
) -> None:
    if skeleton.ndim != 2:
        raise PreconditionError(f"Skeleton must be 2D, got shape {skeleton.shape}")
    h, w = skeleton.shape
    if h < 3 or w < 3:
        raise PreconditionError(f"Skeleton must be at least 3x3, got {h}x{w}")
    if region_mask.shape != skeleton.shape:
        raise PreconditionError(
            f"Region mask shape {region_mask.shape} does not match skeleton {skeleton.shape}"
        )
    if min_wavelength < 1:
        raise PreconditionError(f"min_wavelength must be >= 1, got {min_wavelength}")
    if block_size < 1:
        raise PreconditionError(f"block_size must be >= 1, got {block_size}")
    _check_margin(h, w, min_wavelength)
    if orientation_field.ndim != 2:
        raise PreconditionError(
            f"Orientation field must be 2D, got shape {orientation_field.shape}"
        )

    # Blocks touched by the last interior row/column
    needed = ((h - 2) // block_size + 1, (w - 2) // block_size + 1)
    if orientation_field.shape[0] < needed[0] or orientation_field.shape[1] < needed[1]:
        raise PreconditionError(
            f"Orientation field {orientation_field.shape} does not cover a {h}x{w} "
            f"image with block size {block_size} (needs at least {needed})"
        )


def extract_minutiae(
    skeleton: np.ndarray,
    orientation_field: np.ndarray,
    region_mask: np.ndarray,
    min_wavelength: int,
    block_size: int,
    noise_threshold: int = NOISE_THRESHOLD,
    num_workers: Optional[int] = None
) -> List[Minutia]:
    """
    Extract minutiae from a skeleton image.

    Algorithm Steps:
    ----------------
    1. Scan interior pixels inside the region mask, classifying each by
       crossing number and blocking an exclusion zone after every hit
    2. Drop candidates in or next to dense clusters
    3. Emit the survivors in row-major order with their block orientation

    Args:
        skeleton: Binary skeleton image
        orientation_field: Block orientation (radians), indexed by
            (row // block_size, col // block_size)
        region_mask: Valid fingerprint area (non-zero = valid)
        min_wavelength: Expected ridge period in pixels
        block_size: Pixels per orientation block
        noise_threshold: Maximum candidates tolerated in a noise window
        num_workers: Row-parallel worker count for noise suppression

    Returns:
        List of Minutia objects

    Raises:
        PreconditionError: If the inputs are malformed or inconsistent
    """
    skeleton = np.asarray(skeleton)
    orientation_field = np.asarray(orientation_field)
    region_mask = np.asarray(region_mask)
    _check_inputs(skeleton, orientation_field, region_mask, min_wavelength, block_size)

    types = detect_candidates(skeleton, region_mask, min_wavelength)
    logger.debug(f"Detected {int(np.count_nonzero(types))} candidate minutiae")

    suppress_noise(types, min_wavelength, noise_threshold, num_workers)

    minutiae: List[Minutia] = []

    def emit(y: int, x: int) -> None:
        t = types[y, x]
        if t != MinutiaeType.NONE:
            minutiae.append(Minutia(
                minutiae_type=MinutiaeType(int(t)),
                row=y,
                col=x,
                orientation=float(orientation_field[y // block_size, x // block_size])
            ))

    for_each_in(types, emit)
    return minutiae


class MinutiaeExtractor:
    """
    Configurable minutiae extraction stage.
    """

    def __init__(
        self,
        min_wavelength: int = 8,
        block_size: int = 16,
        noise_threshold: int = NOISE_THRESHOLD,
        num_workers: Optional[int] = None
    ):
        """
        Initialize extractor.

        Args:
            min_wavelength: Expected ridge period in pixels
            block_size: Pixels per orientation block
            noise_threshold: Maximum candidates tolerated in a noise window
            num_workers: Row-parallel worker count
        """
        self.min_wavelength = min_wavelength
        self.block_size = block_size
        self.noise_threshold = noise_threshold
        self.num_workers = num_workers

    @classmethod
    def from_config(
        cls,
        config: Optional[MinutiaeConfig] = None,
        parallel: Optional[ParallelConfig] = None
    ) -> 'MinutiaeExtractor':
        """Create an extractor from the minutiae and parallel config sections."""
        config = config or MinutiaeConfig()
        parallel = parallel or ParallelConfig()
        return cls(
            min_wavelength=config.min_wavelength,
            block_size=config.block_size,
            noise_threshold=config.noise_threshold,
            num_workers=parallel.num_workers
        )

    def extract(
        self,
        skeleton: np.ndarray,
        orientation_field: np.ndarray,
        region_mask: Optional[np.ndarray] = None
    ) -> List[Minutia]:
        """
        Extract minutiae from skeleton image.

        Args:
            skeleton: Binary skeleton image
            orientation_field: Block orientation field
            region_mask: Optional segmentation mask (whole image when None)

        Returns:
            List of extracted minutiae
        """
        if region_mask is None:
            region_mask = np.ones(np.shape(skeleton), dtype=bool)

        return extract_minutiae(
            skeleton,
            orientation_field,
            region_mask,
            self.min_wavelength,
            self.block_size,
            self.noise_threshold,
            self.num_workers
        )
