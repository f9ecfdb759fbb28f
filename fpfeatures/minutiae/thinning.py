"""
Image thinning (skeletonization) of binary ridge masks.

This module reduces fingerprint ridge masks to single-pixel-wide
skeletons, which is a prerequisite for minutiae extraction.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

import numpy as np

from ..exceptions import PreconditionError
from ..utils.config import SkeletonConfig
from ..utils.iteration import for_each
from ..utils.logger import get_logger


logger = get_logger(__name__)

MAX_ITERATIONS = 7


# =============================================================================
# MATHEMATICAL BACKGROUND
# =============================================================================
#
# Zhang-Suen Algorithm:
# A parallel thinning algorithm; each round has two sub-iterations.
#
# For a pixel P1 with 8-neighbors P2-P9 (clockwise from top):
#     P9 P2 P3
#     P8 P1 P4
#     P7 P6 P5
#
# P1 is deleted in a sub-iteration when:
# - 2 ≤ B(P1) ≤ 6   (B = number of non-zero neighbors)
# - A(P1) = 1        (A = number of 01 patterns in P2, P3, ..., P9, P2)
# - first sub-iteration:  P2 * P4 * P6 = 0 and P4 * P6 * P8 = 0
# - second sub-iteration: P2 * P4 * P8 = 0 and P2 * P6 * P8 = 0
#
# Every deletion decision inside a sub-iteration reads the image as it
# was when the sub-iteration started; deletions are applied afterwards.
#
# Only foreground pixels are ever deleted, so the scan is restricted to a
# working set of foreground coordinates, encoded as y * width + x.
#
# Reference:
# Zhang, T. Y., & Suen, C. Y. (1984).
# "A fast parallel algorithm for thinning digital patterns."
# Communications of the ACM, 27(3), 236-239.
# =============================================================================


@dataclass
class ThinningStats:
    """
    Outcome of a thinning run.

    Attributes:
        iterations: Number of rounds performed
        removed_per_iteration: Pixels removed in each round (both
            sub-iterations together)
    """
    iterations: int = 0
    removed_per_iteration: List[int] = field(default_factory=list)

    @property
    def total_removed(self) -> int:
        return sum(self.removed_per_iteration)

    @property
    def converged(self) -> bool:
        """True when the last round removed nothing."""
        return bool(self.removed_per_iteration) and self.removed_per_iteration[-1] == 0


def get_neighbors(image: np.ndarray, y: int, x: int) -> Tuple[bool, ...]:
    """
    Get 8-connected neighbors of a pixel in clockwise order.

    Neighbor arrangement:
        P9 P2 P3
        P8 P1 P4
        P7 P6 P5

    Returns (P2, P3, P4, P5, P6, P7, P8, P9)

    Args:
        image: Binary image
        y, x: Pixel coordinates (must not lie on the image border)

    Returns:
        Tuple of 8 neighbor values as booleans
    """
    return (
        bool(image[y-1, x]),    # P2
        bool(image[y-1, x+1]),  # P3
        bool(image[y, x+1]),    # P4
        bool(image[y+1, x+1]),  # P5
        bool(image[y+1, x]),    # P6
        bool(image[y+1, x-1]),  # P7
        bool(image[y, x-1]),    # P8
        bool(image[y-1, x-1]),  # P9
    )


def count_transitions(neighbors: Tuple[bool, ...]) -> int:
    """
    Count 0-to-1 transitions walking the neighbor ring P2 -> ... -> P9 -> P2.

    This is A(P1) in Zhang-Suen and the crossing number used to classify
    minutiae.

    Args:
        neighbors: Tuple of 8 neighbor values

    Returns:
        Number of 0→1 transitions
    """
    count = 0
    for i in range(8):
        if not neighbors[i] and neighbors[(i + 1) % 8]:
            count += 1
    return count


def count_nonzero_neighbors(neighbors: Tuple[bool, ...]) -> int:
    """B(P1): number of foreground neighbors."""
    return sum(1 for n in neighbors if n)


def is_removable(neighbors: Tuple[bool, ...], first_pass: bool) -> bool:
    """
    Zhang-Suen deletion test for one pixel.

    Args:
        neighbors: (P2, ..., P9) of the pixel
        first_pass: True for the first sub-iteration of a round

    Returns:
        Whether the pixel should be deleted
    """
    p2, p3, p4, p5, p6, p7, p8, p9 = neighbors

    b = count_nonzero_neighbors(neighbors)
    if b < 2 or b > 6:
        return False

    if count_transitions(neighbors) != 1:
        return False

    if first_pass:
        return not (p2 and p4 and p6) and not (p4 and p6 and p8)
    return not (p2 and p4 and p8) and not (p2 and p6 and p8)


def collect_foreground(image: np.ndarray) -> Set[int]:
    """
    Flatten the interior foreground pixels into a set of ``y * width + x``.

    The 1-pixel border is skipped so every member has all 8 neighbors.
    """
    h, w = image.shape
    whites: Set[int] = set()

    def visit(y: int, x: int) -> None:
        if image[y, x]:
            whites.add(y * w + x)

    for_each(1, 1, h - 1, w - 1, visit)
    return whites


def _scan(image: np.ndarray, whites: Set[int], first_pass: bool) -> List[int]:
    width = image.shape[1]
    pending = []
    for i in whites:
        y, x = divmod(i, width)
        if is_removable(get_neighbors(image, y, x), first_pass):
            pending.append(i)
    return pending


def _apply(image: np.ndarray, whites: Set[int], pending: List[int]) -> None:
    width = image.shape[1]
    for i in pending:
        y, x = divmod(i, width)
        image[y, x] = False
        whites.discard(i)


def thin(binary_image: np.ndarray, max_iterations: int = MAX_ITERATIONS) -> ThinningStats:
    """
    Thin a binary ridge mask in place.

    Rounds are repeated until one removes no pixel or ``max_iterations``
    rounds have run.

    Args:
        binary_image: 2D boolean (or 0/1) array, modified in place
        max_iterations: Hard cap on the number of rounds

    Returns:
        ThinningStats describing the run

    Raises:
        PreconditionError: If the image is not 2D or max_iterations < 1
    """
    if not isinstance(binary_image, np.ndarray) or binary_image.ndim != 2:
        raise PreconditionError("thin() expects a 2D numpy array")
    if max_iterations < 1:
        raise PreconditionError(f"max_iterations must be >= 1, got {max_iterations}")

    whites = collect_foreground(binary_image)
    stats = ThinningStats()

    while stats.iterations < max_iterations:
        removed = 0
        for first_pass in (True, False):
            pending = _scan(binary_image, whites, first_pass)
            _apply(binary_image, whites, pending)
            removed += len(pending)

        stats.iterations += 1
        stats.removed_per_iteration.append(removed)
        logger.debug(f"Thinning round {stats.iterations}: removed {removed} pixels")

        if removed == 0:
            break

    return stats


def zhang_suen_thinning(
    image: np.ndarray,
    max_iterations: int = MAX_ITERATIONS
) -> np.ndarray:
    """
    Thin a copy of a binary image.

    Args:
        image: Binary image (ridges non-zero, background zero)
        max_iterations: Maximum number of rounds

    Returns:
        Thinned (skeletonized) boolean image
    """
    skeleton = np.asarray(image) > 0
    thin(skeleton, max_iterations)
    return skeleton


class Thinner:
    """
    Configurable fingerprint thinning processor.
    """

    def __init__(self, max_iterations: int = MAX_ITERATIONS):
        """
        Initialize thinner.

        Args:
            max_iterations: Maximum thinning rounds
        """
        self.max_iterations = max_iterations

    @classmethod
    def from_config(cls, config: Optional[SkeletonConfig] = None) -> 'Thinner':
        """Create a thinner from the skeleton config section."""
        config = config or SkeletonConfig()
        return cls(config.max_iterations)

    def process(self, image: np.ndarray) -> np.ndarray:
        """
        Thin a copy of a binary ridge mask.

        Args:
            image: Binary ridge mask

        Returns:
            Thinned boolean image
        """
        return zhang_suen_thinning(image, self.max_iterations)

    def process_in_place(self, image: np.ndarray) -> ThinningStats:
        """Thin ``image`` in place and report the run."""
        return thin(image, self.max_iterations)
