"""
Declarative traversal of rectangular grid regions.

Every algorithmic stage expresses its pixel loops through these helpers
instead of nesting ``for`` loops by hand. Regions are half-open:
``top <= row < bottom`` and ``left <= col < right``.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Optional, Tuple

import numpy as np


# =============================================================================
# TRAVERSAL MODEL
# =============================================================================
#
# Sequential traversal visits cells in row-major order:
#
#     (t, l) -> (t, l+1) -> ... -> (t, r-1) -> (t+1, l) -> ... -> (d-1, r-1)
#
# Parallel traversal turns every row into one task. Columns inside a row
# stay sequential, so a visitor that writes only to its own row needs no
# locking. All row tasks are joined before the call returns.
#
# Reductions are always sequential so that floating point sums are
# accumulated in the same order on every run.
# =============================================================================


Region = Tuple[int, int, int, int]
Visitor = Callable[[int, int], None]


def for_each(top: int, left: int, bottom: int, right: int, visit: Visitor) -> None:
    """
    Visit every coordinate of a region in row-major order.

    Args:
        top, left: Inclusive upper-left corner
        bottom, right: Exclusive lower-right corner
        visit: Callback invoked as ``visit(row, col)``
    """
    for y in range(top, bottom):
        for x in range(left, right):
            visit(y, x)


def _visit_row(y: int, left: int, right: int, visit: Visitor) -> None:
    for x in range(left, right):
        visit(y, x)


def for_each_parallel(
    top: int,
    left: int,
    bottom: int,
    right: int,
    visit: Visitor,
    num_workers: Optional[int] = None
) -> None:
    """
    Visit every coordinate of a region, dispatching rows concurrently.

    The visitor must be safe to call from several threads at once for
    distinct rows. The first exception raised by a visitor is re-raised
    once all rows have finished.

    Args:
        top, left: Inclusive upper-left corner
        bottom, right: Exclusive lower-right corner
        visit: Callback invoked as ``visit(row, col)``
        num_workers: Thread pool size (None = executor default,
            1 = plain sequential traversal)
    """
    if bottom <= top or right <= left:
        return

    if num_workers == 1:
        for_each(top, left, bottom, right, visit)
        return

    with ThreadPoolExecutor(max_workers=num_workers) as executor:
        futures = {
            executor.submit(_visit_row, y, left, right, visit): y
            for y in range(top, bottom)
        }
        for future in as_completed(futures):
            future.result()


def reduce_sum(
    top: int,
    left: int,
    bottom: int,
    right: int,
    f: Callable[[int, int], float],
    start: float = 0
) -> float:
    """
    Sum ``f(row, col)`` over a region in row-major order.

    Args:
        top, left: Inclusive upper-left corner
        bottom, right: Exclusive lower-right corner
        f: Function evaluated at every coordinate
        start: Initial accumulator value

    Returns:
        The accumulated sum (``start`` for an empty region)
    """
    total = start
    for y in range(top, bottom):
        for x in range(left, right):
            total += f(y, x)
    return total


# -----------------------------------------------------------------------------
# Grid-bound variants
# -----------------------------------------------------------------------------

def clamp_region(
    grid: np.ndarray,
    top: int,
    left: int,
    bottom: int,
    right: int
) -> Region:
    """
    Clamp a region to the bounds ``[0, height] x [0, width]`` of a grid.

    Args:
        grid: 2D array whose shape bounds the region
        top, left, bottom, right: Requested region

    Returns:
        Clamped ``(top, left, bottom, right)``
    """
    h, w = grid.shape[:2]
    return max(0, top), max(0, left), min(h, bottom), min(w, right)


def _resolve(grid: np.ndarray, region: Optional[Region]) -> Region:
    if region is None:
        h, w = grid.shape[:2]
        return 0, 0, h, w
    return clamp_region(grid, *region)


def for_each_in(
    grid: np.ndarray,
    visit: Visitor,
    region: Optional[Region] = None
) -> None:
    """Row-major traversal of a grid, or of a clamped sub-region of it."""
    for_each(*_resolve(grid, region), visit)


def for_each_in_parallel(
    grid: np.ndarray,
    visit: Visitor,
    region: Optional[Region] = None,
    num_workers: Optional[int] = None
) -> None:
    """Row-parallel traversal of a grid, or of a clamped sub-region of it."""
    for_each_parallel(*_resolve(grid, region), visit, num_workers=num_workers)


def reduce_sum_in(
    grid: np.ndarray,
    f: Callable[[int, int], float],
    region: Optional[Region] = None
) -> float:
    """Row-major sum over a grid, or over a clamped sub-region of it."""
    return reduce_sum(*_resolve(grid, region), f)


def block_region(by: int, bx: int, block_size: int) -> Region:
    """Pixel region covered by block index ``(by, bx)``."""
    top, left = by * block_size, bx * block_size
    return top, left, top + block_size, left + block_size


def for_each_block(
    grid: np.ndarray,
    by: int,
    bx: int,
    block_size: int,
    visit: Visitor
) -> None:
    """
    Visit the pixels of block ``(by, bx)``, clamped to the grid.

    Args:
        grid: Grid the block belongs to
        by, bx: Block index
        block_size: Pixels per block side
        visit: Callback invoked as ``visit(row, col)``
    """
    for_each_in(grid, visit, block_region(by, bx, block_size))


def reduce_sum_block(
    grid: np.ndarray,
    by: int,
    bx: int,
    block_size: int,
    f: Callable[[int, int], float]
) -> float:
    """Sum ``f(row, col)`` over block ``(by, bx)``, clamped to the grid."""
    return reduce_sum_in(grid, f, block_region(by, bx, block_size))
