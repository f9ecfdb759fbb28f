"""Unit tests for Zhang-Suen thinning."""

from __future__ import annotations

import unittest

import numpy as np

from fpfeatures.exceptions import PreconditionError
from fpfeatures.minutiae.thinning import (
    MAX_ITERATIONS,
    Thinner,
    collect_foreground,
    count_nonzero_neighbors,
    count_transitions,
    get_neighbors,
    is_removable,
    thin,
    zhang_suen_thinning,
)
from fpfeatures.utils.config import SkeletonConfig


def thick_bar() -> np.ndarray:
    """A 3-pixel-wide horizontal bar (rows 3..5, cols 2..12) on a 9x15 grid."""
    image = np.zeros((9, 15), dtype=bool)
    image[3:6, 2:13] = True
    return image


class NeighborhoodTests(unittest.TestCase):
    def test_neighbors_are_clockwise_from_north(self) -> None:
        image = np.arange(9).reshape(3, 3)
        # P2..P9 = N, NE, E, SE, S, SW, W, NW
        expected = tuple(bool(v) for v in (1, 2, 5, 8, 7, 6, 3, 0))
        self.assertEqual(get_neighbors(image, 1, 1), expected)

    def test_count_transitions(self) -> None:
        self.assertEqual(count_transitions((False,) * 8), 0)
        self.assertEqual(count_transitions((True,) * 8), 0)
        self.assertEqual(count_transitions((True,) + (False,) * 7), 1)
        self.assertEqual(count_transitions((True, False, True, False, True, False, False, False)), 3)
        # wrap-around from P9 back to P2
        self.assertEqual(count_transitions((True, False, False, False, False, False, False, True)), 1)

    def test_count_nonzero_neighbors(self) -> None:
        self.assertEqual(count_nonzero_neighbors((True, False, True, True, False, False, False, True)), 4)

    def test_is_removable_depends_on_pass(self) -> None:
        # P2..P6 set: A = 1, B = 5
        neighbors = (True, True, True, True, True, False, False, False)
        self.assertFalse(is_removable(neighbors, first_pass=True))
        self.assertTrue(is_removable(neighbors, first_pass=False))

    def test_endpoint_is_not_removable(self) -> None:
        neighbors = (False, False, True, False, False, False, False, False)
        self.assertFalse(is_removable(neighbors, first_pass=True))
        self.assertFalse(is_removable(neighbors, first_pass=False))

    def test_collect_foreground_skips_border(self) -> None:
        image = np.zeros((4, 5), dtype=bool)
        image[0, 2] = True
        image[2, 3] = True
        image[3, 1] = True
        self.assertEqual(collect_foreground(image), {2 * 5 + 3})


class ThinTests(unittest.TestCase):
    def test_thick_bar_reduces_to_single_line(self) -> None:
        image = thick_bar()
        stats = thin(image)

        rows, cols = np.nonzero(image)
        self.assertEqual(set(rows.tolist()), {4})
        self.assertEqual(len(cols), len(set(cols.tolist())))
        self.assertGreaterEqual(len(cols), 11 - 4)
        self.assertEqual(stats.iterations, 2)
        self.assertEqual(stats.removed_per_iteration[-1], 0)
        self.assertTrue(stats.converged)

    def test_thinning_is_idempotent(self) -> None:
        image = thick_bar()
        thin(image)
        skeleton = image.copy()

        stats = thin(image)

        self.assertEqual(stats.removed_per_iteration, [0])
        self.assertEqual(stats.iterations, 1)
        np.testing.assert_array_equal(image, skeleton)

    def test_terminates_within_iteration_cap(self) -> None:
        rng = np.random.default_rng(42)
        image = rng.random((40, 40)) > 0.4
        image[0, :] = image[-1, :] = False
        image[:, 0] = image[:, -1] = False

        stats = thin(image)

        self.assertLessEqual(stats.iterations, MAX_ITERATIONS)
        self.assertEqual(len(stats.removed_per_iteration), stats.iterations)

    def test_respects_custom_iteration_cap(self) -> None:
        image = np.zeros((30, 30), dtype=bool)
        image[2:28, 2:28] = True
        stats = thin(image, max_iterations=1)
        self.assertEqual(stats.iterations, 1)
        self.assertGreater(stats.total_removed, 0)
        self.assertFalse(stats.converged)

    def test_thin_line_is_left_alone(self) -> None:
        image = np.zeros((7, 9), dtype=bool)
        image[3, 1:8] = True
        expected = image.copy()

        stats = thin(image)

        np.testing.assert_array_equal(image, expected)
        self.assertEqual(stats.total_removed, 0)

    def test_isolated_pixel_survives(self) -> None:
        image = np.zeros((5, 5), dtype=bool)
        image[2, 2] = True
        thin(image)
        self.assertTrue(image[2, 2])

    def test_works_in_place_on_uint8(self) -> None:
        image = thick_bar().astype(np.uint8)
        thin(image)
        np.testing.assert_array_equal(image.astype(bool), zhang_suen_thinning(thick_bar()))

    def test_rejects_non_2d_input(self) -> None:
        with self.assertRaises(PreconditionError):
            thin(np.zeros((3, 3, 3), dtype=bool))
        with self.assertRaises(PreconditionError):
            thin(np.zeros((3, 3), dtype=bool), max_iterations=0)


class ThinnerTests(unittest.TestCase):
    def test_process_leaves_input_untouched(self) -> None:
        image = thick_bar()
        original = image.copy()

        skeleton = Thinner().process(image)

        np.testing.assert_array_equal(image, original)
        self.assertEqual(skeleton.dtype, bool)
        self.assertLess(int(skeleton.sum()), int(image.sum()))

    def test_from_config(self) -> None:
        thinner = Thinner.from_config(SkeletonConfig(max_iterations=3))
        self.assertEqual(thinner.max_iterations, 3)

        image = thick_bar()
        stats = thinner.process_in_place(image)
        self.assertLessEqual(stats.iterations, 3)


if __name__ == "__main__":
    unittest.main()
