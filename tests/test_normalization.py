"""Unit tests for intensity normalization."""

from __future__ import annotations

import unittest

import numpy as np

from fpfeatures.exceptions import PreconditionError
from fpfeatures.preprocessing.normalization import Normalizer, normalize, normalize_pixel
from fpfeatures.utils.config import NormalizationConfig


class NormalizeTests(unittest.TestCase):
    def setUp(self) -> None:
        rng = np.random.default_rng(1234)
        self.image = rng.integers(0, 256, size=(24, 32), dtype=np.uint8)

    def test_two_level_image_hits_target_mean_and_variance(self) -> None:
        # avg = 100, std = 100: no pixel falls between them
        image = np.zeros((8, 8), dtype=np.uint8)
        image[:, 4:] = 200

        result = normalize(image, 120.0, 100.0)

        self.assertAlmostEqual(float(result.mean()), 120.0, places=9)
        self.assertAlmostEqual(float(result.var()), 100.0, places=9)
        # polarity is flipped: dark input becomes bright output
        np.testing.assert_allclose(result[:, :4], 130.0)
        np.testing.assert_allclose(result[:, 4:], 110.0)

    def test_polarity_compares_against_standard_deviation(self) -> None:
        # avg = 55, std = 5: both levels are >= std, so both map below the mean
        image = np.full((4, 4), 50, dtype=np.uint8)
        image[2:, :] = 60

        result = normalize(image, 100.0, 100.0)

        np.testing.assert_allclose(result, 90.0)

    def test_output_is_bounded(self) -> None:
        result = normalize(self.image, 100.0, 400.0)

        pixels = self.image.astype(np.float64)
        modifier = np.sqrt(400.0) / pixels.std()
        bound = np.abs(pixels - pixels.mean()).max() * modifier
        self.assertTrue(np.all(np.abs(result - 100.0) <= bound + 1e-9))

    def test_returns_float64_and_leaves_input_untouched(self) -> None:
        original = self.image.copy()
        result = normalize(self.image, 100.0, 100.0)
        self.assertEqual(result.dtype, np.float64)
        self.assertEqual(result.shape, self.image.shape)
        np.testing.assert_array_equal(self.image, original)

    def test_matches_single_pixel_rule(self) -> None:
        pixels = self.image.astype(np.float64)
        avg = pixels.mean()
        std = pixels.std()
        modifier = np.sqrt(100.0) / std

        result = normalize(self.image, 100.0, 100.0)

        for y, x in [(0, 0), (5, 7), (23, 31), (12, 3)]:
            expected = normalize_pixel(pixels[y, x], avg, std, 100.0, modifier)
            self.assertAlmostEqual(result[y, x], expected, places=9)

    def test_pixel_rule_accepts_scalars_and_arrays(self) -> None:
        self.assertIsInstance(normalize_pixel(3.0, 5.0, 4.0, 100.0, 2.0), float)
        # below std: mean + |3 - 5| * 2; at or above std: mean - |9 - 5| * 2
        self.assertEqual(normalize_pixel(3.0, 5.0, 4.0, 100.0, 2.0), 104.0)
        self.assertEqual(normalize_pixel(9.0, 5.0, 4.0, 100.0, 2.0), 92.0)

        values = np.array([[3.0, 9.0], [4.0, 5.0]])
        np.testing.assert_allclose(
            normalize_pixel(values, 5.0, 4.0, 100.0, 2.0),
            [[104.0, 92.0], [98.0, 100.0]]
        )

    def test_constant_image_is_rejected(self) -> None:
        image = np.full((16, 16), 128, dtype=np.uint8)
        with self.assertRaises(PreconditionError):
            normalize(image, 128.0, 0.0)

    def test_precondition_error_is_a_value_error(self) -> None:
        with self.assertRaises(ValueError):
            normalize(np.full((3, 3), 7), 0.0, 1.0)

    def test_rejects_malformed_input(self) -> None:
        with self.assertRaises(PreconditionError):
            normalize(np.zeros((2, 2, 3)), 100.0, 100.0)
        with self.assertRaises(PreconditionError):
            normalize(np.zeros((0, 5)), 100.0, 100.0)
        with self.assertRaises(PreconditionError):
            normalize(self.image, 100.0, -1.0)


class NormalizerTests(unittest.TestCase):
    def test_from_config(self) -> None:
        normalizer = Normalizer.from_config(NormalizationConfig(target_mean=50.0, target_variance=25.0))
        self.assertEqual(normalizer.target_mean, 50.0)
        self.assertEqual(normalizer.target_variance, 25.0)

        image = np.zeros((4, 4))
        image[:2] = 10.0
        result = normalizer(image)
        self.assertAlmostEqual(float(result.mean()), 50.0, places=9)


if __name__ == "__main__":
    unittest.main()
