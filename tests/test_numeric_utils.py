# Statistical Engine - Unit Tests: Numeric Utilities
# Sample cleaning, pairing, moments, and ranking helpers

import sys
import os
import unittest

import numpy as np

# Add parent to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from statengine.analysis.numeric_utils import (
    average_ranks,
    clean_pairs,
    clean_sample,
    is_constant,
    normal_two_sided_p,
    quantile,
    require_observations,
    t_two_sided_p,
    tie_correction_sum,
    to_float_array,
    variance,
)
from statengine.core.exceptions import (
    InsufficientDataError,
    MissingValuesError,
    NonNumericDataError,
    UnequalLengthError,
)


class TestSampleCleaning(unittest.TestCase):
    """Tests for null/invalid handling."""

    def test_nulls_and_invalid_counted_separately(self):
        """None and NaN are null, infinities are invalid."""
        sample = clean_sample([1, None, float('nan'), float('inf'), '5'])

        np.testing.assert_array_equal(sample.values, [1.0, 5.0])
        self.assertEqual(sample.length, 5)
        self.assertEqual(sample.null_count, 2)
        self.assertEqual(sample.invalid_count, 1)
        self.assertEqual(sample.count + sample.excluded_count, sample.length)

    def test_numpy_input(self):
        sample = clean_sample(np.array([1.0, np.nan, -np.inf, 4.0]))
        self.assertEqual(sample.count, 2)
        self.assertEqual(sample.null_count, 1)
        self.assertEqual(sample.invalid_count, 1)

    def test_non_numeric_rejected(self):
        with self.assertRaises(NonNumericDataError) as ctx:
            to_float_array(['a', 1, 2], name='label')
        self.assertEqual(ctx.exception.variable, 'label')

    def test_positions_preserved(self):
        """Excluded positions are NaN in the positional array."""
        arr, null_mask, invalid_mask = to_float_array([3, None, 5])
        self.assertEqual(arr.size, 3)
        self.assertTrue(np.isnan(arr[1]))
        self.assertTrue(null_mask[1])
        self.assertFalse(invalid_mask.any())


class TestPairing(unittest.TestCase):
    """Tests for listwise deletion across aligned samples."""

    def test_incomplete_positions_dropped(self):
        (a, b), dropped = clean_pairs([1, 2, None, 4], [1, None, 3, 4])
        np.testing.assert_array_equal(a, [1.0, 4.0])
        np.testing.assert_array_equal(b, [1.0, 4.0])
        self.assertEqual(dropped, 2)

    def test_unequal_lengths(self):
        with self.assertRaises(UnequalLengthError) as ctx:
            clean_pairs([1, 2, 3], [1, 2])
        self.assertEqual(ctx.exception.lengths, (3, 2))


class TestMomentsAndRanks(unittest.TestCase):
    """Tests for moments, quantiles and ranking."""

    def test_require_observations(self):
        with self.assertRaises(MissingValuesError):
            require_observations(np.array([]), 2)
        with self.assertRaises(InsufficientDataError) as ctx:
            require_observations(np.array([1.0]), 2)
        self.assertEqual(ctx.exception.required_samples, 2)
        self.assertEqual(ctx.exception.actual_samples, 1)

    def test_linear_quantile(self):
        values = np.arange(1.0, 11.0)
        self.assertAlmostEqual(quantile(values, 0.25), 3.25)
        self.assertAlmostEqual(quantile(values, 0.75), 7.75)

    def test_sample_variance_needs_two(self):
        self.assertAlmostEqual(variance(np.array([1.0, 2.0, 3.0])), 1.0)
        with self.assertRaises(InsufficientDataError):
            variance(np.array([1.0]))

    def test_average_ranks_for_ties(self):
        ranks = average_ranks(np.array([10.0, 20.0, 20.0, 30.0]))
        np.testing.assert_array_equal(ranks, [1.0, 2.5, 2.5, 4.0])

    def test_tie_correction_sum(self):
        # groups of sizes 1, 2, 3
        self.assertEqual(tie_correction_sum(np.array([1, 2, 2, 3, 3, 3])), 30.0)

    def test_is_constant(self):
        self.assertTrue(is_constant(np.array([2.0, 2.0])))
        self.assertFalse(is_constant(np.array([1.0, 2.0])))
        self.assertFalse(is_constant(np.array([])))
        self.assertTrue(is_constant(np.array([0.0, 0.0])))
        self.assertTrue(is_constant(np.array([0.3, 0.5, 0.7]) - np.array([0.2, 0.4, 0.6])))
        self.assertFalse(is_constant(np.array([1e9, 1e9 + 0.1])))

    def test_two_sided_p_values_bounded(self):
        self.assertEqual(t_two_sided_p(0.0, 5), 1.0)
        self.assertEqual(normal_two_sided_p(0.0), 1.0)
        self.assertAlmostEqual(normal_two_sided_p(1.959964), 0.05, places=5)


if __name__ == '__main__':
    unittest.main()
