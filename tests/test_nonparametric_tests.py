# Statistical Engine - Unit Tests: Non-Parametric Tests
# Mann-Whitney U, Wilcoxon signed-rank, Kruskal-Wallis H

import sys
import os
import unittest

# Add parent to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from statengine.analysis.nonparametric_tests import NonParametricTestEngine, NonParametricTestType
from statengine.core.exceptions import (
    ConstantValuesError,
    InsufficientDataError,
    MissingValuesError,
    UnequalLengthError,
)


class TestMannWhitney(unittest.TestCase):
    """Tests for the Mann-Whitney U test."""

    def test_separated_groups(self):
        result = NonParametricTestEngine().mann_whitney([1, 2, 3, 4, 5], [6, 7, 8, 9, 10])

        self.assertEqual(result.test_type, NonParametricTestType.MANN_WHITNEY)
        self.assertEqual(result.statistic, 0.0)
        self.assertAlmostEqual(result.z_score, -2.5067, places=4)
        self.assertAlmostEqual(result.p_value, 0.0122, places=4)
        self.assertAlmostEqual(result.effect_size, 0.7927, places=4)
        self.assertTrue(result.is_significant)
        self.assertEqual(result.mean_ranks, {'group1': 3.0, 'group2': 8.0})
        self.assertEqual(result.medians['group2'], 8.0)
        self.assertTrue(any('approximate' in note for note in result.notes))

    def test_without_continuity_correction(self):
        engine = NonParametricTestEngine(continuity_correction=False)
        result = engine.mann_whitney([1, 2, 3, 4, 5], [6, 7, 8, 9, 10])
        self.assertAlmostEqual(result.z_score, -2.6112, places=4)

    def test_all_tied(self):
        result = NonParametricTestEngine().mann_whitney([1, 1, 1], [1, 1])

        self.assertEqual(result.p_value, 1.0)
        self.assertEqual(result.z_score, 0.0)
        self.assertFalse(result.is_significant)

    def test_empty_group(self):
        with self.assertRaises(MissingValuesError):
            NonParametricTestEngine().mann_whitney([1, 2, 3], [None, None])

    def test_symmetric_statistic(self):
        engine = NonParametricTestEngine()
        forward = engine.mann_whitney([1, 4, 6, 9], [2, 3, 8, 10, 11])
        backward = engine.mann_whitney([2, 3, 8, 10, 11], [1, 4, 6, 9])
        self.assertEqual(forward.statistic, backward.statistic)
        self.assertAlmostEqual(forward.p_value, backward.p_value)


class TestWilcoxon(unittest.TestCase):
    """Tests for the Wilcoxon signed-rank test."""

    def test_signed_ranks(self):
        data1 = [11, 12, 13, 14, 15, 10]
        data2 = [10, 10, 10, 10, 10, 16]
        result = NonParametricTestEngine().wilcoxon(data1, data2)

        self.assertEqual(result.test_type, NonParametricTestType.WILCOXON)
        self.assertEqual(result.statistic, 6.0)
        self.assertEqual(result.n, (6,))
        self.assertAlmostEqual(result.p_value, 0.40, places=2)
        self.assertFalse(result.is_significant)

    def test_zero_differences_dropped(self):
        result = NonParametricTestEngine().wilcoxon([1, 2, 3, 4], [1, 1, 1, 1])
        self.assertEqual(result.n, (3,))
        self.assertTrue(any('zero difference' in note for note in result.notes))

    def test_all_differences_zero(self):
        with self.assertRaises(InsufficientDataError):
            NonParametricTestEngine().wilcoxon([1, 2, 3], [1, 2, 3])

    def test_unequal_lengths(self):
        with self.assertRaises(UnequalLengthError):
            NonParametricTestEngine().wilcoxon([1, 2, 3], [1, 2])


class TestKruskalWallis(unittest.TestCase):
    """Tests for the Kruskal-Wallis H test."""

    def test_separated_groups(self):
        groups = {
            'A': [1, 2, 3, 4, 5],
            'B': [6, 7, 8, 9, 10],
            'C': [11, 12, 13, 14, 15],
        }
        result = NonParametricTestEngine().kruskal_wallis(groups)

        self.assertEqual(result.test_type, NonParametricTestType.KRUSKAL_WALLIS)
        self.assertAlmostEqual(result.statistic, 12.5)
        self.assertEqual(result.degrees_of_freedom, 2)
        self.assertAlmostEqual(result.p_value, 0.00193, places=5)
        self.assertAlmostEqual(result.effect_size, 12.5 / 14)
        self.assertEqual(result.mean_ranks, {'A': 3.0, 'B': 8.0, 'C': 13.0})
        self.assertEqual(result.n, (5, 5, 5))

    def test_tie_correction_increases_statistic(self):
        groups = {'A': [1, 1, 2, 2], 'B': [3, 3, 4, 4]}
        corrected = NonParametricTestEngine().kruskal_wallis(groups)
        # uncorrected H for these ranks is 16/3
        self.assertGreater(corrected.statistic, 16 / 3)
        self.assertAlmostEqual(corrected.statistic, 5.6)

    def test_all_values_identical(self):
        with self.assertRaises(ConstantValuesError):
            NonParametricTestEngine().kruskal_wallis({'A': [2, 2], 'B': [2, 2]})

    def test_needs_two_groups(self):
        with self.assertRaises(InsufficientDataError):
            NonParametricTestEngine().kruskal_wallis({'A': [1, 2, 3]})


if __name__ == '__main__':
    unittest.main()
