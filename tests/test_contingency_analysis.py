# Statistical Engine - Unit Tests: Contingency Analysis
# Cross-tabulation, chi-square independence and goodness of fit

import sys
import os
import unittest

# Add parent to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from statengine.analysis.assumption_checking import AssumptionStatus
from statengine.analysis.contingency_analysis import ChiSquareTestType, ContingencyAnalyzer
from statengine.core.exceptions import (
    InsufficientDataError,
    UnequalLengthError,
    ValidationError,
)


class TestIndependence(unittest.TestCase):
    """Tests for the chi-square test of independence."""

    def test_two_by_two(self):
        result = ContingencyAnalyzer().independence([[10, 15], [20, 25]])

        self.assertEqual(result.test_type, ChiSquareTestType.INDEPENDENCE)
        self.assertAlmostEqual(result.statistic, 0.1296, places=4)
        self.assertEqual(result.degrees_of_freedom, 1)
        self.assertAlmostEqual(result.p_value, 0.719, places=2)
        self.assertFalse(result.is_significant)
        self.assertAlmostEqual(result.expected[0][0], 25 * 30 / 70)
        self.assertAlmostEqual(result.cramers_v, (0.12963 / 70) ** 0.5, places=4)

    def test_expected_frequency_warning(self):
        result = ContingencyAnalyzer().independence([[1, 2], [3, 1]])
        check = result.assumptions[0]
        self.assertEqual(check.name, 'SmallExpectedFrequencies')
        self.assertEqual(check.result, AssumptionStatus.WARNING)

    def test_needs_two_categories(self):
        with self.assertRaises(InsufficientDataError):
            ContingencyAnalyzer().independence([[10, 15, 20]])

    def test_empty_column_dropped(self):
        result = ContingencyAnalyzer().independence([[10, 15, 0], [20, 25, 0]])

        self.assertEqual(result.degrees_of_freedom, 1)
        self.assertAlmostEqual(result.statistic, 0.1296, places=4)
        self.assertEqual(len(result.observed[0]), 2)
        self.assertEqual(len(result.warnings), 1)

    def test_only_one_non_empty_row(self):
        with self.assertRaises(InsufficientDataError):
            ContingencyAnalyzer().independence([[0, 0], [3, 4]])

    def test_negative_counts(self):
        with self.assertRaises(ValidationError):
            ContingencyAnalyzer().independence([[1, -2], [3, 4]])


class TestGoodnessOfFit(unittest.TestCase):
    """Tests for the chi-square goodness-of-fit test."""

    def test_uniform_expectation(self):
        result = ContingencyAnalyzer().goodness_of_fit([10, 15, 20, 25])

        self.assertEqual(result.test_type, ChiSquareTestType.GOODNESS_OF_FIT)
        self.assertAlmostEqual(result.statistic, 7.142857, places=5)
        self.assertEqual(result.degrees_of_freedom, 3)
        self.assertAlmostEqual(result.p_value, 0.0675, places=3)
        self.assertAlmostEqual(result.cramers_v, 0.1844, places=3)
        self.assertEqual(result.expected, ((17.5, 17.5, 17.5, 17.5),))

    def test_expected_rescaled_to_total(self):
        analyzer = ContingencyAnalyzer()
        proportions = analyzer.goodness_of_fit([10, 15, 20, 25], expected=[1, 1, 1, 1])
        self.assertAlmostEqual(proportions.statistic, 7.142857, places=5)

        weighted = analyzer.goodness_of_fit([10, 20, 30], expected=[0.2, 0.3, 0.5])
        self.assertAlmostEqual(sum(weighted.expected[0]), 60.0)
        self.assertAlmostEqual(weighted.expected[0][2], 30.0)

    def test_expected_length_mismatch(self):
        with self.assertRaises(UnequalLengthError):
            ContingencyAnalyzer().goodness_of_fit([10, 15, 20], expected=[1, 1])

    def test_single_category(self):
        with self.assertRaises(InsufficientDataError):
            ContingencyAnalyzer().goodness_of_fit([10])


class TestContingencyTable(unittest.TestCase):
    """Tests for cross-tabulation from raw categorical data."""

    def test_crosstab(self):
        rows = ['m', 'f', 'm', 'f', 'm', None]
        cols = ['yes', 'no', 'no', 'no', 'yes', 'yes']
        table = ContingencyAnalyzer().create_table(rows, cols, row_variable='sex', column_variable='answer')

        self.assertEqual(table.row_labels, ('f', 'm'))
        self.assertEqual(table.column_labels, ('no', 'yes'))
        self.assertEqual(table.table, ((2, 0), (1, 2)))
        self.assertEqual(table.row_totals, (2, 3))
        self.assertEqual(table.column_totals, (3, 2))
        self.assertEqual(table.grand_total, 5)
        self.assertEqual(table.chi_square_test.degrees_of_freedom, 1)
        self.assertEqual(table.to_dataframe().loc['m', 'yes'], 2)

    def test_unequal_lengths(self):
        with self.assertRaises(UnequalLengthError):
            ContingencyAnalyzer().create_table(['a', 'b'], ['x'])


if __name__ == '__main__':
    unittest.main()
