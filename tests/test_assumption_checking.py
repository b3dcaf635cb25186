# Statistical Engine - Unit Tests: Assumption Checking
# Advisory checks attached to parametric results

import sys
import os
import unittest

import numpy as np

# Add parent to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from statengine.analysis.assumption_checking import AssumptionChecker, AssumptionStatus


class TestSampleChecks(unittest.TestCase):
    """Tests for normality and variance checks."""

    @classmethod
    def setUpClass(cls):
        cls.checker = AssumptionChecker()

    def test_normality_untestable_is_warning(self):
        check = self.checker.check_normality(np.array([1.0, 2.0]))
        self.assertEqual(check.result, AssumptionStatus.WARNING)
        self.assertEqual(check.test, 'Shapiro-Wilk')

    def test_normality_rejected(self):
        check = self.checker.check_normality(np.array([2.0 ** i for i in range(20)]))
        self.assertEqual(check.result, AssumptionStatus.FAILED)
        self.assertIsNotNone(check.recommendation)

    def test_variance_ratio(self):
        equal = self.checker.check_variance_homogeneity({
            'a': np.array([1.0, 2.0, 3.0]),
            'b': np.array([4.0, 5.0, 6.0]),
        })
        self.assertTrue(equal.passed)
        self.assertAlmostEqual(equal.statistic, 1.0)

        unequal = self.checker.check_variance_homogeneity({
            'a': np.array([1.0, 2.0, 3.0]),
            'b': np.array([10.0, 20.0, 30.0]),
        })
        self.assertEqual(unequal.result, AssumptionStatus.FAILED)
        self.assertEqual(unequal.name, 'HomogeneityOfVariance')
        self.assertIn('Welch', unequal.recommendation)

    def test_variance_needs_two_groups(self):
        check = self.checker.check_variance_homogeneity({'a': np.array([1.0, 2.0])})
        self.assertEqual(check.result, AssumptionStatus.WARNING)

    def test_zero_variance_groups(self):
        check = self.checker.check_zero_variance_groups({
            'flat': np.array([1.0, 1.0]),
            'varied': np.array([1.0, 2.0]),
        })
        self.assertEqual(check.result, AssumptionStatus.WARNING)
        self.assertIn('flat', check.description)
        self.assertNotIn('varied', check.description)

    def test_expected_frequencies(self):
        check = self.checker.check_expected_frequencies(np.array([[10.0, 10.0], [2.0, 10.0]]))
        self.assertEqual(check.result, AssumptionStatus.WARNING)
        self.assertIn('1 of 4', check.description)
        self.assertEqual(check.statistic, 2.0)


class TestRegressionChecks(unittest.TestCase):
    """Tests for regression assumption checks."""

    @classmethod
    def setUpClass(cls):
        cls.checker = AssumptionChecker()

    def test_linearity(self):
        self.assertTrue(self.checker.check_linearity(0.8).passed)
        self.assertEqual(self.checker.check_linearity(-0.1).result, AssumptionStatus.WARNING)

    def test_durbin_watson_bands(self):
        self.assertEqual(self.checker.check_independence(2.0).result, AssumptionStatus.PASSED)
        self.assertEqual(self.checker.check_independence(1.2).result, AssumptionStatus.WARNING)
        self.assertEqual(self.checker.check_independence(0.5).result, AssumptionStatus.FAILED)
        self.assertEqual(self.checker.check_independence(float('nan')).result, AssumptionStatus.WARNING)

    def test_homoscedasticity(self):
        self.assertTrue(self.checker.check_homoscedasticity(1.0, 0.5).passed)
        self.assertEqual(self.checker.check_homoscedasticity(9.0, 0.01).result, AssumptionStatus.FAILED)

    def test_vif_thresholds(self):
        self.assertEqual(
            self.checker.check_multicollinearity({'x1': 2.0, 'x2': 12.0}).result,
            AssumptionStatus.FAILED
        )
        self.assertEqual(self.checker.check_multicollinearity({'x1': 6.0}).result, AssumptionStatus.WARNING)
        self.assertTrue(self.checker.check_multicollinearity({'x1': 1.2, 'x2': 1.3}).passed)
        self.assertTrue(self.checker.check_multicollinearity({}).passed)

    def test_serializable(self):
        payload = self.checker.check_independence(2.0).to_dict()
        self.assertEqual(payload['result'], 'passed')
        self.assertEqual(payload['name'], 'Independence')


if __name__ == '__main__':
    unittest.main()
