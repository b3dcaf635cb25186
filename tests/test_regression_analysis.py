# Statistical Engine - Unit Tests: Regression Analysis
# OLS estimates, inference, diagnostics, and singular designs

import sys
import os
import unittest

import numpy as np

# Add parent to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from statengine.analysis.regression_analysis import INTERCEPT, RegressionEngine, RegressionModelType
from statengine.core.exceptions import (
    ConstantValuesError,
    InsufficientDataError,
    SingularMatrixError,
    ValidationError,
)


class TestSimpleRegression(unittest.TestCase):
    """Tests for simple linear regression."""

    @classmethod
    def setUpClass(cls):
        cls.x = [float(i) for i in range(1, 11)]
        cls.y = [2.1, 3.9, 6.2, 7.8, 10.1, 12.2, 13.8, 16.1, 18.0, 20.2]
        cls.result = RegressionEngine().linear(cls.x, cls.y)

    def test_coefficients(self):
        result = self.result

        self.assertEqual(result.model_type, RegressionModelType.LINEAR)
        self.assertEqual([c.variable for c in result.coefficients], [INTERCEPT, 'x'])
        self.assertAlmostEqual(result.coefficient('x').coefficient, 165.6 / 82.5, places=6)
        self.assertAlmostEqual(result.coefficient(INTERCEPT).coefficient, 0.0, places=6)
        self.assertLess(result.coefficient('x').p_value, 0.001)

    def test_fit_statistics(self):
        result = self.result

        self.assertAlmostEqual(result.r_squared, 0.99934, places=4)
        self.assertLess(result.adjusted_r_squared, result.r_squared)
        self.assertEqual(result.n, 10)
        self.assertEqual(result.degrees_of_freedom, 8)
        self.assertGreater(result.f_statistic, 1000)
        self.assertAlmostEqual(sum(result.residuals), 0.0, places=8)
        self.assertEqual(len(result.fitted), 10)

    def test_diagnostics(self):
        diagnostics = self.result.diagnostics

        self.assertGreater(diagnostics.durbin_watson, 0.0)
        self.assertLess(diagnostics.durbin_watson, 4.0)
        self.assertGreaterEqual(diagnostics.jarque_bera_p_value, 0.0)
        self.assertGreaterEqual(diagnostics.breusch_pagan, 0.0)
        self.assertIsNone(diagnostics.vif)

    def test_assumptions(self):
        names = [a.name for a in self.result.assumptions]
        self.assertEqual(names, ['Linearity', 'Normality of Residuals', 'Homoscedasticity', 'Independence'])
        self.assertTrue(self.result.assumptions[0].passed)

    def test_predict(self):
        predicted = self.result.predict({'x': [11.0]})
        self.assertAlmostEqual(predicted[0], 11 * 165.6 / 82.5, places=5)

    def test_confidence_interval_contains_estimate(self):
        for coef in self.result.coefficients:
            low, high = coef.confidence_interval
            self.assertLessEqual(low, coef.coefficient)
            self.assertGreaterEqual(high, coef.coefficient)

    def test_too_few_cases(self):
        with self.assertRaises(InsufficientDataError):
            RegressionEngine().linear([1, 2], [1, 2])

    def test_constant_response(self):
        with self.assertRaises(ConstantValuesError):
            RegressionEngine().linear([1, 2, 3, 4], [5, 5, 5, 5])


class TestMultipleRegression(unittest.TestCase):
    """Tests for multiple regression."""

    @classmethod
    def setUpClass(cls):
        cls.x1 = [float(i) for i in range(1, 21)]
        cls.x2 = [float((i * 7) % 11) for i in range(1, 21)]
        noise = [0.1 if i % 2 else -0.1 for i in range(20)]
        cls.y = [3 + 2 * a - b + e for a, b, e in zip(cls.x1, cls.x2, noise)]

    def test_recovers_coefficients(self):
        result = RegressionEngine().multiple({'x1': self.x1, 'x2': self.x2}, self.y)

        self.assertEqual(result.model_type, RegressionModelType.MULTIPLE)
        self.assertAlmostEqual(result.coefficient('x1').coefficient, 2.0, places=1)
        self.assertAlmostEqual(result.coefficient('x2').coefficient, -1.0, places=1)
        self.assertAlmostEqual(result.coefficient(INTERCEPT).coefficient, 3.0, places=0)
        self.assertGreater(result.r_squared, 0.99)

    def test_vif_and_multicollinearity_check(self):
        result = RegressionEngine().multiple({'x1': self.x1, 'x2': self.x2}, self.y)

        self.assertEqual(set(result.diagnostics.vif.keys()), {'x1', 'x2'})
        self.assertTrue(all(v >= 1.0 for v in result.diagnostics.vif.values()))
        self.assertEqual(result.assumptions[-1].name, 'Multicollinearity')

    def test_incomplete_cases_excluded(self):
        x1 = list(self.x1)
        x1[0] = None
        result = RegressionEngine().multiple({'x1': x1, 'x2': self.x2}, self.y)
        self.assertEqual(result.n, 19)
        self.assertTrue(any('incomplete' in w for w in result.warnings))

    def test_collinear_predictors(self):
        """Test an exact linear dependence is reported with both names."""
        doubled = [2 * v for v in self.x1]
        with self.assertRaises(SingularMatrixError) as ctx:
            RegressionEngine().multiple({'x1': self.x1, 'x2': doubled}, self.y)

        self.assertIn('x1', ctx.exception.variables)
        self.assertIn('x2', ctx.exception.variables)

    def test_linear_combination(self):
        combined = [a + b for a, b in zip(self.x1, self.x2)]
        with self.assertRaises(SingularMatrixError):
            RegressionEngine().multiple({'x1': self.x1, 'x2': self.x2, 'x3': combined}, self.y)

    def test_constant_predictor(self):
        with self.assertRaises(SingularMatrixError) as ctx:
            RegressionEngine().multiple({'x1': self.x1, 'x2': [5.0] * 20}, self.y)
        self.assertEqual(ctx.exception.variables, ('x2',))

    def test_reserved_name(self):
        with self.assertRaises(ValidationError):
            RegressionEngine().multiple({INTERCEPT: self.x1}, self.y)

    def test_empty_predictors(self):
        with self.assertRaises(ValidationError):
            RegressionEngine().multiple({}, self.y)

    def test_predict_requires_all_predictors(self):
        result = RegressionEngine().multiple({'x1': self.x1, 'x2': self.x2}, self.y)
        with self.assertRaises(ValidationError):
            result.predict({'x1': [1.0]})
        np.testing.assert_allclose(
            result.predict({'x1': [10.0], 'x2': [4.0]}), [19.0], atol=0.2
        )


if __name__ == '__main__':
    unittest.main()
