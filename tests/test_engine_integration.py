# Statistical Engine - Integration Tests
# End-to-end runs over shared sample datasets

import numpy as np
import pytest

from statengine.core.exceptions import SingularMatrixError


pytestmark = pytest.mark.integration


def test_profile_of_mixed_frame(engine, mixed_frame):
    """Test type inference and suggestions on a realistic frame."""
    suggestions = engine.suggest_tests_for_data(mixed_frame, {'groupCount': 3})

    procedures = [s.procedure for s in suggestions]
    assert 'one_way_anova' in procedures
    assert 'correlation' in procedures
    assert 'contingency_table' in procedures


def test_contingency_on_frame(engine, mixed_frame):
    table = engine.contingency_table(mixed_frame['segment'], mixed_frame['region'])

    assert table.grand_total == len(mixed_frame)
    assert sum(table.row_totals) == sum(table.column_totals)
    assert 0.0 <= table.chi_square_test.p_value <= 1.0


def test_regression_matches_correlation(engine, linear_pair):
    x, y = linear_pair
    regression = engine.linear_regression(x, y)
    correlation = engine.correlation(x, y)

    assert regression.r_squared == pytest.approx(correlation.coefficient ** 2, rel=1e-9)


def test_anova_and_kruskal_agree(engine, three_groups):
    anova = engine.one_way_anova(three_groups)
    kruskal = engine.kruskal_wallis(three_groups)

    assert anova.is_significant
    assert kruskal.is_significant


def test_normal_sample_profile(engine, normal_sample):
    stats = engine.descriptive_statistics(normal_sample, {'binCount': 20})
    normality = engine.normality_test(normal_sample)

    assert stats.count == 200
    assert sum(b.count for b in stats.histogram) == 200
    assert normality.test_name.value == 'Shapiro-Wilk'
    assert 0.0 < normality.statistic <= 1.0


def test_duplicate_predictor_rejected(engine, one_to_ten):
    response = list(np.array(one_to_ten) * 3 + 1)
    with pytest.raises(SingularMatrixError):
        engine.multiple_regression({'a': one_to_ten, 'b': one_to_ten}, response)


@pytest.mark.edge_case
def test_outliers_ignore_missing_positions(engine):
    data = [None, 10, 11, 12, 10, 11, 12, 10, 11, 100, float('nan')]
    result = engine.detect_outliers(data, {'method': 'iqr'})

    assert result.indices == (9,)
