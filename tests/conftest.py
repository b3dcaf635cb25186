# Statistical Engine - Pytest Configuration
# Shared fixtures and configuration for all tests

import sys
import os

import numpy as np
import pandas as pd
import pytest

# Add parent to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))


# =============================================================================
# Sample Data Fixtures
# =============================================================================

@pytest.fixture(scope='session')
def one_to_ten():
    """The integers 1..10 as floats."""
    return [float(i) for i in range(1, 11)]


@pytest.fixture(scope='session')
def linear_pair():
    """Nearly linear x/y pair (slope about 2)."""
    x = [float(i) for i in range(1, 11)]
    y = [2.1, 3.9, 6.2, 7.8, 10.1, 12.2, 13.8, 16.1, 18.0, 20.2]
    return x, y


@pytest.fixture(scope='session')
def three_groups():
    """Three well-separated groups of five."""
    return {
        'A': [1.0, 2.0, 3.0, 4.0, 5.0],
        'B': [6.0, 7.0, 8.0, 9.0, 10.0],
        'C': [11.0, 12.0, 13.0, 14.0, 15.0],
    }


@pytest.fixture(scope='session')
def normal_sample():
    """Seeded standard-normal sample of 200 observations."""
    rng = np.random.default_rng(42)
    return rng.normal(loc=50.0, scale=10.0, size=200)


@pytest.fixture(scope='session')
def mixed_frame():
    """Small frame with numeric and categorical columns."""
    rng = np.random.default_rng(7)
    n = 60
    return pd.DataFrame({
        'age': rng.integers(18, 70, size=n).astype(float),
        'income': rng.normal(50000, 8000, size=n),
        'segment': rng.choice(['retail', 'wholesale', 'online'], size=n),
        'region': rng.choice(['north', 'south'], size=n),
    })


@pytest.fixture
def engine():
    """Statistical analysis engine with default settings."""
    from statengine.engine import StatisticalAnalysisEngine
    return StatisticalAnalysisEngine()


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "edge_case: marks tests as edge case tests")


def pytest_collection_modifyitems(config, items):
    """Modify test collection."""
    # Add slow marker to tests with 'slow' in name
    for item in items:
        if 'slow' in item.name.lower():
            item.add_marker(pytest.mark.slow)
