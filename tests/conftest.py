"""Pytest configuration and shared fixtures."""

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from frontier_backtest.core.loader import generate_sample_prices
from frontier_backtest.core.optimizer import FrontierOptimizer


@pytest.fixture
def three_asset_means() -> np.ndarray:
    """Mean daily returns of the synthetic three-asset problem."""
    return np.array([0.001, 0.002, 0.0015])


@pytest.fixture
def three_asset_cov() -> np.ndarray:
    """Diagonal covariance of the synthetic three-asset problem."""
    return np.diag([0.0004, 0.0009, 0.0006])


@pytest.fixture
def three_asset_optimizer(three_asset_means, three_asset_cov) -> FrontierOptimizer:
    """Long-only optimizer over the three-asset problem."""
    return FrontierOptimizer(
        three_asset_means, three_asset_cov,
        asset_names=['LOW', 'HIGH', 'MID'],
        min_weight=0.0, max_weight=1.0
    )


@pytest.fixture
def sample_prices():
    """Synthetic prices and benchmark: 4 assets, 3 years of business days."""
    return generate_sample_prices(n_assets=4, n_days=756, seed=7)


@pytest.fixture
def small_prices() -> pd.DataFrame:
    """Hand-checkable price table."""
    dates = pd.bdate_range("2024-01-01", periods=4)
    return pd.DataFrame(
        {
            "AAA": [100.0, 110.0, 99.0, 108.9],
            "BBB": [50.0, 50.0, 55.0, 44.0],
        },
        index=dates,
    )
