"""Tests for the plotting functions"""

import matplotlib.pyplot as plt
import numpy as np
import pytest
from matplotlib.figure import Figure

from frontier_backtest.core.backtest import run_backtest, select_max_sharpe
from frontier_backtest.core.statistics import correlation_matrix, log_returns
from frontier_backtest.visualization import (
    plot_correlation_heatmap,
    plot_cumulative_returns,
    plot_efficient_frontier,
    plot_portfolio_weights,
)


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close('all')


class TestPlots:
    """Each plot returns a Figure and can save itself"""

    def test_efficient_frontier(self, three_asset_optimizer, tmp_path):
        frontier = three_asset_optimizer.efficient_frontier(n_points=10)
        optimal = select_max_sharpe(frontier)
        _, mvp_stats = three_asset_optimizer.minimum_variance_portfolio()
        path = tmp_path / "frontier.png"

        fig = plot_efficient_frontier(three_asset_optimizer, frontier, optimal,
                                      mvp_stats=mvp_stats, save_path=str(path))

        assert isinstance(fig, Figure)
        assert path.exists()

    def test_correlation_heatmap(self, sample_prices, tmp_path):
        prices, _ = sample_prices
        path = tmp_path / "corr.png"

        fig = plot_correlation_heatmap(correlation_matrix(log_returns(prices)),
                                       save_path=str(path))

        assert isinstance(fig, Figure)
        assert path.exists()

    def test_cumulative_returns(self, sample_prices):
        prices, bench = sample_prices
        rets = log_returns(prices)
        weights = np.full(prices.shape[1], 1.0 / prices.shape[1])

        fig = plot_cumulative_returns(run_backtest(rets, weights, log_returns(bench)))

        ax = fig.axes[0]
        # two strategies plus the unit baseline
        assert len(ax.get_lines()) == 3

    def test_portfolio_weights(self):
        fig = plot_portfolio_weights(np.array([0.6, 0.4]), ['A', 'B'])
        assert isinstance(fig, Figure)
        assert len(fig.axes[0].patches) == 2
