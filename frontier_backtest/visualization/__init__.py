"""Visualization modules for frontier back-tests."""

from frontier_backtest.visualization.plots import (
    plot_efficient_frontier,
    plot_correlation_heatmap,
    plot_cumulative_returns,
    plot_portfolio_weights
)

__all__ = [
    "plot_efficient_frontier",
    "plot_correlation_heatmap",
    "plot_cumulative_returns",
    "plot_portfolio_weights",
]
