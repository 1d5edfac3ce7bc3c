"""
Plotting Module for Frontier Back-tests
=======================================

Visualization of a frontier back-test run:
- Efficient frontier with individual assets and the Sharpe-optimal point
- Correlation heatmap of asset returns
- Cumulative growth of the optimal portfolio against the benchmark
- Bar chart of portfolio weights

Every function returns the matplotlib Figure and optionally saves it.
"""

from typing import List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.figure import Figure

from frontier_backtest.core.backtest import BacktestComparison, frontier_sharpe_ratios
from frontier_backtest.core.optimizer import EfficientFrontier, FrontierOptimizer, FrontierPoint


def _finish(fig: Figure, save_path: Optional[str]) -> Figure:
    fig.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
    return fig


def plot_efficient_frontier(
    optimizer: FrontierOptimizer,
    frontier: EfficientFrontier,
    optimal: Optional[FrontierPoint] = None,
    risk_free: float = 0.0,
    mvp_stats: Optional[dict] = None,
    show_assets: bool = True,
    figsize: Tuple[int, int] = (12, 8),
    save_path: Optional[str] = None,
    title: str = "Efficient Frontier"
) -> Figure:
    """
    Plot the solved frontier on the risk-return plane.

    Frontier points are colored by Sharpe ratio. Individual assets, the
    minimum variance portfolio and the Sharpe-optimal point are marked.

    Args:
        optimizer: Optimizer holding the asset statistics
        frontier: Solved frontier
        optimal: Sharpe-optimal point to highlight
        risk_free: Per-period risk-free rate for the Sharpe coloring
        mvp_stats: Stats dict of the minimum variance portfolio
        show_assets: If True, show individual assets
        figsize: Figure size (width, height)
        save_path: If provided, save the figure to this path
        title: Plot title

    Returns:
        matplotlib Figure object
    """
    fig, ax = plt.subplots(figsize=figsize)

    sharpes = frontier_sharpe_ratios(frontier, risk_free)
    ax.plot(frontier.risks * 100, frontier.returns * 100,
            'b-', linewidth=2, label='Efficient Frontier', zorder=2)
    points = ax.scatter(frontier.risks * 100, frontier.returns * 100,
                        c=sharpes, cmap='viridis', s=30, zorder=3)
    fig.colorbar(points, ax=ax, label='Sharpe Ratio')

    if show_assets:
        asset_stds = np.sqrt(np.diag(optimizer.cov_matrix))
        asset_returns = optimizer.expected_returns

        ax.scatter(asset_stds * 100, asset_returns * 100,
                   c='red', s=100, marker='o', edgecolors='black',
                   label='Individual Assets', zorder=5)

        for i, name in enumerate(optimizer.asset_names):
            ax.annotate(name,
                        (asset_stds[i] * 100, asset_returns[i] * 100),
                        xytext=(5, 5), textcoords='offset points',
                        fontsize=9, fontweight='bold')

    if mvp_stats is not None:
        ax.scatter([mvp_stats['std'] * 100], [mvp_stats['mean'] * 100],
                   c='purple', s=200, marker='*', edgecolors='black',
                   label=f"MVP (σ={mvp_stats['std']*100:.3f}%, μ={mvp_stats['mean']*100:.3f}%)",
                   zorder=6)

    if optimal is not None:
        sharpe = (optimal.target_return - risk_free) / optimal.risk if optimal.risk > 0 else 0.0
        ax.scatter([optimal.risk * 100], [optimal.target_return * 100],
                   c='gold', s=250, marker='D', edgecolors='black',
                   label=f"Max Sharpe (Sharpe={sharpe:.3f})",
                   zorder=7)

    ax.set_xlabel('Risk (Standard Deviation) %', fontsize=12)
    ax.set_ylabel('Expected Return %', fontsize=12)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.legend(loc='upper left', fontsize=10)
    ax.grid(True, alpha=0.3)

    return _finish(fig, save_path)


def plot_correlation_heatmap(
    corr: pd.DataFrame,
    figsize: Tuple[int, int] = (10, 8),
    save_path: Optional[str] = None,
    title: str = "Asset Correlation Matrix"
) -> Figure:
    """
    Heatmap of the return correlation matrix (lower triangle).

    Args:
        corr: Correlation matrix
        figsize: Figure size
        save_path: Optional path to save figure
        title: Plot title

    Returns:
        matplotlib Figure object
    """
    fig, ax = plt.subplots(figsize=figsize)
    mask = np.triu(np.ones_like(corr, dtype=bool), k=1)
    sns.heatmap(
        corr, mask=mask, annot=True, fmt=".2f",
        cmap="RdBu_r", center=0, vmin=-1, vmax=1,
        linewidths=0.5, ax=ax,
        cbar_kws={"label": "Correlation"},
    )
    ax.set_title(title, fontsize=14, fontweight='bold')

    return _finish(fig, save_path)


def plot_cumulative_returns(
    comparison: BacktestComparison,
    figsize: Tuple[int, int] = (12, 6),
    save_path: Optional[str] = None,
    title: str = "Cumulative Returns: Optimal Portfolio vs Benchmark"
) -> Figure:
    """
    Growth of one unit for the optimal portfolio and the benchmark.

    Args:
        comparison: Back-test comparison
        figsize: Figure size
        save_path: Optional path to save figure
        title: Plot title

    Returns:
        matplotlib Figure object
    """
    fig, ax = plt.subplots(figsize=figsize)

    for result, style in ((comparison.portfolio, 'b-'), (comparison.benchmark, 'k--')):
        m = result.metrics
        ax.plot(result.cumulative.index, result.cumulative.values, style, linewidth=2,
                label=f"{result.name} (Sharpe={m.sharpe_ratio:.2f}, MDD={m.max_drawdown*100:.1f}%)")

    ax.axhline(y=1.0, color='gray', linestyle=':', linewidth=1)
    ax.set_xlabel('Date', fontsize=12)
    ax.set_ylabel('Growth of 1', fontsize=12)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.legend(loc='upper left', fontsize=10)
    ax.grid(True, alpha=0.3)

    return _finish(fig, save_path)


def plot_portfolio_weights(
    weights: np.ndarray,
    asset_names: List[str],
    title: str = "Portfolio Weights",
    figsize: Tuple[int, int] = (10, 6),
    save_path: Optional[str] = None
) -> Figure:
    """
    Create a bar chart of portfolio weights.

    Args:
        weights: Array of portfolio weights
        asset_names: List of asset names
        title: Plot title
        figsize: Figure size
        save_path: Optional path to save figure

    Returns:
        matplotlib Figure object
    """
    fig, ax = plt.subplots(figsize=figsize)

    weights = np.asarray(weights, dtype=float)
    colors = ['green' if w >= 0 else 'red' for w in weights]
    bars = ax.bar(asset_names, weights * 100, color=colors, edgecolor='black')

    for bar, w in zip(bars, weights):
        height = bar.get_height()
        ax.annotate(f'{w*100:.1f}%',
                    xy=(bar.get_x() + bar.get_width() / 2, height),
                    xytext=(0, 3 if height >= 0 else -15),
                    textcoords='offset points',
                    ha='center', va='bottom' if height >= 0 else 'top',
                    fontsize=10, fontweight='bold')

    ax.axhline(y=0, color='black', linestyle='-', linewidth=0.5)
    ax.set_xlabel('Assets', fontsize=12)
    ax.set_ylabel('Weight %', fontsize=12)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.grid(True, axis='y', alpha=0.3)

    return _finish(fig, save_path)
