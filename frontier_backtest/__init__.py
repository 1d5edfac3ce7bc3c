"""
Frontier Back-test - Sharpe-Optimal Portfolio Analysis
======================================================

Fetches price history, traces a bounded mean-variance frontier, selects the
maximum Sharpe ratio portfolio and back-tests it against a benchmark index.

Usage:
    from frontier_backtest import FrontierOptimizer, fetch_prices, log_returns
    from frontier_backtest.visualization import plot_efficient_frontier

Classes:
    AnalysisConfig - Run assumptions (universe, dates, bounds, solver)
    FrontierOptimizer - Per-target quadratic programs and frontier sweep
    DataLoader - Price tables from Excel/CSV

Functions:
    fetch_prices - Download aligned closes from Yahoo Finance
    log_returns - Convert prices to log returns
    compute_statistics - Mean vector and covariance matrix
    select_max_sharpe - Pick the Sharpe-optimal frontier point
    run_backtest - Replay weights and benchmark over history
"""

from frontier_backtest.core.config import AnalysisConfig
from frontier_backtest.core.loader import (
    DataLoader,
    DataFetchError,
    fetch_prices,
    generate_sample_prices
)
from frontier_backtest.core.statistics import log_returns, compute_statistics
from frontier_backtest.core.optimizer import EfficientFrontier, FrontierOptimizer, FrontierPoint
from frontier_backtest.core.backtest import run_backtest, select_max_sharpe

__version__ = "1.0.0"

__all__ = [
    "AnalysisConfig",
    "DataLoader",
    "DataFetchError",
    "fetch_prices",
    "generate_sample_prices",
    "log_returns",
    "compute_statistics",
    "EfficientFrontier",
    "FrontierOptimizer",
    "FrontierPoint",
    "run_backtest",
    "select_max_sharpe",
]
