"""Core computational modules: ingestion, statistics, frontier, back-test."""

from frontier_backtest.core.config import AnalysisConfig
from frontier_backtest.core.loader import DataLoader, DataFetchError, fetch_prices, generate_sample_prices
from frontier_backtest.core.statistics import log_returns, compute_statistics, target_return_grid
from frontier_backtest.core.optimizer import EfficientFrontier, FrontierOptimizer, FrontierPoint
from frontier_backtest.core.backtest import run_backtest, select_max_sharpe, performance_metrics

__all__ = [
    "AnalysisConfig",
    "DataLoader",
    "DataFetchError",
    "fetch_prices",
    "generate_sample_prices",
    "log_returns",
    "compute_statistics",
    "target_return_grid",
    "EfficientFrontier",
    "FrontierOptimizer",
    "FrontierPoint",
    "run_backtest",
    "select_max_sharpe",
    "performance_metrics",
]
