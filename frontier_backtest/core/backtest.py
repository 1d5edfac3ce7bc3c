"""
Selection and Back-test
=======================

Picks the Sharpe-optimal frontier point and replays its weights through the
historical return matrix:

    r_p,t = sum_i w_i * r_i,t          (realized daily portfolio return)
    V_t   = exp(sum_{s<=t} r_p,s)      (growth of one unit, log returns)

The benchmark is replayed the same way. Performance statistics are computed
on the realized series, never re-derived from the optimizer.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Optional

import numpy as np
import pandas as pd

from frontier_backtest.core.optimizer import FrontierPoint


def sharpe_ratio(expected_return: float, risk: float, risk_free: float = 0.0) -> float:
    """
    Formula: Sharpe = (mu_p - rf) / sigma_p

    Returns 0.0 for a riskless portfolio.
    """
    if not np.isfinite(risk) or risk < 1e-10:
        return 0.0
    return (expected_return - risk_free) / risk


def frontier_sharpe_ratios(frontier: Iterable[FrontierPoint], risk_free: float = 0.0) -> np.ndarray:
    """Sharpe ratio of every frontier point, -inf for unsolved points."""
    return np.array([
        sharpe_ratio(p.target_return, p.risk, risk_free) if p.feasible else -np.inf
        for p in frontier
    ])


def select_max_sharpe(frontier: Iterable[FrontierPoint], risk_free: float = 0.0) -> FrontierPoint:
    """
    Select the frontier point with the highest Sharpe ratio.

    Ties go to the first point in sweep order.

    Args:
        frontier: Frontier points in sweep order
        risk_free: Per-period risk-free rate, same units as the targets

    Returns:
        The optimal FrontierPoint

    Raises:
        ValueError: If the frontier has no solved point
    """
    points = [p for p in frontier if p.feasible]
    if not points:
        raise ValueError("Cannot select from an empty frontier")

    ratios = frontier_sharpe_ratios(points, risk_free)
    return points[int(np.argmax(ratios))]


def portfolio_returns(returns: pd.DataFrame, weights, name: str = 'Portfolio') -> pd.Series:
    """
    Project fixed weights through a return matrix.

    Args:
        returns: Return matrix (rows = periods, columns = assets)
        weights: Weight vector in column order, or a Series keyed by column

    Returns:
        Series of realized per-period portfolio returns
    """
    if isinstance(weights, pd.Series):
        weights = weights.reindex(returns.columns)
        if weights.isna().any():
            raise ValueError("Weights missing for some return columns")

    w = np.asarray(weights, dtype=float)
    if w.shape != (returns.shape[1],):
        raise ValueError(
            f"Got {w.size} weights for {returns.shape[1]} return columns"
        )

    if returns.empty:
        raise ValueError("Return matrix is empty")

    realized = returns.to_numpy(dtype=float) @ w
    if not np.all(np.isfinite(realized)):
        raise ValueError("Realized portfolio returns contain NaN or Inf")

    return pd.Series(realized, index=returns.index, name=name)


def cumulative_returns(daily_returns: pd.Series) -> pd.Series:
    """Growth of one unit invested at the start: exp(cumsum(r))."""
    return np.exp(daily_returns.cumsum())


def max_drawdown(daily_returns: pd.Series) -> float:
    """
    Largest peak-to-trough fall of the growth curve, as a positive fraction.

    The curve starts at 1.0, so a loss on the first day counts.
    """
    wealth = np.concatenate([[1.0], np.exp(np.cumsum(daily_returns.to_numpy(dtype=float)))])
    peaks = np.maximum.accumulate(wealth)
    drawdowns = 1.0 - wealth / peaks
    return float(drawdowns.max())


@dataclass(frozen=True)
class PerformanceMetrics:
    """Summary statistics of a realized return series."""

    annualized_return: float
    annualized_volatility: float
    sharpe_ratio: float
    max_drawdown: float
    calmar_ratio: float
    total_return: float

    def as_dict(self) -> Dict[str, float]:
        return {
            'Annualized Return': self.annualized_return,
            'Annualized Volatility': self.annualized_volatility,
            'Sharpe Ratio': self.sharpe_ratio,
            'Max Drawdown': self.max_drawdown,
            'Calmar Ratio': self.calmar_ratio,
            'Total Return': self.total_return,
        }


def performance_metrics(
    daily_returns: pd.Series,
    risk_free_rate: float = 0.0,
    periods_per_year: int = 252
) -> PerformanceMetrics:
    """
    Compute performance statistics over a realized log-return series.

    Args:
        daily_returns: Per-period log returns
        risk_free_rate: Annual risk-free rate
        periods_per_year: Periods per year (252 for daily data)

    Returns:
        PerformanceMetrics
    """
    r = daily_returns.to_numpy(dtype=float)
    if r.size == 0:
        raise ValueError("Cannot compute metrics on an empty return series")
    if not np.all(np.isfinite(r)):
        raise ValueError("Return series contains NaN or Inf")

    ann_return = float(r.mean() * periods_per_year)
    ann_vol = float(r.std(ddof=1 if r.size > 1 else 0) * np.sqrt(periods_per_year))
    mdd = max_drawdown(daily_returns)

    return PerformanceMetrics(
        annualized_return=ann_return,
        annualized_volatility=ann_vol,
        sharpe_ratio=sharpe_ratio(ann_return, ann_vol, risk_free_rate),
        max_drawdown=mdd,
        calmar_ratio=ann_return / mdd if mdd > 0 else 0.0,
        total_return=float(np.expm1(r.sum())),
    )


class BacktestResult:
    """Realized returns, growth curve and metrics for one strategy."""

    def __init__(
        self,
        daily_returns: pd.Series,
        risk_free_rate: float = 0.0,
        periods_per_year: int = 252
    ):
        self.name = daily_returns.name
        self.daily_returns = daily_returns
        self.cumulative = cumulative_returns(daily_returns)
        self.metrics = performance_metrics(daily_returns, risk_free_rate, periods_per_year)


class BacktestComparison:
    """Optimal portfolio replayed side by side with the benchmark."""

    def __init__(self, portfolio: BacktestResult, benchmark: BacktestResult):
        self.portfolio = portfolio
        self.benchmark = benchmark

    def summary_frame(self) -> pd.DataFrame:
        """Metrics table: one column per strategy."""
        return pd.DataFrame({
            self.portfolio.name: self.portfolio.metrics.as_dict(),
            self.benchmark.name: self.benchmark.metrics.as_dict(),
        })

    def cumulative_frame(self) -> pd.DataFrame:
        return pd.concat([self.portfolio.cumulative, self.benchmark.cumulative], axis=1)


def run_backtest(
    returns: pd.DataFrame,
    weights,
    benchmark_returns: pd.Series,
    risk_free_rate: float = 0.0,
    periods_per_year: int = 252,
    portfolio_name: str = 'Optimal Portfolio',
    benchmark_name: Optional[str] = None
) -> BacktestComparison:
    """
    Replay the chosen weights and the benchmark over the same history.

    Args:
        returns: Asset log-return matrix
        weights: Portfolio weights in column order
        benchmark_returns: Benchmark log returns on the same dates
        risk_free_rate: Annual risk-free rate
        periods_per_year: Periods per year
        portfolio_name: Label of the portfolio series
        benchmark_name: Label of the benchmark series (default: its name)

    Returns:
        BacktestComparison
    """
    if not returns.index.equals(benchmark_returns.index):
        raise ValueError("Asset and benchmark returns are not aligned on the same dates")

    realized = portfolio_returns(returns, weights, name=portfolio_name)
    bench = benchmark_returns.astype(float).rename(
        benchmark_name or benchmark_returns.name or 'Benchmark'
    )

    return BacktestComparison(
        BacktestResult(realized, risk_free_rate, periods_per_year),
        BacktestResult(bench, risk_free_rate, periods_per_year),
    )
