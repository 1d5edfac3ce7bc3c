"""
Return Statistics
=================

Turns aligned prices into the inputs of the mean-variance problem:

    r_t = ln(P_t / P_{t-1})          (log return, time-additive)
    mu  = mean(r)                    (per-asset mean return)
    Sigma = cov(r)                   (sample covariance, N-1)

Numeric problems fail fast with a ValueError instead of letting NaN reach
the solver.
"""

from typing import Sequence, Tuple

import numpy as np
import pandas as pd


def _require_finite(frame, what: str):
    values = np.asarray(frame, dtype=float)
    if not np.all(np.isfinite(values)):
        raise ValueError(f"{what} contains NaN or Inf values")


def log_returns(prices: pd.DataFrame) -> pd.DataFrame:
    """
    Convert prices to log returns.

    FORMULA: r_t = ln(P_t / P_{t-1}) = ln(P_t) - ln(P_{t-1})

    Gaps are forward-filled before the conversion and the leading undefined
    row is dropped.

    Args:
        prices: Price levels (rows = dates, columns = assets); a Series is
            treated as a single column

    Returns:
        DataFrame (or Series) of log returns, one row shorter than the input

    Raises:
        ValueError: If fewer than two rows, non-positive prices, or missing
            values survive the forward fill
    """
    prices = prices.ffill()

    if len(prices) < 2:
        raise ValueError(f"Need at least 2 price observations, got {len(prices)}")

    _require_finite(prices, "Price data")

    if (np.asarray(prices, dtype=float) <= 0).any():
        raise ValueError("Prices must be strictly positive to take log returns")

    returns = np.log(prices / prices.shift(1)).iloc[1:]

    _require_finite(returns, "Log returns")
    return returns


def compute_statistics(
    returns: pd.DataFrame,
    population: bool = False
) -> Tuple[pd.Series, pd.DataFrame]:
    """
    Compute the mean return vector and covariance matrix.

    Args:
        returns: Return matrix (rows = periods, columns = assets)
        population: If True divide by N, otherwise by N-1

    Returns:
        Tuple of (mean_returns Series, cov_matrix DataFrame)

    Example:
        >>> rets = log_returns(prices)
        >>> mu, cov = compute_statistics(rets)
    """
    if returns.empty:
        raise ValueError("Return matrix is empty")

    min_rows = 1 if population else 2
    if len(returns) < min_rows:
        raise ValueError(
            f"Need at least {min_rows} return observations for covariance, got {len(returns)}"
        )

    mean_returns = returns.mean()
    cov_matrix = returns.cov(ddof=0 if population else 1)

    _require_finite(mean_returns, "Mean return vector")
    _require_finite(cov_matrix, "Covariance matrix")

    return mean_returns, cov_matrix


def correlation_matrix(returns: pd.DataFrame) -> pd.DataFrame:
    """Pearson correlation of the return columns."""
    corr = returns.corr()
    _require_finite(corr, "Correlation matrix")
    return corr


def target_return_grid(
    mean_returns: Sequence[float],
    n_points: int = 50,
    percentiles: Tuple[float, float] = (25.0, 75.0)
) -> np.ndarray:
    """
    Evenly spaced target returns for the frontier sweep.

    The grid runs from the lower to the upper percentile of the per-asset
    mean returns, both ends included.

    Args:
        mean_returns: Per-asset mean returns
        n_points: Number of targets
        percentiles: (low, high) percentile band

    Returns:
        Ascending array of target returns
    """
    mu = np.asarray(mean_returns, dtype=float)
    if mu.size == 0:
        raise ValueError("Mean return vector is empty")

    low, high = np.percentile(mu, percentiles)
    return np.linspace(low, high, n_points)
