"""
Efficient Frontier Optimizer
============================

This module traces the mean-variance efficient frontier one target return at
a time. For each target r* it solves the convex quadratic program

    minimize:    w^T * Sigma * w
    subject to:  sum(w) = 1
                 mu^T * w = r*
                 min_weight <= w_i <= max_weight

Each target is an independent problem. A target that the weight bounds make
unreachable is reported as a failed point and left out of the frontier; it
never aborts the sweep.

Two backends are available:
- 'cvxpy'  - disciplined convex programming, solved by an interior-point QP
             solver (Clarabel when installed)
- 'slsqp'  - scipy's sequential least squares, started from equal weights
"""

import logging
import warnings
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import cvxpy as cp
import numpy as np
import pandas as pd
from scipy.optimize import minimize

from frontier_backtest.core.statistics import target_return_grid

logger = logging.getLogger(__name__)

SOLVED_STATUSES = (cp.OPTIMAL, cp.OPTIMAL_INACCURATE)


@dataclass(frozen=True)
class FrontierPoint:
    """
    One sample of the frontier sweep.

    Attributes:
        target_return: Target expected return r*
        risk: Portfolio standard deviation sqrt(w^T Sigma w), NaN if unsolved
        weights: Optimal weights, None if unsolved
        status: Solver status string
    """

    target_return: float
    risk: float
    weights: Optional[np.ndarray] = field(compare=False)
    status: str

    @property
    def feasible(self) -> bool:
        return self.weights is not None

    @property
    def variance(self) -> float:
        return self.risk ** 2


class EfficientFrontier:
    """
    Result of a frontier sweep.

    Holds the solved points in ascending target order together with the
    targets that could not be solved.
    """

    def __init__(self, points: List[FrontierPoint], failures: List[FrontierPoint]):
        self.points = sorted(points, key=lambda p: p.target_return)
        self.failures = list(failures)

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[FrontierPoint]:
        return iter(self.points)

    def __getitem__(self, index: int) -> FrontierPoint:
        return self.points[index]

    @property
    def returns(self) -> np.ndarray:
        return np.array([p.target_return for p in self.points])

    @property
    def risks(self) -> np.ndarray:
        return np.array([p.risk for p in self.points])

    def to_frame(self, asset_names: Optional[Sequence[str]] = None) -> pd.DataFrame:
        """
        Tabulate the frontier: one row per point, return/risk then weights.
        """
        if not self.points:
            return pd.DataFrame(columns=['target_return', 'risk'])

        n_assets = len(self.points[0].weights)
        if asset_names is None:
            asset_names = [f"Asset_{i+1}" for i in range(n_assets)]

        weights = pd.DataFrame(
            np.vstack([p.weights for p in self.points]),
            columns=list(asset_names)
        )
        df = pd.DataFrame({
            'target_return': self.returns,
            'risk': self.risks,
        })
        return pd.concat([df, weights], axis=1)


class FrontierOptimizer:
    """
    Mean-variance optimizer with box-bounded weights.

    Attributes:
        expected_returns (np.ndarray): Mean return of each asset
        cov_matrix (np.ndarray): Covariance matrix of asset returns
        asset_names (List[str]): Names of the assets
        n_assets (int): Number of assets
        min_weight (float): Lower bound on each weight
        max_weight (float): Upper bound on each weight
        solver (str): 'cvxpy' or 'slsqp'

    Example:
        >>> mu = np.array([0.001, 0.002, 0.0015])
        >>> cov = np.diag([0.0004, 0.0009, 0.0006])
        >>> optimizer = FrontierOptimizer(mu, cov)
        >>> point = optimizer.solve_for_target(0.0015)
    """

    def __init__(
        self,
        expected_returns,
        cov_matrix,
        asset_names: Optional[List[str]] = None,
        min_weight: float = 0.0,
        max_weight: float = 1.0,
        solver: str = 'cvxpy'
    ):
        """
        Initialize the optimizer.

        Args:
            expected_returns: Vector (or Series) of mean returns
            cov_matrix: Covariance matrix (n x n array or DataFrame)
            asset_names: Optional names; taken from a Series index if omitted
            min_weight: Lower weight bound
            max_weight: Upper weight bound
            solver: 'cvxpy' (default) or 'slsqp'

        Raises:
            ValueError: If dimensions don't match, inputs are not finite,
                or the bounds are inconsistent
        """
        if asset_names is None and isinstance(expected_returns, pd.Series):
            asset_names = [str(name) for name in expected_returns.index]

        self.expected_returns = np.asarray(expected_returns, dtype=float).flatten()
        self.cov_matrix = np.asarray(cov_matrix, dtype=float)
        self.n_assets = len(self.expected_returns)
        self.min_weight = float(min_weight)
        self.max_weight = float(max_weight)
        self.solver = solver

        self._validate_inputs()

        if asset_names is None:
            self.asset_names = [f"Asset_{i+1}" for i in range(self.n_assets)]
        else:
            self.asset_names = list(asset_names)

    def _validate_inputs(self):
        """Validate that inputs are properly formatted."""
        if self.n_assets == 0:
            raise ValueError("No assets to optimize")

        if self.cov_matrix.shape != (self.n_assets, self.n_assets):
            raise ValueError(
                f"Covariance matrix shape {self.cov_matrix.shape} doesn't match "
                f"number of assets {self.n_assets}"
            )

        if not np.all(np.isfinite(self.expected_returns)):
            raise ValueError("Expected returns contain NaN or Inf")

        if not np.all(np.isfinite(self.cov_matrix)):
            raise ValueError("Covariance matrix contains NaN or Inf")

        if self.min_weight > self.max_weight:
            raise ValueError(
                f"min_weight {self.min_weight} exceeds max_weight {self.max_weight}"
            )

        if self.solver not in ('cvxpy', 'slsqp'):
            raise ValueError(f"Unknown solver: {self.solver}")

        if not np.allclose(self.cov_matrix, self.cov_matrix.T):
            warnings.warn("Covariance matrix is not symmetric. Symmetrizing...")
        self.cov_matrix = (self.cov_matrix + self.cov_matrix.T) / 2

        eigenvalues = np.linalg.eigvalsh(self.cov_matrix)
        if np.any(eigenvalues < -1e-10):
            warnings.warn("Covariance matrix has negative eigenvalues. "
                          "Results may be unreliable.")

    def portfolio_return(self, weights: np.ndarray) -> float:
        """
        Expected portfolio return.

        Formula: mu_p = w^T * mu
        """
        return float(np.dot(weights, self.expected_returns))

    def portfolio_variance(self, weights: np.ndarray) -> float:
        """
        Portfolio variance using the quadratic form.

        Formula: sigma_p^2 = w^T * Sigma * w
        """
        return float(np.dot(weights, np.dot(self.cov_matrix, weights)))

    def portfolio_std(self, weights: np.ndarray) -> float:
        return float(np.sqrt(max(self.portfolio_variance(weights), 0.0)))

    def portfolio_stats(self, weights: np.ndarray, risk_free: float = 0.0) -> Dict[str, float]:
        """
        Calculate all portfolio statistics.

        Args:
            weights: Portfolio weights
            risk_free: Per-period risk-free rate for the Sharpe ratio

        Returns:
            Dictionary containing mean, std, variance, and Sharpe ratio
        """
        ret = self.portfolio_return(weights)
        var = self.portfolio_variance(weights)
        std = np.sqrt(max(var, 0.0))
        sharpe = (ret - risk_free) / std if std > 1e-10 else 0.0

        return {
            'mean': ret,
            'std': std,
            'variance': var,
            'sharpe': sharpe
        }

    def _clip(self, weights: np.ndarray) -> np.ndarray:
        # Interior-point solutions can overshoot the box by solver tolerance
        return np.clip(np.asarray(weights, dtype=float), self.min_weight, self.max_weight)

    def _solve_cvxpy(self, target_return: Optional[float]) -> Tuple[Optional[np.ndarray], str]:
        w = cp.Variable(self.n_assets)
        objective = cp.Minimize(cp.quad_form(w, cp.psd_wrap(self.cov_matrix)))
        constraints = [
            cp.sum(w) == 1,
            w >= self.min_weight,
            w <= self.max_weight,
        ]
        if target_return is not None:
            constraints.append(self.expected_returns @ w == target_return)

        problem = cp.Problem(objective, constraints)
        solver = cp.CLARABEL if cp.CLARABEL in cp.installed_solvers() else None

        try:
            problem.solve(solver=solver)
        except cp.error.SolverError as exc:
            return None, f"solver_error: {exc}"

        if problem.status not in SOLVED_STATUSES or w.value is None:
            return None, problem.status

        return self._clip(w.value), problem.status

    def _solve_slsqp(self, target_return: Optional[float]) -> Tuple[Optional[np.ndarray], str]:
        w0 = np.ones(self.n_assets) / self.n_assets

        constraints = [{'type': 'eq', 'fun': lambda w: np.sum(w) - 1}]
        if target_return is not None:
            constraints.append(
                {'type': 'eq', 'fun': lambda w: self.portfolio_return(w) - target_return}
            )

        bounds = [(self.min_weight, self.max_weight) for _ in range(self.n_assets)]

        result = minimize(
            self.portfolio_variance,
            w0,
            method='SLSQP',
            bounds=bounds,
            constraints=constraints,
            options={'ftol': 1e-12, 'maxiter': 1000}
        )

        if not result.success:
            return None, f"slsqp: {result.message}"

        return self._clip(result.x), 'optimal'

    def _solve(self, target_return: Optional[float]) -> Tuple[Optional[np.ndarray], str]:
        if self.solver == 'slsqp':
            return self._solve_slsqp(target_return)
        return self._solve_cvxpy(target_return)

    def solve_for_target(self, target_return: float) -> FrontierPoint:
        """
        Find the minimum variance portfolio for a target return.

        This traces one point on the frontier.

        Args:
            target_return: Target expected return

        Returns:
            FrontierPoint; weights is None if the target is infeasible
        """
        weights, status = self._solve(target_return)

        if weights is None:
            return FrontierPoint(float(target_return), float('nan'), None, status)

        return FrontierPoint(
            float(target_return),
            self.portfolio_std(weights),
            weights,
            status
        )

    def minimum_variance_portfolio(self) -> Tuple[np.ndarray, Dict[str, float]]:
        """
        Find the Minimum Variance Portfolio (MVP) within the weight bounds.

        The MVP is the leftmost point of the frontier; targets above its
        return form the efficient (upper) branch.

        Returns:
            Tuple of (weights, stats_dict)

        Raises:
            RuntimeError: If the bounds admit no fully invested portfolio
        """
        weights, status = self._solve(None)
        if weights is None:
            raise RuntimeError(f"MVP optimization failed: {status}")
        return weights, self.portfolio_stats(weights)

    def target_returns(
        self,
        n_points: int = 50,
        percentiles: Tuple[float, float] = (25.0, 75.0)
    ) -> np.ndarray:
        return target_return_grid(self.expected_returns, n_points, percentiles)

    def efficient_frontier(
        self,
        n_points: int = 50,
        percentiles: Tuple[float, float] = (25.0, 75.0),
        targets: Optional[Sequence[float]] = None
    ) -> EfficientFrontier:
        """
        Compute the frontier by sweeping target returns.

        By default the targets are n_points evenly spaced values between
        the 25th and 75th percentile of the asset mean returns. The sweep
        runs sequentially; infeasible targets are logged and skipped.

        Args:
            n_points: Number of target returns
            percentiles: Percentile band of the asset means
            targets: Explicit targets, overriding the percentile grid

        Returns:
            EfficientFrontier with points in ascending target order

        Raises:
            RuntimeError: If no target could be solved
        """
        if targets is None:
            targets = self.target_returns(n_points, percentiles)

        points = []
        failures = []

        for target in np.sort(np.asarray(targets, dtype=float)):
            point = self.solve_for_target(target)
            if point.feasible:
                points.append(point)
            else:
                logger.warning(
                    f"Target return {target:.6f} not solved ({point.status}); skipping"
                )
                failures.append(point)

        if not points:
            raise RuntimeError(
                f"No feasible frontier point among {len(failures)} targets"
            )

        logger.info(
            f"Efficient frontier: {len(points)} points solved, {len(failures)} skipped"
        )
        return EfficientFrontier(points, failures)

    def get_asset_stats(self) -> Dict[str, Dict[str, float]]:
        """
        Get individual asset statistics.

        Returns:
            Dictionary mapping asset names to their stats
        """
        stats = {}
        for i, name in enumerate(self.asset_names):
            stats[name] = {
                'mean': self.expected_returns[i],
                'std': np.sqrt(self.cov_matrix[i, i]),
                'variance': self.cov_matrix[i, i]
            }
        return stats
