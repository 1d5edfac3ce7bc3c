"""Tests for the bounded mean-variance frontier"""

import numpy as np
import pandas as pd
import pytest

from frontier_backtest.core.optimizer import EfficientFrontier, FrontierOptimizer, FrontierPoint
from frontier_backtest.core.statistics import compute_statistics, log_returns


def closed_form_variance(mu, cov, target):
    """Frontier variance when no weight bound binds: (A t^2 - 2 B t + C) / D."""
    inv = np.linalg.inv(cov)
    ones = np.ones(len(mu))
    a = ones @ inv @ ones
    b = ones @ inv @ mu
    c = mu @ inv @ mu
    return (a * target ** 2 - 2 * b * target + c) / (a * c - b ** 2)


class TestInputValidation:
    """Test optimizer construction"""

    def test_shape_mismatch(self, three_asset_means):
        with pytest.raises(ValueError, match="doesn't match"):
            FrontierOptimizer(three_asset_means, np.eye(2))

    def test_nan_in_means(self, three_asset_cov):
        with pytest.raises(ValueError, match="NaN"):
            FrontierOptimizer([0.001, np.nan, 0.002], three_asset_cov)

    def test_nan_in_covariance(self, three_asset_means):
        cov = np.diag([0.0004, np.nan, 0.0006])
        with pytest.raises(ValueError, match="NaN"):
            FrontierOptimizer(three_asset_means, cov)

    def test_inverted_bounds(self, three_asset_means, three_asset_cov):
        with pytest.raises(ValueError, match="exceeds"):
            FrontierOptimizer(three_asset_means, three_asset_cov, min_weight=0.6, max_weight=0.4)

    def test_unknown_solver(self, three_asset_means, three_asset_cov):
        with pytest.raises(ValueError, match="Unknown solver"):
            FrontierOptimizer(three_asset_means, three_asset_cov, solver='simplex')

    def test_asymmetric_covariance_is_symmetrized(self, three_asset_means):
        cov = np.array([
            [0.0004, 0.0001, 0.0],
            [0.0, 0.0009, 0.0],
            [0.0, 0.0, 0.0006],
        ])
        with pytest.warns(UserWarning, match="not symmetric"):
            optimizer = FrontierOptimizer(three_asset_means, cov)
        np.testing.assert_allclose(optimizer.cov_matrix, optimizer.cov_matrix.T)

    def test_names_from_series(self, three_asset_cov):
        mu = pd.Series([0.001, 0.002, 0.0015], index=['X', 'Y', 'Z'])
        optimizer = FrontierOptimizer(mu, three_asset_cov)
        assert optimizer.asset_names == ['X', 'Y', 'Z']


class TestPortfolioStats:
    """Test the quadratic-form helpers"""

    def test_equal_weight_stats(self, three_asset_optimizer):
        w = np.ones(3) / 3
        stats = three_asset_optimizer.portfolio_stats(w)

        assert stats['mean'] == pytest.approx(0.0015)
        assert stats['variance'] == pytest.approx(0.0019 / 9)
        assert stats['std'] == pytest.approx(np.sqrt(0.0019 / 9))
        assert stats['sharpe'] == pytest.approx(0.0015 / np.sqrt(0.0019 / 9))


class TestSolveForTarget:
    """Test single-target quadratic programs"""

    @pytest.mark.parametrize("solver", ["cvxpy", "slsqp"])
    def test_beats_equal_weight(self, three_asset_means, three_asset_cov, solver):
        optimizer = FrontierOptimizer(three_asset_means, three_asset_cov, solver=solver)
        point = optimizer.solve_for_target(0.0015)

        assert point.feasible
        ew = np.ones(3) / 3
        assert point.variance <= optimizer.portfolio_variance(ew) + 1e-12
        assert np.sum(point.weights) == pytest.approx(1.0, abs=1e-6)
        assert optimizer.portfolio_return(point.weights) == pytest.approx(0.0015, abs=1e-8)

    def test_matches_closed_form(self, three_asset_optimizer, three_asset_means, three_asset_cov):
        point = three_asset_optimizer.solve_for_target(0.0015)
        expected = closed_form_variance(three_asset_means, three_asset_cov, 0.0015)
        assert point.variance == pytest.approx(expected, rel=1e-4)

    def test_unreachable_target_is_failed_point(self, three_asset_optimizer):
        point = three_asset_optimizer.solve_for_target(0.01)

        assert not point.feasible
        assert point.weights is None
        assert np.isnan(point.risk)
        assert point.status != 'optimal'

    def test_upper_bound_respected(self, three_asset_means, three_asset_cov):
        optimizer = FrontierOptimizer(three_asset_means, three_asset_cov,
                                      min_weight=0.1, max_weight=0.5)
        point = optimizer.solve_for_target(0.0016)

        assert point.feasible
        assert np.all(point.weights >= 0.1 - 1e-6)
        assert np.all(point.weights <= 0.5 + 1e-6)


class TestMinimumVariance:
    """Test the MVP within bounds"""

    def test_inverse_variance_weights(self, three_asset_optimizer):
        weights, stats = three_asset_optimizer.minimum_variance_portfolio()

        inv_var = 1 / np.array([0.0004, 0.0009, 0.0006])
        np.testing.assert_allclose(weights, inv_var / inv_var.sum(), atol=1e-5)
        assert stats['variance'] == pytest.approx(1 / inv_var.sum(), rel=1e-5)


class TestEfficientFrontier:
    """Test the target-return sweep"""

    def test_default_sweep(self, three_asset_optimizer):
        frontier = three_asset_optimizer.efficient_frontier()

        assert isinstance(frontier, EfficientFrontier)
        assert len(frontier) == 50
        assert frontier.failures == []
        assert np.all(np.diff(frontier.returns) > 0)

    def test_weights_sum_to_one_within_bounds(self, three_asset_optimizer):
        frontier = three_asset_optimizer.efficient_frontier()

        for point in frontier:
            assert np.sum(point.weights) == pytest.approx(1.0, abs=1e-6)
            assert np.all(point.weights >= -1e-6)
            assert np.all(point.weights <= 1 + 1e-6)

    def test_risk_non_decreasing_on_efficient_branch(self, three_asset_optimizer):
        _, mvp = three_asset_optimizer.minimum_variance_portfolio()
        frontier = three_asset_optimizer.efficient_frontier()

        upper = [p for p in frontier if p.target_return >= mvp['mean']]
        assert len(upper) > 10
        risks = np.array([p.risk for p in upper])
        assert np.all(np.diff(risks) >= -1e-8)

    def test_risk_matches_closed_form(self, three_asset_optimizer, three_asset_means, three_asset_cov):
        frontier = three_asset_optimizer.efficient_frontier(n_points=5)
        for point in frontier:
            expected = closed_form_variance(three_asset_means, three_asset_cov, point.target_return)
            assert point.variance == pytest.approx(expected, rel=1e-4)

    def test_infeasible_targets_skipped(self, three_asset_optimizer):
        frontier = three_asset_optimizer.efficient_frontier(targets=[0.01, 0.0015, 0.0012, -0.5])

        assert len(frontier) == 2
        assert [p.target_return for p in frontier] == [0.0012, 0.0015]
        assert sorted(p.target_return for p in frontier.failures) == [-0.5, 0.01]

    def test_no_feasible_target(self, three_asset_optimizer):
        with pytest.raises(RuntimeError, match="No feasible"):
            three_asset_optimizer.efficient_frontier(targets=[0.01, 0.02])

    def test_bounds_hold_on_market_data(self, sample_prices):
        prices, _ = sample_prices
        mu, cov = compute_statistics(log_returns(prices))
        optimizer = FrontierOptimizer(mu, cov, min_weight=0.05, max_weight=0.6)
        frontier = optimizer.efficient_frontier(n_points=20)

        assert len(frontier) + len(frontier.failures) == 20
        for point in frontier:
            assert np.sum(point.weights) == pytest.approx(1.0, abs=1e-6)
            assert np.all(point.weights >= 0.05 - 1e-6)
            assert np.all(point.weights <= 0.6 + 1e-6)

    def test_to_frame(self, three_asset_optimizer):
        frontier = three_asset_optimizer.efficient_frontier(n_points=4)
        df = frontier.to_frame(three_asset_optimizer.asset_names)

        assert list(df.columns) == ['target_return', 'risk', 'LOW', 'HIGH', 'MID']
        assert len(df) == 4
        np.testing.assert_allclose(df[['LOW', 'HIGH', 'MID']].sum(axis=1), 1.0, atol=1e-6)

    def test_points_sorted_on_construction(self):
        a = FrontierPoint(0.002, 0.02, np.array([0.0, 1.0]), 'optimal')
        b = FrontierPoint(0.001, 0.01, np.array([1.0, 0.0]), 'optimal')
        frontier = EfficientFrontier([a, b], [])
        assert frontier[0] is b
        assert frontier[1] is a


class TestFrontierPoint:
    """Test value semantics of a frontier sample"""

    def test_equality_ignores_weight_arrays(self):
        a = FrontierPoint(0.0015, 0.012, np.array([0.2, 0.3, 0.5]), 'optimal')
        b = FrontierPoint(0.0015, 0.012, np.array([0.2, 0.3, 0.5]), 'optimal')
        c = FrontierPoint(0.0015, 0.013, np.array([0.2, 0.3, 0.5]), 'optimal')

        assert a == b
        assert a != c

    def test_hashable(self):
        a = FrontierPoint(0.0015, 0.012, np.array([0.2, 0.3, 0.5]), 'optimal')
        failed = FrontierPoint(0.01, float('nan'), None, 'infeasible')

        assert hash(a) == hash(FrontierPoint(0.0015, 0.012, np.array([1.0, 0.0, 0.0]), 'optimal'))
        assert len({a, failed}) == 2
