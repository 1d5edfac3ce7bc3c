"""
Capped-Weight Frontier Back-test
Synthetic 6-stock universe, weights limited to [5%, 40%]
Risk-free rate: 3% annual

Runs the package step by step instead of through fb-analyze, and compares
the cvxpy and SLSQP backends on the same frontier.
"""

from pathlib import Path

import matplotlib
matplotlib.use('Agg')
import numpy as np

from frontier_backtest import (
    FrontierOptimizer,
    compute_statistics,
    generate_sample_prices,
    log_returns,
    run_backtest,
    select_max_sharpe,
)
from frontier_backtest.visualization import plot_cumulative_returns, plot_efficient_frontier

# Get the project root directory (parent of examples/)
PROJECT_ROOT = Path(__file__).parent.parent
OUTPUT_DIR = PROJECT_ROOT / 'output'
OUTPUT_DIR.mkdir(exist_ok=True)

RF_ANNUAL = 0.03
RF_DAILY = (1 + RF_ANNUAL) ** (1 / 252) - 1
MIN_WEIGHT, MAX_WEIGHT = 0.05, 0.40

# === Data ===
prices, benchmark = generate_sample_prices(n_assets=6, n_days=1008, seed=11)
returns = log_returns(prices)
bench_returns = log_returns(benchmark)
mean_returns, cov_matrix = compute_statistics(returns)

print(f"Returns shape: {returns.shape}")
print(f"\n{'Asset':<10} {'Mean':>12} {'Std Dev':>12}")
print("-" * 36)
for name in returns.columns:
    print(f"{name:<10} {mean_returns[name]*100:>11.4f}% {np.sqrt(cov_matrix.loc[name, name])*100:>11.4f}%")

# === Frontier with both backends ===
results = {}
for solver in ('cvxpy', 'slsqp'):
    optimizer = FrontierOptimizer(mean_returns, cov_matrix,
                                  min_weight=MIN_WEIGHT, max_weight=MAX_WEIGHT,
                                  solver=solver)
    frontier = optimizer.efficient_frontier(n_points=50)
    optimal = select_max_sharpe(frontier, RF_DAILY)
    results[solver] = (optimizer, frontier, optimal)
    print(f"\n{solver}: {len(frontier)} points solved, {len(frontier.failures)} skipped")
    print(f"  Optimal target {optimal.target_return*100:.4f}%, risk {optimal.risk*100:.4f}%")

cvx_weights = results['cvxpy'][2].weights
slsqp_weights = results['slsqp'][2].weights
print(f"\nMax weight difference between backends: {np.abs(cvx_weights - slsqp_weights).max():.2e}")

# === Back-test ===
optimizer, frontier, optimal = results['cvxpy']
comparison = run_backtest(returns, optimal.weights, bench_returns,
                          risk_free_rate=RF_ANNUAL, benchmark_name='Benchmark')
print("\n--- Back-test ---")
print(comparison.summary_frame().round(4).to_string())

plot_efficient_frontier(optimizer, frontier, optimal, RF_DAILY,
                        title="Efficient Frontier (weights 5%-40%)",
                        save_path=str(OUTPUT_DIR / 'capped_frontier.png'))
plot_cumulative_returns(comparison, save_path=str(OUTPUT_DIR / 'capped_cumulative.png'))
print(f"\nPlots saved to {OUTPUT_DIR}")
