"""
Main Runner Script for Frontier Back-tests
==========================================

This script runs the full workflow once, top to bottom:
1. Fetching adjusted closes for the universe and the benchmark
2. Computing log returns, mean vector and covariance matrix
3. Solving the bounded mean-variance QP for each target return
4. Selecting the maximum Sharpe ratio portfolio
5. Back-testing it against the benchmark
6. Visualizing results and writing reports

Usage:
    fb-analyze                                   # Default universe from Yahoo Finance
    fb-analyze --tickers AAPL MSFT JPM           # Custom universe
    fb-analyze --prices-file prices.csv --benchmark SPY
    fb-analyze --sample                          # Synthetic data, no network
    fb-analyze --solver slsqp --max-weight 0.4   # Alternative backend, capped weights
"""

import sys
import argparse
import logging
import traceback
from datetime import datetime
from pathlib import Path
from typing import Optional

import matplotlib.pyplot as plt
import pandas as pd

from frontier_backtest.core.config import AnalysisConfig
from frontier_backtest.core.loader import DataLoader, align_prices, fetch_prices, generate_sample_prices
from frontier_backtest.core.statistics import compute_statistics, correlation_matrix, log_returns
from frontier_backtest.core.optimizer import FrontierOptimizer
from frontier_backtest.core.backtest import run_backtest, select_max_sharpe
from frontier_backtest.core.report import export_to_excel, summary_report
from frontier_backtest.visualization import (
    plot_efficient_frontier,
    plot_correlation_heatmap,
    plot_cumulative_returns,
    plot_portfolio_weights
)


# =============================================================================
# LOGGING SETUP
# =============================================================================

def setup_logger(
    script_name: str = "frontier_backtest",
    log_dir: Optional[Path] = None
) -> logging.Logger:
    """
    Sets up the package logger, writing to both file and console.

    Module loggers (frontier_backtest.core.*) propagate into it.

    Args:
        script_name: Name of the script (used in log filename)
        log_dir: Directory for log files (default: ./logs)

    Returns:
        Configured logger instance
    """
    log_dir = Path(log_dir) if log_dir else Path.cwd() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y_%m_%d_%H%M")
    log_filename = log_dir / f"log_{script_name}_{timestamp}.txt"

    logger = logging.getLogger("frontier_backtest")
    logger.setLevel(logging.INFO)
    logger.propagate = False

    # Clear existing handlers (prevent duplicates)
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    file_handler = logging.FileHandler(log_filename, encoding='utf-8')
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


# =============================================================================
# ANALYSIS CLASS
# =============================================================================

class AnalysisCheckpoint:
    """
    Tracks the progress of the analysis steps.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.steps_completed = {}
        self.start_time = datetime.now()
        self.current_step = None

    def start_step(self, step_name: str):
        """Mark a step as started."""
        self.current_step = step_name
        self.logger.info(f"[CHECKPOINT] Starting: {step_name}")

    def complete_step(self, step_name: str):
        """Mark a step as completed."""
        self.steps_completed[step_name] = True
        self.logger.info(f"[CHECKPOINT] Completed: {step_name}")

    def get_progress_summary(self) -> dict:
        """Get summary of analysis progress."""
        elapsed = (datetime.now() - self.start_time).total_seconds()
        return {
            'steps_completed': list(self.steps_completed.keys()),
            'current_step': self.current_step,
            'elapsed_seconds': elapsed
        }

    def log_final_report(self):
        """Log final analysis report."""
        summary = self.get_progress_summary()
        self.logger.info("=" * 60)
        self.logger.info("  ANALYSIS COMPLETE")
        self.logger.info("=" * 60)
        self.logger.info(f"  Steps completed: {len(summary['steps_completed'])}")
        self.logger.info(f"  Total time: {summary['elapsed_seconds']:.2f} seconds")
        self.logger.info("=" * 60)


# =============================================================================
# MAIN ANALYSIS FUNCTION
# =============================================================================

def run_full_analysis(
    config: AnalysisConfig,
    prices: Optional[pd.DataFrame] = None,
    benchmark: Optional[pd.Series] = None,
    save_plots: bool = True,
    excel: bool = False,
    show_plots: bool = False,
    logger: Optional[logging.Logger] = None
) -> dict:
    """
    Run the complete frontier back-test.

    If prices are not supplied they are downloaded for config.tickers and
    config.benchmark over the configured date range. Supplied prices define
    the universe: config.tickers and config.benchmark are reset to their
    column and series names before the configuration is validated.

    Args:
        config: Run assumptions
        prices: Optional asset closes (index = dates, columns = tickers)
        benchmark: Benchmark closes, required with prices
        save_plots: If True, save plots to config.output_dir
        excel: If True, write an Excel workbook of the results
        show_plots: If False, figures are closed once saved
        logger: Logger instance

    Returns:
        Dictionary containing all analysis results
    """
    if logger is None:
        logger = logging.getLogger("frontier_backtest")

    if prices is not None:
        if benchmark is None:
            raise ValueError("Benchmark prices are required when prices are supplied")
        config.tickers = [str(c) for c in prices.columns]
        if benchmark.name is not None:
            config.benchmark = str(benchmark.name)

    config.validate()
    output_dir = Path(config.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    checkpoint = AnalysisCheckpoint(logger)
    results = {'config': config}

    logger.info("=" * 70)
    logger.info("  SHARPE-OPTIMAL FRONTIER BACK-TEST")
    logger.info("=" * 70)
    for line in config.describe().splitlines():
        logger.info(line)

    # Step 1: Ingestion
    checkpoint.start_step("Load Prices")
    if prices is None:
        prices, benchmark = fetch_prices(
            config.tickers, config.benchmark, config.start_date, config.end_date
        )
    else:
        prices, benchmark = align_prices(prices, benchmark)
    results['prices'] = prices
    results['benchmark'] = benchmark
    logger.info(f"Prices: {prices.shape[1]} assets x {len(prices)} days")
    checkpoint.complete_step("Load Prices")

    # Step 2: Statistics
    checkpoint.start_step("Compute Return Statistics")
    asset_returns = log_returns(prices)
    bench_returns = log_returns(benchmark)
    mean_returns, cov_matrix = compute_statistics(asset_returns, config.use_population_cov)
    corr = correlation_matrix(asset_returns)
    results['returns'] = asset_returns
    results['benchmark_returns'] = bench_returns
    results['mean_returns'] = mean_returns
    results['cov_matrix'] = cov_matrix
    results['correlation'] = corr
    checkpoint.complete_step("Compute Return Statistics")

    # Step 3: Efficient frontier
    checkpoint.start_step("Calculate Efficient Frontier")
    optimizer = FrontierOptimizer(
        mean_returns, cov_matrix,
        asset_names=list(prices.columns),
        min_weight=config.min_weight,
        max_weight=config.max_weight,
        solver=config.solver
    )
    mvp_weights, mvp_stats = optimizer.minimum_variance_portfolio()
    frontier = optimizer.efficient_frontier(config.n_points, config.percentiles)
    results['optimizer'] = optimizer
    results['mvp'] = {'weights': mvp_weights, 'stats': mvp_stats}
    results['frontier'] = frontier
    checkpoint.complete_step("Calculate Efficient Frontier")

    # Step 4: Selection and back-test
    checkpoint.start_step("Select and Back-test")
    rf_periodic = config.periodic_risk_free_rate
    optimal = select_max_sharpe(frontier, rf_periodic)
    comparison = run_backtest(
        asset_returns,
        optimal.weights,
        bench_returns,
        risk_free_rate=config.risk_free_rate,
        periods_per_year=config.periods_per_year,
        benchmark_name=config.benchmark
    )
    results['optimal'] = optimal
    results['backtest'] = comparison
    checkpoint.complete_step("Select and Back-test")

    report = summary_report(optimizer, optimal, comparison, rf_periodic, frontier)
    results['report'] = report
    for line in report.splitlines():
        logger.info(line)

    # Step 5: Outputs
    if save_plots:
        checkpoint.start_step("Generate Plots")

        figures = []

        figures.append(plot_efficient_frontier(
            optimizer, frontier, optimal, rf_periodic, mvp_stats,
            save_path=str(output_dir / "efficient_frontier.png")
        ))
        logger.info("Saved: efficient_frontier.png")

        figures.append(plot_correlation_heatmap(
            corr, save_path=str(output_dir / "correlation_heatmap.png")
        ))
        logger.info("Saved: correlation_heatmap.png")

        figures.append(plot_cumulative_returns(
            comparison, save_path=str(output_dir / "cumulative_returns.png")
        ))
        logger.info("Saved: cumulative_returns.png")

        figures.append(plot_portfolio_weights(
            optimal.weights, optimizer.asset_names,
            title="Sharpe-Optimal Portfolio Weights",
            save_path=str(output_dir / "optimal_weights.png")
        ))
        logger.info("Saved: optimal_weights.png")

        if not show_plots:
            for fig in figures:
                plt.close(fig)

        checkpoint.complete_step("Generate Plots")

    if excel:
        checkpoint.start_step("Export Excel")
        path = export_to_excel(
            output_dir / "frontier_backtest.xlsx",
            optimizer, frontier, optimal, comparison
        )
        results['excel_path'] = path
        logger.info(f"Saved: {path.name}")
        checkpoint.complete_step("Export Excel")

    checkpoint.log_final_report()
    return results


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Sharpe-Optimal Frontier Back-test',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  fb-analyze                                    # Default universe, Yahoo Finance
  fb-analyze --tickers AAPL MSFT JPM --benchmark SPY
  fb-analyze --prices-file prices.csv --benchmark SPY
  fb-analyze --prices-file monthly.csv --benchmark SPY --frequency monthly
  fb-analyze --sample --no-plots                # Synthetic data
        """
    )

    parser.add_argument('--tickers', '-t', nargs='+',
                        help='Asset ticker symbols (default: built-in universe)')
    parser.add_argument('--benchmark', '-b', type=str,
                        default=AnalysisConfig.DEFAULT_BENCHMARK,
                        help='Benchmark symbol or column name (default: ^GSPC)')
    parser.add_argument('--start', type=str, default='2019-01-01',
                        help='Start date YYYY-MM-DD (default: 2019-01-01)')
    parser.add_argument('--end', type=str, default='2024-01-01',
                        help='End date YYYY-MM-DD (default: 2024-01-01)')
    parser.add_argument('--rf-rate', '-r', type=float, default=0.04,
                        help='Annual risk-free rate (default: 0.04 = 4%%)')
    parser.add_argument('--min-weight', type=float, default=0.0,
                        help='Lower bound per asset weight (default: 0)')
    parser.add_argument('--max-weight', type=float, default=1.0,
                        help='Upper bound per asset weight (default: 1)')
    parser.add_argument('--frequency', choices=list(AnalysisConfig.FREQUENCY_PERIODS),
                        default='daily',
                        help='Sampling frequency of the prices, sets the annualization '
                             '(default: daily = 252 periods)')
    parser.add_argument('--n-points', '-n', type=int, default=50,
                        help='Number of target returns on the frontier (default: 50)')
    parser.add_argument('--solver', choices=AnalysisConfig.SOLVERS, default='cvxpy',
                        help='QP backend (default: cvxpy)')
    parser.add_argument('--population-cov', action='store_true',
                        help='Use population covariance (N) instead of sample (N-1)')
    parser.add_argument('--prices-file', '-f', type=str,
                        help='CSV/Excel price table to use instead of downloading')
    parser.add_argument('--sheet', '-s', type=str,
                        help='Sheet name when --prices-file is an Excel workbook')
    parser.add_argument('--sample', action='store_true',
                        help='Use synthetic prices (no network)')
    parser.add_argument('--output-dir', '-o', type=str, default='output',
                        help='Directory for plots and reports (default: ./output)')
    parser.add_argument('--excel', action='store_true',
                        help='Also write an Excel workbook of the results')
    parser.add_argument('--no-plots', action='store_true',
                        help='Disable plot generation')
    parser.add_argument('--show-plots', action='store_true',
                        help='Show plots interactively (default: just save)')
    return parser


def main(argv=None) -> int:
    """Main entry point for the frontier back-test."""
    args = build_parser().parse_args(argv)

    if not args.show_plots:
        plt.switch_backend('Agg')

    logger = setup_logger("frontier_backtest")

    config = AnalysisConfig(
        tickers=args.tickers,
        benchmark=args.benchmark,
        start_date=args.start,
        end_date=args.end,
        risk_free_rate=args.rf_rate,
        min_weight=args.min_weight,
        max_weight=args.max_weight,
        n_points=args.n_points,
        data_frequency=args.frequency,
        use_population_cov=args.population_cov,
        solver=args.solver,
        output_dir=args.output_dir
    )

    try:
        prices = benchmark = None

        if args.sample:
            logger.info("Using synthetic sample prices...")
            prices, benchmark = generate_sample_prices()
        elif args.prices_file:
            loader = DataLoader(sheet_name=args.sheet)
            prices, benchmark = loader.load_prices_file(
                args.prices_file, args.benchmark, args.tickers
            )

        run_full_analysis(
            config,
            prices=prices,
            benchmark=benchmark,
            save_plots=not args.no_plots,
            excel=args.excel,
            show_plots=args.show_plots,
            logger=logger
        )

        if args.show_plots and not args.no_plots:
            plt.show()
        plt.close('all')

        logger.info("Analysis completed successfully!")
        return 0

    except Exception as e:
        logger.error(f"Analysis failed: {e}")
        logger.error(traceback.format_exc())
        return 1


if __name__ == "__main__":
    sys.exit(main())
