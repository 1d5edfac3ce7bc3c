"""Tests for the command-line workflow"""

import logging
from unittest.mock import patch

import matplotlib.pyplot as plt
import pytest

from frontier_backtest.cli.main import build_parser, main, run_full_analysis
from frontier_backtest.core.backtest import performance_metrics
from frontier_backtest.core.config import AnalysisConfig


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logger = logging.getLogger("frontier_backtest")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


class TestRunFullAnalysis:
    """Test the end-to-end workflow on synthetic prices"""

    def test_outputs_written(self, sample_prices, tmp_path):
        prices, bench = sample_prices
        config = AnalysisConfig(tickers=list(prices.columns), benchmark='^GSPC',
                                n_points=10, output_dir=tmp_path)

        results = run_full_analysis(config, prices=prices, benchmark=bench,
                                    save_plots=True, excel=True)

        for name in ('efficient_frontier.png', 'correlation_heatmap.png',
                     'cumulative_returns.png', 'optimal_weights.png',
                     'frontier_backtest.xlsx'):
            assert (tmp_path / name).exists()

        assert any(p is results['optimal'] for p in results['frontier'])
        assert results['backtest'].benchmark.name == '^GSPC'
        assert len(results['returns']) == len(prices) - 1

    def test_benchmark_required(self, sample_prices, tmp_path):
        prices, _ = sample_prices
        config = AnalysisConfig(tickers=list(prices.columns), output_dir=tmp_path)

        with pytest.raises(ValueError, match="Benchmark"):
            run_full_analysis(config, prices=prices, save_plots=False)

    def test_invalid_config(self, sample_prices, tmp_path):
        prices, bench = sample_prices
        config = AnalysisConfig(tickers=list(prices.columns), min_weight=0.5,
                                max_weight=0.2, output_dir=tmp_path)

        with pytest.raises(ValueError, match="exceeds"):
            run_full_analysis(config, prices=prices, benchmark=bench, save_plots=False)

    def test_supplied_prices_define_universe(self, sample_prices, tmp_path):
        prices, bench = sample_prices
        config = AnalysisConfig(n_points=10, output_dir=tmp_path)

        results = run_full_analysis(config, prices=prices, benchmark=bench, save_plots=False)

        assert results['config'].tickers == list(prices.columns)
        assert results['config'].benchmark == '^GSPC'
        assert results['optimizer'].asset_names == list(prices.columns)

    def test_bounds_checked_against_supplied_universe(self, sample_prices, tmp_path):
        prices, bench = sample_prices
        # 8 default tickers x 0.2 reaches 1, the 4 supplied assets do not
        config = AnalysisConfig(max_weight=0.2, output_dir=tmp_path)

        with pytest.raises(ValueError, match='cannot sum to 1'):
            run_full_analysis(config, prices=prices, benchmark=bench, save_plots=False)

    def test_frequency_sets_annualization(self, sample_prices, tmp_path):
        prices, bench = sample_prices
        config = AnalysisConfig(n_points=10, data_frequency='monthly', output_dir=tmp_path)

        results = run_full_analysis(config, prices=prices.iloc[::21], benchmark=bench.iloc[::21],
                                    save_plots=False)

        portfolio = results['backtest'].portfolio
        expected = performance_metrics(portfolio.daily_returns, 0.04, 12)
        assert portfolio.metrics.annualized_return == pytest.approx(expected.annualized_return)
        assert portfolio.metrics.sharpe_ratio == pytest.approx(expected.sharpe_ratio)

    def test_figures_closed_after_saving(self, sample_prices, tmp_path):
        prices, bench = sample_prices
        config = AnalysisConfig(n_points=10, output_dir=tmp_path)
        plt.close('all')

        run_full_analysis(config, prices=prices, benchmark=bench, save_plots=True)

        assert plt.get_fignums() == []
        assert (tmp_path / 'efficient_frontier.png').exists()


class TestMain:
    """Test argument handling and exit codes"""

    def test_parser_defaults(self):
        args = build_parser().parse_args([])
        assert args.benchmark == '^GSPC'
        assert args.n_points == 50
        assert args.solver == 'cvxpy'
        assert args.frequency == 'daily'

    def test_sample_run(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        code = main(['--sample', '--no-plots', '--n-points', '10',
                     '--output-dir', str(tmp_path / 'out')])

        assert code == 0
        assert list((tmp_path / 'logs').glob('log_frontier_backtest_*.txt'))

    def test_failure_exit_code(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        code = main(['--prices-file', str(tmp_path / 'missing.csv'), '--no-plots'])
        assert code == 1

    def test_frequency_flag_on_price_file(self, sample_prices, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        prices, bench = sample_prices
        monthly = prices.iloc[::21].join(bench.iloc[::21]).rename_axis("Date").reset_index()
        path = tmp_path / "monthly.csv"
        monthly.to_csv(path, index=False)

        with patch("frontier_backtest.cli.main.run_full_analysis",
                   wraps=run_full_analysis) as spy:
            code = main(['--prices-file', str(path), '--benchmark', '^GSPC',
                         '--frequency', 'monthly', '--no-plots', '--n-points', '10',
                         '--output-dir', str(tmp_path / 'out')])

        assert code == 0
        config = spy.call_args[0][0]
        assert config.periods_per_year == 12
        assert config.tickers == list(prices.columns)
