"""
Analysis Configuration
======================

Every assumption of a frontier back-test run lives on one object so the
pipeline, the CLI and the tests share the same defaults.

ASSUMPTIONS (User-Configurable):
--------------------------------
1. UNIVERSE: a fixed list of large-cap tickers benchmarked against the S&P 500
2. RISK-FREE RATE: quoted annually, converted to a per-period rate with
   geometric compounding: r_p = (1 + r_annual)^(1/periods) - 1
3. COVARIANCE: sample covariance (divide by N-1) unless switched to population
4. WEIGHT BOUNDS: long-only, 0% to 100% per asset
5. TARGET GRID: 50 target returns between the 25th and 75th percentile of
   the per-asset mean returns
"""

from datetime import date
from pathlib import Path
from typing import List, Optional, Tuple


class AnalysisConfig:
    """
    Stores all configurable assumptions for the analysis.

    Attributes:
        tickers: Asset ticker symbols
        benchmark: Benchmark index symbol
        start_date: First date of the price history (YYYY-MM-DD)
        end_date: Last date of the price history (YYYY-MM-DD)
        risk_free_rate: Annual risk-free rate (decimal)
        min_weight: Lower bound on every asset weight
        max_weight: Upper bound on every asset weight
        n_points: Number of target returns sampled along the frontier
        percentiles: Percentile band of mean returns spanned by the targets
        periods_per_year: Trading periods per year used for annualization
        use_population_cov: If True, use N; if False, use N-1
        solver: 'cvxpy' or 'slsqp'
        output_dir: Directory for plots and reports
    """

    DEFAULT_TICKERS = ['AAPL', 'MSFT', 'AMZN', 'JPM', 'JNJ', 'XOM', 'PG', 'NVDA']
    DEFAULT_BENCHMARK = '^GSPC'

    SOLVERS = ('cvxpy', 'slsqp')

    FREQUENCY_PERIODS = {
        'daily': 252,
        'weekly': 52,
        'monthly': 12,
    }

    def __init__(
        self,
        tickers: Optional[List[str]] = None,
        benchmark: str = DEFAULT_BENCHMARK,
        start_date: str = '2019-01-01',
        end_date: str = '2024-01-01',
        risk_free_rate: float = 0.04,
        min_weight: float = 0.0,
        max_weight: float = 1.0,
        n_points: int = 50,
        percentiles: Tuple[float, float] = (25.0, 75.0),
        data_frequency: str = 'daily',
        use_population_cov: bool = False,
        solver: str = 'cvxpy',
        output_dir: Optional[str] = None
    ):
        self.tickers = list(tickers) if tickers is not None else list(self.DEFAULT_TICKERS)
        self.benchmark = benchmark
        self.start_date = start_date
        self.end_date = end_date
        self.risk_free_rate = risk_free_rate
        self.min_weight = min_weight
        self.max_weight = max_weight
        self.n_points = n_points
        self.percentiles = tuple(percentiles)
        self.data_frequency = data_frequency
        self.use_population_cov = use_population_cov
        self.solver = solver
        self.output_dir = Path(output_dir) if output_dir else Path('output')

    @property
    def periods_per_year(self) -> int:
        """Number of periods per year for the configured data frequency."""
        return self.FREQUENCY_PERIODS.get(self.data_frequency, 252)

    @property
    def periodic_risk_free_rate(self) -> float:
        """
        Risk-free rate per period.

        Convert annual to periodic: (1 + r_annual)^(1/periods) - 1
        """
        return (1 + self.risk_free_rate) ** (1 / self.periods_per_year) - 1

    @property
    def weight_bounds(self) -> Tuple[float, float]:
        return self.min_weight, self.max_weight

    def validate(self):
        """
        Check the configuration for contradictions.

        Raises:
            ValueError: If any assumption makes the analysis ill-posed
        """
        if not self.tickers:
            raise ValueError("At least one ticker is required")

        if len(set(self.tickers)) != len(self.tickers):
            raise ValueError(f"Duplicate tickers in universe: {self.tickers}")

        if self.benchmark in self.tickers:
            raise ValueError(f"Benchmark {self.benchmark} is also listed as an asset")

        if self.min_weight > self.max_weight:
            raise ValueError(
                f"min_weight ({self.min_weight}) exceeds max_weight ({self.max_weight})"
            )

        # Full investment must be reachable inside the box
        n_assets = len(self.tickers)
        if n_assets * self.min_weight > 1 + 1e-12 or n_assets * self.max_weight < 1 - 1e-12:
            raise ValueError(
                f"Weight bounds [{self.min_weight}, {self.max_weight}] cannot sum to 1 "
                f"across {n_assets} assets"
            )

        if self.n_points < 1:
            raise ValueError(f"n_points must be positive, got {self.n_points}")

        low, high = self.percentiles
        if not 0 <= low <= high <= 100:
            raise ValueError(f"Invalid percentile band: {self.percentiles}")

        if date.fromisoformat(self.start_date) >= date.fromisoformat(self.end_date):
            raise ValueError(
                f"start_date {self.start_date} must be before end_date {self.end_date}"
            )

        if self.data_frequency not in self.FREQUENCY_PERIODS:
            raise ValueError(f"Unknown data frequency: {self.data_frequency}")

        if self.solver not in self.SOLVERS:
            raise ValueError(f"Unknown solver: {self.solver}. Use one of {self.SOLVERS}")

    def describe(self) -> str:
        """Return the current configuration as a text block."""
        lines = [
            "=" * 60,
            "CURRENT ANALYSIS CONFIGURATION",
            "=" * 60,
            f"Tickers: {', '.join(self.tickers)}",
            f"Benchmark: {self.benchmark}",
            f"Period: {self.start_date} to {self.end_date}",
            f"Risk-Free Rate: {self.risk_free_rate*100:.2f}% annual "
            f"({self.periodic_risk_free_rate*100:.5f}% per period)",
            f"Data Frequency: {self.data_frequency}",
            f"  Periods/Year: {self.periods_per_year}",
            f"Covariance Type: {'Population (N)' if self.use_population_cov else 'Sample (N-1)'}",
            f"Weight Bounds: [{self.min_weight:.2f}, {self.max_weight:.2f}]",
            f"Target Returns: {self.n_points} between the "
            f"{self.percentiles[0]:g}th and {self.percentiles[1]:g}th percentile",
            f"Solver: {self.solver}",
            "=" * 60,
        ]
        return "\n".join(lines)

    def print_config(self):
        """Print current configuration."""
        print("\n" + self.describe())
