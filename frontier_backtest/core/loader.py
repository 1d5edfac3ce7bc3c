"""
Price Loader Module
===================

This module handles getting price history into the analysis:
- Yahoo Finance downloads (tickers + benchmark in one query)
- Excel / CSV price tables for offline runs
- Synthetic price paths for demonstrations and tests

Whatever the source, the result is the same pair:
1. A DataFrame of adjusted closes (index = dates, columns = tickers)
2. A Series of benchmark closes on the same dates

Fetching is all-or-nothing: if any requested symbol has no data in the
requested range the whole load fails. There is no retry and no partial
substitution.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd
import yfinance as yf

logger = logging.getLogger(__name__)


class DataFetchError(RuntimeError):
    """Raised when price data cannot be obtained for every requested symbol."""


def _select_close(df: pd.DataFrame, symbols: List[str]) -> pd.DataFrame:
    """Pick the adjusted close block out of a yfinance download."""
    if isinstance(df.columns, pd.MultiIndex):
        lvl0 = df.columns.get_level_values(0)
        if 'Adj Close' in lvl0:
            closes = df['Adj Close'].copy()
        elif 'Close' in lvl0:
            closes = df['Close'].copy()
        else:
            raise DataFetchError("Could not find 'Adj Close' or 'Close' in downloaded data")
    else:
        if 'Adj Close' in df.columns:
            closes = df[['Adj Close']].rename(columns={'Adj Close': symbols[0]})
        elif 'Close' in df.columns:
            closes = df[['Close']].rename(columns={'Close': symbols[0]})
        else:
            raise DataFetchError("Could not find 'Adj Close' or 'Close' for single symbol download")

    closes.index = pd.to_datetime(closes.index)
    if closes.index.tz is not None:
        closes.index = closes.index.tz_localize(None)
    return closes.sort_index()


def _check_coverage(closes: pd.DataFrame, symbols: List[str]):
    """Fail if any requested symbol is absent or entirely empty."""
    missing = [
        s for s in symbols
        if s not in closes.columns or closes[s].dropna().empty
    ]
    if missing:
        raise DataFetchError(f"No price data in range for: {', '.join(missing)}")


def align_prices(
    prices: pd.DataFrame,
    benchmark: pd.Series
) -> Tuple[pd.DataFrame, pd.Series]:
    """
    Align asset and benchmark prices on common dates.

    A last-observation-carried-forward pass fills holidays and gaps, then an
    inner join keeps only dates on which every series has a price. Leading
    rows before a series starts trading are dropped.

    Args:
        prices: Asset closes (index = dates, columns = tickers)
        benchmark: Benchmark closes

    Returns:
        Tuple of (aligned_prices, aligned_benchmark)
    """
    bench_name = benchmark.name if benchmark.name is not None else 'benchmark'
    combined = prices.join(benchmark.rename(bench_name), how='inner')
    combined = combined.sort_index().ffill().dropna(how='any')

    if combined.empty:
        raise DataFetchError("Asset and benchmark prices share no common dates")

    aligned = combined[list(prices.columns)]
    return aligned, combined[bench_name]


def fetch_prices(
    tickers: List[str],
    benchmark: str,
    start: str,
    end: str
) -> Tuple[pd.DataFrame, pd.Series]:
    """
    Download daily adjusted closes from Yahoo Finance.

    One query covers every ticker plus the benchmark.

    Args:
        tickers: Asset ticker symbols
        benchmark: Benchmark index symbol (e.g. '^GSPC')
        start: First date (YYYY-MM-DD)
        end: Last date, exclusive (YYYY-MM-DD)

    Returns:
        Tuple of (prices DataFrame, benchmark Series), date-aligned

    Raises:
        DataFetchError: If the download fails or any symbol has no data
    """
    symbols = list(tickers) + [benchmark]
    logger.info(f"Downloading {len(symbols)} symbols from {start} to {end}")

    try:
        df = yf.download(
            symbols,
            start=start,
            end=end,
            auto_adjust=False,
            progress=False,
            group_by='column',
        )
    except Exception as exc:
        raise DataFetchError(f"Price download failed: {exc}") from exc

    if df is None or df.empty:
        raise DataFetchError("No data returned from yfinance. Check tickers/network.")

    closes = _select_close(df, symbols)
    _check_coverage(closes, symbols)

    prices = closes[list(tickers)]
    bench = closes[benchmark].rename(benchmark)
    prices, bench = align_prices(prices, bench)

    logger.info(
        f"Loaded {len(prices)} aligned trading days "
        f"({prices.index[0].date()} to {prices.index[-1].date()})"
    )
    return prices, bench


class DataLoader:
    """
    Loads price tables from files.

    This class handles:
    - Excel files (.xlsx, .xls) through openpyxl
    - CSV files

    The table must contain a date column (detected by name or dtype) and one
    numeric column per symbol, the benchmark included.

    Example:
        >>> loader = DataLoader()
        >>> prices, bench = loader.load_prices_file("prices.csv", benchmark="SPY")
    """

    def __init__(self, sheet_name: Optional[str] = None):
        """
        Initialize the DataLoader.

        Args:
            sheet_name: Sheet to read from Excel workbooks (default: first sheet)
        """
        self.sheet_name = sheet_name

    def read_table(self, file_path: str) -> pd.DataFrame:
        """
        Read a raw price table and index it by date.

        Args:
            file_path: Path to Excel or CSV file

        Returns:
            DataFrame indexed by date with one numeric column per symbol
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        if path.suffix.lower() in ['.xlsx', '.xls']:
            df = pd.read_excel(path, sheet_name=self.sheet_name or 0, engine='openpyxl')
        elif path.suffix.lower() == '.csv':
            df = pd.read_csv(path)
        else:
            raise ValueError(f"Unsupported file type: {path.suffix}")

        # Identify date column
        date_col = None
        for col in df.columns:
            if 'date' in str(col).lower() or pd.api.types.is_datetime64_any_dtype(df[col]):
                date_col = col
                break

        if date_col is None:
            raise ValueError(f"No date column found in {path.name}")

        df[date_col] = pd.to_datetime(df[date_col])
        df = df.set_index(date_col).sort_index()
        df.index.name = 'Date'

        for col in df.columns:
            df[col] = pd.to_numeric(df[col], errors='coerce')

        return df

    def load_prices_file(
        self,
        file_path: str,
        benchmark: str,
        tickers: Optional[List[str]] = None
    ) -> Tuple[pd.DataFrame, pd.Series]:
        """
        Load asset and benchmark prices from a file.

        Args:
            file_path: Path to Excel or CSV file
            benchmark: Name of the benchmark column
            tickers: Asset columns to use (default: every other column)

        Returns:
            Tuple of (prices DataFrame, benchmark Series), date-aligned

        Raises:
            DataFetchError: If any requested column is missing or empty
        """
        df = self.read_table(file_path)

        if tickers is None:
            tickers = [c for c in df.columns if c != benchmark]

        _check_coverage(df, list(tickers) + [benchmark])

        prices, bench = align_prices(df[list(tickers)], df[benchmark].rename(benchmark))
        logger.info(f"Loaded {prices.shape[1]} assets x {len(prices)} days from {file_path}")
        return prices, bench


def generate_sample_prices(
    n_assets: int = 4,
    n_days: int = 756,
    seed: int = 42,
    start: str = '2021-01-04'
) -> Tuple[pd.DataFrame, pd.Series]:
    """
    Generate synthetic daily prices for testing.

    Asset and benchmark paths are geometric random walks driven by a shared
    market factor, so the correlation matrix is realistic.

    Args:
        n_assets: Number of assets (default: 4)
        n_days: Number of business days
        seed: Random seed for reproducibility
        start: First business day

    Returns:
        Tuple of (prices DataFrame, benchmark Series)
    """
    rng = np.random.default_rng(seed)
    dates = pd.bdate_range(start=start, periods=n_days)

    market = rng.normal(0.0004, 0.010, n_days)
    betas = np.linspace(0.6, 1.4, n_assets)
    drifts = np.linspace(0.0001, 0.0008, n_assets)
    idio = rng.normal(0.0, 0.012, (n_days, n_assets))

    asset_log_returns = drifts + np.outer(market, betas) + idio
    asset_log_returns[0] = 0.0
    market[0] = 0.0

    if n_assets == 4:
        names = ['AAPL', 'MSFT', 'JPM', 'XOM']
    else:
        names = [f'STOCK_{i+1}' for i in range(n_assets)]

    prices = pd.DataFrame(
        100.0 * np.exp(np.cumsum(asset_log_returns, axis=0)),
        index=dates,
        columns=names
    )
    benchmark = pd.Series(
        4000.0 * np.exp(np.cumsum(market)),
        index=dates,
        name='^GSPC'
    )
    return prices, benchmark
