"""
CLI entry point for the frontier back-test.

Usage:
    python run_cli.py                          # Default universe from Yahoo Finance
    python run_cli.py --sample                 # Synthetic data, no network
    python run_cli.py --prices-file prices.csv --benchmark SPY

For installed package, use: fb-analyze
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from frontier_backtest.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
