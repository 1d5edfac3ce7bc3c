"""
Report Generation
=================

Text and Excel summaries of a frontier back-test run:
- Individual asset statistics
- Sharpe-optimal weights
- Portfolio vs benchmark performance metrics
- The full frontier table
"""

from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from frontier_backtest.core.backtest import BacktestComparison, sharpe_ratio
from frontier_backtest.core.optimizer import EfficientFrontier, FrontierOptimizer, FrontierPoint


def weights_table(point: FrontierPoint, asset_names) -> pd.DataFrame:
    """Optimal weights sorted from largest to smallest."""
    out = pd.DataFrame({'Asset': list(asset_names), 'Weight': point.weights})
    out['Weight'] = out['Weight'].astype(float)
    return out.sort_values('Weight', ascending=False).reset_index(drop=True)


def summary_report(
    optimizer: FrontierOptimizer,
    optimal: FrontierPoint,
    comparison: BacktestComparison,
    risk_free: float = 0.0,
    frontier: Optional[EfficientFrontier] = None
) -> str:
    """
    Generate a comprehensive summary report.

    Args:
        optimizer: Optimizer holding the asset statistics
        optimal: Sharpe-optimal frontier point
        comparison: Back-test of the optimal weights and the benchmark
        risk_free: Per-period risk-free rate used for selection
        frontier: Optional frontier, to report solved/skipped counts

    Returns:
        Formatted string report
    """
    lines = []
    lines.append("=" * 70)
    lines.append("FRONTIER BACK-TEST SUMMARY REPORT")
    lines.append("=" * 70)

    lines.append("\n--- Individual Asset Statistics (per period) ---")
    lines.append(f"{'Asset':<12} {'Mean':>12} {'Std Dev':>12} {'Variance':>12}")
    lines.append("-" * 50)

    for name, stats in optimizer.get_asset_stats().items():
        lines.append(
            f"{name:<12} {stats['mean']:>12.6f} {stats['std']:>12.6f} {stats['variance']:>12.6f}"
        )

    if frontier is not None:
        lines.append(
            f"\nFrontier points: {len(frontier)} solved, {len(frontier.failures)} skipped"
        )

    lines.append("\n--- Sharpe-Optimal Portfolio ---")
    lines.append("Weights:")
    for _, row in weights_table(optimal, optimizer.asset_names).iterrows():
        lines.append(f"  {row['Asset']:<10} {row['Weight']:>9.4f} ({row['Weight']*100:.2f}%)")
    lines.append(f"Target Return: {optimal.target_return:.6f} per period")
    lines.append(f"Risk (Std Dev): {optimal.risk:.6f} per period")
    lines.append(f"Sharpe Ratio: {sharpe_ratio(optimal.target_return, optimal.risk, risk_free):.6f}")

    lines.append("\n--- Back-test Performance ---")
    table = comparison.summary_frame()
    header = f"{'Metric':<24}" + "".join(f"{str(col):>20}" for col in table.columns)
    lines.append(header)
    lines.append("-" * len(header))
    for metric, row in table.iterrows():
        lines.append(f"{metric:<24}" + "".join(f"{val:>20.4f}" for val in row.values))

    lines.append("\n" + "=" * 70)
    return "\n".join(lines)


def _style_header(ws, n_columns: int):
    header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
    header_font_white = Font(bold=True, size=11, color="FFFFFF")

    for j in range(1, n_columns + 1):
        cell = ws.cell(row=1, column=j)
        cell.font = header_font_white
        cell.fill = header_fill
        ws.column_dimensions[get_column_letter(j)].width = 18


def export_to_excel(
    file_path: str,
    optimizer: FrontierOptimizer,
    frontier: EfficientFrontier,
    optimal: FrontierPoint,
    comparison: BacktestComparison
) -> Path:
    """
    Write the run results to an Excel workbook.

    Sheets: Weights, Frontier, Metrics, Statistics, Covariance, Cumulative.

    Args:
        file_path: Destination .xlsx path
        optimizer: Optimizer holding the asset statistics
        frontier: Solved frontier
        optimal: Sharpe-optimal point
        comparison: Back-test comparison

    Returns:
        Path of the written workbook
    """
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    stats = pd.DataFrame({
        'Mean': optimizer.expected_returns,
        'Std Dev': np.sqrt(np.diag(optimizer.cov_matrix)),
    }, index=optimizer.asset_names)
    cov = pd.DataFrame(optimizer.cov_matrix, index=optimizer.asset_names,
                       columns=optimizer.asset_names)
    cumulative = comparison.cumulative_frame()
    cumulative.index.name = 'Date'

    sheets = {
        'Weights': weights_table(optimal, optimizer.asset_names),
        'Frontier': frontier.to_frame(optimizer.asset_names),
        'Metrics': comparison.summary_frame().rename_axis('Metric').reset_index(),
        'Statistics': stats.rename_axis('Asset').reset_index(),
        'Covariance': cov.rename_axis('Asset').reset_index(),
        'Cumulative': cumulative.reset_index(),
    }

    with pd.ExcelWriter(path, engine='openpyxl') as writer:
        for name, df in sheets.items():
            df.to_excel(writer, sheet_name=name, index=False)
            _style_header(writer.sheets[name], df.shape[1])

    return path
