"""
Visualization functions for daily pricing decisions.

Creates diagnostic plots to review the recommendations of a window.
"""

import logging
from pathlib import Path
from typing import Optional

import matplotlib.pyplot as plt
import pandas as pd

from .pipeline import DashboardResult

logger = logging.getLogger(__name__)

DIRECTION_COLORS = {'increase': '#2ecc71', 'decrease': '#e74c3c', 'maintain': '#95a5a6'}


def _save(fig: plt.Figure, output_path: Optional[Path]) -> None:
    if output_path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=150, bbox_inches='tight')
        logger.info(f"Saved to {output_path}")


def plot_daily_decisions(
    result: DashboardResult,
    output_path: Optional[Path] = None
) -> plt.Figure:
    """
    Plot current vs recommended price per day, with the compset median.

    Bottom panel shows the weighted signal coloured by direction.

    Args:
        result: Pipeline output
        output_path: Optional path to save figure

    Returns:
        matplotlib Figure
    """
    df = result.decisions_frame()
    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(14, 8), sharex=True,
                                   gridspec_kw={'height_ratios': [3, 1]})

    if df.empty:
        ax1.text(0.5, 0.5, 'No dated market snapshot in window',
                 ha='center', va='center', transform=ax1.transAxes)
        _save(fig, output_path)
        return fig

    dates = pd.to_datetime(df['date'])

    ax1.plot(dates, df['current_price'], color='#3498db', marker='o', label='Current')
    ax1.plot(dates, df['recommended_price'], color='#2c3e50', marker='s', label='Recommended')
    ax1.plot(dates, df['competitor_median'], color='gray', linestyle='--', label='Compset median')
    ax1.set_ylabel('Price (€)', fontsize=12)
    ax1.set_title('Daily Price Recommendations', fontsize=14)
    ax1.legend(loc='upper left')
    ax1.grid(True, alpha=0.3)

    colors = [DIRECTION_COLORS.get(d, '#95a5a6') for d in df['direction']]
    ax2.bar(dates, df['weighted_signal'], color=colors, alpha=0.8)
    ax2.axhline(0, color='black', linewidth=1)
    ax2.set_ylabel('Signal (%)', fontsize=12)
    ax2.grid(True, alpha=0.3)

    fig.autofmt_xdate()
    plt.tight_layout()
    _save(fig, output_path)
    return fig


def plot_change_distribution(
    result: DashboardResult,
    output_path: Optional[Path] = None
) -> plt.Figure:
    """
    Histogram of recommended price changes, split by direction.

    Returns:
        matplotlib Figure
    """
    df = result.decisions_frame()
    fig, ax = plt.subplots(figsize=(10, 6))

    if not df.empty:
        for direction, color in DIRECTION_COLORS.items():
            subset = df[df['direction'] == direction]
            if len(subset) > 0:
                ax.hist(
                    subset['change_pct'],
                    bins=20,
                    alpha=0.7,
                    color=color,
                    label=f"{direction.upper()} (n={len(subset)})"
                )
        ax.legend()

    ax.axvline(0, color='black', linestyle='--', linewidth=1)
    ax.set_xlabel('Price Change (%)', fontsize=12)
    ax.set_ylabel('Days', fontsize=12)
    ax.set_title('Distribution of Recommended Price Changes', fontsize=14)

    plt.tight_layout()
    _save(fig, output_path)
    return fig


def plot_trend_series(
    series: pd.DataFrame,
    output_path: Optional[Path] = None
) -> plt.Figure:
    """
    Own price and compset median over time, with the 7-day compset delta.

    Args:
        series: DataFrame returned by build_trend_series
        output_path: Optional path to save figure

    Returns:
        matplotlib Figure
    """
    fig, ax = plt.subplots(figsize=(14, 6))
    if not series.empty:
        dates = pd.to_datetime(series['date'])
        ax.plot(dates, series['own_price'], marker='o', label='Own price')
        ax.plot(dates, series['compset_median'], marker='s', label='Compset median')
        deltas = pd.to_numeric(series['compset_vs_7d'], errors='coerce')
        if deltas.notna().any():
            ax.bar(dates, deltas, alpha=0.3, color='gray', label='Compset vs 7 days ago')
        ax.legend(loc='upper left')
        fig.autofmt_xdate()

    ax.set_ylabel('Price (€)', fontsize=12)
    ax.set_title('Competitor Tariff Trends', fontsize=14)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    _save(fig, output_path)
    return fig


def create_report(result: DashboardResult, output_dir: Path) -> None:
    """
    Save every decision chart of a window to `output_dir`.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    logger.info("Creating decision report...")

    fig = plot_daily_decisions(result, output_dir / 'daily_decisions.png')
    plt.close(fig)

    fig = plot_change_distribution(result, output_dir / 'change_distribution.png')
    plt.close(fig)

    logger.info(f"Report saved to {output_dir}/")
