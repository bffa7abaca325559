"""
Plotting utilities for FireSim results.

Purpose
-------
Renders what the simulation core produces:

- plot_percentile_bands(): one series per requested rank, with the
  10th-90th and 25th-75th ranges shaded and the median emphasized
- plot_path_diagnostics(): a single path's yearly returns / inflation and
  its nominal vs real balance, for manual verification of a
  representative path

Both functions follow the same conventions: they accept figsize, title and
save_path, and return the matplotlib objects only when return_fig_ax=True.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Optional

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.ticker import FuncFormatter, PercentFormatter

from .constants import (
    DEFAULT_ALPHA_INNER_BAND,
    DEFAULT_ALPHA_OUTER_BAND,
    DEFAULT_FIGSIZE,
    DEFAULT_FIGSIZE_TALL,
    DEFAULT_LINEWIDTH_THICK,
    PERCENTILE_COLORS,
    VIEWS,
)
from .exceptions import ValidationError
from .utils import currency_axis_formatter, format_currency, format_percent

if TYPE_CHECKING:
    from .simulation import PathResult

__all__ = ["plot_percentile_bands", "plot_path_diagnostics"]


def plot_percentile_bands(
    bands: Dict[float, np.ndarray],
    years: Optional[int] = None,
    *,
    view: str = "real",
    title: Optional[str] = None,
    figsize: tuple = DEFAULT_FIGSIZE,
    save_path: Optional[str] = None,
    return_fig_ax: bool = False,
    annotate_final: bool = True,
):
    """
    Plot percentile bands over the projection horizon.

    Parameters
    ----------
    bands : dict
        rank -> per-period values, as returned by compute_percentiles().
    years : int, optional
        Number of periods to draw. Defaults to the band length; shorter
        values truncate the chart.
    view : {"real", "nominal"}
        Only used for labels.
    title : str, optional
        Figure title. A default naming the horizon and view is used.
    figsize : tuple, default (14, 7)
        Figure size (width, height).
    save_path : str, optional
        Path to save figure.
    return_fig_ax : bool, default False
        If True, returns (fig, ax).
    annotate_final : bool, default True
        Write the final value of each band at the right edge.

    Returns
    -------
    None or tuple
        (fig, ax) if return_fig_ax=True.

    Examples
    --------
    >>> result = SimulationEngine(params, SimulationConfig(seed=42)).run()
    >>> plot_percentile_bands(result.bands("real"), view="real")
    """
    if not bands:
        raise ValidationError("bands must contain at least one rank")
    if view not in VIEWS:
        raise ValidationError(f"view must be one of {VIEWS}, got {view!r}")

    length = min(len(v) for v in bands.values())
    years = length if years is None else min(int(years), length)
    time_axis = np.arange(1, years + 1)
    series = {rank: np.asarray(values, dtype=float)[:years] for rank, values in sorted(bands.items())}

    fig, ax = plt.subplots(figsize=figsize)

    if 10 in series and 90 in series:
        ax.fill_between(time_axis, series[10], series[90], color=PERCENTILE_COLORS[50],
                        alpha=DEFAULT_ALPHA_OUTER_BAND, label='P10-P90')
    if 25 in series and 75 in series:
        ax.fill_between(time_axis, series[25], series[75], color=PERCENTILE_COLORS[50],
                        alpha=DEFAULT_ALPHA_INNER_BAND, label='P25-P75')

    cmap_colors = plt.cm.viridis(np.linspace(0, 1, len(series)))
    for i, (rank, values) in enumerate(series.items()):
        is_median = rank == 50
        ax.plot(time_axis, values,
                color=PERCENTILE_COLORS.get(rank, cmap_colors[i]),
                linewidth=DEFAULT_LINEWIDTH_THICK if is_median else 1.2,
                linestyle='-' if is_median else '--',
                label=f'{rank:g}p')
        if annotate_final:
            ax.annotate(format_currency(values[-1]), xy=(time_axis[-1], values[-1]),
                        xytext=(4, 0), textcoords='offset points', fontsize=9, va='center')

    label = "Real (inflation-adjusted)" if view == "real" else "Nominal"
    ax.set_xlabel('Year', fontsize=12)
    ax.set_ylabel(f'{label} Balance', fontsize=12)
    ax.set_title(title or f'{years}-Year Portfolio Growth ({label})',
                 fontsize=14, fontweight='bold')
    ax.yaxis.set_major_formatter(FuncFormatter(currency_axis_formatter))
    ax.set_xlim(1, max(years, 2))
    ax.grid(True, linestyle='--', alpha=0.3)
    ax.legend(loc='upper left', fontsize=10)

    plt.tight_layout()
    if save_path:
        fig.savefig(save_path, bbox_inches='tight', dpi=150)

    return (fig, ax) if return_fig_ax else None


def plot_path_diagnostics(
    path: PathResult,
    *,
    label: Optional[str] = None,
    figsize: tuple = DEFAULT_FIGSIZE_TALL,
    save_path: Optional[str] = None,
    return_fig_ax: bool = False,
):
    """
    Two-panel view of one path.

    Top: yearly return bars (green/red) with inflation as a line, and the
    realized geometric means in the legend. Bottom: nominal and real
    ending balances with the cumulative contributions for reference.

    Returns
    -------
    None or tuple
        (fig, (ax_rates, ax_balance)) if return_fig_ax=True.
    """
    if path.years == 0:
        raise ValidationError("path has no periods to plot")

    time_axis = np.arange(1, path.years + 1)
    returns = path.return_rates
    inflation = path.inflation_rates

    fig, (ax_rates, ax_balance) = plt.subplots(2, 1, figsize=figsize, sharex=True)

    colors = np.where(returns < 0, '#dc2626', '#16a34a')
    ax_rates.bar(time_axis, returns, color=colors, alpha=0.7,
                 label=f'Return (geo mean {format_percent(path.geometric_mean_return(), 2)})')
    ax_rates.plot(time_axis, inflation, color='black', marker='o', markersize=3,
                  label=f'Inflation (geo mean {format_percent(path.geometric_mean_inflation(), 2)})')
    ax_rates.axhline(y=0, color='black', linestyle='--', alpha=0.5, linewidth=1)
    ax_rates.yaxis.set_major_formatter(PercentFormatter(xmax=1.0))
    ax_rates.set_ylabel('Rate', fontsize=12)
    ax_rates.grid(True, linestyle='--', alpha=0.3)
    ax_rates.legend(loc='upper left', fontsize=10)

    contributions = np.cumsum([p.contribution for p in path.periods])
    ax_balance.plot(time_axis, path.ending_balances, color=PERCENTILE_COLORS[50],
                    linewidth=DEFAULT_LINEWIDTH_THICK, label='Nominal')
    ax_balance.plot(time_axis, path.real_ending_balances, color=PERCENTILE_COLORS[90],
                    linewidth=DEFAULT_LINEWIDTH_THICK, label='Real')
    ax_balance.plot(time_axis, contributions, color='gray', linestyle=':',
                    label='Cumulative contributions')
    ax_balance.yaxis.set_major_formatter(FuncFormatter(currency_axis_formatter))
    ax_balance.set_xlabel('Year', fontsize=12)
    ax_balance.set_ylabel('Balance', fontsize=12)
    ax_balance.grid(True, linestyle='--', alpha=0.3)
    ax_balance.legend(loc='upper left', fontsize=10)

    heading = f'{label} Path' if label else 'Path Diagnostics'
    fig.suptitle(f'{heading} (Final: {format_currency(path.final_balance)} nominal, '
                 f'{format_currency(path.final_real_balance)} real)',
                 fontsize=14, fontweight='bold')

    plt.tight_layout()
    if save_path:
        fig.savefig(save_path, bbox_inches='tight', dpi=150)

    return (fig, (ax_rates, ax_balance)) if return_fig_ax else None
