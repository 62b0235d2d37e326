"""
Figures for the housing price / consumer sentiment report.

Every function returns a matplotlib Figure; saving and embedding is left to
the caller.
"""

import matplotlib
matplotlib.use('Agg')

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from .models.seasonal_adjustment import DecompositionResult
from .models.impulse_response import ImpulseResponseResult, VarianceDecompositionResult

RECESSION_PERIODS = [
    ('1990-07-01', '1991-03-01'),
    ('2001-03-01', '2001-11-01'),
    ('2007-12-01', '2009-06-01'),
    ('2020-02-01', '2020-04-01'),
]

PALETTE = ['#2E86AB', '#E63946', '#2A9D8F', '#F4A261']


def _shade_recessions(ax, index: pd.DatetimeIndex):
    for i, (start, end) in enumerate(RECESSION_PERIODS):
        start, end = pd.to_datetime(start), pd.to_datetime(end)
        if end < index.min() or start > index.max():
            continue
        ax.axvspan(start, end, alpha=0.2, color='gray', label='NBER Recessions' if i == 0 else "")


def plot_series_overview(panel: pd.DataFrame, figsize=(14, 8)):
    """Raw series, one panel each, with recession shading."""
    fig, axes = plt.subplots(len(panel.columns), 1, figsize=figsize, sharex=True)
    axes = np.atleast_1d(axes)

    for ax, column, color in zip(axes, panel.columns, PALETTE):
        ax.plot(panel.index, panel[column], color=color, linewidth=2, label=column)
        _shade_recessions(ax, panel.index)
        ax.set_title(column, fontsize=12, fontweight='bold')
        ax.legend(loc='upper left')
        ax.grid(True, alpha=0.3)

    plt.tight_layout()
    return fig


def plot_decomposition(result: DecompositionResult, figsize=(14, 10)):
    """Observed, trend, seasonal and irregular components plus the adjusted series."""
    fig, axes = plt.subplots(4, 1, figsize=figsize, sharex=True)
    index = result.observed.index

    axes[0].plot(index, result.observed, color='lightgray', linewidth=1.5, label='Observed')
    axes[0].plot(index, result.seasonally_adjusted, color=PALETTE[0], linewidth=1.5,
                 label='Seasonally adjusted')
    axes[0].legend(loc='upper left')
    axes[0].set_title(f'Seasonal Adjustment ({result.method.upper()}, {result.model})',
                      fontsize=12, fontweight='bold')

    axes[1].plot(index, result.trend, color=PALETTE[1], linewidth=2)
    axes[1].set_title('Trend', fontsize=12, fontweight='bold')

    axes[2].plot(index, result.seasonal, color=PALETTE[2])
    axes[2].set_title('Seasonal', fontsize=12, fontweight='bold')

    center = 1.0 if result.model == 'multiplicative' else 0.0
    axes[3].plot(index, result.irregular, color=PALETTE[3], alpha=0.8)
    axes[3].axhline(center, color='black', linestyle='--', alpha=0.5)
    axes[3].set_title('Irregular', fontsize=12, fontweight='bold')

    for ax in axes:
        ax.grid(True, alpha=0.3)

    plt.tight_layout()
    return fig


def plot_transformed_panel(panel: pd.DataFrame, figsize=(14, 6)):
    """Model variables on twin axes."""
    fig, ax1 = plt.subplots(figsize=figsize)
    first, second = panel.columns[:2]

    line1 = ax1.plot(panel.index, panel[first], color=PALETTE[0], linewidth=2, label=first)
    ax1.set_ylabel(first, color=PALETTE[0], fontweight='bold')

    ax2 = ax1.twinx()
    line2 = ax2.plot(panel.index, panel[second], color=PALETTE[1], linewidth=2, label=second)
    ax2.set_ylabel(second, color=PALETTE[1], fontweight='bold')

    _shade_recessions(ax1, panel.index)

    lines = line1 + line2
    ax1.legend(lines, [l.get_label() for l in lines], loc='upper left')
    ax1.set_title('Model Variables', fontsize=14, fontweight='bold')
    ax1.grid(True, alpha=0.3)

    plt.tight_layout()
    return fig


def plot_cointegration_residuals(residuals: pd.Series, figsize=(14, 5)):
    """Static regression residuals with a 2-sigma band."""
    fig, ax = plt.subplots(figsize=figsize)

    ax.plot(residuals.index, residuals.values, color='purple', alpha=0.8, linewidth=1.2)
    ax.axhline(0, color='black', linestyle='--', alpha=0.5)

    resid_std = residuals.std()
    ax.axhline(2 * resid_std, color='red', linestyle=':', alpha=0.7, label='±2σ')
    ax.axhline(-2 * resid_std, color='red', linestyle=':', alpha=0.7)

    ax.set_title('Cointegrating Regression Residuals', fontsize=14, fontweight='bold')
    ax.set_ylabel('Residual')
    ax.legend()
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    return fig


def plot_impulse_responses(result: ImpulseResponseResult, figsize=(14, 10)):
    """Grid of responses: rows are responses, columns are impulses."""
    k = len(result.names)
    fig, axes = plt.subplots(k, k, figsize=figsize, squeeze=False)

    for i, response in enumerate(result.names):
        for j, impulse in enumerate(result.names):
            ax = axes[i, j]
            path = result.response(impulse, response)

            ax.plot(path.index, path['irf'], color=PALETTE[0], linewidth=2)
            if 'lower' in path:
                ax.fill_between(path.index, path['lower'], path['upper'],
                                color=PALETTE[0], alpha=0.2,
                                label=f'{result.confidence:.0%} bootstrap band')
                ax.legend(fontsize=8, loc='upper right')
            ax.axhline(0, color='black', linestyle='--', alpha=0.5)
            ax.set_title(f'{impulse} → {response}', fontsize=11, fontweight='bold')
            ax.set_xlabel('Months')
            ax.grid(True, alpha=0.3)

    kind = 'Orthogonalised' if result.orthogonalized else 'Non-orthogonalised'
    fig.suptitle(f'{kind} Impulse Responses', fontsize=14, fontweight='bold')
    plt.tight_layout()
    return fig


def plot_variance_decomposition(result: VarianceDecompositionResult, figsize=(14, 6)):
    """Stacked variance shares by horizon for each variable, and the final-horizon matrix."""
    k = len(result.names)
    fig, axes = plt.subplots(1, k + 1, figsize=figsize)

    for ax, variable in zip(axes[:k], result.names):
        shares = result.to_frame(variable)
        ax.stackplot(shares.index, shares.T.values, labels=shares.columns,
                     colors=PALETTE[:k], alpha=0.85)
        ax.set_ylim(0, 1)
        ax.set_title(f'FEVD: {variable}', fontsize=12, fontweight='bold')
        ax.set_xlabel('Months')
        ax.legend(loc='lower left', fontsize=9)

    final = pd.DataFrame(result.decomposition[-1], index=result.names, columns=result.names)
    sns.heatmap(final, annot=True, fmt='.2f', cmap='Blues', vmin=0, vmax=1,
                cbar=False, ax=axes[k])
    axes[k].set_title(f'Shares at step {result.horizon}', fontsize=12, fontweight='bold')
    axes[k].set_xlabel('Shock')
    axes[k].set_ylabel('Variable')

    plt.tight_layout()
    return fig
