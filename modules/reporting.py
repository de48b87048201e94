# modules/reporting.py

import os
from typing import List

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import matplotlib.gridspec as gridspec

from config import OUTPUT_DIR, BOLLINGER_MULTIPLIER


REPORT_COLUMNS = [
    'daily_return', 'sma_20', 'sma_50', 'std_dev_20',
    'upper_band', 'lower_band', 'rsi', 'volume_sma',
    'pattern_strength', 'sentiment_score', 'sentiment_momentum',
    'volatility_ratio', 'market_sentiment_score',
]


# ─────────────────────────────────────────────
# SECTION 1: VALIDATION REPORT
# ─────────────────────────────────────────────

def validate_analysis(df: pd.DataFrame, multiplier: float = BOLLINGER_MULTIPLIER) -> List[str]:
    """
    Sanity check every numeric output column.
    Prints a clean report and returns the issues found.
    """
    print("\n" + "="*64)
    print("  MSE — ANALYSIS VALIDATION REPORT")
    print("="*64)
    print(f"  {'Column':<24} {'NaNs':>6} {'Min':>10} {'Max':>10} {'Mean':>10}")
    print("-"*64)

    issues = []

    for col in REPORT_COLUMNS:
        if col not in df.columns:
            issues.append(f"  MISSING COLUMN: {col}")
            continue

        series = pd.to_numeric(df[col], errors='coerce').dropna()
        n_nan  = len(df) - len(series)
        if series.empty:
            print(f"  {col:<24} {n_nan:>6} {'-':>10} {'-':>10} {'-':>10}")
            continue

        mn, mx, mean = series.min(), series.max(), series.mean()
        print(f"  {col:<24} {n_nan:>6} {mn:>10.4f} {mx:>10.4f} {mean:>10.4f}")

        if col == 'rsi' and (mx > 100 or mn < 0):
            issues.append(f"  RSI out of range: min={mn:.2f}, max={mx:.2f}")
        if col == 'std_dev_20' and mn < 0:
            issues.append("  Negative standard deviation detected")
        if col == 'volatility_ratio' and mn < 0:
            issues.append("  Negative volatility ratio detected")
        if np.isinf(series).any():
            issues.append(f"  '{col}' contains infinite values")

    # Band width must be 2·k·std wherever both sides exist
    if {'upper_band', 'lower_band', 'std_dev_20'} <= set(df.columns):
        both  = df[['upper_band', 'lower_band', 'std_dev_20']].dropna()
        width = both['upper_band'] - both['lower_band']
        if not np.allclose(width, 2 * multiplier * both['std_dev_20']):
            issues.append("  Bollinger band width doesn't match 2·k·std_dev_20")

    print("="*64)

    if issues:
        print("\n  ISSUES FOUND:")
        for issue in issues:
            print(issue)
    else:
        print("\n  All columns passed validation. No issues found.")

    print("="*64 + "\n")
    return issues


# ─────────────────────────────────────────────
# SECTION 2: VISUALIZATION
# ─────────────────────────────────────────────

def plot_analysis(df: pd.DataFrame, symbol: str, save: bool = True, show: bool = False) -> str:
    """
    Four-panel chart for one symbol's rows.
    Dark trading-desk style. Returns the saved path ('' when not saved).
    """
    rows = df[df['symbol'] == symbol].set_index('date')
    if rows.empty:
        raise ValueError(f"[MSE] No rows to plot for {symbol}")

    fig = plt.figure(figsize=(16, 14))
    fig.patch.set_facecolor('#0d1117')
    gs = gridspec.GridSpec(4, 1, figure=fig, hspace=0.5)

    text_color = '#c9d1d9'
    grid_color = '#21262d'
    legend_style = dict(facecolor='#161b22', edgecolor='#30363d', labelcolor=text_color, fontsize=7)

    def style_ax(ax, title):
        ax.set_facecolor('#0d1117')
        ax.tick_params(colors=text_color, labelsize=8)
        ax.spines[:].set_color('#30363d')
        ax.set_title(title, color='#e6edf3', fontsize=10, pad=6, loc='left')
        ax.grid(color=grid_color, linewidth=0.5, linestyle='--')

    idx = rows.index

    # Panel 1: Price, SMAs, bands, patterns
    ax1 = fig.add_subplot(gs[0])
    style_ax(ax1, "Price  |  SMA 20 / 50  +  Bollinger Bands")
    ax1.plot(idx, rows['close'],  color='#58a6ff', lw=1.2, label='Close')
    ax1.plot(idx, rows['sma_20'], color='#f0883e', lw=0.9, label='SMA 20', alpha=0.85)
    ax1.plot(idx, rows['sma_50'], color='#bc8cff', lw=0.9, label='SMA 50', alpha=0.85)
    ax1.fill_between(idx, rows['upper_band'], rows['lower_band'], alpha=0.07, color='#58a6ff')

    markers = {
        'Resistance': ('v', '#f85149'), 'Support': ('^', '#3fb950'),
        'Double Top': ('X', '#ff7b72'), 'Double Bottom': ('P', '#56d364'),
    }
    for pattern, (marker, color) in markers.items():
        hits = rows[rows['pattern_type'] == pattern]
        if not hits.empty:
            ax1.scatter(hits.index, hits['close'], color=color, marker=marker, s=30, zorder=5, label=pattern)
    ax1.legend(**legend_style)

    # Panel 2: RSI
    ax2 = fig.add_subplot(gs[1])
    style_ax(ax2, "Momentum  |  RSI")
    ax2.plot(idx, rows['rsi'], color='#79c0ff', lw=1.0, label='RSI')
    ax2.axhline(70, color='#f85149', lw=0.7, linestyle='--', alpha=0.7)
    ax2.axhline(30, color='#3fb950', lw=0.7, linestyle='--', alpha=0.7)
    ax2.set_ylim(0, 100)
    ax2.legend(**legend_style)

    # Panel 3: Volume vs its average
    ax3 = fig.add_subplot(gs[2])
    style_ax(ax3, "Volume  |  vs 20 Bar Average")
    colors = {'High Volume': '#3fb950', 'Low Volume': '#f85149'}
    bar_colors = [colors.get(p, '#388bfd') for p in rows['volume_pattern']]
    ax3.bar(idx, rows['volume'], color=bar_colors, alpha=0.7, width=0.8)
    ax3.plot(idx, rows['volume_sma'], color='#ffa657', lw=0.9, label='Volume SMA')
    ax3.legend(**legend_style)

    # Panel 4: Sentiment
    ax4 = fig.add_subplot(gs[3])
    style_ax(ax4, "Sentiment  |  Score  +  Market Sentiment Score")
    ax4.plot(idx, rows['sentiment_score'], color='#a5d6ff', lw=0.9, label='Sentiment')
    ax4.plot(idx, rows['market_sentiment_score'], color='#ffa657', lw=1.1, label='Market Sentiment Score')
    ax4.axhline(0, color='#6e7681', lw=0.5)
    ax4.legend(**legend_style)

    plt.suptitle(f"MSE — {symbol} Signal Dashboard", color='#e6edf3', fontsize=13, y=0.995)

    path = ''
    if save:
        os.makedirs(OUTPUT_DIR, exist_ok=True)
        path = os.path.join(OUTPUT_DIR, f"{symbol}_signals.png")
        plt.savefig(path, dpi=150, bbox_inches='tight', facecolor=fig.get_facecolor())
        print(f"[MSE] Signal chart saved → {path}")

    if show:
        plt.show()
    plt.close(fig)
    return path
