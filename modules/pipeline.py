# modules/pipeline.py

"""
Per-symbol orchestration.

Flow per symbol:
  1. TimeSeries       — validate and freeze the price / sentiment rows
  2. Indicators       — SMA, Bollinger, returns, volume, RSI
  3. Patterns         — support/resistance, double top/bottom (two passes)
  4. Sentiment        — sentiment features, left-joined on date
  5. Signals          — bollinger/trend signals, volatility ratio, sentiment score
  6. Trailing filter  — keep the last `output_periods` rows

Symbols share nothing, so each one runs as its own task on a thread pool;
the per-symbol frames are concatenated and sorted by (symbol, date) at the end.
"""

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd

from config import AnalysisSettings, SENTIMENT_COLUMNS
from modules.errors import AnalysisCancelled, InvalidInputError
from modules.indicators import compute_indicators, compute_sentiment_features
from modules.patterns import PATTERN_COLUMNS, detect_patterns, events_to_frame
from modules.scoring import compute_signals
from modules.time_series import TimeSeries, split_by_symbol

SENTIMENT_FEATURE_COLUMNS = SENTIMENT_COLUMNS + [
    'sentiment_sma_5', 'sentiment_sma_10', 'sentiment_volatility',
    'news_momentum', 'social_momentum', 'sentiment_momentum',
]

ANALYSIS_COLUMNS = [
    'symbol', 'date',
    # price
    'close', 'volume', 'daily_return',
    # indicators
    'sma_20', 'sma_50', 'std_dev_20', 'upper_band', 'lower_band', 'rsi',
    'volume_sma', 'volume_pattern', 'volume_trend', 'volume_profile_5d', 'volume_percentile',
    # patterns
    'pattern_type', 'pattern_strength',
    # sentiment
    *SENTIMENT_FEATURE_COLUMNS,
    # signals
    'bollinger_signal', 'trend_signal', 'volatility_ratio', 'market_sentiment_score',
]

LABEL_COLUMNS = ['volume_pattern', 'volume_trend', 'pattern_type', 'bollinger_signal', 'trend_signal']


def _none_for_missing(df: pd.DataFrame) -> pd.DataFrame:
    """Label columns use None (not NaN) for undefined values."""
    for col in LABEL_COLUMNS:
        values = df[col].to_numpy(dtype=object)
        values[pd.isna(values)] = None
        df[col] = pd.Series(values, index=df.index, dtype=object)
    return df


# ─────────────────────────────────────────────
# SECTION 1: ONE SYMBOL
# ─────────────────────────────────────────────

def analyze_symbol(prices: TimeSeries, sentiment: Optional[TimeSeries] = None,
                   settings: AnalysisSettings = AnalysisSettings()) -> pd.DataFrame:
    """
    Every AnalysisRow for one symbol, over its whole price history.
    Sentiment is optional; rows without a sentiment record on that date
    get undefined sentiment fields.
    """
    df = compute_indicators(prices.to_frame(), settings)

    events = detect_patterns(prices.symbol, df['close'], lookback=settings.pattern_lookback)
    df = df.join(events_to_frame(events, index=df.index))

    if sentiment is not None and len(sentiment) > 0:
        sent = compute_sentiment_features(sentiment.to_frame(), settings)
        df = df.join(sent[SENTIMENT_FEATURE_COLUMNS], how='left')
    else:
        for col in SENTIMENT_FEATURE_COLUMNS:
            df[col] = np.nan

    df = compute_signals(df)

    df['symbol'] = prices.symbol
    df = df.rename_axis('date').reset_index()
    return _none_for_missing(df[ANALYSIS_COLUMNS])


def trailing_rows(df: pd.DataFrame, periods: Optional[int]) -> pd.DataFrame:
    """Last `periods` rows of one symbol's output (all of them for None)."""
    if periods is None:
        return df
    return df.iloc[-periods:] if periods < len(df) else df


def _run_symbol(symbol: str, price_rows: pd.DataFrame, sentiment_rows: Optional[pd.DataFrame],
                settings: AnalysisSettings) -> pd.DataFrame:
    prices = TimeSeries.from_frame(symbol, price_rows, kind='price')
    sentiment = None
    if sentiment_rows is not None:
        sentiment = TimeSeries.from_frame(symbol, sentiment_rows, kind='sentiment')
    return trailing_rows(analyze_symbol(prices, sentiment, settings), settings.output_periods)


# ─────────────────────────────────────────────
# MASTER FUNCTION
# ─────────────────────────────────────────────

def run_analysis(prices_df: pd.DataFrame,
                 sentiment_df: Optional[pd.DataFrame] = None,
                 settings: Optional[AnalysisSettings] = None,
                 max_workers: Optional[int] = None,
                 cancel_event: Optional[threading.Event] = None,
                 strict: bool = False) -> Tuple[pd.DataFrame, Dict[str, str]]:
    """
    Analyse every symbol in a long-format price frame.

    Returns (rows, rejected):
      rows:     AnalysisRows sorted by (symbol, date)
      rejected: {symbol: reason} for series that failed validation

    Bad settings raise ConfigurationError before any work starts.
    A rejected symbol doesn't stop the others unless strict=True,
    in which case its InvalidInputError is re-raised.
    Setting cancel_event stops the run with AnalysisCancelled.
    """
    settings = (settings or AnalysisSettings()).validate()

    print("[MSE] ── Starting analysis run ──\n")

    price_groups     = split_by_symbol(prices_df)
    sentiment_groups = split_by_symbol(sentiment_df) if sentiment_df is not None else {}

    print(f"[MSE] {len(price_groups)} symbols with prices, {len(sentiment_groups)} with sentiment")

    rejected: Dict[str, str] = {}
    results:  Dict[str, pd.DataFrame] = {}

    if cancel_event is not None and cancel_event.is_set():
        raise AnalysisCancelled("[MSE] Run cancelled before any symbol started")

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="Symbol") as executor:
        futures = {
            executor.submit(
                _run_symbol, symbol, rows, sentiment_groups.get(symbol), settings
            ): symbol
            for symbol, rows in price_groups.items()
        }

        for future in as_completed(futures):
            if cancel_event is not None and cancel_event.is_set():
                for pending in futures:
                    pending.cancel()
                raise AnalysisCancelled(
                    f"[MSE] Run cancelled after {len(results)} of {len(futures)} symbols"
                )

            symbol = futures[future]
            try:
                results[symbol] = future.result()
            except InvalidInputError as e:
                if strict:
                    for pending in futures:
                        pending.cancel()
                    raise
                print(f"[MSE] WARNING: rejected {symbol}: {e}")
                rejected[symbol] = str(e)

    if results:
        rows = pd.concat([results[s] for s in sorted(results)], ignore_index=True)
        rows = rows.sort_values(['symbol', 'date'], kind='mergesort').reset_index(drop=True)
        rows = _none_for_missing(rows)
    else:
        rows = pd.DataFrame(columns=ANALYSIS_COLUMNS)

    print(f"[MSE] {len(rows)} rows for {len(results)} symbols, {len(rejected)} rejected")
    print("[MSE] ── Analysis run complete ──\n")
    return rows, rejected
