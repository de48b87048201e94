# modules/indicators.py

from typing import Optional

import numpy as np
import pandas as pd

from config import (
    AnalysisSettings, HIGH_VOLUME_RATIO, LOW_VOLUME_RATIO,
    SENTIMENT_SMA_FAST, SENTIMENT_SMA_SLOW, SENTIMENT_VOLATILITY_WINDOW,
    SENTIMENT_MOMENTUM_PERIOD
)
from modules.rolling_stats import rolling_mean, rolling_stddev, rolling_sum

HIGH_VOLUME   = 'High Volume'
LOW_VOLUME    = 'Low Volume'
NORMAL_VOLUME = 'Normal Volume'

VOLUME_INCREASING = 'Increasing'
VOLUME_DECREASING = 'Decreasing'
VOLUME_STABLE     = 'Stable'


def _labels(conditions, choices, undefined: np.ndarray, index,
            undefined_label: Optional[str] = None) -> pd.Series:
    """np.select into an object column, with None (or a fallback) where inputs are undefined."""
    labels = np.select(conditions, choices[:-1], default=choices[-1]).astype(object)
    labels[undefined] = undefined_label
    return pd.Series(labels, index=index, dtype=object)


# ─────────────────────────────────────────────
# SECTION 1: RETURNS
# ─────────────────────────────────────────────

def compute_returns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Simple day-over-day return.
    A zero or missing previous close leaves the return undefined
    instead of producing inf.
    """
    prev_close = df['close'].shift(1)
    df['daily_return'] = (df['close'] - prev_close) / prev_close.where(prev_close != 0)
    return df


# ─────────────────────────────────────────────
# SECTION 2: MOVING AVERAGES & BOLLINGER BANDS
# ─────────────────────────────────────────────

def compute_moving_averages(df: pd.DataFrame, settings: AnalysisSettings = AnalysisSettings()) -> pd.DataFrame:
    """Short and long SMA of close (20 / 50 bars by default)."""
    df['sma_20'] = rolling_mean(df['close'], settings.sma_short)
    df['sma_50'] = rolling_mean(df['close'], settings.sma_long)
    return df


def compute_bollinger_bands(df: pd.DataFrame, settings: AnalysisSettings = AnalysisSettings()) -> pd.DataFrame:
    """
    SMA ± k·std over the short window.
    Bands are NaN exactly where sma_20 is NaN.
    """
    if 'sma_20' not in df.columns:
        df = compute_moving_averages(df, settings)

    k = settings.bollinger_multiplier
    df['std_dev_20'] = rolling_stddev(df['close'], settings.sma_short, population=settings.population_stddev)
    df['upper_band'] = df['sma_20'] + k * df['std_dev_20']
    df['lower_band'] = df['sma_20'] - k * df['std_dev_20']
    return df


# ─────────────────────────────────────────────
# SECTION 3: VOLUME FEATURES
# ─────────────────────────────────────────────

def classify_volume(volume: pd.Series, volume_sma: pd.Series,
                    undefined_as_normal: bool = False) -> pd.Series:
    """
    High Volume:   volume > 2   × SMA
    Low Volume:    volume < 0.5 × SMA
    Normal Volume: anything in between
    Rows without an SMA get None, or Normal Volume if asked to.
    """
    undefined = volume_sma.isna().to_numpy()
    return _labels(
        [
            (volume > HIGH_VOLUME_RATIO * volume_sma).to_numpy(),
            (volume < LOW_VOLUME_RATIO * volume_sma).to_numpy(),
        ],
        [HIGH_VOLUME, LOW_VOLUME, NORMAL_VOLUME],
        undefined,
        volume.index,
        undefined_label=NORMAL_VOLUME if undefined_as_normal else None,
    )


def percent_rank(series: pd.Series) -> pd.Series:
    """(rank - 1) / (n - 1) with ties sharing the lowest rank; a lone value ranks 0."""
    n = len(series)
    if n <= 1:
        return pd.Series(0.0, index=series.index)
    return (series.rank(method='min') - 1) / (n - 1)


def compute_volume_features(df: pd.DataFrame, settings: AnalysisSettings = AnalysisSettings()) -> pd.DataFrame:
    """
    volume_sma:        trailing average volume
    volume_pattern:    High / Low / Normal against that average
    volume_trend:      today vs the short (5 bar) average, Increasing / Decreasing / Stable
    volume_profile_5d: total volume over the short window
    volume_percentile: where today's volume sits in the whole series
    """
    volume = df['volume']

    df['volume_sma']     = rolling_mean(volume, settings.volume_sma_window)
    df['volume_pattern'] = classify_volume(
        volume, df['volume_sma'],
        undefined_as_normal=settings.volume_undefined_as_normal,
    )

    short_avg = rolling_mean(volume, settings.volume_trend_window)
    df['volume_trend'] = _labels(
        [(volume > short_avg).to_numpy(), (volume < short_avg).to_numpy()],
        [VOLUME_INCREASING, VOLUME_DECREASING, VOLUME_STABLE],
        short_avg.isna().to_numpy(),
        df.index,
    )

    df['volume_profile_5d'] = rolling_sum(volume, settings.volume_trend_window)
    df['volume_percentile'] = percent_rank(volume)
    return df


# ─────────────────────────────────────────────
# SECTION 4: RSI
# ─────────────────────────────────────────────

def calculate_rsi(closes: pd.Series, start, end) -> Optional[float]:
    """
    RSI over the closes dated start..end (both inclusive).

    avg gain = mean of positive day-over-day deltas (others count as 0)
    avg loss = mean of |negative deltas|         (others count as 0)

    No losses at all means RSI = 100; this also covers a flat range.
    Fewer than two closes in range gives no deltas, so no RSI.
    """
    window = closes.loc[pd.Timestamp(start): pd.Timestamp(end)].to_numpy(dtype=float)
    if len(window) < 2:
        return None

    deltas   = np.diff(window)
    avg_gain = np.where(deltas > 0, deltas, 0.0).mean()
    avg_loss = np.where(deltas < 0, -deltas, 0.0).mean()

    if avg_loss == 0:
        return 100.0
    return float(100.0 - 100.0 / (1.0 + avg_gain / avg_loss))


def rsi_series(closes: pd.Series, period: int) -> pd.Series:
    """
    RSI for every row, each over its own trailing range of `period` deltas
    (period + 1 closes). Rows without that much history stay NaN.
    """
    dates  = closes.index
    result = np.full(len(closes), np.nan)
    for i in range(period, len(closes)):
        value = calculate_rsi(closes, dates[i - period], dates[i])
        if value is not None:
            result[i] = value
    return pd.Series(result, index=dates)


def compute_rsi(df: pd.DataFrame, settings: AnalysisSettings = AnalysisSettings()) -> pd.DataFrame:
    df['rsi'] = rsi_series(df['close'], settings.rsi_period)
    return df


# ─────────────────────────────────────────────
# SECTION 5: SENTIMENT FEATURES
# ─────────────────────────────────────────────

def calculate_sentiment_momentum(scores: pd.Series, period: int, start, end) -> Optional[float]:
    """
    (latest - previous) / period, where previous is the score right
    before the latest one inside start..end. Needs two scores in range.
    """
    window = scores.loc[pd.Timestamp(start): pd.Timestamp(end)].to_numpy(dtype=float)
    if len(window) < 2:
        return None
    return float((window[-1] - window[-2]) / period)


def compute_sentiment_features(df: pd.DataFrame, settings: AnalysisSettings = AnalysisSettings()) -> pd.DataFrame:
    """
    Works on a date-indexed sentiment frame
    (sentiment_score, news_count, social_volume).

    sentiment_sma_5 / _10:  smoothed sentiment
    sentiment_volatility:   how much sentiment swings over 10 records
    news_momentum:          change in news_count vs the previous record
    social_momentum:        change in social_volume vs the previous record
    sentiment_momentum:     score change over the last few calendar days
    """
    score = df['sentiment_score']

    df['sentiment_sma_5']      = rolling_mean(score, SENTIMENT_SMA_FAST)
    df['sentiment_sma_10']     = rolling_mean(score, SENTIMENT_SMA_SLOW)
    df['sentiment_volatility'] = rolling_stddev(
        score, SENTIMENT_VOLATILITY_WINDOW, population=settings.population_stddev
    )
    df['news_momentum']   = df['news_count'].diff()
    df['social_momentum'] = df['social_volume'].diff()

    lookback = pd.Timedelta(days=settings.sentiment_momentum_days)
    momentum = [
        calculate_sentiment_momentum(score, SENTIMENT_MOMENTUM_PERIOD, date - lookback, date)
        for date in df.index
    ]
    df['sentiment_momentum'] = pd.Series(momentum, index=df.index, dtype=float)
    return df


# ─────────────────────────────────────────────
# MASTER FUNCTION
# ─────────────────────────────────────────────

def compute_indicators(df: pd.DataFrame, settings: AnalysisSettings = AnalysisSettings()) -> pd.DataFrame:
    """
    Full indicator set for one symbol.
    Takes a date-indexed price frame, returns it enriched with every indicator column.
    """
    df = df.copy()
    df = compute_returns(df)
    df = compute_moving_averages(df, settings)
    df = compute_bollinger_bands(df, settings)
    df = compute_volume_features(df, settings)
    df = compute_rsi(df, settings)
    return df
