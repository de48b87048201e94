# modules/scoring.py

import math
from typing import Optional

import numpy as np
import pandas as pd

from config import SENTIMENT_WEIGHTS
from modules.indicators import VOLUME_INCREASING, VOLUME_DECREASING
from modules.patterns import DOUBLE_TOP, DOUBLE_BOTTOM

OVERBOUGHT = 'Overbought'
OVERSOLD   = 'Oversold'
NEUTRAL    = 'Neutral'
BULLISH    = 'Bullish'
BEARISH    = 'Bearish'


def _missing(value) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


# ─────────────────────────────────────────────
# SECTION 1: ROW-LEVEL SIGNALS
# ─────────────────────────────────────────────

def bollinger_signal(close: float, upper_band: Optional[float],
                     lower_band: Optional[float]) -> Optional[str]:
    if _missing(close) or _missing(upper_band) or _missing(lower_band):
        return None
    if close > upper_band:
        return OVERBOUGHT
    if close < lower_band:
        return OVERSOLD
    return NEUTRAL


def trend_signal(sma_short: Optional[float], sma_long: Optional[float]) -> Optional[str]:
    """Bullish when the short SMA leads, Bearish when it lags. Undefined until both exist."""
    if _missing(sma_short) or _missing(sma_long):
        return None
    if sma_short > sma_long:
        return BULLISH
    if sma_short < sma_long:
        return BEARISH
    return NEUTRAL


def volatility_ratio(upper_band: Optional[float], lower_band: Optional[float],
                     sma_short: Optional[float]) -> Optional[float]:
    """Band width relative to the middle band."""
    if _missing(upper_band) or _missing(lower_band) or _missing(sma_short) or sma_short == 0:
        return None
    return float((upper_band - lower_band) / sma_short)


def _sign_term(value, weight: float) -> float:
    if _missing(value) or value == 0:
        return 0.0
    return weight if value > 0 else -weight


def market_sentiment_score(sentiment_score: Optional[float] = None,
                           sentiment_momentum: Optional[float] = None,
                           pattern_type: Optional[str] = None,
                           volume_trend: Optional[str] = None,
                           news_momentum: Optional[float] = None) -> float:
    """
    0.3·sentiment + 0.2·momentum
      + 0.2  for a Double Bottom, -0.2  for a Double Top
      + 0.15 for Increasing volume, -0.15 for Decreasing
      + 0.15 when news count rose, -0.15 when it fell

    A missing input adds 0; it never blanks the whole score.
    """
    w = SENTIMENT_WEIGHTS
    score = 0.0

    if not _missing(sentiment_score):
        score += w['sentiment_score'] * sentiment_score
    if not _missing(sentiment_momentum):
        score += w['sentiment_momentum'] * sentiment_momentum

    if pattern_type == DOUBLE_TOP:
        score -= w['pattern']
    elif pattern_type == DOUBLE_BOTTOM:
        score += w['pattern']

    if volume_trend == VOLUME_INCREASING:
        score += w['volume_trend']
    elif volume_trend == VOLUME_DECREASING:
        score -= w['volume_trend']

    score += _sign_term(news_momentum, w['news_momentum'])
    return float(score)


# ─────────────────────────────────────────────
# MASTER FUNCTION
# ─────────────────────────────────────────────

def compute_signals(df: pd.DataFrame) -> pd.DataFrame:
    """
    Adds bollinger_signal, trend_signal, volatility_ratio and
    market_sentiment_score to a joined indicator/pattern/sentiment frame.
    Sentiment columns that aren't there count as missing.
    """
    def col(name):
        if name in df.columns:
            return df[name].tolist()
        return [None] * len(df)

    closes, uppers, lowers = col('close'), col('upper_band'), col('lower_band')
    sma_short, sma_long    = col('sma_20'), col('sma_50')

    df['bollinger_signal'] = pd.Series(
        [bollinger_signal(c, u, l) for c, u, l in zip(closes, uppers, lowers)],
        index=df.index, dtype=object,
    )
    df['trend_signal'] = pd.Series(
        [trend_signal(s, l) for s, l in zip(sma_short, sma_long)],
        index=df.index, dtype=object,
    )
    df['volatility_ratio'] = pd.Series(
        [volatility_ratio(u, l, s) for u, l, s in zip(uppers, lowers, sma_short)],
        index=df.index, dtype=float,
    )
    df['market_sentiment_score'] = np.array([
        market_sentiment_score(s, m, p, v, n)
        for s, m, p, v, n in zip(
            col('sentiment_score'), col('sentiment_momentum'),
            col('pattern_type'), col('volume_trend'), col('news_momentum'),
        )
    ], dtype=float)
    return df
