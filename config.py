import math
import numbers
from dataclasses import dataclass
from typing import Optional

from modules.errors import ConfigurationError

#Expected columns (case-insensitive)
PRICE_COLUMNS = ['open', 'high', 'low', 'close', 'volume']
SENTIMENT_COLUMNS = ['sentiment_score', 'news_count', 'social_volume']

#Different sources name the key columns differently.
SYMBOL_CANDIDATES = ['symbol', 'ticker', 'stock']
DATE_CANDIDATES = ['date', 'datetime', 'timestamp', 'time']

#Columns that can never be negative
NON_NEGATIVE_COLUMNS = ['volume', 'news_count', 'social_volume']

# Output paths
OUTPUT_DIR = "outputs/"
DATA_DIR = "data/"

# ── Indicator windows ─────────────────────────────

SMA_SHORT              = 20   # also the Bollinger window
SMA_LONG               = 50
BOLLINGER_MULTIPLIER   = 2.0
RSI_PERIOD             = 14
VOLUME_SMA_WINDOW      = 20
VOLUME_TREND_WINDOW    = 5    # volume trend + 5 day volume profile
POPULATION_STDDEV      = True

# Volume classification thresholds (multiples of volume SMA)
HIGH_VOLUME_RATIO      = 2.0
LOW_VOLUME_RATIO       = 0.5

# ── Sentiment ─────────────────────────────────────

SENTIMENT_SMA_FAST         = 5
SENTIMENT_SMA_SLOW         = 10
SENTIMENT_VOLATILITY_WINDOW = 10
SENTIMENT_MOMENTUM_PERIOD  = 5
SENTIMENT_MOMENTUM_DAYS    = 5    # calendar days looked back per row

# ── Patterns ──────────────────────────────────────

PATTERN_LOOKBACK = 4

# ── Output ────────────────────────────────────────

OUTPUT_PERIODS = 30   # trailing rows kept per symbol

# Fixed weights of the market sentiment score
SENTIMENT_WEIGHTS = {
    'sentiment_score':    0.3,
    'sentiment_momentum': 0.2,
    'pattern':            0.2,
    'volume_trend':       0.15,
    'news_momentum':      0.15,
}


@dataclass(frozen=True)
class AnalysisSettings:
    """
    Every knob a caller may turn for one analysis run.
    Defaults mirror the module constants above.
    """
    sma_short: int = SMA_SHORT
    sma_long: int = SMA_LONG
    bollinger_multiplier: float = BOLLINGER_MULTIPLIER
    rsi_period: int = RSI_PERIOD
    pattern_lookback: int = PATTERN_LOOKBACK
    output_periods: Optional[int] = OUTPUT_PERIODS
    population_stddev: bool = POPULATION_STDDEV
    volume_sma_window: int = VOLUME_SMA_WINDOW
    volume_trend_window: int = VOLUME_TREND_WINDOW
    sentiment_momentum_days: int = SENTIMENT_MOMENTUM_DAYS
    volume_undefined_as_normal: bool = False

    def validate(self) -> "AnalysisSettings":
        """Reject impossible settings before any symbol is touched."""
        windows = {
            'sma_short': self.sma_short,
            'sma_long': self.sma_long,
            'rsi_period': self.rsi_period,
            'volume_sma_window': self.volume_sma_window,
            'volume_trend_window': self.volume_trend_window,
            'sentiment_momentum_days': self.sentiment_momentum_days,
        }
        for name, value in windows.items():
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}", name)

        # Double top spans close[i-3]..close[i], so at least 4 points
        if (not isinstance(self.pattern_lookback, int) or isinstance(self.pattern_lookback, bool)
                or self.pattern_lookback < 4):
            raise ConfigurationError(
                f"pattern_lookback must be an integer >= 4, got {self.pattern_lookback!r}",
                'pattern_lookback',
            )

        k = self.bollinger_multiplier
        if (not isinstance(k, numbers.Real) or isinstance(k, bool)
                or not math.isfinite(k) or k <= 0):
            raise ConfigurationError(
                f"bollinger_multiplier must be a finite number > 0, got {k!r}",
                'bollinger_multiplier',
            )

        if self.output_periods is not None and (
            not isinstance(self.output_periods, int) or self.output_periods <= 0
        ):
            raise ConfigurationError(
                f"output_periods must be a positive integer or None, got {self.output_periods!r}",
                'output_periods',
            )
        return self
