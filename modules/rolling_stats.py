# modules/rolling_stats.py

from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from modules.errors import ConfigurationError

Values = Union[pd.Series, np.ndarray, Sequence[float]]


def _check_window(n: int) -> None:
    if not isinstance(n, (int, np.integer)) or isinstance(n, bool) or n < 1:
        raise ConfigurationError(f"window size must be an integer >= 1, got {n!r}", 'window')


def _ddof(population: bool) -> int:
    # population formula (divide by N) unless the caller asks for the sample one
    return 0 if population else 1


# ─────────────────────────────────────────────
# SECTION 1: FULL-SERIES ROLLING WINDOWS
# ─────────────────────────────────────────────
#
# pandas' rolling kernels slide the window one row at a time,
# adding the entering value and removing the leaving one, so each
# row costs O(1) amortized regardless of the window size.
# min_periods=n keeps the warmup rows undefined (NaN): windows never
# shrink, wrap or pad.

def rolling_mean(series: pd.Series, n: int) -> pd.Series:
    _check_window(n)
    return series.rolling(n, min_periods=n).mean()


def rolling_stddev(series: pd.Series, n: int, population: bool = True) -> pd.Series:
    """
    Trailing standard deviation.
    population=True divides by N (matches the reference STDDEV),
    population=False divides by N-1.
    """
    _check_window(n)
    return series.rolling(n, min_periods=n).std(ddof=_ddof(population))


def rolling_sum(series: pd.Series, n: int) -> pd.Series:
    _check_window(n)
    return series.rolling(n, min_periods=n).sum()


# ─────────────────────────────────────────────
# SECTION 2: POINT QUERIES
# ─────────────────────────────────────────────

def _window(series: Values, index: int, n: int) -> Optional[np.ndarray]:
    """
    Values of the n-long window ending at index (inclusive),
    or None when the series doesn't reach back far enough.
    """
    _check_window(n)
    values = np.asarray(series, dtype=float)
    if index < 0 or index >= len(values):
        return None
    if index + 1 < n:
        return None
    window = values[index - n + 1: index + 1]
    if np.isnan(window).any():
        return None
    return window


def windowed_mean(series: Values, index: int, n: int) -> Optional[float]:
    window = _window(series, index, n)
    return None if window is None else float(window.mean())


def windowed_stddev(series: Values, index: int, n: int, population: bool = True) -> Optional[float]:
    window = _window(series, index, n)
    ddof = _ddof(population)
    if window is None or len(window) <= ddof:
        return None
    return float(window.std(ddof=ddof))


def windowed_sum(series: Values, index: int, n: int) -> Optional[float]:
    window = _window(series, index, n)
    return None if window is None else float(window.sum())
