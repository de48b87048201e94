# modules/patterns.py

from collections import Counter
from dataclasses import dataclass, replace
from typing import List, Optional

import numpy as np
import pandas as pd

from config import PATTERN_LOOKBACK

SUPPORT       = 'Support'
RESISTANCE    = 'Resistance'
DOUBLE_TOP    = 'Double Top'
DOUBLE_BOTTOM = 'Double Bottom'

PATTERN_TYPES = (SUPPORT, RESISTANCE, DOUBLE_TOP, DOUBLE_BOTTOM)

PATTERN_COLUMNS = ['pattern_type', 'pattern_strength']


@dataclass(frozen=True)
class PatternEvent:
    symbol: str
    date: pd.Timestamp
    close_price: float
    pattern_type: str
    strength: Optional[float]


# ─────────────────────────────────────────────
# SECTION 1: POINT CLASSIFIERS
# ─────────────────────────────────────────────

def classify_extremum(closes: np.ndarray, i: int) -> Optional[str]:
    """
    Resistance: strictly above both neighbours.
    Support:    strictly below both neighbours.
    First and last points have only one neighbour and never qualify.
    """
    if i < 1 or i >= len(closes) - 1:
        return None
    prev_, cur, next_ = closes[i - 1], closes[i], closes[i + 1]
    if cur > prev_ and cur > next_:
        return RESISTANCE
    if cur < prev_ and cur < next_:
        return SUPPORT
    return None


def classify_double(closes: np.ndarray, i: int, lookback: int = PATTERN_LOOKBACK) -> Optional[str]:
    """
    Double Top:    close[i] is a local max, and close[i-1] sits above
                   both close[i-2] and close[i-3].
    Double Bottom: the same with every inequality flipped.
    The pattern spans `lookback` points ending at i (close[i-3]..close[i]
    by default), so i needs lookback - 1 earlier points and a next point.
    """
    if i < max(lookback - 1, 3) or i >= len(closes) - 1:
        return None
    c = closes
    if c[i] > c[i - 1] and c[i] > c[i + 1] and c[i - 1] > c[i - 2] and c[i - 1] > c[i - 3]:
        return DOUBLE_TOP
    if c[i] < c[i - 1] and c[i] < c[i + 1] and c[i - 1] < c[i - 2] and c[i - 1] < c[i - 3]:
        return DOUBLE_BOTTOM
    return None


def double_strength(closes: np.ndarray, i: int, pattern_type: str) -> Optional[float]:
    """
    Double Top:    (close[i] - close[i-2]) / |close[i-2]|
    Double Bottom: (close[i-2] - close[i]) / |close[i-2]|
    Undefined when close[i-2] is 0.
    """
    base = closes[i - 2]
    if base == 0:
        return None
    if pattern_type == DOUBLE_TOP:
        return float((closes[i] - base) / abs(base))
    return float((base - closes[i]) / abs(base))


# ─────────────────────────────────────────────
# SECTION 2: DETECTION
# ─────────────────────────────────────────────

def detect_patterns(symbol: str, closes: pd.Series,
                    lookback: int = PATTERN_LOOKBACK) -> List[PatternEvent]:
    """
    At most one event per date, in date order.

    Pass 1 classifies every point. When a point is both a local extremum
    and a double top/bottom, the double pattern is reported: it already
    implies the extremum.
    Pass 2 sets Support/Resistance strength to how many events of that
    type the symbol has in total, which is only known once pass 1 is done.
    """
    values = closes.to_numpy(dtype=float)
    dates  = closes.index

    # pass 1
    events: List[PatternEvent] = []
    for i in range(1, len(values) - 1):
        double = classify_double(values, i, lookback)
        if double is not None:
            events.append(PatternEvent(
                symbol, dates[i], float(values[i]), double,
                double_strength(values, i, double),
            ))
            continue

        extremum = classify_extremum(values, i)
        if extremum is not None:
            events.append(PatternEvent(symbol, dates[i], float(values[i]), extremum, None))

    # pass 2
    counts = Counter(e.pattern_type for e in events)
    return [
        replace(e, strength=float(counts[e.pattern_type]))
        if e.pattern_type in (SUPPORT, RESISTANCE) else e
        for e in events
    ]


def events_to_frame(events: List[PatternEvent], index: pd.Index = None) -> pd.DataFrame:
    """
    pattern_type / pattern_strength by date.
    With an index, every date is present and dates without an event get None / NaN.
    """
    frame = pd.DataFrame(
        {
            'pattern_type': pd.Series([e.pattern_type for e in events], dtype=object),
            'pattern_strength': pd.Series([e.strength for e in events], dtype=float),
        }
    )
    frame.index = pd.DatetimeIndex([e.date for e in events], name='date')

    if index is not None:
        frame = frame.reindex(index)
        types = frame['pattern_type'].to_numpy(dtype=object)
        types[pd.isna(types)] = None
        frame['pattern_type'] = pd.Series(types, index=frame.index, dtype=object)
    return frame
