# modules/time_series.py

import os
from dataclasses import dataclass, asdict
from typing import Iterable, List, Optional

import numpy as np
import pandas as pd

from config import (
    PRICE_COLUMNS, SENTIMENT_COLUMNS,
    SYMBOL_CANDIDATES, DATE_CANDIDATES, NON_NEGATIVE_COLUMNS
)
from modules.errors import InvalidInputError


# ─────────────────────────────────────────────
# RECORD TYPES
# ─────────────────────────────────────────────

@dataclass(frozen=True)
class PriceRecord:
    symbol: str
    date: pd.Timestamp
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(frozen=True)
class SentimentRecord:
    symbol: str
    date: pd.Timestamp
    sentiment_score: float
    news_count: int
    social_volume: int


def records_to_frame(records: Iterable) -> pd.DataFrame:
    """Turn PriceRecord / SentimentRecord instances into a long-format frame."""
    rows = [asdict(r) for r in records]
    if not rows:
        return pd.DataFrame()
    return pd.DataFrame(rows)


# ─────────────────────────────────────────────
# SECTION 1: LOADING
# ─────────────────────────────────────────────

def load_csv(filepath: str) -> pd.DataFrame:
    """
    Load a CSV of price or sentiment rows and standardize its column names.
    Raises clear errors if file doesn't exist or can't be parsed.
    """
    if not os.path.exists(filepath):
        raise FileNotFoundError(f"[MSE] File not found: {filepath}")

    try:
        df = pd.read_csv(filepath)
    except Exception as e:
        raise ValueError(f"[MSE] Failed to parse CSV: {e}") from e

    print(f"[MSE] Loaded {len(df)} rows from '{filepath}'")
    return standardize_columns(df)


# ─────────────────────────────────────────────
# SECTION 2: COLUMN STANDARDIZATION
# ─────────────────────────────────────────────

def standardize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Lowercase column names and rename the symbol/date columns
    to 'symbol' and 'date' whatever the source called them.
    """
    df = df.copy()
    df.columns = [str(col).strip().lower() for col in df.columns]

    renames = {}
    for target, candidates in (('symbol', SYMBOL_CANDIDATES), ('date', DATE_CANDIDATES)):
        if target in df.columns:
            continue
        for candidate in candidates:
            if candidate in df.columns:
                renames[candidate] = target
                break

    if renames:
        df = df.rename(columns=renames)
    return df


# ─────────────────────────────────────────────
# SECTION 3: VALIDATION
# ─────────────────────────────────────────────

def _require_columns(df: pd.DataFrame, columns: List[str], symbol: Optional[str]) -> None:
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise InvalidInputError(f"Missing required columns: {missing}", symbol=symbol, field=missing[0])


def _parse_dates(df: pd.DataFrame, symbol: Optional[str]) -> pd.Series:
    try:
        dates = pd.to_datetime(df['date'])
    except (ValueError, TypeError) as e:
        raise InvalidInputError(f"Failed to parse date column: {e}", symbol=symbol, field='date') from e

    if dates.isna().any():
        position = int(np.flatnonzero(dates.isna().to_numpy())[0])
        raise InvalidInputError(f"Unparseable date at row {position}", symbol=symbol, field='date')
    return dates


def _check_ordering(dates: pd.Series, symbol: Optional[str]) -> None:
    """
    Dates must strictly increase. Duplicates and out-of-order rows
    are rejected; we never reorder or drop records on the caller's behalf.
    """
    values = dates.to_numpy()
    if len(values) < 2:
        return
    bad = np.flatnonzero(values[1:] <= values[:-1])
    if len(bad) > 0:
        i = int(bad[0]) + 1
        reason = "Duplicate date" if values[i] == values[i - 1] else "Dates not in ascending order"
        raise InvalidInputError(reason, symbol=symbol, date=pd.Timestamp(values[i]).date(), field='date')


def _check_numeric(df: pd.DataFrame, columns: List[str], dates: pd.Series,
                   symbol: Optional[str]) -> pd.DataFrame:
    """Every value column must be a finite number; negative counts are invalid."""
    for col in columns:
        values = pd.to_numeric(df[col], errors='coerce')
        bad = values.isna() | np.isinf(values.astype(float))
        if bad.any():
            i = int(np.flatnonzero(bad.to_numpy())[0])
            raise InvalidInputError(
                f"Non-numeric or missing value {df[col].iloc[i]!r}",
                symbol=symbol, date=dates.iloc[i].date(), field=col,
            )

        if col in NON_NEGATIVE_COLUMNS and (values < 0).any():
            i = int(np.flatnonzero((values < 0).to_numpy())[0])
            raise InvalidInputError(
                f"Negative {col} {values.iloc[i]}",
                symbol=symbol, date=dates.iloc[i].date(), field=col,
            )

        df[col] = values.astype(float)
    return df


def validate_series_frame(df: pd.DataFrame, columns: List[str],
                          symbol: Optional[str] = None) -> pd.DataFrame:
    """
    Check one symbol's raw rows and return a clean, date-indexed copy.
    Raises InvalidInputError on the first problem found.
    """
    df = standardize_columns(df)
    _require_columns(df, ['date'] + columns, symbol)

    if 'symbol' in df.columns:
        symbols = df['symbol'].dropna().unique()
        if len(symbols) > 1:
            raise InvalidInputError(
                f"Series mixes several symbols: {sorted(map(str, symbols))}",
                symbol=symbol, field='symbol',
            )
        if symbol is None and len(symbols) == 1:
            symbol = str(symbols[0])

    df = df.reset_index(drop=True)
    dates = _parse_dates(df, symbol)
    _check_ordering(dates, symbol)
    df = _check_numeric(df, columns, dates, symbol)

    df.index = pd.DatetimeIndex(dates, name='date')
    return df[columns]


# ─────────────────────────────────────────────
# SECTION 4: TIME SERIES CONTAINER
# ─────────────────────────────────────────────

class TimeSeries:
    """
    Ordered records of one symbol, indexed by date.

    Built once per symbol per run and never mutated afterwards:
    the frame is a private copy and every accessor hands out copies.
    """

    def __init__(self, symbol: str, frame: pd.DataFrame):
        self.symbol = symbol
        self._frame = frame.copy()

    @classmethod
    def from_frame(cls, symbol: str, df: pd.DataFrame, kind: str = 'price') -> "TimeSeries":
        columns = PRICE_COLUMNS if kind == 'price' else SENTIMENT_COLUMNS
        return cls(symbol, validate_series_frame(df, columns, symbol=symbol))

    @classmethod
    def from_records(cls, symbol: str, records: Iterable, kind: str = 'price') -> "TimeSeries":
        return cls.from_frame(symbol, records_to_frame(records), kind=kind)

    def __len__(self) -> int:
        return len(self._frame)

    @property
    def dates(self) -> pd.DatetimeIndex:
        return self._frame.index

    @property
    def columns(self) -> List[str]:
        return list(self._frame.columns)

    def column(self, name: str) -> pd.Series:
        return self._frame[name].copy()

    def at(self, position: int) -> pd.Series:
        """Record at a position, with 'date' included."""
        row = self._frame.iloc[position].astype(object)
        row['date'] = self._frame.index[position]
        return row

    def window(self, end_date, n: int) -> Optional[pd.DataFrame]:
        """
        The n records ending at end_date (inclusive).
        None when end_date isn't in the series or fewer than n records exist.
        """
        end = pd.Timestamp(end_date)
        if end not in self._frame.index:
            return None
        position = self._frame.index.get_loc(end)
        if position + 1 < n:
            return None
        return self._frame.iloc[position - n + 1: position + 1].copy()

    def between(self, start, end) -> pd.DataFrame:
        """All records with start <= date <= end."""
        return self._frame.loc[pd.Timestamp(start): pd.Timestamp(end)].copy()

    def to_frame(self) -> pd.DataFrame:
        return self._frame.copy()


def split_by_symbol(df: pd.DataFrame) -> dict:
    """
    Group a long-format frame into {symbol: rows}.
    Row order inside a symbol is preserved as given.
    """
    if df is None or df.empty:
        return {}
    df = standardize_columns(df)
    if 'symbol' not in df.columns:
        raise InvalidInputError("Missing required columns: ['symbol']", field='symbol')
    if df['symbol'].isna().any():
        raise InvalidInputError("Row without a symbol", field='symbol')
    return {
        str(symbol): group.drop(columns=['symbol'])
        for symbol, group in df.groupby('symbol', sort=True)
    }
