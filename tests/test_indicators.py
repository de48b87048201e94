# tests/test_indicators.py

import pandas as pd
import numpy as np
import pytest
import sys, os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from config import AnalysisSettings
from modules.indicators import (
    compute_returns, compute_moving_averages, compute_bollinger_bands,
    compute_volume_features, compute_rsi, compute_indicators,
    compute_sentiment_features, classify_volume, percent_rank,
    calculate_rsi, rsi_series, calculate_sentiment_momentum,
    HIGH_VOLUME, LOW_VOLUME, NORMAL_VOLUME
)


# ─────────────────────────────────────────────
# HELPER
# ─────────────────────────────────────────────

def make_base_df(rows=200):
    """Clean date-indexed OHLCV frame simulating daily equity data."""
    np.random.seed(42)
    dates  = pd.bdate_range('2023-01-02', periods=rows)
    close  = 100 + np.cumsum(np.random.randn(rows) * 1.5)
    high   = close + np.abs(np.random.randn(rows) * 0.8)
    low    = close - np.abs(np.random.randn(rows) * 0.8)
    open_  = close + np.random.randn(rows) * 0.3
    volume = np.random.randint(1_000_000, 10_000_000, rows).astype(float)

    df = pd.DataFrame({
        'open': open_, 'high': high,
        'low': low, 'close': close, 'volume': volume
    }, index=dates)
    df.index.name = 'date'
    return df


def make_sentiment_df(scores, news=None, social=None, dates=None):
    dates = dates if dates is not None else pd.bdate_range('2023-01-02', periods=len(scores))
    df = pd.DataFrame({
        'sentiment_score': scores,
        'news_count': news if news is not None else [1.0] * len(scores),
        'social_volume': social if social is not None else [10.0] * len(scores),
    }, index=pd.DatetimeIndex(dates, name='date'))
    return df


# ─────────────────────────────────────────────
# TESTS
# ─────────────────────────────────────────────

def test_daily_return_values():
    df = make_base_df(5)
    df['close'] = [100.0, 110.0, 99.0, 0.0, 5.0]
    df = compute_returns(df)
    assert np.isnan(df['daily_return'].iloc[0])
    assert df['daily_return'].iloc[1] == pytest.approx(0.10)
    assert df['daily_return'].iloc[2] == pytest.approx(-0.10)
    # previous close of 0 → undefined, not inf
    assert np.isnan(df['daily_return'].iloc[4])
    assert not np.isinf(df['daily_return']).any()
    print("PASS: test_daily_return_values")


def test_moving_average_warmup():
    df = compute_moving_averages(make_base_df())
    assert df['sma_20'].isna().sum() == 19
    assert df['sma_50'].isna().sum() == 49
    assert df['sma_20'].iloc[19] == pytest.approx(df['close'].iloc[:20].mean())
    print("PASS: test_moving_average_warmup")


def test_bollinger_width_is_four_std():
    df = compute_bollinger_bands(make_base_df())
    both = df[['upper_band', 'lower_band', 'std_dev_20']].dropna()
    assert len(both) == len(df) - 19
    width = both['upper_band'] - both['lower_band']
    assert np.allclose(width, 4 * both['std_dev_20'])
    print("PASS: test_bollinger_width_is_four_std")


def test_bollinger_undefined_with_sma():
    df = compute_bollinger_bands(make_base_df(40))
    assert (df['upper_band'].isna() == df['sma_20'].isna()).all()
    assert (df['lower_band'].isna() == df['sma_20'].isna()).all()
    print("PASS: test_bollinger_undefined_with_sma")


def test_bollinger_population_stddev():
    df = make_base_df(20)
    df = compute_bollinger_bands(df)
    assert df['std_dev_20'].iloc[-1] == pytest.approx(np.std(df['close'].to_numpy()))

    sample = compute_bollinger_bands(make_base_df(20), AnalysisSettings(population_stddev=False))
    assert sample['std_dev_20'].iloc[-1] == pytest.approx(np.std(sample['close'].to_numpy(), ddof=1))
    print("PASS: test_bollinger_population_stddev")


def test_bollinger_multiplier_setting():
    df = compute_bollinger_bands(make_base_df(), AnalysisSettings(bollinger_multiplier=1.5))
    both = df.dropna(subset=['upper_band'])
    assert np.allclose(both['upper_band'] - both['sma_20'], 1.5 * both['std_dev_20'])
    print("PASS: test_bollinger_multiplier_setting")


def test_flat_series_bands_collapse():
    df = make_base_df(60)
    df['close'] = 100.0
    df = compute_bollinger_bands(df)
    last = df.iloc[-1]
    assert last['sma_20'] == pytest.approx(100.0)
    assert last['sma_50'] == pytest.approx(100.0)
    assert last['std_dev_20'] == pytest.approx(0.0, abs=1e-9)
    assert last['upper_band'] == pytest.approx(100.0)
    assert last['lower_band'] == pytest.approx(100.0)
    print("PASS: test_flat_series_bands_collapse")


def test_volume_classification():
    index  = pd.bdate_range('2023-01-02', periods=4)
    volume = pd.Series([250.0, 10.0, 100.0, 100.0], index=index)
    sma    = pd.Series([107.5, 95.5, 100.0, np.nan], index=index)

    labels = classify_volume(volume, sma)
    assert list(labels) == [HIGH_VOLUME, LOW_VOLUME, NORMAL_VOLUME, None]

    labels = classify_volume(volume, sma, undefined_as_normal=True)
    assert labels.iloc[3] == NORMAL_VOLUME
    print("PASS: test_volume_classification")


def test_volume_spike_is_high_volume():
    df = make_base_df(21)
    df['volume'] = [100.0] * 20 + [250.0]
    df = compute_volume_features(df)
    assert df['volume_pattern'].iloc[-1] == HIGH_VOLUME
    assert df['volume_pattern'].iloc[-2] == NORMAL_VOLUME
    assert df['volume_pattern'].iloc[0] is None
    print("PASS: test_volume_spike_is_high_volume")


def test_volume_trend_and_profile():
    df = make_base_df(6)
    df['volume'] = [10.0, 10.0, 10.0, 10.0, 10.0, 20.0]
    df = compute_volume_features(df)
    assert list(df['volume_trend'].iloc[:4]) == [None] * 4
    assert df['volume_trend'].iloc[4] == 'Stable'
    assert df['volume_trend'].iloc[5] == 'Increasing'
    assert df['volume_profile_5d'].iloc[5] == pytest.approx(60.0)
    assert np.isnan(df['volume_profile_5d'].iloc[3])
    print("PASS: test_volume_trend_and_profile")


def test_percent_rank():
    s = pd.Series([10.0, 20.0, 20.0, 30.0])
    assert list(percent_rank(s)) == pytest.approx([0.0, 1 / 3, 1 / 3, 1.0])
    assert list(percent_rank(pd.Series([5.0]))) == [0.0]
    print("PASS: test_percent_rank")


def test_rsi_known_value():
    closes = pd.Series([1.0, 2.0, 3.0, 2.0], index=pd.bdate_range('2023-01-02', periods=4))
    # gains 1,1,0 → 2/3 ; losses 0,0,1 → 1/3 ; RS = 2
    assert calculate_rsi(closes, closes.index[0], closes.index[-1]) == pytest.approx(100 - 100 / 3)
    print("PASS: test_rsi_known_value")


def test_rsi_zero_loss_is_100():
    closes = pd.Series([1.0, 2.0, 3.0, 3.0], index=pd.bdate_range('2023-01-02', periods=4))
    assert calculate_rsi(closes, closes.index[0], closes.index[-1]) == 100.0

    flat = pd.Series([5.0] * 4, index=closes.index)
    assert calculate_rsi(flat, flat.index[0], flat.index[-1]) == 100.0
    print("PASS: test_rsi_zero_loss_is_100")


def test_rsi_all_losses_is_zero():
    closes = pd.Series([4.0, 3.0, 2.0, 1.0], index=pd.bdate_range('2023-01-02', periods=4))
    assert calculate_rsi(closes, closes.index[0], closes.index[-1]) == pytest.approx(0.0)
    print("PASS: test_rsi_all_losses_is_zero")


def test_rsi_needs_two_points():
    closes = pd.Series([1.0, 2.0], index=pd.bdate_range('2023-01-02', periods=2))
    assert calculate_rsi(closes, closes.index[0], closes.index[0]) is None
    assert calculate_rsi(closes, '2022-01-01', '2022-12-31') is None
    print("PASS: test_rsi_needs_two_points")


def test_rsi_respects_date_range():
    closes = pd.Series([10.0, 5.0, 6.0, 7.0], index=pd.bdate_range('2023-01-02', periods=4))
    # the drop from 10 to 5 is outside the range
    assert calculate_rsi(closes, closes.index[1], closes.index[3]) == 100.0
    print("PASS: test_rsi_respects_date_range")


def test_rsi_series_bounds_and_warmup():
    df = compute_rsi(make_base_df())
    assert df['rsi'].iloc[:14].isna().all()
    rsi = df['rsi'].dropna()
    assert len(rsi) == len(df) - 14
    assert (rsi >= 0).all() and (rsi <= 100).all(), f"RSI out of bounds: {rsi.min():.2f}–{rsi.max():.2f}"
    print("PASS: test_rsi_series_bounds_and_warmup")


def test_rsi_series_uses_trailing_window():
    df = make_base_df(40)
    rsi = rsi_series(df['close'], 14)
    i = 30
    expected = calculate_rsi(df['close'], df.index[i - 14], df.index[i])
    assert rsi.iloc[i] == pytest.approx(expected)
    print("PASS: test_rsi_series_uses_trailing_window")


def test_sentiment_momentum():
    scores = pd.Series([0.1, 0.2, 0.5], index=pd.bdate_range('2023-01-02', periods=3))
    assert calculate_sentiment_momentum(scores, 5, scores.index[0], scores.index[-1]) == pytest.approx(0.06)
    assert calculate_sentiment_momentum(scores, 5, scores.index[2], scores.index[2]) is None
    print("PASS: test_sentiment_momentum")


def test_sentiment_features():
    df = make_sentiment_df(
        [0.1, 0.3, -0.2, 0.4, 0.0, 0.2, 0.6, 0.1, -0.1, 0.5, 0.3],
        news=[1.0, 3.0, 2.0, 2.0, 5.0, 1.0, 0.0, 4.0, 4.0, 2.0, 6.0],
    )
    df = compute_sentiment_features(df)
    assert df['sentiment_sma_5'].isna().sum() == 4
    assert df['sentiment_sma_10'].isna().sum() == 9
    assert df['sentiment_sma_5'].iloc[4] == pytest.approx(np.mean([0.1, 0.3, -0.2, 0.4, 0.0]))
    assert df['news_momentum'].iloc[1] == pytest.approx(2.0)
    assert df['news_momentum'].iloc[2] == pytest.approx(-1.0)
    assert np.isnan(df['sentiment_momentum'].iloc[0])
    assert df['sentiment_momentum'].iloc[1] == pytest.approx((0.3 - 0.1) / 5)
    assert (df['sentiment_volatility'].dropna() >= 0).all()
    print("PASS: test_sentiment_features")


def test_sentiment_momentum_ignores_old_points():
    dates = pd.to_datetime(['2023-01-02', '2023-01-20'])
    df = compute_sentiment_features(make_sentiment_df([0.1, 0.9], dates=dates))
    # previous point is more than 5 days back
    assert np.isnan(df['sentiment_momentum'].iloc[1])
    print("PASS: test_sentiment_momentum_ignores_old_points")


def test_no_inf_values():
    """No indicator should produce infinite values."""
    df = compute_indicators(make_base_df())
    numeric_cols = df.select_dtypes(include=[np.number]).columns
    inf_counts   = np.isinf(df[numeric_cols]).sum()
    bad_cols     = inf_counts[inf_counts > 0]
    assert len(bad_cols) == 0, f"Infinite values found in: {bad_cols.to_dict()}"
    print("PASS: test_no_inf_values")


def test_compute_indicators_does_not_touch_input():
    df = make_base_df(60)
    before = df.copy()
    compute_indicators(df)
    pd.testing.assert_frame_equal(df, before)
    print("PASS: test_compute_indicators_does_not_touch_input")


# ─────────────────────────────────────────────
# RUN
# ─────────────────────────────────────────────

if __name__ == "__main__":
    print("\n" + "="*55)
    print("  MSE — Indicator Test Suite")
    print("="*55 + "\n")

    test_daily_return_values()
    test_moving_average_warmup()
    test_bollinger_width_is_four_std()
    test_bollinger_undefined_with_sma()
    test_bollinger_population_stddev()
    test_bollinger_multiplier_setting()
    test_flat_series_bands_collapse()
    test_volume_classification()
    test_volume_spike_is_high_volume()
    test_volume_trend_and_profile()
    test_percent_rank()
    test_rsi_known_value()
    test_rsi_zero_loss_is_100()
    test_rsi_all_losses_is_zero()
    test_rsi_needs_two_points()
    test_rsi_respects_date_range()
    test_rsi_series_bounds_and_warmup()
    test_rsi_series_uses_trailing_window()
    test_sentiment_momentum()
    test_sentiment_features()
    test_sentiment_momentum_ignores_old_points()
    test_no_inf_values()
    test_compute_indicators_does_not_touch_input()

    print("\n" + "="*55)
    print("  All indicator tests completed.")
    print("="*55)
