"""
Tests de indicadores técnicos (RSI de Wilder, EMA, SMA).
"""

import math
import random

import pandas as pd
import pytest

from candlewatch.utils.indicators import (
    NEUTRAL_RSI,
    calculate_ema,
    calculate_rsi,
    calculate_sma,
    latest_indicator_values,
    latest_rsi,
    wilder_averages,
)

CLOSES = [44.0, 44.5, 43.5, 44.25, 44.75, 45.0, 44.6, 45.3, 45.9, 45.5, 46.1, 46.4, 46.0, 46.8, 47.1]


def _manual_seed(closes, period):
    gains = [max(0.0, b - a) for a, b in zip(closes, closes[1:])][:period]
    losses = [max(0.0, a - b) for a, b in zip(closes, closes[1:])][:period]
    return sum(gains) / period, sum(losses) / period


def test_seed_average_matches_manual_wilder():
    avg_gain, avg_loss = wilder_averages(CLOSES, 14)
    expected_gain, expected_loss = _manual_seed(CLOSES, 14)

    assert avg_gain.iloc[14] == pytest.approx(expected_gain, abs=1e-6)
    assert avg_loss.iloc[14] == pytest.approx(expected_loss, abs=1e-6)

    rsi = calculate_rsi(CLOSES, 14)
    expected_rsi = 100 - 100 / (1 + expected_gain / expected_loss)
    assert rsi.iloc[14] == pytest.approx(expected_rsi, abs=1e-6)


def test_smoothing_after_seed():
    closes = CLOSES + [46.5]
    seed_gain, seed_loss = _manual_seed(closes, 14)

    avg_gain, avg_loss = wilder_averages(closes, 14)

    assert avg_gain.iloc[15] == pytest.approx((seed_gain * 13 + 0.0) / 14, abs=1e-9)
    assert avg_loss.iloc[15] == pytest.approx((seed_loss * 13 + 0.6) / 14, abs=1e-9)


def test_rsi_is_aligned_and_undefined_before_period():
    rsi = calculate_rsi(CLOSES, 14)

    assert len(rsi) == len(CLOSES)
    assert rsi.iloc[:14].isna().all()
    assert not math.isnan(rsi.iloc[14])


def test_rsi_preserves_series_index():
    closes = pd.Series(CLOSES, index=range(100, 100 + len(CLOSES)))

    rsi = calculate_rsi(closes, 14)

    assert list(rsi.index) == list(closes.index)


def test_all_increasing_drives_rsi_to_100():
    rsi = calculate_rsi([float(i) for i in range(1, 40)], 14)
    assert rsi.iloc[-1] == pytest.approx(100.0)


def test_all_decreasing_drives_rsi_to_0():
    rsi = calculate_rsi([float(i) for i in range(40, 1, -1)], 14)
    assert rsi.iloc[-1] == pytest.approx(0.0)


def test_zero_average_loss_gives_100():
    assert latest_rsi([10.0] * 20, 14) == 100.0


def test_rsi_bounds_on_random_walk():
    rng = random.Random(42)
    price = 100.0
    closes = []
    for _ in range(500):
        price = max(1.0, price + rng.uniform(-2, 2))
        closes.append(price)

    rsi = calculate_rsi(closes, 14).dropna()

    assert ((rsi >= 0) & (rsi <= 100)).all()


def test_latest_rsi_falls_back_to_neutral():
    assert latest_rsi(CLOSES[:14], 14) == NEUTRAL_RSI
    assert latest_rsi([], 14) == NEUTRAL_RSI
    assert latest_rsi(CLOSES, 14) == pytest.approx(calculate_rsi(CLOSES, 14).iloc[-1])


def test_invalid_period_raises():
    with pytest.raises(ValueError):
        calculate_rsi(CLOSES, 0)


def test_ema_and_sma():
    ema = calculate_ema([1.0, 2.0, 3.0, 4.0], 3)
    sma = calculate_sma([1.0, 2.0, 3.0, 4.0], 3)

    assert ema.iloc[:2].isna().all()
    assert ema.iloc[2] == pytest.approx(2.25)
    assert ema.iloc[3] == pytest.approx(3.125)
    assert sma.iloc[3] == pytest.approx(3.0)


def test_latest_indicator_values():
    values = latest_indicator_values(CLOSES, [("rsi", 14), ("ema", 3), ("sma", 50)])

    assert set(values) == {"rsi_14", "ema_3", "sma_50"}
    assert values["rsi_14"] == pytest.approx(latest_rsi(CLOSES, 14))
    assert math.isnan(values["sma_50"])


def test_unknown_indicator_raises():
    with pytest.raises(KeyError):
        latest_indicator_values(CLOSES, [("macd", 12)])
