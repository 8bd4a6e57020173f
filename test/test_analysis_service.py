"""
Tests del pipeline completo (AnalysisService).
"""

import math

import pytest

from candlewatch.logic.analysis_service import AnalysisService
from candlewatch.logic.models import SignalAction
from candlewatch.logic.signal_classifier import score_counts
from candlewatch.services.instrument_state import ApplyOutcome
from conftest import declining_bars, doji_bars, make_bar


def _engulfing_after(bars):
    prev = bars[-1]
    open_ = prev.close - 0.2
    close = prev.open + 0.3
    return make_bar(prev.time + 60, open_, close + 0.05, open_ - 0.05, close)


def _service(instrument, **kwargs):
    options = dict(max_bars=100, rsi_period=14, pattern_window=8, scan_bars=30,
                   min_bars=20, indicators=[("rsi", 14), ("ema", 20)])
    options.update(kwargs)
    return AnalysisService(instrument, **options)


def test_insufficient_history_holds(instrument):
    service = _service(instrument)

    result = service.seed(declining_bars(5))

    assert result.signal.action is SignalAction.HOLD
    assert result.signal.confidence == 0
    assert result.signal.reasons == ["insufficient history (5/20 bars)"]
    assert result.matches == []
    assert result.rsi == 50.0


def test_bullish_engulfing_after_decline_gives_buy(instrument):
    service = _service(instrument)
    history = declining_bars(25)
    service.seed(history)

    result = service.process_bar(_engulfing_after(history))

    assert result.outcome is ApplyOutcome.APPENDED
    assert result.patterns == ["Bullish Engulfing"]
    assert result.rsi < 70
    assert result.signal.action is SignalAction.BUY
    assert result.signal == score_counts(1, 0, result.rsi)
    assert result.last_price == result.bars[-1].close
    assert set(result.indicators) == {"rsi_14", "ema_20"}
    assert result.indicators["rsi_14"] == result.rsi


def test_pattern_window_keeps_last_matches(instrument):
    service = _service(instrument)

    result = service.seed(doji_bars(25))

    assert len(result.matches) == 8
    assert all(label == "Doji" for label in result.patterns)
    assert [m.at_index for m in result.matches] == list(range(17, 25))
    assert result.signal.action is SignalAction.HOLD
    assert result.signal.confidence == 40


def test_stale_update_keeps_series(instrument):
    service = _service(instrument)
    seeded = service.seed(declining_bars(25))

    result = service.process_bar(make_bar(60, 1, 2, 0.5, 1.5))

    assert result.outcome is ApplyOutcome.STALE
    assert result.bars == seeded.bars
    assert result.warnings == []
    assert service.get_buffer_status()["stale"] == 1


def test_malformed_update_surfaces_warning(instrument):
    service = _service(instrument)
    seeded = service.seed(declining_bars(25))

    result = service.process_bar(make_bar(999999, 10, 11, 9, math.nan))

    assert result.outcome is ApplyOutcome.REJECTED
    assert result.bars == seeded.bars
    assert len(result.warnings) == 1
    assert "malformed" in result.warnings[0]
    assert result.signal == seeded.signal


def test_revision_recomputes_signal_from_scratch(instrument):
    service = _service(instrument)
    history = declining_bars(25)
    service.seed(history)
    engulfing = service.process_bar(_engulfing_after(history))

    last = engulfing.bars[-1]
    revised = service.process_bar(make_bar(last.time, last.open, last.open + 0.05, last.open - 0.6, last.open - 0.5))

    assert revised.outcome is ApplyOutcome.REVISED
    assert len(revised.bars) == len(engulfing.bars)
    assert revised.patterns == []
    assert revised.signal.action is SignalAction.HOLD
    assert service.last_result is revised


def test_series_capped_by_service(instrument):
    service = _service(instrument, max_bars=30)

    result = service.seed(declining_bars(60))

    assert len(result.bars) == 30
    assert result.bars[0].time == declining_bars(60)[30].time


@pytest.mark.parametrize("option", ["rsi_period", "pattern_window", "scan_bars", "min_bars"])
def test_non_positive_windows_are_rejected(instrument, option):
    with pytest.raises(ValueError, match=option):
        _service(instrument, **{option: 0})
