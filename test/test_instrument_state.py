"""
Tests del agregador de velas (InstrumentState).
"""

import random

import pytest

from candlewatch.services.instrument_state import ApplyOutcome, InstrumentState
from conftest import make_bar


def test_appends_new_bars_in_order(instrument):
    state = InstrumentState(instrument, max_bars=10)

    state.apply(make_bar(60, 10, 11, 9, 10.5))
    series = state.apply(make_bar(120, 10.5, 12, 10, 11))

    assert [b.time for b in series] == [60, 120]
    assert state.last_outcome is ApplyOutcome.APPENDED
    assert state.last_bar.close == 11


def test_revision_replaces_last_bar_wholesale(instrument):
    state = InstrumentState(instrument, max_bars=10)
    state.apply(make_bar(60, 10, 11, 9, 10.5, volume=5))

    revised = make_bar(60, 10, 11.5, 8.5, 9.0)
    series = state.apply(revised)

    assert len(series) == 1
    assert series[-1] == revised
    assert series[-1].volume is None
    assert state.last_outcome is ApplyOutcome.REVISED


def test_revision_is_idempotent(instrument):
    once = InstrumentState(instrument, max_bars=10)
    twice = InstrumentState(instrument, max_bars=10)
    base = make_bar(60, 10, 11, 9, 10.5)
    update = make_bar(60, 10, 11.2, 9, 11.1)

    for state in (once, twice):
        state.apply(base)
    once.apply(update)
    twice.apply(update)
    twice.apply(update)

    assert once.snapshot() == twice.snapshot()


def test_stale_update_leaves_series_unchanged(instrument):
    state = InstrumentState(instrument, max_bars=10)
    state.apply(make_bar(60, 10, 11, 9, 10.5))
    state.apply(make_bar(120, 10.5, 12, 10, 11))
    before = state.snapshot()

    after = state.apply(make_bar(60, 1, 2, 0.5, 1.5))

    assert after == before
    assert state.last_outcome is ApplyOutcome.STALE
    assert state.get_stats()["stale"] == 1


@pytest.mark.parametrize("bad", [
    make_bar(180, 10, 9, 11, 10),  # low > high
    make_bar(180, 10, 11, 9, float("nan")),
    make_bar(180, 10, float("inf"), 9, 10),
    make_bar(180, 12, 11, 9, 10),  # open fuera del rango
    make_bar(180, -1, 11, -2, 10),
    make_bar(180, 10, 11, 9, 10, volume=-3),
])
def test_malformed_bar_is_rejected(instrument, bad):
    state = InstrumentState(instrument, max_bars=10)
    state.apply(make_bar(120, 10.5, 12, 10, 11))
    before = state.snapshot()

    after = state.apply(bad)

    assert after == before
    assert state.last_outcome is ApplyOutcome.REJECTED
    assert state.last_error
    assert state.get_stats()["rejected"] == 1


def test_series_never_exceeds_cap(instrument):
    state = InstrumentState(instrument, max_bars=5)

    for i in range(1, 21):
        series = state.apply(make_bar(i * 60, 10, 11, 9, 10))
        assert len(series) <= 5

    assert [b.time for b in state.snapshot()] == [960, 1020, 1080, 1140, 1200]


def test_random_updates_keep_series_strictly_ascending(instrument):
    rng = random.Random(7)
    state = InstrumentState(instrument, max_bars=50)

    for _ in range(500):
        t = rng.randint(1, 300) * 60
        low = rng.uniform(1, 100)
        high = low + rng.uniform(0, 5)
        open_ = rng.uniform(low, high)
        close = rng.uniform(low, high)
        state.apply(make_bar(t, open_, high, low, close))

        times = [b.time for b in state.snapshot()]
        assert all(a < b for a, b in zip(times, times[1:]))
        assert len(times) <= 50


def test_snapshot_is_immutable_copy(instrument):
    state = InstrumentState(instrument, max_bars=10)
    snap = state.apply(make_bar(60, 10, 11, 9, 10.5))

    state.apply(make_bar(120, 10.5, 12, 10, 11))

    assert isinstance(snap, tuple)
    assert len(snap) == 1


def test_seed_normalizes_batch(instrument):
    state = InstrumentState(instrument, max_bars=3)
    batch = [
        make_bar(180, 3, 4, 2, 3.5),
        make_bar(60, 1, 2, 0.5, 1.5),
        make_bar(120, 2, 3, 1, 2.5),
        make_bar(120, 2, 3.2, 1, 3.1),  # duplicado: gana la última aparición
        make_bar(240, 4, 3, 5, 4),  # malformada
        make_bar(300, 5, 6, 4, 5.5),
    ]

    series = state.seed(batch)

    assert [b.time for b in series] == [120, 180, 300]
    assert series[0].close == 3.1
    assert state.get_stats()["rejected"] == 1


def test_seed_replaces_existing_series(instrument):
    state = InstrumentState(instrument, max_bars=10)
    state.apply(make_bar(6000, 10, 11, 9, 10))

    series = state.seed([make_bar(60, 1, 2, 0.5, 1.5)])

    assert [b.time for b in series] == [60]
    assert state.apply(make_bar(120, 1.5, 2, 1, 1.8))[-1].time == 120


def test_invalid_cap_raises(instrument):
    with pytest.raises(ValueError):
        InstrumentState(instrument, max_bars=0)


def test_bar_properties():
    bar = make_bar(60, 10, 12, 9, 11)
    assert bar.body == 1
    assert bar.range == 3
    assert bar.is_bullish and not bar.is_bearish
