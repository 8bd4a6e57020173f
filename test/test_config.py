"""
Tests de configuración.
"""

import pytest

from config import Config, SUPPORTED_INTERVALS, parse_indicator_specs


def test_parse_indicator_specs():
    assert parse_indicator_specs("rsi:14, ema:20,") == (("rsi", 14), ("ema", 20))
    assert parse_indicator_specs("") == ()


@pytest.mark.parametrize("raw", ["rsi", "rsi:", "ema:abc"])
def test_parse_indicator_specs_rejects_bad_items(raw):
    with pytest.raises(ValueError):
        parse_indicator_specs(raw)


def test_defaults_are_consistent():
    engine = Config.ENGINE

    assert engine.MIN_BARS_FOR_SIGNAL <= engine.MAX_BARS
    assert Config.DEFAULT_INTERVAL in SUPPORTED_INTERVALS
    assert SUPPORTED_INTERVALS["1h"] == 3600


def test_logging_defaults_are_valid():
    from config import LOG_LEVELS

    assert Config.LOGGING.LEVEL in LOG_LEVELS
    assert isinstance(Config.LOGGING.USE_COLORS, bool)
