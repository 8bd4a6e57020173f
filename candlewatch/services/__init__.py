"""
Services package initialization.

MarketMonitor se importa desde `candlewatch.services.market_monitor`
(depende del pipeline de `candlewatch.logic.analysis_service`).
"""

from .instrument_state import ApplyOutcome, InstrumentState
from .bar_loader import bar_from_dict, bar_from_kline, load_bars

__all__ = [
    "ApplyOutcome",
    "InstrumentState",
    "bar_from_dict",
    "bar_from_kline",
    "load_bars",
]
