"""
Domain Models - CandleWatch
===========================
Entidades compartidas por todo el pipeline:
- Bar: vela OHLC inmutable con validación de invariantes
- Instrument: par (símbolo, intervalo) observado
- PatternMatch / Polarity: resultado del detector de patrones
- Signal / SignalAction: señal de trading consultiva

Author: CandleWatch Team
"""

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from config import SUPPORTED_INTERVALS


SYMBOL_PATTERN = re.compile(r"^[A-Z0-9]+$")


class MalformedBarError(ValueError):
    """La vela viola los invariantes OHLC (valores no finitos, low > high, etc.)."""


# =============================================================================
# BAR
# =============================================================================

@dataclass(frozen=True)
class Bar:
    """Vela OHLC de un intervalo. `time` es el inicio del intervalo (epoch en segundos)."""
    time: int
    open: float
    high: float
    low: float
    close: float
    volume: Optional[float] = None

    @property
    def body(self) -> float:
        return abs(self.close - self.open)

    @property
    def range(self) -> float:
        return self.high - self.low

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        return self.close < self.open


def validate_bar(bar: Bar) -> Bar:
    """
    Verifica los invariantes de una vela.

    Args:
        bar: Vela a validar

    Returns:
        Bar: La misma vela si es válida

    Raises:
        MalformedBarError: Si algún campo viola los invariantes
    """
    if isinstance(bar.time, bool) or not isinstance(bar.time, int):
        raise MalformedBarError(f"Bar time must be an integer, got {bar.time!r}")
    if bar.time < 0:
        raise MalformedBarError(f"Bar time must be non-negative, got {bar.time}")

    prices = {"open": bar.open, "high": bar.high, "low": bar.low, "close": bar.close}
    for name, value in prices.items():
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            raise MalformedBarError(f"{name} must be a number, got {value!r}")
        if not math.isfinite(value):
            raise MalformedBarError(f"{name} is not finite ({value}) at t={bar.time}")
        if value < 0:
            raise MalformedBarError(f"{name} is negative ({value}) at t={bar.time}")

    if bar.low > bar.high:
        raise MalformedBarError(f"low ({bar.low}) > high ({bar.high}) at t={bar.time}")
    if bar.low > min(bar.open, bar.close) or max(bar.open, bar.close) > bar.high:
        raise MalformedBarError(
            f"open/close outside [low, high] at t={bar.time}: "
            f"O={bar.open} H={bar.high} L={bar.low} C={bar.close}"
        )

    if bar.volume is not None:
        if not isinstance(bar.volume, (int, float)) or not math.isfinite(bar.volume) or bar.volume < 0:
            raise MalformedBarError(f"volume must be finite and >= 0, got {bar.volume}")

    return bar


# Serie de velas inmutable entregada a las etapas posteriores
BarSeries = Tuple[Bar, ...]


# =============================================================================
# INSTRUMENT
# =============================================================================

@dataclass(frozen=True)
class Instrument:
    """Par (símbolo, intervalo) observado."""
    symbol: str
    interval: str

    def __post_init__(self) -> None:
        if not SYMBOL_PATTERN.match(self.symbol or ""):
            raise ValueError(f"Symbol must be uppercase alphanumeric, got '{self.symbol}'")
        if self.interval not in SUPPORTED_INTERVALS:
            raise ValueError(
                f"Unsupported interval '{self.interval}'. "
                f"Valid: {', '.join(SUPPORTED_INTERVALS)}"
            )

    @property
    def key(self) -> str:
        return f"{self.symbol}_{self.interval}"

    def __str__(self) -> str:
        return f"{self.symbol}@{self.interval}"


# =============================================================================
# PATTERNS & SIGNALS
# =============================================================================

class Polarity(Enum):
    BULLISH = "Bullish"
    BEARISH = "Bearish"
    NEUTRAL = "Neutral"


@dataclass(frozen=True)
class PatternMatch:
    """Patrón detectado en la vela `at_index` de la serie analizada."""
    pattern: str  # "BULLISH_ENGULFING", "HAMMER", "DOJI", ...
    label: str  # "Bullish Engulfing", "Bullish Hammer", "Doji", ...
    polarity: Polarity
    at_index: int


class SignalAction(Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


@dataclass(frozen=True)
class Signal:
    """Señal consultiva. Se reconstruye completa en cada análisis, nunca se muta."""
    action: SignalAction
    confidence: int  # 0..100
    reasons: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"{self.action.value} ({self.confidence}%)"
