"""
Fixtures compartidos para los tests de CandleWatch.
"""

from typing import List

import pytest

from candlewatch.logic.models import Bar, Instrument


def make_bar(time: int, open_: float, high: float, low: float, close: float, volume=None) -> Bar:
    return Bar(time=time, open=open_, high=high, low=low, close=close, volume=volume)


def declining_bars(count: int, start_price: float = 100.0, start_time: int = 60, step: int = 60) -> List[Bar]:
    """
    Velas bajistas encadenadas (cada una abre en el cierre anterior) con
    cuerpo grande: no forman ningún patrón del catálogo.
    """
    bars = []
    price = start_price
    for i in range(count):
        bars.append(make_bar(start_time + i * step, price, price + 0.1, price - 0.6, price - 0.5))
        price -= 0.5
    return bars


def doji_bars(count: int, price: float = 100.0, start_time: int = 60, step: int = 60) -> List[Bar]:
    return [make_bar(start_time + i * step, price, price + 0.5, price - 0.5, price) for i in range(count)]


@pytest.fixture
def instrument() -> Instrument:
    return Instrument("BTCUSDT", "1m")
