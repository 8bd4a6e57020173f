"""
Technical Analysis Indicators
=============================
Funciones de utilidad para calcular indicadores técnicos usando pandas.

Todas las series devueltas están alineadas índice a índice con la entrada;
las posiciones sin historial suficiente quedan en NaN.
"""

import math
from typing import Callable, Dict, Iterable, Sequence, Tuple, Union

import numpy as np
import pandas as pd

Prices = Union[pd.Series, Sequence[float]]

NEUTRAL_RSI = 50.0


def _as_series(values: Prices) -> pd.Series:
    if isinstance(values, pd.Series):
        return values.astype("float64")
    return pd.Series(list(values), dtype="float64")


def calculate_ema(series: Prices, period: int) -> pd.Series:
    """
    Calcula la Media Móvil Exponencial (EMA).

    Args:
        series: Serie de precios (típicamente Close)
        period: Periodo de la EMA (ej: 20)

    Returns:
        pd.Series: Serie con valores de EMA (NaN antes de `period` observaciones)
    """
    prices = _as_series(series)
    return prices.ewm(span=period, adjust=False, min_periods=period).mean()


def calculate_sma(series: Prices, period: int) -> pd.Series:
    """
    Calcula la Media Móvil Simple (SMA).

    Args:
        series: Serie de precios
        period: Ventana de la media

    Returns:
        pd.Series: Serie con valores de SMA
    """
    return _as_series(series).rolling(window=period).mean()


def wilder_averages(series: Prices, period: int = 14) -> Tuple[pd.Series, pd.Series]:
    """
    Calcula las medias suavizadas de Wilder de ganancias y pérdidas.

    La semilla (posición `period`) es la media simple de las primeras `period`
    ganancias/pérdidas; a partir de ahí avg = (avg * (period - 1) + actual) / period.

    Args:
        series: Serie de precios de cierre
        period: Periodo del suavizado

    Returns:
        Tuple[pd.Series, pd.Series]: (avg_gain, avg_loss) alineadas con la entrada
    """
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")

    prices = _as_series(series)
    avg_gain = pd.Series(np.nan, index=prices.index)
    avg_loss = pd.Series(np.nan, index=prices.index)

    # Se necesitan period + 1 cierres para tener period cambios
    if len(prices) <= period:
        return avg_gain, avg_loss

    delta = prices.diff()
    gain = delta.clip(lower=0)
    loss = (-delta).clip(lower=0)

    # Sustituir la primera posición suavizable por la semilla SMA:
    # ewm(alpha=1/period, adjust=False) aplica exactamente la recurrencia de Wilder
    gain_tail = gain.iloc[period:].copy()
    loss_tail = loss.iloc[period:].copy()
    gain_tail.iloc[0] = gain.iloc[1:period + 1].mean()
    loss_tail.iloc[0] = loss.iloc[1:period + 1].mean()

    alpha = 1.0 / period
    avg_gain.iloc[period:] = gain_tail.ewm(alpha=alpha, adjust=False).mean().to_numpy()
    avg_loss.iloc[period:] = loss_tail.ewm(alpha=alpha, adjust=False).mean().to_numpy()

    return avg_gain, avg_loss


def calculate_rsi(series: Prices, period: int = 14) -> pd.Series:
    """
    Calcula el Relative Strength Index (RSI) de Wilder.

    Args:
        series: Serie de precios (típicamente Close)
        period: Periodo del RSI (default: 14)

    Returns:
        pd.Series: Serie con valores de RSI (0-100), NaN antes de `period`
    """
    avg_gain, avg_loss = wilder_averages(series, period)

    with np.errstate(divide="ignore", invalid="ignore"):
        rs = avg_gain / avg_loss
        rsi = 100 - (100 / (1 + rs))

    # Manejar división por cero (si avg_loss es 0, RSI es 100)
    rsi = rsi.mask(avg_loss == 0, 100.0)

    return rsi.clip(lower=0.0, upper=100.0)


def latest_rsi(series: Prices, period: int = 14, fallback: float = NEUTRAL_RSI) -> float:
    """
    Último valor definido del RSI, o `fallback` si hay menos de period + 1 cierres.

    Args:
        series: Serie de precios de cierre
        period: Periodo del RSI
        fallback: Valor neutral a devolver sin historial suficiente

    Returns:
        float: RSI más reciente
    """
    return _latest_defined(calculate_rsi(series, period), fallback)


def _latest_defined(values: pd.Series, fallback: float) -> float:
    defined = values.dropna()
    if defined.empty:
        return fallback
    value = float(defined.iloc[-1])
    return value if math.isfinite(value) else fallback


# =============================================================================
# REGISTRO DE INDICADORES
# =============================================================================

INDICATORS: Dict[str, Callable[[Prices, int], pd.Series]] = {
    "rsi": calculate_rsi,
    "ema": calculate_ema,
    "sma": calculate_sma,
}


def latest_indicator_values(
    series: Prices,
    specs: Iterable[Tuple[str, int]]
) -> Dict[str, float]:
    """
    Calcula el último valor de cada indicador configurado.

    Args:
        series: Serie de precios de cierre
        specs: Pares (nombre, periodo), ej: [("rsi", 14), ("ema", 20)]

    Returns:
        Dict[str, float]: {"rsi_14": 55.2, "ema_20": 101.3, ...}; NaN si no hay historial

    Raises:
        KeyError: Si un indicador no está registrado
    """
    prices = _as_series(series)
    values: Dict[str, float] = {}

    for name, period in specs:
        if name not in INDICATORS:
            raise KeyError(f"Unknown indicator '{name}'. Available: {', '.join(INDICATORS)}")
        values[f"{name}_{period}"] = _latest_defined(INDICATORS[name](prices, period), float("nan"))

    return values
