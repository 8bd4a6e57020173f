"""
Candle Pattern Detection - Mathematical Logic
==============================================
Módulo que implementa la detección matemática de patrones de velas japonesas
sobre la serie reciente de velas.

Patrones implementados:
1. Bullish / Bearish Engulfing (Envolvente) - 2 velas
2. Hammer (Martillo) - Reversión alcista, 1 vela
3. Shooting Star (Estrella Fugaz) - Reversión bajista, 1 vela
4. Doji - Indecisión (neutral), 1 vela
5. Morning Star / Evening Star (Estrella de la Mañana / Tarde) - 3 velas

Las funciones `is_*` retornan una tupla (is_pattern: bool, motivo: str) para
poder diagnosticar por qué una vela no cumple el patrón.

Author: CandleWatch Team
"""

from typing import Callable, List, Optional, Sequence, Tuple

from config import Config
from candlewatch.logic.models import Bar, PatternMatch, Polarity


def _calculate_candle_metrics(bar: Bar) -> Tuple[float, float, float, float, float]:
    """
    Calcula las métricas básicas de una vela.

    Args:
        bar: Vela a medir

    Returns:
        Tuple con (total_range, body_size, upper_wick, lower_wick, body_ratio)
    """
    total_range = bar.high - bar.low

    # Evitar división por cero
    if total_range == 0:
        return 0.0, 0.0, 0.0, 0.0, 0.0

    body_size = abs(bar.close - bar.open)
    body_ratio = body_size / total_range

    upper_wick = bar.high - max(bar.open, bar.close)
    lower_wick = min(bar.open, bar.close) - bar.low

    return total_range, body_size, upper_wick, lower_wick, body_ratio


def _average_body(bars: Sequence[Bar], index: int) -> float:
    """Cuerpo promedio de las últimas AVG_BODY_PERIOD velas que terminan en `index`."""
    start = max(0, index - Config.CANDLE.AVG_BODY_PERIOD + 1)
    window = bars[start:index + 1]
    return sum(b.body for b in window) / len(window)


def _body_midpoint(bar: Bar) -> float:
    return (bar.open + bar.close) / 2.0


# =============================================================================
# PATRONES DE 1 VELA
# =============================================================================

def is_doji(bar: Bar) -> Tuple[bool, str]:
    """
    Detecta el patrón Doji.

    CARACTERÍSTICAS MATEMÁTICAS:
    - Cuerpo <= 10% del rango total
    - Vela sin rango (high == low) se considera Doji

    Args:
        bar: Vela a evaluar

    Returns:
        Tuple[bool, str]: (es_doji, motivo_rechazo)
    """
    total_range, _, _, _, body_ratio = _calculate_candle_metrics(bar)

    if total_range == 0:
        return True, "Vela sin rango (high == low)"

    if body_ratio <= Config.CANDLE.DOJI_BODY_RATIO:
        return True, "Patrón válido"

    return False, f"Cuerpo demasiado grande ({body_ratio*100:.1f}%, necesita ≤{Config.CANDLE.DOJI_BODY_RATIO*100:.0f}%)"


def _has_long_wick_shape(bar: Bar, long_side: str) -> Tuple[bool, str]:
    """
    Evalúa la geometría compartida por Hammer (mecha inferior) y
    Shooting Star (mecha superior).

    CARACTERÍSTICAS MATEMÁTICAS:
    - Mecha larga >= 60% del rango total
    - Cuerpo pequeño <= 30% del rango total
    - Mecha opuesta <= 15% del rango total
    - Mecha larga >= 2x el tamaño del cuerpo
    """
    total_range, body_size, upper_wick, lower_wick, body_ratio = _calculate_candle_metrics(bar)

    if total_range == 0:
        return False, "Vela sin rango (high == low)"

    if long_side == "lower":
        long_wick, opposite_wick, wick_name = lower_wick, upper_wick, "inferior"
    else:
        long_wick, opposite_wick, wick_name = upper_wick, lower_wick, "superior"

    long_wick_ratio = long_wick / total_range
    opposite_wick_ratio = opposite_wick / total_range

    has_long_wick = long_wick_ratio >= Config.CANDLE.LONG_WICK_RATIO_MIN
    has_small_body = body_ratio <= Config.CANDLE.SMALL_BODY_RATIO
    has_small_opposite = opposite_wick_ratio <= Config.CANDLE.OPPOSITE_WICK_MAX
    wick_to_body = (long_wick / body_size) >= Config.CANDLE.WICK_TO_BODY_RATIO if body_size > 0 else False

    reasons = []
    if not has_long_wick:
        reasons.append(f"Mecha {wick_name} muy corta ({long_wick_ratio*100:.1f}%, necesita ≥60%)")
    if not has_small_body:
        reasons.append(f"Cuerpo demasiado grande ({body_ratio*100:.1f}%, necesita ≤30%)")
    if not has_small_opposite:
        reasons.append(f"Mecha opuesta muy larga ({opposite_wick_ratio*100:.1f}%, necesita ≤15%)")
    if not wick_to_body:
        ratio = (long_wick / body_size) if body_size > 0 else 0
        reasons.append(f"Mecha {wick_name}/cuerpo insuficiente ({ratio:.1f}x, necesita ≥2x)")

    if reasons:
        return False, " | ".join(reasons)

    return True, "Patrón válido"


def is_hammer(bar: Bar) -> Tuple[bool, str]:
    """
    Detecta el patrón Hammer (Martillo).

    Cuerpo pequeño en la parte superior del rango con mecha inferior larga.
    Indica rechazo fuerte de precios bajos por parte de compradores.

    Args:
        bar: Vela a evaluar

    Returns:
        Tuple[bool, str]: (es_hammer, motivo_rechazo)
    """
    return _has_long_wick_shape(bar, "lower")


def is_shooting_star(bar: Bar) -> Tuple[bool, str]:
    """
    Detecta el patrón Shooting Star (Estrella Fugaz).

    Cuerpo pequeño en la parte inferior del rango con mecha superior larga.
    Indica rechazo de precios altos.

    Args:
        bar: Vela a evaluar

    Returns:
        Tuple[bool, str]: (es_shooting_star, motivo_rechazo)
    """
    return _has_long_wick_shape(bar, "upper")


# =============================================================================
# PATRONES DE 2 Y 3 VELAS
# =============================================================================

def is_bullish_engulfing(prev: Bar, current: Bar) -> bool:
    """Vela bajista seguida de una alcista cuyo cuerpo envuelve por completo al anterior."""
    return (
        prev.is_bearish
        and current.is_bullish
        and current.open <= prev.close
        and current.close >= prev.open
    )


def is_bearish_engulfing(prev: Bar, current: Bar) -> bool:
    """Vela alcista seguida de una bajista cuyo cuerpo envuelve por completo al anterior."""
    return (
        prev.is_bullish
        and current.is_bearish
        and current.open >= prev.close
        and current.close <= prev.open
    )


def is_morning_star(first: Bar, star: Bar, third: Bar, avg_body: float) -> bool:
    """
    Detecta el patrón Morning Star (Estrella de la Mañana).

    CARACTERÍSTICAS:
    - Primera vela bajista grande (cuerpo >= promedio)
    - Estrella con cuerpo pequeño (<= 0.5x promedio) situada por debajo
      del punto medio del cuerpo de la primera
    - Tercera vela alcista grande que cierra por encima de ese punto medio
    """
    midpoint = _body_midpoint(first)
    return (
        first.is_bearish
        and first.body >= avg_body * Config.CANDLE.LARGE_BODY_FACTOR
        and star.body <= avg_body * Config.CANDLE.STAR_BODY_FACTOR
        and max(star.open, star.close) <= midpoint
        and third.is_bullish
        and third.body >= avg_body * Config.CANDLE.LARGE_BODY_FACTOR
        and third.close > midpoint
    )


def is_evening_star(first: Bar, star: Bar, third: Bar, avg_body: float) -> bool:
    """
    Detecta el patrón Evening Star (Estrella de la Tarde). Espejo de Morning Star.
    """
    midpoint = _body_midpoint(first)
    return (
        first.is_bullish
        and first.body >= avg_body * Config.CANDLE.LARGE_BODY_FACTOR
        and star.body <= avg_body * Config.CANDLE.STAR_BODY_FACTOR
        and min(star.open, star.close) >= midpoint
        and third.is_bearish
        and third.body >= avg_body * Config.CANDLE.LARGE_BODY_FACTOR
        and third.close < midpoint
    )


# =============================================================================
# CATÁLOGO Y ESCANEO
# =============================================================================

# (clave, etiqueta, polaridad, velas requeridas, evaluador(bars, i) -> bool)
PatternRule = Tuple[str, str, Polarity, int, Callable[[Sequence[Bar], int], bool]]

PATTERN_CATALOG: List[PatternRule] = [
    ("BULLISH_ENGULFING", "Bullish Engulfing", Polarity.BULLISH, 2,
     lambda bars, i: is_bullish_engulfing(bars[i - 1], bars[i])),
    ("BEARISH_ENGULFING", "Bearish Engulfing", Polarity.BEARISH, 2,
     lambda bars, i: is_bearish_engulfing(bars[i - 1], bars[i])),
    ("HAMMER", "Bullish Hammer", Polarity.BULLISH, 1,
     lambda bars, i: is_hammer(bars[i])[0]),
    ("SHOOTING_STAR", "Bearish Shooting Star", Polarity.BEARISH, 1,
     lambda bars, i: is_shooting_star(bars[i])[0]),
    ("DOJI", "Doji", Polarity.NEUTRAL, 1,
     lambda bars, i: is_doji(bars[i])[0]),
    ("MORNING_STAR", "Bullish Morning Star", Polarity.BULLISH, 3,
     lambda bars, i: is_morning_star(bars[i - 2], bars[i - 1], bars[i], _average_body(bars, i))),
    ("EVENING_STAR", "Bearish Evening Star", Polarity.BEARISH, 3,
     lambda bars, i: is_evening_star(bars[i - 2], bars[i - 1], bars[i], _average_body(bars, i))),
]


def detect_patterns(bars: Sequence[Bar], scan_bars: Optional[int] = None) -> List[PatternMatch]:
    """
    Escanea las velas más recientes buscando los patrones del catálogo.

    El orden de salida es el orden de escaneo: índice ascendente y, dentro de
    un mismo índice, el orden del catálogo. Los índices de `at_index` son
    relativos a `bars` completo.

    Args:
        bars: Serie de velas ordenada por tiempo ascendente
        scan_bars: Número de velas finales a evaluar (default: Config.ENGINE.SCAN_BARS)

    Returns:
        List[PatternMatch]: Patrones encontrados
    """
    if scan_bars is None:
        scan_bars = Config.ENGINE.SCAN_BARS

    matches: List[PatternMatch] = []
    start = max(0, len(bars) - scan_bars)

    for i in range(start, len(bars)):
        for key, label, polarity, lookback, rule in PATTERN_CATALOG:
            # Sin suficiente historial para este patrón
            if i + 1 < lookback:
                continue
            if rule(bars, i):
                matches.append(PatternMatch(pattern=key, label=label, polarity=polarity, at_index=i))

    return matches
