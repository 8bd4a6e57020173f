"""
Analysis Service - Pattern Detection & Technical Analysis
==========================================================
Pipeline de un par (símbolo, intervalo):
agregación → detección de patrones + RSI → señal consultiva.

Cada actualización produce un AnalysisResult nuevo y completo; la señal nunca
se modifica incrementalmente.

CRITICAL: Solo emite señales direccionales cuando:
1. La serie tiene suficientes velas (>= MIN_BARS_FOR_SIGNAL)
2. Los patrones recientes tienen una polaridad dominante
3. El RSI no contradice la dirección (BUY < 70, SELL > 30)

Author: CandleWatch Team
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from config import Config
from candlewatch.logic.candle import detect_patterns
from candlewatch.logic.models import Bar, BarSeries, Instrument, PatternMatch, Signal, SignalAction
from candlewatch.logic.signal_classifier import score
from candlewatch.services.instrument_state import ApplyOutcome, InstrumentState
from candlewatch.utils.indicators import NEUTRAL_RSI, latest_indicator_values, latest_rsi
from candlewatch.utils.logger import get_logger


logger = get_logger(__name__)


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass
class AnalysisResult:
    """Salida completa del pipeline para un snapshot de la serie."""
    instrument: Instrument
    bars: BarSeries
    matches: List[PatternMatch]
    signal: Signal
    rsi: float
    indicators: Dict[str, float] = field(default_factory=dict)
    outcome: Optional[ApplyOutcome] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def patterns(self) -> List[str]:
        """Etiquetas de los patrones recientes (para mostrar)."""
        return [m.label for m in self.matches]

    @property
    def last_price(self) -> Optional[float]:
        return self.bars[-1].close if self.bars else None


def insufficient_history_signal(bar_count: int, min_bars: int) -> Signal:
    return Signal(
        action=SignalAction.HOLD,
        confidence=0,
        reasons=[f"insufficient history ({bar_count}/{min_bars} bars)"],
    )


# =============================================================================
# ANALYSIS SERVICE
# =============================================================================

class AnalysisService:
    """
    Servicio de análisis técnico de un instrumento.

    Responsabilidades:
    - Mantener la serie de velas a través de InstrumentState
    - Detectar patrones de velas japonesas en las velas recientes
    - Calcular RSI y los indicadores configurados
    - Clasificar la señal resultante
    """

    def __init__(
        self,
        instrument: Instrument,
        max_bars: Optional[int] = None,
        rsi_period: Optional[int] = None,
        pattern_window: Optional[int] = None,
        scan_bars: Optional[int] = None,
        min_bars: Optional[int] = None,
        indicators: Optional[Iterable[Tuple[str, int]]] = None
    ):
        """
        Inicializa el servicio de análisis. Los parámetros omitidos se toman
        de Config.ENGINE.
        """
        engine = Config.ENGINE
        self.instrument = instrument
        self.state = InstrumentState(instrument, max_bars=max_bars)

        self.rsi_period = rsi_period if rsi_period is not None else engine.RSI_PERIOD
        self.pattern_window = pattern_window if pattern_window is not None else engine.PATTERN_WINDOW
        self.scan_bars = scan_bars if scan_bars is not None else engine.SCAN_BARS
        self.min_bars = min_bars if min_bars is not None else engine.MIN_BARS_FOR_SIGNAL
        self.indicator_specs: Tuple[Tuple[str, int], ...] = tuple(
            indicators if indicators is not None else engine.INDICATORS
        )

        for name in ("rsi_period", "pattern_window", "scan_bars", "min_bars"):
            value = getattr(self, name)
            if value < 1:
                raise ValueError(f"{name} must be >= 1, got {value}")

        self.last_result: Optional[AnalysisResult] = None

        logger.info(
            f"📊 Analysis Service inicializado para {instrument} "
            f"(RSI: {self.rsi_period}, Ventana patrones: {self.pattern_window}, "
            f"Máx velas: {self.state.max_bars})"
        )

    def seed(self, bars: Sequence[Bar]) -> AnalysisResult:
        """
        Carga velas históricas (snapshot inicial) y analiza la serie resultante.

        Args:
            bars: Velas históricas del par
        """
        series = self.state.seed(bars)

        if len(series) < self.min_bars:
            logger.warning(
                f"⚠️  {self.instrument}: Only {len(series)}/{self.min_bars} "
                "bars loaded. Signals stay on HOLD until more data arrives."
            )

        return self._publish(self.analyze(series))

    def process_bar(self, bar: Bar) -> AnalysisResult:
        """
        Procesa una actualización en tiempo real (vela nueva o revisión).

        Una vela atrasada o malformada no cambia la serie; el análisis se
        repite igualmente para que el resultado refleje el estado actual.

        Args:
            bar: Vela recibida del feed
        """
        series = self.state.apply(bar)
        result = self.analyze(series)
        result.outcome = self.state.last_outcome

        if self.state.last_outcome is ApplyOutcome.REJECTED:
            result.warnings.append(f"Rejected malformed bar: {self.state.last_error}")

        return self._publish(result)

    def analyze(self, series: BarSeries) -> AnalysisResult:
        """
        Ejecuta detección de patrones, indicadores y clasificación sobre un snapshot.
        Función pura respecto de `series`.

        Args:
            series: Snapshot inmutable de velas

        Returns:
            AnalysisResult: Resultado completo
        """
        if len(series) < self.min_bars:
            return AnalysisResult(
                instrument=self.instrument,
                bars=series,
                matches=[],
                signal=insufficient_history_signal(len(series), self.min_bars),
                rsi=NEUTRAL_RSI,
            )

        matches = detect_patterns(series, scan_bars=self.scan_bars)
        recent = matches[-self.pattern_window:]

        closes = [bar.close for bar in series]
        rsi = latest_rsi(closes, self.rsi_period)
        indicators = latest_indicator_values(closes, self.indicator_specs)

        return AnalysisResult(
            instrument=self.instrument,
            bars=series,
            matches=recent,
            signal=score(recent, rsi),
            rsi=rsi,
            indicators=indicators,
        )

    def _publish(self, result: AnalysisResult) -> AnalysisResult:
        previous = self.last_result.signal if self.last_result else None
        self.last_result = result

        if previous is None or previous.action != result.signal.action:
            logger.info(
                f"🎯 {self.instrument} | Señal: {result.signal} | "
                f"RSI={result.rsi:.1f} | Patrones: {', '.join(result.patterns) or '-'}"
            )
        else:
            logger.debug(f"{self.instrument} | Señal sin cambios: {result.signal}")

        return result

    def get_buffer_status(self) -> Dict[str, int]:
        """
        Obtiene el estado de la serie de velas.

        Returns:
            Dict con contadores de InstrumentState
        """
        return self.state.get_stats()
