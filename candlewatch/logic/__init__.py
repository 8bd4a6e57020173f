"""
Business Logic Layer - CandleWatch
==================================
Contiene la lógica de negocio central del sistema:
- Modelos de dominio (Bar, PatternMatch, Signal)
- Detección de patrones de velas japonesas
- Clasificación de señales (patrones + RSI)

El pipeline completo vive en `candlewatch.logic.analysis_service`.
Esta capa es independiente de los servicios de infraestructura.
"""

from .models import Bar, Instrument, MalformedBarError, PatternMatch, Polarity, Signal, SignalAction
from .candle import detect_patterns
from .signal_classifier import score, score_counts

__all__ = [
    "Bar",
    "Instrument",
    "MalformedBarError",
    "PatternMatch",
    "Polarity",
    "Signal",
    "SignalAction",
    "detect_patterns",
    "score",
    "score_counts",
]
