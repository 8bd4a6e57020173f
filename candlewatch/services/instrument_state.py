"""
Instrument State Management
============================
Bar aggregator for a single (symbol, interval) pair. Owns the bounded,
ordered bar series and is its only mutation surface.

Reglas de actualización:
- Serie vacía o time > última vela  → se agrega como vela nueva
- time == última vela               → revisión de la vela abierta (reemplazo completo)
- time <  última vela               → mensaje atrasado, se descarta
- Vela malformada                   → se rechaza, la serie no cambia

Author: CandleWatch Team
"""

from collections import deque
from enum import Enum
from typing import Deque, Dict, Iterable, List, Optional

from config import Config
from candlewatch.logic.models import Bar, BarSeries, Instrument, MalformedBarError, validate_bar
from candlewatch.utils.logger import get_logger


logger = get_logger(__name__)


class ApplyOutcome(Enum):
    APPENDED = "APPENDED"
    REVISED = "REVISED"
    STALE = "STALE"
    REJECTED = "REJECTED"


class InstrumentState:
    """
    Estado de velas de un instrumento individual.

    Las etapas posteriores nunca reciben el deque interno: `snapshot()` y
    `apply()` devuelven una tupla inmutable.
    """

    def __init__(self, instrument: Instrument, max_bars: Optional[int] = None):
        """
        Args:
            instrument: Par (símbolo, intervalo) observado
            max_bars: Tamaño máximo de la serie (default: Config.ENGINE.MAX_BARS)
        """
        self.instrument = instrument
        self.max_bars = max_bars if max_bars is not None else Config.ENGINE.MAX_BARS
        if self.max_bars < 1:
            raise ValueError(f"max_bars must be >= 1, got {self.max_bars}")

        self._bars: Deque[Bar] = deque(maxlen=self.max_bars)
        self.last_outcome: Optional[ApplyOutcome] = None
        self.last_error: Optional[str] = None

        # Contadores para observabilidad
        self._stats: Dict[str, int] = {
            "appended": 0,
            "revised": 0,
            "stale": 0,
            "rejected": 0,
        }

    def __len__(self) -> int:
        return len(self._bars)

    @property
    def last_bar(self) -> Optional[Bar]:
        """Obtiene la última vela (abierta o cerrada)."""
        return self._bars[-1] if self._bars else None

    def snapshot(self) -> BarSeries:
        """Copia inmutable de la serie actual."""
        return tuple(self._bars)

    def apply(self, update: Bar) -> BarSeries:
        """
        Aplica una actualización de vela a la serie.

        Args:
            update: Vela nueva o revisión de la vela abierta

        Returns:
            BarSeries: Snapshot de la serie tras la actualización
        """
        try:
            validate_bar(update)
        except MalformedBarError as e:
            self._stats["rejected"] += 1
            self.last_outcome = ApplyOutcome.REJECTED
            self.last_error = str(e)
            logger.warning(f"⚠️  {self.instrument} | Vela malformada descartada: {e}")
            return self.snapshot()

        self.last_error = None
        last = self.last_bar

        if last is None or update.time > last.time:
            # deque(maxlen) descarta la vela más antigua al superar el límite
            self._bars.append(update)
            self._stats["appended"] += 1
            self.last_outcome = ApplyOutcome.APPENDED
        elif update.time == last.time:
            self._bars[-1] = update
            self._stats["revised"] += 1
            self.last_outcome = ApplyOutcome.REVISED
        else:
            self._stats["stale"] += 1
            self.last_outcome = ApplyOutcome.STALE
            logger.debug(
                f"{self.instrument} | Vela atrasada descartada "
                f"(t={update.time} < último t={last.time})"
            )

        return self.snapshot()

    def seed(self, bars: Iterable[Bar]) -> BarSeries:
        """
        Reemplaza toda la serie con un lote histórico.

        El lote se normaliza: se descartan velas malformadas, se ordena por
        tiempo, se eliminan duplicados (gana la última aparición) y se
        recorta a las `max_bars` más recientes.

        Args:
            bars: Velas históricas

        Returns:
            BarSeries: Snapshot de la serie inicial
        """
        by_time: Dict[int, Bar] = {}
        rejected = 0

        for bar in bars:
            try:
                validate_bar(bar)
            except MalformedBarError as e:
                rejected += 1
                logger.warning(f"⚠️  {self.instrument} | Vela histórica malformada descartada: {e}")
                continue
            by_time[bar.time] = bar

        ordered: List[Bar] = [by_time[t] for t in sorted(by_time)]

        self._bars = deque(ordered[-self.max_bars:], maxlen=self.max_bars)
        self._stats["rejected"] += rejected
        self.last_outcome = None
        self.last_error = None

        logger.info(
            f"📥 {self.instrument} | Serie inicializada con {len(self._bars)} velas históricas"
            + (f" ({rejected} descartadas)" if rejected else "")
        )
        return self.snapshot()

    def get_stats(self) -> Dict[str, int]:
        """
        Obtiene contadores de actualizaciones procesadas.

        Returns:
            Dict con appended, revised, stale, rejected y size
        """
        return {**self._stats, "size": len(self._bars)}
