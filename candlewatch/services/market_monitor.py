"""
Market Monitor
==============
Orquesta un pipeline independiente por cada par (símbolo, intervalo) observado.

Cada par tiene su propio AnalysisService, una cola asyncio y un único worker
que aplica las actualizaciones en el orden de llegada (single writer). Varios
productores pueden llamar a `push()`; nunca hay dos escritores sobre la misma
serie.

Dejar de observar un par cancela su worker y descarta su estado; las
actualizaciones que lleguen después para ese par se ignoran.

Author: CandleWatch Team
"""

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence

from candlewatch.logic.analysis_service import AnalysisResult, AnalysisService
from candlewatch.logic.models import Bar, Instrument
from candlewatch.utils.logger import get_logger, log_exception


logger = get_logger(__name__)

ResultCallback = Callable[[AnalysisResult], Any]


@dataclass
class _Subscription:
    """Estado vivo de un par observado."""
    service: AnalysisService
    queue: "asyncio.Queue[Bar]"
    task: "asyncio.Task[None]"


class MarketMonitor:
    """
    Gestor de pares observados.

    Responsabilidades:
    - Inicializar cada par con su lote histórico
    - Serializar las actualizaciones de cada par en un único worker
    - Entregar cada AnalysisResult al callback `on_result` (sync o async)
    - Cancelar limpiamente los pares que se dejan de observar
    """

    def __init__(
        self,
        on_result: Optional[ResultCallback] = None,
        **service_options: Any
    ):
        """
        Args:
            on_result: Callback invocado con cada resultado del pipeline
            service_options: Parámetros reenviados a cada AnalysisService
                (max_bars, rsi_period, pattern_window, scan_bars, min_bars, indicators)
        """
        self.on_result = on_result
        self.service_options = service_options
        self._subscriptions: Dict[Instrument, _Subscription] = {}
        self.dropped_updates = 0

    @property
    def instruments(self) -> Sequence[Instrument]:
        return list(self._subscriptions)

    def get_service(self, symbol: str, interval: str) -> Optional[AnalysisService]:
        sub = self._subscriptions.get(Instrument(symbol, interval))
        return sub.service if sub else None

    def latest(self, symbol: str, interval: str) -> Optional[AnalysisResult]:
        """Último resultado del par, o None si no está observado."""
        service = self.get_service(symbol, interval)
        return service.last_result if service else None

    async def watch(self, symbol: str, interval: str, seed: Sequence[Bar] = ()) -> AnalysisResult:
        """
        Empieza a observar un par. Si ya estaba observado se reinicia desde cero.

        Args:
            symbol: Ticker en mayúsculas (ej: "BTCUSDT")
            interval: Intervalo soportado (ej: "1m")
            seed: Velas históricas iniciales

        Returns:
            AnalysisResult: Resultado del análisis del lote histórico

        Raises:
            ValueError: Si el símbolo o el intervalo no son válidos
        """
        instrument = Instrument(symbol, interval)

        if instrument in self._subscriptions:
            await self.unwatch(symbol, interval)

        service = AnalysisService(instrument, **self.service_options)
        result = service.seed(seed)

        queue: "asyncio.Queue[Bar]" = asyncio.Queue()
        task = asyncio.create_task(self._worker(service, queue), name=f"monitor-{instrument.key}")
        self._subscriptions[instrument] = _Subscription(service=service, queue=queue, task=task)

        logger.info(f"👀 Observando {instrument} ({len(result.bars)} velas iniciales)")
        await self._emit(result)
        return result

    async def unwatch(self, symbol: str, interval: str) -> None:
        """
        Deja de observar un par: cancela su worker y descarta su estado.
        Las actualizaciones pendientes en cola se pierden.
        """
        instrument = Instrument(symbol, interval)
        sub = self._subscriptions.pop(instrument, None)
        if sub is None:
            return

        sub.task.cancel()
        try:
            await sub.task
        except asyncio.CancelledError:
            pass

        # Liberar cualquier drain() pendiente sobre esta cola
        discarded = 0
        while True:
            try:
                sub.queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            sub.queue.task_done()
            discarded += 1

        logger.info(f"🛑 {instrument} ya no se observa ({discarded} actualizaciones descartadas)")

    async def switch(
        self,
        old: Optional[Instrument],
        symbol: str,
        interval: str,
        seed: Sequence[Bar] = ()
    ) -> AnalysisResult:
        """
        Cambia el par observado: cancela `old` (si existe) y observa el nuevo.
        """
        if old is not None:
            await self.unwatch(old.symbol, old.interval)
        return await self.watch(symbol, interval, seed)

    async def push(self, symbol: str, interval: str, bar: Bar) -> bool:
        """
        Encola una actualización para el par.

        Returns:
            bool: False si el par no está observado (la actualización se descarta)
        """
        sub = self._subscriptions.get(Instrument(symbol, interval))
        if sub is None:
            self.dropped_updates += 1
            logger.debug(f"{symbol}@{interval} no observado, actualización descartada (t={bar.time})")
            return False

        await sub.queue.put(bar)
        return True

    async def drain(self, symbol: str, interval: str) -> None:
        """Espera a que el worker del par procese todas las actualizaciones encoladas."""
        sub = self._subscriptions.get(Instrument(symbol, interval))
        if sub is not None:
            await sub.queue.join()

    async def stop(self) -> None:
        """Cancela todos los workers."""
        for instrument in list(self._subscriptions):
            await self.unwatch(instrument.symbol, instrument.interval)

    async def _worker(self, service: AnalysisService, queue: "asyncio.Queue[Bar]") -> None:
        while True:
            bar = await queue.get()
            try:
                result = service.process_bar(bar)
                await self._emit(result)
            except Exception as e:
                log_exception(logger, f"Error procesando vela de {service.instrument}", e)
            finally:
                queue.task_done()

    async def _emit(self, result: AnalysisResult) -> None:
        if self.on_result is None:
            return
        try:
            outcome = self.on_result(result)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            log_exception(logger, f"Callback on_result falló para {result.instrument}", e)
