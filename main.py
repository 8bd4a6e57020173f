"""
CandleWatch - Main Entry Point
==============================
Reproduce un archivo de velas a través del motor de señales:
- Las primeras `--seed` velas inicializan la serie del par
- El resto se envía una a una como actualizaciones en vivo
- Cada resultado (acción, confianza, patrones recientes) se registra en el log

Uso:
    python main.py data/btcusdt_1m.csv --symbol BTCUSDT --interval 1m

Author: CandleWatch Team
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from config import Config, SUPPORTED_INTERVALS
from candlewatch import __version__
from candlewatch.logic.analysis_service import AnalysisResult
from candlewatch.logic.models import Bar
from candlewatch.services import load_bars
from candlewatch.services.market_monitor import MarketMonitor
from candlewatch.utils.logger import get_logger, log_startup_banner, log_shutdown


logger = get_logger(__name__)


# =============================================================================
# ORCHESTRATOR
# =============================================================================

class ReplayRunner:
    """
    Orquestador de la reproducción de un archivo de velas.

    Responsabilidades:
    - Cargar y dividir las velas en semilla / actualizaciones
    - Alimentar el MarketMonitor en orden
    - Resumir el estado final
    """

    def __init__(self, symbol: str, interval: str, seed_size: int):
        self.symbol = symbol
        self.interval = interval
        self.seed_size = seed_size
        self.monitor = MarketMonitor(on_result=self._handle_result)
        self.results_seen = 0

    def _handle_result(self, result: AnalysisResult) -> None:
        self.results_seen += 1
        last = result.bars[-1] if result.bars else None
        logger.debug(
            f"{result.instrument} | t={last.time if last else '-'} | "
            f"close={result.last_price} | {result.signal} | "
            f"{' · '.join(result.signal.reasons)}"
        )

    async def run(self, bars: List[Bar]) -> Optional[AnalysisResult]:
        seed, updates = bars[:self.seed_size], bars[self.seed_size:]

        logger.info(f"🚀 Replay {self.symbol}@{self.interval}: {len(seed)} seed, {len(updates)} updates")
        await self.monitor.watch(self.symbol, self.interval, seed)

        for bar in updates:
            await self.monitor.push(self.symbol, self.interval, bar)
        await self.monitor.drain(self.symbol, self.interval)

        result = self.monitor.latest(self.symbol, self.interval)
        service = self.monitor.get_service(self.symbol, self.interval)
        if result is not None and service is not None:
            logger.info(f"📈 Señal final: {result.signal} | RSI={result.rsi:.1f}")
            for reason in result.signal.reasons:
                logger.info(f"   • {reason}")
            logger.info(f"🕯️ Patrones recientes: {', '.join(result.patterns) or 'ninguno'}")
            logger.info(f"📊 Estado de la serie: {service.get_buffer_status()}")

        await self.monitor.stop()
        return result


# =============================================================================
# ENTRY POINT
# =============================================================================

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay a bar file through the CandleWatch signal engine")
    parser.add_argument("file", help="CSV or JSON file with bars (named columns or kline arrays)")
    parser.add_argument("--symbol", default=Config.DEFAULT_SYMBOL, help="Uppercase ticker (default: %(default)s)")
    parser.add_argument("--interval", default=Config.DEFAULT_INTERVAL, choices=list(SUPPORTED_INTERVALS))
    parser.add_argument(
        "--seed",
        type=int,
        default=Config.ENGINE.SEED_LIMIT,
        help="Number of leading bars used as history (default: %(default)s)"
    )
    return parser.parse_args(argv)


async def main(argv: Optional[List[str]] = None) -> None:
    """
    Función principal asíncrona.
    """
    args = parse_args(argv)

    log_startup_banner(logger, version=__version__)

    try:
        Config.validate_all()
        logger.info("✅ Configuration validated")
    except ValueError as e:
        logger.critical(f"❌ Configuration error: {e}")
        sys.exit(1)

    bars = load_bars(args.file)
    runner = ReplayRunner(args.symbol.upper(), args.interval, max(0, args.seed))

    try:
        await runner.run(bars)
    finally:
        log_shutdown(logger)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logger.critical(f"❌ Fatal error in main: {e}", exc_info=True)
        sys.exit(1)
