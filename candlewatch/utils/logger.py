"""
Centralized Logging Module - CandleWatch
========================================
Sistema de logging centralizado con formato estandarizado,
niveles de severidad y soporte para consola y archivo.

NO usar print() en ningún módulo. Importar logger desde aquí.

Author: CandleWatch Team
"""

import logging
import sys
from pathlib import Path
from typing import Optional


# =============================================================================
# CONFIGURACIÓN DE COLORES PARA CONSOLA (ANSI Codes)
# =============================================================================

class LogColors:
    """Códigos ANSI para colorear logs en terminal."""
    RESET = "\033[0m"
    BOLD = "\033[1m"

    # Niveles
    DEBUG = "\033[36m"      # Cyan
    INFO = "\033[32m"       # Green
    WARNING = "\033[33m"    # Yellow
    ERROR = "\033[31m"      # Red
    CRITICAL = "\033[35m\033[1m"  # Magenta Bold


_BASE_FORMAT = "%(levelname)-8s{reset} | %(asctime)s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# =============================================================================
# FORMATEADORES
# =============================================================================

class ColoredFormatter(logging.Formatter):
    """
    Formateador que añade colores a los logs en consola según el nivel.
    """

    FORMATS = {
        level: color + _BASE_FORMAT.format(reset=LogColors.RESET)
        for level, color in (
            (logging.DEBUG, LogColors.DEBUG),
            (logging.INFO, LogColors.INFO),
            (logging.WARNING, LogColors.WARNING),
            (logging.ERROR, LogColors.ERROR),
            (logging.CRITICAL, LogColors.CRITICAL),
        )
    }

    def format(self, record: logging.LogRecord) -> str:
        """
        Formatea el mensaje de log con colores según el nivel.

        Args:
            record: Registro de log

        Returns:
            str: Mensaje formateado
        """
        log_fmt = self.FORMATS.get(record.levelno, _BASE_FORMAT.format(reset=""))
        formatter = logging.Formatter(log_fmt, datefmt=_DATE_FORMAT)
        return formatter.format(record)


class FileFormatter(logging.Formatter):
    """
    Formateador para archivos sin colores ANSI.
    """

    def __init__(self):
        super().__init__(fmt=_BASE_FORMAT.format(reset=""), datefmt=_DATE_FORMAT)


# =============================================================================
# CONFIGURACIÓN DEL LOGGER
# =============================================================================

def setup_logger(
    name: str,
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    use_colors: Optional[bool] = None
) -> logging.Logger:
    """
    Configura y retorna un logger con formato estandarizado.

    Los argumentos omitidos se toman de Config.LOGGING (LOG_LEVEL, LOG_FILE,
    LOG_COLORS / NO_COLOR).

    Args:
        name: Nombre del módulo (ej: "instrument_state")
        level: Nivel de log (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Ruta opcional del archivo de log
        use_colors: Colorear la salida de consola con códigos ANSI

    Returns:
        logging.Logger: Logger configurado

    Example:
        >>> from candlewatch.utils.logger import setup_logger
        >>> logger = setup_logger(__name__, level="DEBUG", use_colors=False)
        >>> logger.info("Motor iniciado")
    """
    logger = logging.getLogger(name)

    # Evitar duplicar handlers si se llama múltiples veces
    if logger.handlers:
        return logger

    # Importar aquí para evitar dependencia circular
    from config import Config
    defaults = Config.LOGGING
    level = level or defaults.LEVEL
    log_file = log_file or defaults.FILE
    use_colors = defaults.USE_COLORS if use_colors is None else use_colors

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(ColoredFormatter() if use_colors else FileFormatter())
    logger.addHandler(console_handler)

    # Handler para archivo (opcional)
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(FileFormatter())
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger del módulo `name` con la configuración de Config.LOGGING."""
    return setup_logger(name)


# =============================================================================
# FUNCIONES DE UTILIDAD
# =============================================================================

def log_exception(logger: logging.Logger, message: str, exc: Exception) -> None:
    """
    Registra una excepción con contexto completo.

    Args:
        logger: Logger a utilizar
        message: Mensaje descriptivo del error
        exc: Excepción capturada
    """
    logger.error(f"{message}: {type(exc).__name__}: {str(exc)}", exc_info=True)


def log_startup_banner(logger: logging.Logger, version: str = "0.1.0") -> None:
    """
    Registra un banner de inicio con información del sistema.

    Args:
        logger: Logger a utilizar
        version: Versión del motor
    """
    banner = f"""
    ╔══════════════════════════════════════════════════════════════╗
    ║  CandleWatch Signal Engine - v{version:<31}║
    ║  Candlestick Patterns + RSI Advisory Signals                 ║
    ╚══════════════════════════════════════════════════════════════╝
    """
    for line in banner.strip().split('\n'):
        logger.info(line)


def log_shutdown(logger: logging.Logger) -> None:
    """
    Registra el apagado limpio del sistema.

    Args:
        logger: Logger a utilizar
    """
    logger.info("=" * 60)
    logger.info("Graceful shutdown completed. All workers stopped.")
    logger.info("=" * 60)
