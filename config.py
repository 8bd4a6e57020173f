"""
Configuration Module - CandleWatch Signal Engine
=================================================
Gestiona la carga de variables de entorno, umbrales de patrones de velas,
parámetros del motor de señales y validación de parámetros críticos.

Author: CandleWatch Team
"""

import os
from typing import Dict, Optional, Tuple
from dataclasses import dataclass
from dotenv import load_dotenv

# Cargar variables de entorno desde .env
load_dotenv()


# =============================================================================
# DATA CLASSES PARA CONFIGURACIÓN ESTRUCTURADA
# =============================================================================

@dataclass(frozen=True)
class CandleConfig:
    """
    Configuración de umbrales para detección de patrones de velas japonesas.

    Los ratios se expresan como fracción del rango total (high - low) de la vela,
    salvo los factores de cuerpo, que se comparan contra el cuerpo promedio móvil.
    """
    # Doji: cuerpo máximo como % del rango total
    DOJI_BODY_RATIO: float = 0.10

    # Martillos / estrellas fugaces
    SMALL_BODY_RATIO: float = 0.30  # Cuerpo pequeño como % del rango
    LONG_WICK_RATIO_MIN: float = 0.60  # Mecha larga mínima
    OPPOSITE_WICK_MAX: float = 0.15  # Mecha opuesta máxima permitida
    WICK_TO_BODY_RATIO: float = 2.0  # Mecha debe ser >= 2x el cuerpo

    # Patrones de 3 velas (Morning / Evening Star)
    AVG_BODY_PERIOD: int = 10  # Velas usadas para el cuerpo promedio
    STAR_BODY_FACTOR: float = 0.5  # Estrella: cuerpo <= 0.5x promedio
    LARGE_BODY_FACTOR: float = 1.0  # Vela grande: cuerpo >= 1.0x promedio


@dataclass(frozen=True)
class EngineConfig:
    """Parámetros del pipeline agregación → patrones → indicadores → señal."""
    MAX_BARS: int = 1000  # Tamaño máximo de la serie de velas
    RSI_PERIOD: int = 14
    PATTERN_WINDOW: int = 8  # Últimos N patrones considerados para la señal
    SCAN_BARS: int = 30  # Velas recientes escaneadas por el detector
    MIN_BARS_FOR_SIGNAL: int = 20  # Mínimo de velas antes de emitir señales
    SEED_LIMIT: int = 500  # Velas históricas usadas como semilla
    INDICATORS: Tuple[Tuple[str, int], ...] = (("rsi", 14),)


@dataclass(frozen=True)
class LoggingConfig:
    """Destino y formato de los logs del motor."""
    LEVEL: str = "INFO"
    FILE: Optional[str] = None  # Sin archivo: solo consola
    USE_COLORS: bool = True  # Códigos ANSI en consola


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off")


def parse_indicator_specs(raw: str) -> Tuple[Tuple[str, int], ...]:
    """
    Convierte "rsi:14,ema:20" en (("rsi", 14), ("ema", 20)).

    Args:
        raw: Especificación separada por comas

    Returns:
        Tuple de pares (nombre, periodo)

    Raises:
        ValueError: Si algún elemento no tiene el formato nombre:periodo
    """
    specs = []
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        name, sep, period = item.partition(":")
        if not sep or not period.strip().isdigit():
            raise ValueError(f"Invalid indicator spec '{item}', expected name:period")
        specs.append((name.strip().lower(), int(period)))
    return tuple(specs)


# Intervalos soportados (nombre → segundos)
SUPPORTED_INTERVALS: Dict[str, int] = {
    "1m": 60,
    "3m": 180,
    "5m": 300,
    "15m": 900,
    "30m": 1800,
    "1h": 3600,
    "2h": 7200,
    "4h": 14400,
    "6h": 21600,
    "12h": 43200,
    "1d": 86400,
}


# =============================================================================
# CONFIGURACIÓN PRINCIPAL
# =============================================================================

class Config:
    """Clase Singleton para acceso global a la configuración."""

    # Configuración de patrones de velas
    CANDLE = CandleConfig()

    # Parámetros del motor de señales
    ENGINE = EngineConfig(
        MAX_BARS=int(os.getenv("MAX_BARS", "1000")),
        RSI_PERIOD=int(os.getenv("RSI_PERIOD", "14")),
        PATTERN_WINDOW=int(os.getenv("PATTERN_WINDOW", "8")),
        SCAN_BARS=int(os.getenv("SCAN_BARS", "30")),
        MIN_BARS_FOR_SIGNAL=int(os.getenv("MIN_BARS_FOR_SIGNAL", "20")),
        SEED_LIMIT=int(os.getenv("SEED_LIMIT", "500")),
        INDICATORS=parse_indicator_specs(os.getenv("INDICATORS", "rsi:14,ema:20")),
    )

    # Instrumento observado por defecto
    DEFAULT_SYMBOL: str = os.getenv("DEFAULT_SYMBOL", "BTCUSDT").upper()
    DEFAULT_INTERVAL: str = os.getenv("DEFAULT_INTERVAL", "1m")

    # Logging (NO_COLOR desactiva los colores aunque LOG_COLORS diga lo contrario)
    LOGGING = LoggingConfig(
        LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        FILE=os.getenv("LOG_FILE") or None,
        USE_COLORS=_env_flag("LOG_COLORS", True) and not os.getenv("NO_COLOR"),
    )

    @classmethod
    def validate_all(cls) -> None:
        """
        Valida toda la configuración crítica antes de iniciar el motor.

        Raises:
            ValueError: Si alguna configuración crítica falta o es inválida
        """
        engine = cls.ENGINE

        if engine.MAX_BARS < 1:
            raise ValueError(f"MAX_BARS must be >= 1, got {engine.MAX_BARS}")

        if engine.RSI_PERIOD < 1:
            raise ValueError(f"RSI_PERIOD must be >= 1, got {engine.RSI_PERIOD}")

        if engine.PATTERN_WINDOW < 1:
            raise ValueError(f"PATTERN_WINDOW must be >= 1, got {engine.PATTERN_WINDOW}")

        if engine.SCAN_BARS < 3:
            raise ValueError(f"SCAN_BARS must be >= 3, got {engine.SCAN_BARS}")

        if engine.MIN_BARS_FOR_SIGNAL > engine.MAX_BARS:
            raise ValueError(
                f"MIN_BARS_FOR_SIGNAL ({engine.MIN_BARS_FOR_SIGNAL}) cannot exceed "
                f"MAX_BARS ({engine.MAX_BARS})"
            )

        if cls.LOGGING.LEVEL not in LOG_LEVELS:
            raise ValueError(
                f"LOG_LEVEL '{cls.LOGGING.LEVEL}' not supported. Valid: {', '.join(LOG_LEVELS)}"
            )

        if cls.DEFAULT_INTERVAL not in SUPPORTED_INTERVALS:
            raise ValueError(
                f"DEFAULT_INTERVAL '{cls.DEFAULT_INTERVAL}' not supported. "
                f"Valid: {', '.join(SUPPORTED_INTERVALS)}"
            )


# =============================================================================
# VALIDACIÓN AL IMPORTAR
# =============================================================================

# Validar configuración automáticamente cuando se importa el módulo
try:
    Config.validate_all()
except ValueError as e:
    # No lanzar excepción aquí para permitir imports de testing
    # La validación se hará explícitamente en main.py
    print(f"⚠️  Configuration Warning: {e}")
