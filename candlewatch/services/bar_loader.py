"""
Bar Loader
==========
Normaliza velas crudas del feed (arrays kline estilo Binance o diccionarios)
a objetos Bar, y carga archivos CSV / JSON de velas con pandas.

Formato kline: [open_time_ms, open, high, low, close, volume, close_time_ms, ...]
con precios como strings numéricos.

Author: CandleWatch Team
"""

from pathlib import Path
from typing import Any, List, Mapping, Sequence, Union

import pandas as pd

from candlewatch.logic.models import Bar, MalformedBarError
from candlewatch.utils.logger import get_logger


logger = get_logger(__name__)

BAR_COLUMNS = ["time", "open", "high", "low", "close"]


def _to_float(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise MalformedBarError(f"{name} is not numeric: {value!r}") from e


def bar_from_kline(row: Sequence[Any]) -> Bar:
    """
    Convierte un array kline a Bar (tiempo en segundos).

    Args:
        row: [open_time_ms, open, high, low, close, volume, ...]

    Returns:
        Bar: Vela normalizada (sin validar invariantes OHLC)

    Raises:
        MalformedBarError: Si faltan campos o no son numéricos
    """
    if len(row) < 5:
        raise MalformedBarError(f"Kline row needs at least 5 fields, got {len(row)}")

    has_volume = len(row) > 5 and row[5] is not None and not pd.isna(row[5])
    volume = _to_float(row[5], "volume") if has_volume else None

    return Bar(
        time=int(_to_float(row[0], "open_time")) // 1000,
        open=_to_float(row[1], "open"),
        high=_to_float(row[2], "high"),
        low=_to_float(row[3], "low"),
        close=_to_float(row[4], "close"),
        volume=volume,
    )


def bar_from_dict(data: Mapping[str, Any]) -> Bar:
    """
    Convierte un diccionario {time, open, high, low, close[, volume]} a Bar.

    Args:
        data: Vela en formato diccionario (time en segundos)

    Raises:
        MalformedBarError: Si falta algún campo obligatorio
    """
    missing = [c for c in BAR_COLUMNS if c not in data]
    if missing:
        raise MalformedBarError(f"Missing bar fields: {', '.join(missing)}")

    volume = data.get("volume")
    if volume is not None and pd.isna(volume):
        volume = None

    return Bar(
        time=int(_to_float(data["time"], "time")),
        open=_to_float(data["open"], "open"),
        high=_to_float(data["high"], "high"),
        low=_to_float(data["low"], "low"),
        close=_to_float(data["close"], "close"),
        volume=_to_float(volume, "volume") if volume is not None else None,
    )


def _read_frame(path: Path) -> pd.DataFrame:
    if path.suffix.lower() == ".csv":
        return pd.read_csv(path)
    if path.suffix.lower() == ".json":
        return pd.read_json(path, convert_dates=False)
    raise ValueError(f"Unsupported bar file format '{path.suffix}' (expected .csv or .json)")


def load_bars(path: Union[str, Path]) -> List[Bar]:
    """
    Carga velas desde un archivo CSV o JSON.

    Acepta columnas con nombre (time, open, high, low, close[, volume]) o
    filas kline sin encabezado (JSON array de arrays). Las filas inválidas se
    descartan con un warning.

    Args:
        path: Ruta del archivo

    Returns:
        List[Bar]: Velas en el orden del archivo
    """
    path = Path(path)
    df = _read_frame(path)

    is_kline = not set(BAR_COLUMNS).issubset(df.columns)
    bars: List[Bar] = []
    skipped = 0

    for record in df.itertuples(index=False, name=None):
        try:
            if is_kline:
                bars.append(bar_from_kline(list(record)))
            else:
                bars.append(bar_from_dict(dict(zip(df.columns, record))))
        except MalformedBarError as e:
            skipped += 1
            logger.warning(f"⚠️  {path.name}: fila descartada: {e}")

    logger.info(
        f"📂 {len(bars)} velas cargadas desde {path}"
        + (f" ({skipped} descartadas)" if skipped else "")
    )
    return bars
