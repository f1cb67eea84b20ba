# fifa_penalty/utils/formatting.py

import math
import unicodedata
from datetime import datetime, timezone
from typing import Any, Optional


def normalize_text(value: Any) -> str:
    """
    Minúsculas y sin acentos, para comparar ligas / equipos / etiquetas
    ("Pénalty" == "penalty").
    """
    text = str(value or "").lower()
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def safe_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def safe_int(value: Any) -> Optional[int]:
    number = safe_float(value)
    if number is None:
        return None
    return int(number)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def format_odd(value: Any, digits: int = 3) -> str:
    """Cuota con `digits` decimales, o "-" si falta o no es numérica."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return "-"
    if not math.isfinite(value):
        return "-"
    return f"{value:.{digits}f}"


def format_line(value: Any) -> str:
    """Línea de mercado: entera sin decimales, el resto con un decimal."""
    number = safe_float(value)
    if number is None:
        return ""
    if number.is_integer():
        return str(int(number))
    return f"{number:.1f}"


def format_kickoff(unix_seconds: Any) -> str:
    ts = safe_float(unix_seconds)
    if not ts:
        return "-"
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%H:%M")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
