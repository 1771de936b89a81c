# backend/app/utils/parsing.py
import math
import re
from typing import Any, Optional

# Ведущее число в строке: "5abc" -> 5, "abc" -> None
_INT_PREFIX = re.compile(r"^\s*[+-]?\d+")
_FLOAT_PREFIX = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_int(value: Any) -> Optional[int]:
    """Мягкое приведение к int. None означает "не число"."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _INT_PREFIX.match(str(value))
    return int(match.group()) if match else None


def parse_float(value: Any) -> Optional[float]:
    """Мягкое приведение к float. None означает "не число"."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    match = _FLOAT_PREFIX.match(str(value))
    return float(match.group()) if match else None
