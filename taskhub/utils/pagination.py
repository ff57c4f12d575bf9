# taskhub/utils/pagination.py
from typing import Any, Optional


def parse_positive_int(value: Any, default: int, maximum: Optional[int] = None) -> int:
    """Lenient query-string integer: anything unparsable or below 1 falls back to the default"""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number < 1:
        return default
    if maximum is not None:
        return min(number, maximum)
    return number
