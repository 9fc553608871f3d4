"""
Input normalization helpers shared by the service layer.
"""
import math
import re
from typing import Any, Optional, Tuple

from core.exceptions import ValidationError
import config

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_leading_int(value: Any) -> Optional[int]:
    """
    Parse the leading integer of a value, the way form input is usually read.

    "3" -> 3, " 4th" -> 4, 5 -> 5. Missing or non-numeric input returns None,
    which callers must treat as failing every numeric comparison.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def normalize_course_code(code: str) -> str:
    """Course codes are compared and stored upper-case, without surrounding blanks."""
    if not code or not code.strip():
        raise ValidationError("Validation error", errors=["code: Course code is required"])
    return code.strip().upper()


def normalize_pagination(page: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
    """
    Clamp page/limit to sane values.

    Returns:
        Tuple of (page, limit)
    """
    page = page if page and page > 0 else 1
    limit = limit if limit and limit > 0 else config.DEFAULT_PAGE_SIZE
    return page, min(limit, config.MAX_PAGE_SIZE)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like a calculator (2.5 -> 3), not like round() (2.5 -> 2)."""
    factor = 10 ** digits
    result = math.floor(value * factor + 0.5) / factor
    return int(result) if digits == 0 else result
