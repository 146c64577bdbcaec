from __future__ import annotations

import math
import re
from typing import Any, Optional

DEFAULT_CONFIDENCE = 0.2
DEFAULT_COUNTRY_CODE = "US"
TRUNCATION_MARKER = "…"

_NON_NUMERIC = re.compile(r"[^0-9.]")


def _finite_float(value: Any) -> Optional[float]:
    # Huge JSON integers overflow float conversion.
    try:
        number = float(value)
    except (OverflowError, ValueError):
        return None
    return number if math.isfinite(number) else None


def to_nullable_number(value: Any) -> Optional[float]:
    # bool is an int subclass; a JSON true is not a price.
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if _finite_float(value) is not None else None
    if isinstance(value, str):
        digits = _NON_NUMERIC.sub("", value)
        if not digits:
            return None
        return _finite_float(digits)
    return None


def to_nullable_string(value: Any, *, trim: bool = False) -> Optional[str]:
    if not isinstance(value, str):
        return None
    if trim:
        value = value.strip()
        return value or None
    return value


def to_nullable_boolean(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    return None


def clamp_confidence(value: Any, fallback: float = DEFAULT_CONFIDENCE) -> float:
    number: Optional[float]
    if isinstance(value, bool) or value is None:
        number = None
    elif isinstance(value, (int, float)):
        number = _finite_float(value)
    elif isinstance(value, str):
        number = _finite_float(value.strip())
    else:
        number = None
    if number is None:
        return fallback
    return min(1.0, max(0.0, number))


def normalize_country_code(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        return DEFAULT_COUNTRY_CODE
    return value.strip().upper()[:2]


def normalize_billing_period(value: Any) -> Optional[str]:
    # Any non-empty word is accepted; the prompt asks for a vocabulary but it is not enforced.
    if not isinstance(value, str):
        return None
    normalized = value.strip().lower()
    return normalized or None


def safe_truncate(value: Any, max_len: int) -> str:
    if not isinstance(value, str):
        return ""
    if len(value) <= max_len:
        return value
    return value[:max_len] + TRUNCATION_MARKER
