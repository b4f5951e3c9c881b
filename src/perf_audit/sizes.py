"""Human-readable byte sizes and threshold classification.

All conversions are base-1024. ``parse_size`` is strict: anything that is not
``<number><unit>`` is a configuration error, never silently zero.
"""

import math
import re

from .exceptions import InvalidSizeError
from .models import Status

BYTES_PER_KB = 1024

SIZE_UNITS = {
    "B": 1,
    "KB": 1024,
    "MB": 1024**2,
    "GB": 1024**3,
    "TB": 1024**4,
}

_UNIT_ORDER = ("B", "KB", "MB", "GB", "TB")

_SIZE_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*([KMGT]?B)$", re.IGNORECASE)


def parse_size(value: str) -> int:
    """Parse a size string like ``"150KB"`` or ``"2.5mb"`` into bytes.

    Raises:
        InvalidSizeError: If the string has no unit, an unknown unit, or a
            non-numeric value.
    """
    if not isinstance(value, str):
        raise InvalidSizeError(value)

    match = _SIZE_RE.match(value.strip())
    if match is None:
        raise InvalidSizeError(value)

    number, unit = match.groups()
    # Half-up rounding; inputs are never negative
    return int(math.floor(float(number) * SIZE_UNITS[unit.upper()] + 0.5))


def format_size(num_bytes: float, decimals: int = 1) -> str:
    """Render a byte count with the largest unit that keeps the value >= 1.

    Zero and negative inputs render as ``"0B"``.
    """
    if num_bytes <= 0:
        return "0B"

    index = 0
    while index < len(_UNIT_ORDER) - 1 and num_bytes >= BYTES_PER_KB ** (index + 1):
        index += 1

    digits = max(decimals, 0)
    text = f"{num_bytes / BYTES_PER_KB ** index:.{digits}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text}{_UNIT_ORDER[index]}"


def calculate_delta(current: int, previous: int) -> int:
    return current - previous


def format_delta(delta: int) -> str:
    """Render a signed delta, e.g. ``"+15KB"`` or ``"-200B"``."""
    sign = "+" if delta >= 0 else "-"
    return f"{sign}{format_size(abs(delta))}"


def classify(value: float, warning: float, maximum: float) -> Status:
    """Classify *value* against a ``(warning, max)`` pair.

    A value equal to a threshold falls into the stricter bucket.
    """
    if value >= maximum:
        return Status.ERROR
    if value >= warning:
        return Status.WARNING
    return Status.OK
