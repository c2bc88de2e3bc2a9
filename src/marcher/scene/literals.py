"""Parsing of literal values found in scene descriptions.

Every parser takes the key it is reading (for error messages) and the raw
value decoded from the scene file, and raises LiteralError on malformed
input.

Accepted forms:
    scalar   int or float (booleans are rejected), finite
    integer  int, or a float with no fractional part
    vector   list of scalars of the expected length
    color    scalar (grey), list of COLOR_CHANNELS scalars, or "#rrggbb"
"""

import math
from numbers import Real
from typing import Any

from src.marcher.core.color import COLOR_CHANNELS
from src.marcher.scene.errors import LiteralError


def parse_scalar(key: str, value: Any) -> float:
    """Parse a finite real number."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise LiteralError(key, value, "a number")
    result = float(value)
    if not math.isfinite(result):
        raise LiteralError(key, value, "a finite number")
    return result


def parse_int(key: str, value: Any) -> int:
    """Parse an integer, accepting integral floats such as 64.0."""
    number = parse_scalar(key, value)
    if not number.is_integer():
        raise LiteralError(key, value, "an integer")
    return int(number)


def parse_vector(key: str, value: Any, size: int = 3) -> tuple[float, ...]:
    """Parse a fixed-length list of numbers."""
    if not isinstance(value, (list, tuple)) or len(value) != size:
        raise LiteralError(key, value, f"a list of {size} numbers")
    return tuple(parse_scalar(f"{key}[{i}]", component) for i, component in enumerate(value))


def _parse_hex_color(key: str, value: str) -> tuple[float, ...]:
    digits = value[1:]
    if COLOR_CHANNELS != 3 or len(digits) != 6:
        raise LiteralError(key, value, "a #rrggbb color")
    try:
        channels = [int(digits[i : i + 2], 16) for i in range(0, 6, 2)]
    except ValueError as e:
        raise LiteralError(key, value, "a #rrggbb color") from e
    return tuple(channel / 255.0 for channel in channels)


def parse_color(key: str, value: Any) -> tuple[float, ...]:
    """Parse a color literal into COLOR_CHANNELS non-negative channels."""
    if isinstance(value, str):
        if not value.startswith("#"):
            raise LiteralError(key, value, "a #rrggbb color")
        channels = _parse_hex_color(key, value)
    elif isinstance(value, (list, tuple)):
        channels = parse_vector(key, value, COLOR_CHANNELS)
    else:
        channels = (parse_scalar(key, value),) * COLOR_CHANNELS

    if any(channel < 0.0 for channel in channels):
        raise LiteralError(key, value, "non-negative color channels")
    return channels
