"""Exact integer fixed-point helpers.

All values are plain Python ints scaled by a power of ten (usually 1e18).
Nothing in this module goes through float, so formatting and scaling are
exact for the full uint256 range.
"""

from __future__ import annotations

import re

from . import bnote_constants as const

_AMOUNT_PATTERN = re.compile(r"^(\d+(\.\d*)?|\.\d+)$")
_THOUSANDS_PATTERN = re.compile(r"\B(?=(\d{3})+(?!\d))")


class InvalidAmountError(ValueError):
    """Raised when user-entered amount text cannot be converted to token units."""


def scale_pow10(exponent: int) -> int:
    """Return 10**exponent; negative exponents are a caller error."""
    if exponent < 0:
        raise ValueError(f"exponent must be non-negative, got {exponent}")
    return 10**exponent


def mul_fixed(a: int, b: int, scale: int = const.ONE_E18) -> int:
    """Fixed-point multiply of two unsigned values, truncating the remainder."""
    if scale == 0:
        raise ZeroDivisionError("fixed-point scale must be non-zero")
    return (a * b) // scale


def invert_fixed(a: int, scale: int = const.ONE_E18) -> int:
    """Return scale**2 / a, or 0 when a is 0."""
    if a == 0:
        return 0
    return (scale * scale) // a


def format_truncated(value: int, decimals: int, max_display_decimals: int) -> str:
    """Render a scaled integer as decimal text, truncating extra digits.

    Trailing zero fractional digits are stripped, and the decimal point is
    dropped entirely when nothing remains after it.
    """
    if decimals < 0 or max_display_decimals < 0:
        raise ValueError("decimals must be non-negative")
    sign = "-" if value < 0 else ""
    digits = str(abs(value))
    if decimals == 0:
        return f"{sign}{digits}"
    digits = digits.rjust(decimals + 1, "0")
    whole, frac = digits[:-decimals], digits[-decimals:]
    frac = frac[:max_display_decimals].rstrip("0")
    if not frac:
        # never render "-0"
        return f"{sign}{whole}" if whole.strip("0") else "0"
    return f"{sign}{whole}.{frac}"


def format_units(value: int, decimals: int = const.TOKEN_DECIMALS) -> str:
    """Full-precision decimal text of a scaled integer, trailing zeros stripped."""
    return format_truncated(value, decimals, decimals)


def fixed_decimals(text: str, dp: int) -> str:
    """Pad or cut the fractional part of decimal text to exactly dp digits."""
    whole, _, frac = text.partition(".")
    whole = whole or "0"
    if dp == 0:
        return whole
    return f"{whole}.{(frac + '0' * dp)[:dp]}"


def with_commas(text: str) -> str:
    """Insert thousands separators into the whole-number part of decimal text."""
    whole, dot, frac = text.partition(".")
    return f"{_THOUSANDS_PATTERN.sub(',', whole)}{dot}{frac}"


def parse_units(text: str, decimals: int = const.TOKEN_DECIMALS) -> int:
    """Convert user-entered decimal text into integer token units.

    Accepts "123", "123.45", ".5" and "5.". More fractional digits than the
    token supports is rejected rather than rounded.
    """
    if not isinstance(text, str):
        raise InvalidAmountError(f"amount must be text, got {type(text).__name__}")
    candidate = text.strip()
    if not _AMOUNT_PATTERN.match(candidate):
        raise InvalidAmountError(f"not a valid amount: {text!r}")
    whole, _, frac = candidate.partition(".")
    if len(frac) > decimals:
        raise InvalidAmountError(
            f"amount {text!r} has more than {decimals} fractional digits"
        )
    raw = int(whole or "0") * scale_pow10(decimals) + int(
        frac.ljust(decimals, "0") or "0"
    )
    if raw > const.MAX_UINT256:
        raise InvalidAmountError(f"amount {text!r} exceeds the uint256 range")
    return raw


def require_uint(value: int, name: str, *, bits: int = 256) -> int:
    """Return value unchanged if it is a non-negative int below 2**bits."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0 or value >= 1 << bits:
        raise ValueError(f"{name} must be a uint{bits}, got {value}")
    return value
