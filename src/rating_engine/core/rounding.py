"""Decimal rounding for reported rating values."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round ``value`` to ``ndigits`` decimals with halves away from zero.

    Goes through the shortest decimal repr of ``value``, so 4.125 becomes
    4.13 and -0.125 becomes -0.13, unlike the builtin ``round``.
    """
    exponent = Decimal(1).scaleb(-ndigits)
    return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP))
