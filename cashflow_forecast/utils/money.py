"""Fixed-point money helpers. Amounts are integer minor units (cents) everywhere inside the engine."""

from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP

# $100B: anything larger is treated as corrupt input
MAX_AMOUNT_CENTS = 10_000_000_000_000


def round_cents(value: Decimal) -> int:
    """Round a fractional cent amount half-up to whole cents"""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def ceil_cents(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_CEILING))


def within_bounds(cents: int, limit: int = MAX_AMOUNT_CENTS) -> bool:
    return -limit <= cents <= limit
