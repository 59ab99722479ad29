from decimal import Decimal, ROUND_HALF_UP

ZERO = Decimal("0")


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    # str() first so 0.1 stays 0.1 instead of its binary expansion
    return Decimal(str(value))


def round_half_up(value, places: str = "1") -> Decimal:
    """Round like a cashier: 12.5 -> 13, not Python's banker's 12."""
    return to_decimal(value).quantize(Decimal(places), rounding=ROUND_HALF_UP)
