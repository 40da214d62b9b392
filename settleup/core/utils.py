from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP, getcontext

getcontext().prec = 28
CENTS = Decimal("0.01")
# Absolute tolerance for every money comparison
TOLERANCE = Decimal("0.01")
ZERO = Decimal("0")

def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps floats like 0.1 from dragging binary noise along
    return Decimal(str(value))

def qround(d: Decimal) -> Decimal:
    return d.quantize(CENTS, rounding=ROUND_HALF_UP)

def qfloor(d: Decimal) -> Decimal:
    return d.quantize(CENTS, rounding=ROUND_DOWN)

def close_to(a: Decimal, b: Decimal) -> bool:
    return abs(a - b) <= TOLERANCE
