from decimal import Decimal, ROUND_HALF_UP
from typing import Union


CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Union[Decimal, int, float, str, None]) -> Decimal:
    """Coerce a value to a Decimal rounded half-up to whole cents. None becomes 0."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        # str() keeps floats like 19.99 from turning into 19.989999...
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
