"""Currency rounding helpers"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Union[Decimal, int, float, str]) -> Decimal:
    """Round to currency precision (half-up, 2 places)"""
    if not isinstance(value, Decimal):
        # str() keeps floats like 0.1 from dragging in binary noise
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
