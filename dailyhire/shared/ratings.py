"""Display helpers for the derived worker rating"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

NO_RATING_LABEL = "No rating yet"


def round_rating(value: Union[Decimal, float, None]) -> Optional[float]:
    """Round to one decimal place (half up); None stays None"""
    if value is None:
        return None
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def rating_label(value: Union[Decimal, float, None]) -> str:
    rounded = round_rating(value)
    return NO_RATING_LABEL if rounded is None else f"{rounded:.1f}"
