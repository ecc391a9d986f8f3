# dairypro/utils/parsing.py
import math
import re
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

DATE_FORMAT = "%Y-%m-%d"
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def is_valid_date(value: Any) -> bool:
    """True for a real calendar date written as YYYY-MM-DD."""
    if not isinstance(value, str) or not _DATE_RE.match(value):
        return False
    try:
        datetime.strptime(value, DATE_FORMAT)
    except ValueError:
        return False
    return True


def to_number(value: Any) -> Optional[float]:
    """float(value) for finite numbers and numeric strings, else None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if value == "":
            return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(num) or math.isinf(num):
        return None
    return num


def round_half_up(value: float, places: int = 2) -> float:
    # Decimal(str(..)) so 2.675 rounds to 2.68, not 2.67
    quantum = Decimal(1).scaleb(-places)
    try:
        return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        # more digits than the decimal context holds, or infinite
        raise ValueError(f"{value!r} is too large to round to {places} places")


def parse_quantity(value: Any, is_percentage: bool = False) -> Optional[float]:
    """
    Lenient parse for production fields: anything that is not a non-negative
    number (or a percentage above 100, or too large to round) becomes None
    instead of an error.
    """
    num = to_number(value)
    if num is None or num < 0:
        return None
    if is_percentage and num > 100:
        return None
    try:
        return round_half_up(num, 1 if is_percentage else 2)
    except ValueError:
        return None
