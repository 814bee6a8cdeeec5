# inventory_sync/services/quantity.py
"""
Quantity normalization for inbound sync records.

Upstream platforms hand us ints, floats, numeric strings, None and
occasionally garbage. Everything collapses to an int; anything unusable
becomes 0 so a malformed record degrades instead of aborting the batch.
"""

import math
import re
from decimal import Decimal, InvalidOperation

# Leading optional sign + digits, same prefix rule as JavaScript's parseInt
_LEADING_INT = re.compile(r"^[+-]?\d+")


def normalize_quantity(value) -> int:
    """
    Coerce a quantity-like value to an int.

        >>> normalize_quantity("42"), normalize_quantity(42.9), normalize_quantity(None), normalize_quantity("abc")
        (42, 42, 0, 0)

    Floats and Decimals are truncated toward zero. Strings are parsed as a
    base-10 integer prefix ("42.9" -> 42, " 7 units" -> 7). Never raises.
    """
    if value is None or isinstance(value, bool):
        return 0

    if isinstance(value, int):
        return value

    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        return math.trunc(value)

    if isinstance(value, Decimal):
        try:
            if not value.is_finite():
                return 0
            return int(value)
        except (InvalidOperation, ValueError):
            return 0

    if isinstance(value, (str, bytes)):
        text = value.decode("utf-8", "ignore") if isinstance(value, bytes) else value
        match = _LEADING_INT.match(text.strip())
        return int(match.group(0)) if match else 0

    return 0
