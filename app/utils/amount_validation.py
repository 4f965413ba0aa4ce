"""Amount validation utilities."""
import math

from app.core.exceptions import InvalidAmount


def parse_amount(raw_value) -> float:
    """
    Parse a user-supplied amount.

    Rules:
    - Strings are stripped; an empty string is rejected
    - Must convert to a finite float (no NaN, no infinity)
    - Must be >= 0
    - Booleans are rejected even though they are ints
    """
    if raw_value is None or isinstance(raw_value, bool):
        raise InvalidAmount(raw_value)

    if isinstance(raw_value, str):
        text = raw_value.strip()
        if not text:
            raise InvalidAmount(raw_value)
        try:
            value = float(text)
        except ValueError:
            raise InvalidAmount(raw_value) from None
    elif isinstance(raw_value, (int, float)):
        value = float(raw_value)
    else:
        raise InvalidAmount(raw_value)

    if not math.isfinite(value) or value < 0:
        raise InvalidAmount(raw_value)

    # -0.0 is stored as 0.0
    return value + 0.0
