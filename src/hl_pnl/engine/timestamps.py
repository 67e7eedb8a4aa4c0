"""
Timestamp normalisation for upstream records.

Venue and price-source payloads mix epoch seconds and epoch milliseconds, sometimes
as numeric strings. Everything downstream works in epoch milliseconds.
"""
import math
from typing import Any, Optional

# 2000-01-01T00:00:00Z in milliseconds. Anything numerically below this is read as seconds.
SECONDS_THRESHOLD_MS = 946_684_800_000


def normalize_timestamp(value: Any) -> Optional[int]:
    """
    Convert a raw timestamp to epoch milliseconds.

    Args:
        value: int / float / numeric string, seconds or milliseconds

    Returns:
        epoch milliseconds, or None when the value is absent or unparseable
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        text = value.strip()
        try:
            number = int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                return None
    elif isinstance(value, (int, float)):
        number = value
    else:
        return None

    if isinstance(number, float):
        if math.isnan(number) or math.isinf(number):
            return None
        number = int(number)

    # 0 is what a missing field looks like after a lossy upstream transform
    if number == 0:
        return None

    if number < SECONDS_THRESHOLD_MS:
        number *= 1000
    return number
