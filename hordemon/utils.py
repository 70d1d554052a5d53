from __future__ import annotations
import math
import time
from datetime import datetime, timezone
from typing import Union

Number = Union[int, float]


def now_ms() -> int:
    return int(time.time() * 1000)


def iso_from_ms(ts_ms: int) -> str:
    # 2024-05-01T12:00:00.000Z
    dt = datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def round_half_up(value: float) -> int:
    """Round .5 towards positive infinity (what a dashboard's Math.round does)."""
    return int(math.floor(value + 0.5))


def plain_number(value: Number) -> Number:
    """Drop the trailing .0 on whole floats so 100.0 exports as 100."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
