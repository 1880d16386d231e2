from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
import math


def iso_now_ms() -> str:
    """UTC ISO-8601 timestamp with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def round_to(v: float, decimals: int) -> float:
    """
    Fixed-decimal rounding, half away from zero on the shortest repr of `v`
    (so 1.0005 -> 1.001, unlike the built-in round()). Non-finite values pass through.
    """
    if not math.isfinite(v):
        return float(v)
    q = Decimal(1).scaleb(-decimals)
    return float(Decimal(repr(float(v))).quantize(q, rounding=ROUND_HALF_UP))
