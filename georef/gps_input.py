from __future__ import annotations

"""
GPS text input ("latitude,longitude", as copied from a web map).

Validation is a predicate: it never raises, so callers can branch on it
before building a CalibratedPoint. `check_gps_input` exposes the reason.
"""

import math
import re
from dataclasses import dataclass
from typing import List, Optional, cast

from common.types import GPSPoint


MISSING_SEPARATOR = "missing_separator"
LATITUDE_OUT_OF_RANGE = "latitude_out_of_range"
LONGITUDE_OUT_OF_RANGE = "longitude_out_of_range"

# Longest leading decimal literal; whatever follows it is ignored.
_NUMBER_PREFIX = re.compile(r"[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


@dataclass(frozen=True, slots=True)
class GPSInputCheck:
    ok: bool
    reason: Optional[str] = None
    point: Optional[GPSPoint] = None

    def __bool__(self) -> bool:
        return self.ok


def parse_number(text: str) -> float:
    """
    Lenient float parse: skips leading whitespace, reads the longest numeric
    prefix ("40.5abc" -> 40.5), returns NaN when there is none.
    """
    m = _NUMBER_PREFIX.match(text.lstrip())
    if m is None:
        return math.nan
    return float(m.group(0).replace("Infinity", "inf"))


def _split(text: str) -> List[float]:
    return [parse_number(part) for part in text.split(",")]


def check_gps_input(text: str) -> GPSInputCheck:
    """
    Validate "lat,lon" text. Fields past the second are ignored.
    Unparsable numbers become NaN and fail the range checks.
    """
    if "," not in text:
        return GPSInputCheck(False, MISSING_SEPARATOR)
    values = _split(text)
    lat, lon = values[0], values[1]
    if not (-90.0 <= lat <= 90.0):
        return GPSInputCheck(False, LATITUDE_OUT_OF_RANGE)
    if not (-180.0 <= lon <= 180.0):
        return GPSInputCheck(False, LONGITUDE_OUT_OF_RANGE)
    return GPSInputCheck(True, None, GPSPoint(longitude=lon, latitude=lat))


def is_valid_gps_input(text: str) -> bool:
    return check_gps_input(text).ok


def parse_gps_input(text: str) -> GPSPoint:
    """Parse "lat,lon" text into a GPSPoint; ValueError carries the failure reason."""
    check = check_gps_input(text)
    if not check.ok:
        raise ValueError(f"invalid GPS input {text!r}: {check.reason}")
    return cast(GPSPoint, check.point)
