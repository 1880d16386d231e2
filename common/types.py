from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Tuple
import math


def _as_float(obj: object, name: str, value: Any) -> float:
    """Coerce a numeric member to float in place (works on frozen dataclasses)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{name} must be a number, got {type(value).__name__}")
    value = float(value)
    object.__setattr__(obj, name, value)
    return value


@dataclass(frozen=True, slots=True)
class CartesianPoint:
    """
    Pixel offset inside the normalized image frame.

    Attributes:
        x: horizontal offset from the image origin.
        y: vertical offset from the image origin (raw pixel y, no sign flip).
    """
    x: float
    y: float

    def __post_init__(self) -> None:
        for name in ("x", "y"):
            if not math.isfinite(_as_float(self, name, getattr(self, name))):
                raise ValueError(f"{name} must be finite")


@dataclass(frozen=True, slots=True)
class GPSPoint:
    """
    WGS84 position in degrees.

    Text input ("copied from a web map") is latitude-first, but the point is
    stored longitude-first like a GIS (x, y) pair.
    """
    longitude: float
    latitude: float

    def __post_init__(self) -> None:
        lon = _as_float(self, "longitude", self.longitude)
        lat = _as_float(self, "latitude", self.latitude)
        # NaN fails both comparisons
        if not (-90.0 <= lat <= 90.0) or not (-180.0 <= lon <= 180.0):
            raise ValueError("lat/lon out of range")

    def as_lat_lon(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class CalibratedPoint:
    """One ground-truth pixel <-> GPS correspondence."""
    cartesian: CartesianPoint
    gps: GPSPoint

    def __post_init__(self) -> None:
        if not isinstance(self.cartesian, CartesianPoint):
            raise TypeError("cartesian must be a CartesianPoint")
        if not isinstance(self.gps, GPSPoint):
            raise TypeError("gps must be a GPSPoint")

    @classmethod
    def of(cls, x: float, y: float, latitude: float, longitude: float) -> "CalibratedPoint":
        """Shorthand: pixel (x, y) pinned to (latitude, longitude)."""
        return cls(cartesian=CartesianPoint(x, y), gps=GPSPoint(longitude=longitude, latitude=latitude))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class Dimensions:
    """Image size in pixels (raw) or in normalized units."""
    width: float
    height: float

    def __post_init__(self) -> None:
        for name in ("width", "height"):
            v = _as_float(self, name, getattr(self, name))
            if not (v > 0 and math.isfinite(v)):
                raise ValueError(f"{name} must be > 0")

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class MapScale:
    """Degrees of longitude (x) / latitude (y) per normalized pixel."""
    degree_per_unit_x: float
    degree_per_unit_y: float

    def to_dict(self) -> Dict[str, float]:
        return {"degreePerUnitX": self.degree_per_unit_x, "degreePerUnitY": self.degree_per_unit_y}


@dataclass(frozen=True, slots=True)
class MaxError:
    """Worst per-axis scale deviation, as a percentage of the geographic diagonal."""
    x: float
    y: float

    def __post_init__(self) -> None:
        if self.x < 0 or self.y < 0:
            raise ValueError("max error must be >= 0")


@dataclass(frozen=True, slots=True)
class CalibrationResult:
    """
    Output of a calibration run.

    Attributes:
        max_error: per-axis worst scale deviation (% of diagonal).
        origin: GPS of normalized pixel (0, 0).
        opposite: GPS of normalized pixel (width, height).
    """
    max_error: MaxError
    origin: GPSPoint
    opposite: GPSPoint

    def scale(self, normalized: Dimensions) -> MapScale:
        """Recover the averaged scale from the two corners."""
        return MapScale(
            degree_per_unit_x=(self.opposite.longitude - self.origin.longitude) / normalized.width,
            degree_per_unit_y=(self.opposite.latitude - self.origin.latitude) / normalized.height,
        )

    def corners(self) -> Dict[str, GPSPoint]:
        """
        All four image corners. `top_left` shares the origin's longitude and the
        opposite latitude; `bottom_right` the reverse.
        """
        return {
            "origin": self.origin,
            "top_left": GPSPoint(longitude=self.origin.longitude, latitude=self.opposite.latitude),
            "opposite": self.opposite,
            "bottom_right": GPSPoint(longitude=self.opposite.longitude, latitude=self.origin.latitude),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "maxError": {"x": self.max_error.x, "y": self.max_error.y},
            "origin": self.origin.to_dict(),
            "opposite": self.opposite.to_dict(),
        }
