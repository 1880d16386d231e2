from __future__ import annotations

from dataclasses import dataclass, field
from itertools import combinations
from typing import List, Sequence, Tuple
import math

import numpy as np

from common.logging_setup import get_logger
from common.types import (
    CalibratedPoint,
    CalibrationResult,
    CartesianPoint,
    Dimensions,
    GPSPoint,
    MapScale,
    MaxError,
)
from common.utils import round_to


log = get_logger("georef.calibration")

# Edge of the canonical box every image is rescaled into.
NORMALIZED_SIZE = 500.0


class CalibrationError(ValueError):
    """Calibration could not produce a usable result."""


class DegenerateGeometryError(CalibrationError):
    """Too few points, or points that share a pixel coordinate on an axis."""


@dataclass(slots=True)
class FitReport:
    """
    Least-squares uniform-scale fit of a calibration set.

    Attributes:
        scale: fitted degrees per unit (x -> longitude, y -> latitude).
        origin: fitted GPS of normalized pixel (0, 0).
        residuals_deg: (n, 2) array of (lon, lat) residuals, observed - fitted.
        rms_deg: root-mean-square residual per axis (lon, lat).
    """
    scale: MapScale
    origin: GPSPoint
    residuals_deg: np.ndarray = field(repr=False)
    rms_deg: Tuple[float, float]


def normalize_dimensions(dims: Dimensions, *, box: float = NORMALIZED_SIZE) -> Dimensions:
    """
    Rescale image dimensions to fit a `box` x `box` square, keeping aspect ratio.
    Square images take the height branch.
    """
    if dims.width > dims.height:
        return Dimensions(width=box, height=box * dims.height / dims.width)
    return Dimensions(width=box * dims.width / dims.height, height=box)


def pair_scale(p1: CalibratedPoint, p2: CalibratedPoint) -> MapScale:
    """
    Finite-difference degrees per unit between two correspondences.
    Raises DegenerateGeometryError if they share a pixel x or y.
    """
    d_x = p1.cartesian.x - p2.cartesian.x
    d_y = p1.cartesian.y - p2.cartesian.y
    if d_x == 0:
        raise DegenerateGeometryError(f"points share pixel x={p1.cartesian.x}")
    if d_y == 0:
        raise DegenerateGeometryError(f"points share pixel y={p1.cartesian.y}")
    return MapScale(
        degree_per_unit_x=(p1.gps.longitude - p2.gps.longitude) / d_x,
        degree_per_unit_y=(p1.gps.latitude - p2.gps.latitude) / d_y,
    )


def pairwise_scales(points: Sequence[CalibratedPoint]) -> List[MapScale]:
    """
    One MapScale per unordered pair, enumerated (0,1), (0,2), ..., (1,2), ...
    """
    scales: List[MapScale] = []
    for i, j in combinations(range(len(points)), 2):
        try:
            scales.append(pair_scale(points[i], points[j]))
        except DegenerateGeometryError as e:
            raise DegenerateGeometryError(f"points {i} and {j}: {e}") from None
    return scales


def scale_from_endpoints(
    origin: GPSPoint,
    opposite: GPSPoint,
    dims: Dimensions,
    *,
    box: float = NORMALIZED_SIZE,
) -> MapScale:
    """
    Scale from two known corners: `origin` sits at normalized pixel (0, 0) and
    `opposite` at (width, height).
    Raises DegenerateGeometryError if the corners share a latitude or longitude.
    """
    if origin.latitude == opposite.latitude:
        raise DegenerateGeometryError(f"endpoints share latitude={origin.latitude}")
    if origin.longitude == opposite.longitude:
        raise DegenerateGeometryError(f"endpoints share longitude={origin.longitude}")
    nd = normalize_dimensions(dims, box=box)
    return pair_scale(
        CalibratedPoint(cartesian=CartesianPoint(0.0, 0.0), gps=origin),
        CalibratedPoint(cartesian=CartesianPoint(nd.width, nd.height), gps=opposite),
    )


def _gps_or_fail(what: str, lon: float, lat: float) -> GPSPoint:
    try:
        return GPSPoint(longitude=lon, latitude=lat)
    except ValueError:
        raise CalibrationError(f"calibrated {what} out of range: lat={lat}, lon={lon}") from None


def calibrate(
    points: Sequence[CalibratedPoint],
    dims: Dimensions,
    *,
    box: float = NORMALIZED_SIZE,
    coordinate_decimals: int = 6,
    error_decimals: int = 3,
) -> CalibrationResult:
    """
    Fit a uniform degrees-per-unit scale to a calibration set and back-solve
    the image's GPS bounding corners.

    Args:
        points: ordered calibration set; cartesian coords in the normalized frame.
            points[0] anchors the origin back-solve.
        dims: raw image dimensions (normalized here).
        box: canonical box edge for normalization.
        coordinate_decimals, error_decimals: output rounding.

    Returns:
        CalibrationResult with origin/opposite corners and max error, where the
        error is the worst deviation of the first min(n, C(n,2)) pair scales
        from the average, as a percentage of the image's geographic diagonal.

    Raises:
        DegenerateGeometryError: fewer than 2 points, shared pixel coordinates,
            or a set with no geographic extent.
        CalibrationError: a corner falls outside valid lat/lon.
    """
    points = list(points)
    n = len(points)
    if n < 2:
        raise DegenerateGeometryError(f"calibration needs at least 2 points, got {n}")

    nd = normalize_dimensions(dims, box=box)
    for k, p in enumerate(points):
        if not (0.0 <= p.cartesian.x <= nd.width and 0.0 <= p.cartesian.y <= nd.height):
            log.warning(
                "Calibration point outside normalized frame",
                extra={"extra": {"index": k, "x": p.cartesian.x, "y": p.cartesian.y, "width": nd.width, "height": nd.height}},
            )

    # 1) C(n,2) pair scales, then the average over all of them
    scales = pairwise_scales(points)
    sx = np.array([s.degree_per_unit_x for s in scales], dtype=float)
    sy = np.array([s.degree_per_unit_y for s in scales], dtype=float)
    avg_x = float(sx.mean())
    avg_y = float(sy.mean())

    diagonal = math.hypot(nd.width * avg_x, nd.height * avg_y)
    if diagonal == 0:
        raise DegenerateGeometryError("calibration points span no geographic extent")

    # 2) origin from the first point, opposite from the origin
    anchor = points[0]
    origin_lat = anchor.gps.latitude - avg_y * anchor.cartesian.y
    origin_lon = anchor.gps.longitude - avg_x * anchor.cartesian.x
    opposite_lat = origin_lat + nd.height * avg_y
    opposite_lon = origin_lon + nd.width * avg_x

    # 3) error: scales is indexed by pair but inspected by point count.
    # With two points there is only one pair.
    m = min(n, len(scales))
    max_dx = float(np.max(np.abs(sx[:m] - avg_x)))
    max_dy = float(np.max(np.abs(sy[:m] - avg_y)))

    result = CalibrationResult(
        max_error=MaxError(
            x=round_to(max_dx / diagonal * 100.0, error_decimals),
            y=round_to(max_dy / diagonal * 100.0, error_decimals),
        ),
        origin=_gps_or_fail(
            "origin", round_to(origin_lon, coordinate_decimals), round_to(origin_lat, coordinate_decimals)
        ),
        opposite=_gps_or_fail(
            "opposite", round_to(opposite_lon, coordinate_decimals), round_to(opposite_lat, coordinate_decimals)
        ),
    )
    log.debug(
        "Calibrated",
        extra={"extra": {"points": n, "pairs": len(scales), "deg_per_unit_x": avg_x, "deg_per_unit_y": avg_y}},
    )
    return result


def fit_residuals(points: Sequence[CalibratedPoint]) -> FitReport:
    """
    Per-point diagnostic: independent least-squares lines lon = a + bx*x and
    lat = c + by*y, with each point's residual against them. Unlike
    CalibrationResult.max_error this looks at every point exactly once.
    """
    points = list(points)
    if len(points) < 2:
        raise DegenerateGeometryError(f"fit needs at least 2 points, got {len(points)}")
    xs = np.array([p.cartesian.x for p in points], dtype=float)
    ys = np.array([p.cartesian.y for p in points], dtype=float)
    lons = np.array([p.gps.longitude for p in points], dtype=float)
    lats = np.array([p.gps.latitude for p in points], dtype=float)
    if np.ptp(xs) == 0:
        raise DegenerateGeometryError("all points share the same pixel x")
    if np.ptp(ys) == 0:
        raise DegenerateGeometryError("all points share the same pixel y")

    ones = np.ones_like(xs)
    (a, bx), *_ = np.linalg.lstsq(np.column_stack([ones, xs]), lons, rcond=None)
    (c, by), *_ = np.linalg.lstsq(np.column_stack([ones, ys]), lats, rcond=None)

    res = np.column_stack([lons - (a + bx * xs), lats - (c + by * ys)])
    rms = np.sqrt(np.mean(res ** 2, axis=0))
    return FitReport(
        scale=MapScale(degree_per_unit_x=float(bx), degree_per_unit_y=float(by)),
        origin=_gps_or_fail("fit origin", float(a), float(c)),
        residuals_deg=res,
        rms_deg=(float(rms[0]), float(rms[1])),
    )
