from __future__ import annotations

import math

from common.types import CartesianPoint, GPSPoint, MapScale


# -------------------------
# Pixel/Geo helpers for a calibrated image
# -------------------------
def pix2geo(point: CartesianPoint, origin: GPSPoint, scale: MapScale) -> GPSPoint:
    """
    Convert a normalized pixel to lon/lat using a calibrated scale.

    Flat-earth linear model: valid over the small areas a single image covers.
    NOTE: No bounds checking on the pixel; GPSPoint still rejects results
    outside [-90,90] / [-180,180].
    """
    lon = origin.longitude + point.x * scale.degree_per_unit_x
    lat = origin.latitude + point.y * scale.degree_per_unit_y
    return GPSPoint(longitude=lon, latitude=lat)


def geo2pix(gps: GPSPoint, origin: GPSPoint, scale: MapScale) -> CartesianPoint:
    """
    Inverse of pix2geo() for the same origin/scale.
    """
    if scale.degree_per_unit_x == 0 or scale.degree_per_unit_y == 0:
        raise ValueError("scale must be non-zero on both axes")
    x = (gps.longitude - origin.longitude) / scale.degree_per_unit_x
    y = (gps.latitude - origin.latitude) / scale.degree_per_unit_y
    return CartesianPoint(x, y)


# -------------------------
# Great-circle distance
# -------------------------
def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine great-circle distance on WGS84 sphere approximation."""
    R = 6371008.8  # mean Earth radius (m)
    p1 = math.radians(lat1)
    p2 = math.radians(lat2)
    dphi = p2 - p1
    dl = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2.0) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2.0) ** 2
    return 2 * R * math.asin(math.sqrt(a))
