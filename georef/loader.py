from __future__ import annotations

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from common.types import CalibratedPoint, CartesianPoint, Dimensions, GPSPoint
from georef.gps_input import parse_gps_input


@dataclass(slots=True)
class CalibrationSet:
    """Points read from a file, plus the image size when the file declares one."""
    points: List[CalibratedPoint]
    dims: Optional[Dimensions] = None


def _point_from_row(row: Mapping[str, Any]) -> CalibratedPoint:
    """
    Row with x, y and either `gps` ("lat,lon" text) or latitude + longitude.
    """
    cart = CartesianPoint(float(row["x"]), float(row["y"]))
    gps_text = row.get("gps")
    if gps_text not in (None, ""):
        gps = parse_gps_input(str(gps_text))
    else:
        gps = GPSPoint(longitude=float(row["longitude"]), latitude=float(row["latitude"]))
    return CalibratedPoint(cartesian=cart, gps=gps)


def _rows_to_points(rows) -> List[CalibratedPoint]:
    points: List[CalibratedPoint] = []
    for i, row in enumerate(rows, start=1):
        try:
            points.append(_point_from_row(row))
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"row {i}: {e}") from e
    return points


def _load_csv(path: Path) -> CalibrationSet:
    with open(path, newline="") as f:
        return CalibrationSet(points=_rows_to_points(csv.DictReader(f)))


def _load_yaml(path: Path) -> CalibrationSet:
    with open(path, "r") as f:
        try:
            doc: Dict[str, Any] = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"{path}: malformed YAML: {e}") from e
    if not isinstance(doc, dict) or not isinstance(doc.get("points"), list):
        raise ValueError(f"{path}: expected a mapping with a 'points' list")
    dims = None
    image = doc.get("image")
    if image:
        dims = Dimensions(width=float(image["width"]), height=float(image["height"]))
    return CalibrationSet(points=_rows_to_points(doc["points"]), dims=dims)


def load_calibration_set(path: str) -> CalibrationSet:
    """
    Read a calibration set from .csv (header: x,y,latitude,longitude or x,y,gps)
    or .yaml/.yml (points: [...], optional image: {width, height}).
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Calibration set not found: {path}")
    suffix = p.suffix.lower()
    if suffix == ".csv":
        return _load_csv(p)
    if suffix in (".yaml", ".yml"):
        return _load_yaml(p)
    raise ValueError(f"Unsupported calibration set format: {suffix or path}")
