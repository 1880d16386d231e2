# FILE: georef/__init__.py
"""
Image georeferencing calibration

This package provides:
- GPS text validation/parsing for "latitude,longitude" input
- Image dimension normalization into a canonical 500x500 box
- Pairwise degrees-per-unit scales, averaged into one uniform scale
- Origin/opposite GPS corner back-solve with a worst-case error estimate
- A least-squares residual diagnostic and a small JSON-emitting CLI

Entry point:
    python -m georef.service --points data/campus.yaml
"""
from .calibration import (
    CalibrationError,
    DegenerateGeometryError,
    calibrate,
    normalize_dimensions,
    pair_scale,
    scale_from_endpoints,
)
from .gps_input import check_gps_input, is_valid_gps_input, parse_gps_input

__all__ = [
    "CalibrationError",
    "DegenerateGeometryError",
    "calibrate",
    "normalize_dimensions",
    "pair_scale",
    "scale_from_endpoints",
    "check_gps_input",
    "is_valid_gps_input",
    "parse_gps_input",
]
