from __future__ import annotations

"""
Calibration CLI: fit an image's GPS bounding corners from a calibration set
and print the result as JSON.

Examples:
  # Calibration set with its own image block
  python -m georef.service --points data/campus.yaml

  # CSV set, size read from the image itself, least-squares residuals included
  python -m georef.service --points data/campus.csv --image data/campus.png --residuals

  # Two known corners only: report degrees per unit
  python -m georef.service --origin "40.0,-74.0" --opposite "40.01,-73.99" --size 1000x500
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from PIL import Image

from common.geo import haversine_m
from common.logging_setup import get_logger, setup_logging
from common.types import Dimensions
from common.utils import iso_now_ms
from georef.calibration import (
    NORMALIZED_SIZE,
    calibrate,
    fit_residuals,
    normalize_dimensions,
    scale_from_endpoints,
)
from georef.gps_input import parse_gps_input
from georef.loader import load_calibration_set


log = get_logger("georef.service")

DEFAULT_CONFIG: Dict[str, Any] = {
    "logging": {"level": "INFO"},
    "calibration": {"normalized_size": NORMALIZED_SIZE, "coordinate_decimals": 6, "error_decimals": 3},
}


def load_config(path: str = "config/params.yaml") -> Dict[str, Any]:
    """YAML config over built-in defaults; a missing file means defaults only."""
    cfg = {k: dict(v) for k, v in DEFAULT_CONFIG.items()}
    if not Path(path).exists():
        return cfg
    with open(path, "r") as f:
        try:
            doc = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"{path}: malformed YAML: {e}") from e
    if not isinstance(doc, dict):
        raise ValueError(f"{path}: config must be a mapping of sections")
    for section, values in doc.items():
        if isinstance(values, dict):
            cfg.setdefault(section, {}).update(values)
        else:
            cfg[section] = values
    return cfg


def parse_size(s: str) -> Dimensions:
    if "x" in s.lower():
        w, h = s.lower().split("x")
    else:
        parts = s.split(",")
        if len(parts) != 2:
            raise ValueError("Size must be WxH or W,H")
        w, h = parts
    return Dimensions(width=float(w), height=float(h))


def image_dimensions(path: str) -> Dimensions:
    with Image.open(path) as img:
        w, h = img.size
    return Dimensions(width=float(w), height=float(h))


def _resolve_dims(args: argparse.Namespace, declared: Optional[Dimensions]) -> Dimensions:
    if args.size:
        return parse_size(args.size)
    if args.image:
        return image_dimensions(args.image)
    if declared is not None:
        return declared
    raise ValueError("Image dimensions required: pass --size, --image, or an image block in the points file")


def run(args: argparse.Namespace, cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Build the JSON-ready report for one invocation."""
    c = cfg["calibration"]
    box = float(c.get("normalized_size", NORMALIZED_SIZE))

    if args.origin or args.opposite:
        if not (args.origin and args.opposite):
            raise ValueError("--origin and --opposite must be given together")
        dims = _resolve_dims(args, None)
        scale = scale_from_endpoints(parse_gps_input(args.origin), parse_gps_input(args.opposite), dims, box=box)
        return {
            "ts": iso_now_ms(),
            "normalized": normalize_dimensions(dims, box=box).to_dict(),
            "scale": scale.to_dict(),
        }

    cset = load_calibration_set(args.points)
    dims = _resolve_dims(args, cset.dims)
    nd = normalize_dimensions(dims, box=box)
    log.info("Calibrating", extra={"extra": {"points": len(cset.points), "width": dims.width, "height": dims.height}})

    result = calibrate(
        cset.points,
        dims,
        box=box,
        coordinate_decimals=int(c.get("coordinate_decimals", 6)),
        error_decimals=int(c.get("error_decimals", 3)),
    )
    report = {"ts": iso_now_ms(), "points": len(cset.points), "normalized": nd.to_dict()}
    report.update(result.to_dict())
    report["scale"] = result.scale(nd).to_dict()
    report["corners"] = {k: v.to_dict() for k, v in result.corners().items()}
    report["diagonal_m"] = round(
        haversine_m(result.origin.latitude, result.origin.longitude, result.opposite.latitude, result.opposite.longitude),
        2,
    )
    if args.residuals:
        fit = fit_residuals(cset.points)
        report["fit"] = {
            "scale": fit.scale.to_dict(),
            "origin": fit.origin.to_dict(),
            "rms_deg": {"lon": fit.rms_deg[0], "lat": fit.rms_deg[1]},
            "residuals_deg": [{"lon": float(r[0]), "lat": float(r[1])} for r in fit.residuals_deg],
        }
    log.info("Calibration done", extra={"extra": {"max_error": report["maxError"]}})
    return report


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Image georeferencing calibration")
    ap.add_argument("--config", default="config/params.yaml")
    ap.add_argument("--points", help="Calibration set (.csv or .yaml)")
    gdim = ap.add_mutually_exclusive_group()
    gdim.add_argument("--size", help="Image size WxH (or W,H) in pixels")
    gdim.add_argument("--image", help="Image file to read the size from")
    ap.add_argument("--origin", help='Endpoint mode: "lat,lon" at pixel (0,0)')
    ap.add_argument("--opposite", help='Endpoint mode: "lat,lon" at the far corner')
    ap.add_argument("--residuals", action="store_true", help="Include least-squares per-point residuals")
    ap.add_argument("--out", help="Also write the JSON report to this file")
    return ap


def main(argv: Optional[List[str]] = None) -> None:
    ap = build_parser()
    args = ap.parse_args(argv)
    if not args.points and not (args.origin or args.opposite):
        ap.error("--points is required unless --origin/--opposite are given")
    if args.points and (args.origin or args.opposite):
        ap.error("--points cannot be combined with --origin/--opposite")

    try:
        cfg = load_config(args.config)
        setup_logging(cfg.get("logging", {}).get("level", "INFO"), force=True)
        report = run(args, cfg)
    except (ValueError, OSError) as e:
        log.error("Calibration failed", extra={"extra": {"error": str(e), "type": type(e).__name__}})
        raise SystemExit(2)

    text = json.dumps(report, indent=2)
    if args.out:
        out = Path(args.out)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text + "\n")
    sys.stdout.write(text + "\n")


if __name__ == "__main__":
    main()
