"""
Unit tests for the data model and geo helpers
"""

import dataclasses
import math

import pytest
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.types import (
    CalibratedPoint,
    CalibrationResult,
    CartesianPoint,
    Dimensions,
    GPSPoint,
    MapScale,
    MaxError,
)
from common.geo import geo2pix, haversine_m, pix2geo
from common.utils import round_to


class TestGPSPoint:
    """Test cases for GPSPoint"""

    def test_valid_bounds(self):
        assert GPSPoint(longitude=180, latitude=-90).longitude == 180.0

    @pytest.mark.parametrize("lon,lat", [(181, 0), (-180.1, 0), (0, 90.5), (0, -91), (math.nan, 0), (0, math.nan)])
    def test_out_of_range(self, lon, lat):
        with pytest.raises(ValueError, match="out of range"):
            GPSPoint(longitude=lon, latitude=lat)

    def test_ints_coerced_to_float(self):
        p = GPSPoint(longitude=1, latitude=2)
        assert isinstance(p.longitude, float)
        assert p.as_lat_lon() == (2.0, 1.0)

    def test_non_numeric_rejected(self):
        with pytest.raises(TypeError):
            GPSPoint(longitude="1", latitude=2)

    def test_immutable(self):
        p = GPSPoint(longitude=1, latitude=2)
        with pytest.raises(dataclasses.FrozenInstanceError):
            p.latitude = 3.0


class TestOtherTypes:
    """Test cases for CartesianPoint, CalibratedPoint, Dimensions"""

    def test_cartesian_rejects_non_finite(self):
        with pytest.raises(ValueError):
            CartesianPoint(math.inf, 0)

    def test_calibrated_point_shorthand(self):
        p = CalibratedPoint.of(10, 20, latitude=40.0, longitude=-74.0)
        assert p.cartesian == CartesianPoint(10.0, 20.0)
        assert p.gps == GPSPoint(longitude=-74.0, latitude=40.0)
        assert p.to_dict() == {
            "cartesian": {"x": 10.0, "y": 20.0},
            "gps": {"longitude": -74.0, "latitude": 40.0},
        }

    def test_calibrated_point_member_types(self):
        with pytest.raises(TypeError):
            CalibratedPoint(cartesian=(1, 2), gps=GPSPoint(longitude=0, latitude=0))

    @pytest.mark.parametrize("w,h", [(0, 10), (10, 0), (-5, 10)])
    def test_dimensions_positive(self, w, h):
        with pytest.raises(ValueError, match="must be > 0"):
            Dimensions(w, h)

    def test_max_error_non_negative(self):
        with pytest.raises(ValueError):
            MaxError(-0.1, 0.0)


class TestCalibrationResult:
    """Test cases for CalibrationResult helpers"""

    def _result(self):
        return CalibrationResult(
            max_error=MaxError(0.0, 0.0),
            origin=GPSPoint(longitude=-74.0, latitude=40.0),
            opposite=GPSPoint(longitude=-73.99, latitude=40.01),
        )

    def test_corners(self):
        c = self._result().corners()
        assert c["top_left"] == GPSPoint(longitude=-74.0, latitude=40.01)
        assert c["bottom_right"] == GPSPoint(longitude=-73.99, latitude=40.0)
        assert c["origin"].latitude == 40.0
        assert c["opposite"].longitude == -73.99

    def test_scale(self):
        scale = self._result().scale(Dimensions(500, 250))
        assert scale.degree_per_unit_x == pytest.approx(0.00002)
        assert scale.degree_per_unit_y == pytest.approx(0.00004)

    def test_to_dict(self):
        d = self._result().to_dict()
        assert d["maxError"] == {"x": 0.0, "y": 0.0}
        assert d["origin"] == {"longitude": -74.0, "latitude": 40.0}


class TestGeoHelpers:
    """Test cases for pix2geo / geo2pix / haversine_m"""

    def test_pix2geo(self):
        origin = GPSPoint(longitude=-74.0, latitude=40.0)
        scale = MapScale(0.00002, 0.00001)
        gps = pix2geo(CartesianPoint(250, 100), origin, scale)
        assert gps.longitude == pytest.approx(-73.995)
        assert gps.latitude == pytest.approx(40.001)

    def test_geo2pix_inverts_pix2geo(self):
        origin = GPSPoint(longitude=-74.0, latitude=40.0)
        scale = MapScale(0.00002, -0.00001)
        pt = geo2pix(GPSPoint(longitude=-73.995, latitude=39.999), origin, scale)
        assert pt.x == pytest.approx(250.0)
        assert pt.y == pytest.approx(100.0)

    def test_geo2pix_zero_scale(self):
        origin = GPSPoint(longitude=0, latitude=0)
        with pytest.raises(ValueError):
            geo2pix(origin, origin, MapScale(0.0, 1.0))

    def test_haversine_one_degree_at_equator(self):
        assert haversine_m(0.0, 0.0, 0.0, 1.0) == pytest.approx(111195.08, rel=1e-4)

    def test_haversine_zero(self):
        assert haversine_m(40.0, -74.0, 40.0, -74.0) == 0.0


class TestRoundTo:
    """Test cases for fixed-decimal rounding"""

    @pytest.mark.parametrize("v,d,expected", [
        (1.0005, 3, 1.001),
        (-1.0005, 3, -1.001),
        (2.5, 0, 3.0),
        (40.010000000000005, 6, 40.01),
        (0.0134529, 3, 0.013),
    ])
    def test_half_up(self, v, d, expected):
        assert round_to(v, d) == expected

    def test_non_finite_passthrough(self):
        assert math.isinf(round_to(math.inf, 3))
