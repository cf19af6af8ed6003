"""Geolocation — verifies distance math, coordinate validation and bounding boxes.

Tests:
    - Haversine distance is symmetric and matches known city distances
    - is_valid_coordinates rejects NaN, booleans, strings and out-of-range values
    - bounding_box encloses points at the radius in every direction
    - Boxes near the antimeridian wrap instead of clamping at ±180
"""

import math

import pytest

from vida.core.geolocation import (
    bounding_box,
    format_coordinates,
    google_maps_directions_url,
    google_maps_url,
    haversine_distance,
    is_valid_coordinates,
    is_within_mexico,
    normalize_longitude,
)

CDMX = (19.4326, -99.1332)
GUADALAJARA = (20.6597, -103.3496)


def _destination(lat, lon, bearing_deg, distance_km):
    """Point reached travelling distance_km along a great circle."""
    r = 6371.0
    d = distance_km / r
    b = math.radians(bearing_deg)
    p1 = math.radians(lat)
    l1 = math.radians(lon)
    p2 = math.asin(math.sin(p1) * math.cos(d) + math.cos(p1) * math.sin(d) * math.cos(b))
    l2 = l1 + math.atan2(
        math.sin(b) * math.sin(d) * math.cos(p1),
        math.cos(d) - math.sin(p1) * math.sin(p2),
    )
    return math.degrees(p2), math.degrees(l2)


def test_distance_to_same_point_is_zero():
    assert haversine_distance(*CDMX, *CDMX) == 0


def test_distance_is_symmetric():
    assert haversine_distance(*CDMX, *GUADALAJARA) == pytest.approx(
        haversine_distance(*GUADALAJARA, *CDMX),
    )


def test_cdmx_to_guadalajara_is_about_460_km():
    assert 450 < haversine_distance(*CDMX, *GUADALAJARA) < 475


def test_one_degree_of_latitude_is_about_111_km():
    assert haversine_distance(0, 0, 1, 0) == pytest.approx(111.195, abs=0.01)


@pytest.mark.parametrize("lat, lon", [
    (19.4326, -99.1332), (0, 0), (90, 180), (-90, -180),
])
def test_valid_coordinates_accepted(lat, lon):
    assert is_valid_coordinates(lat, lon)


@pytest.mark.parametrize("lat, lon", [
    (91, 0), (-90.1, 0), (0, 180.5), (0, -181),
    (float("nan"), 0), (0, float("nan")),
    (True, 0), ("19.4", -99.1), (None, -99.1),
])
def test_invalid_coordinates_rejected(lat, lon):
    assert not is_valid_coordinates(lat, lon)


def test_within_mexico():
    assert is_within_mexico(*CDMX)
    assert not is_within_mexico(40.7128, -74.0060)


@pytest.mark.parametrize("bearing", [0, 45, 90, 135, 180, 225, 270, 315])
def test_bounding_box_contains_points_just_inside_radius(bearing):
    box = bounding_box(*CDMX, 25)
    lat, lon = _destination(*CDMX, bearing, 24.999)
    assert box.contains(lat, lon)


def test_bounding_box_is_tight_enough_to_exclude_far_points():
    box = bounding_box(*CDMX, 10)
    assert not box.contains(*GUADALAJARA)


def test_bounding_box_near_pole_spans_all_longitudes():
    box = bounding_box(89.99, 0, 50)
    assert box.min_lon == -180.0
    assert box.max_lon == 180.0
    assert box.max_lat == 90.0


@pytest.mark.parametrize("bearing", [0, 60, 90, 120, 180, 240, 270, 300])
def test_bounding_box_across_antimeridian_contains_circle(bearing):
    centre = (-17.8, 179.95)
    box = bounding_box(*centre, 25)
    assert box.crosses_antimeridian
    assert box.min_lon > 179.0
    assert box.max_lon < -179.0
    lat, lon = _destination(*centre, bearing, 24.999)
    assert box.contains(lat, normalize_longitude(lon))


def test_antimeridian_box_excludes_far_longitudes():
    box = bounding_box(-17.8, -179.95, 25)
    assert box.crosses_antimeridian
    assert box.contains(-17.8, 179.9)
    assert not box.contains(-17.8, 0.0)
    assert not box.contains(-17.8, 178.0)


def test_normalize_longitude():
    assert normalize_longitude(180.2) == pytest.approx(-179.8)
    assert normalize_longitude(-180.5) == pytest.approx(179.5)
    assert normalize_longitude(-99.1) == -99.1


def test_format_coordinates_uses_spanish_cardinals():
    assert format_coordinates(19.5, -99.25) == "19.500000° N, 99.250000° O"
    assert format_coordinates(-33.0, 151.0) == "33.000000° S, 151.000000° E"


def test_google_maps_urls():
    assert google_maps_url(19.4, -99.1) == "https://www.google.com/maps?q=19.4,-99.1"
    assert google_maps_directions_url(1, 2, 3, 4) == (
        "https://www.google.com/maps/dir/1,2/3,4"
    )
