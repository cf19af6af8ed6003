"""Geolocation — haversine distance, coordinate validation and bounding boxes.

Invariants:
    - Distances are kilometres on a sphere of radius 6371 km
    - is_valid_coordinates rejects NaN, booleans and out-of-range values
    - bounding_box always contains every point within radius_km of the centre

Design Decisions:
    - Bounding box is a cheap SQL prefilter; haversine is the exact filter
    - Longitude half-span is asin(sin(d)/cos(lat)), the exact tangent
      meridian for an angular radius d; clamped to 180 when a pole is inside
    - A box crossing the antimeridian keeps min_lon > max_lon (GeoJSON bbox
      convention) instead of being clamped at ±180
"""

import math
from dataclasses import dataclass

EARTH_RADIUS_KM = 6371.0

MEXICO_BOUNDS = {
    "min_lat": 14.5,
    "max_lat": 32.7,
    "min_lon": -118.4,
    "max_lon": -86.7,
}


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    @property
    def crosses_antimeridian(self) -> bool:
        return self.min_lon > self.max_lon

    def contains(self, lat: float, lon: float) -> bool:
        if not self.min_lat <= lat <= self.max_lat:
            return False
        lon = normalize_longitude(lon)
        if self.crosses_antimeridian:
            return lon >= self.min_lon or lon <= self.max_lon
        return self.min_lon <= lon <= self.max_lon


def normalize_longitude(lon: float) -> float:
    """Wrap a longitude into [-180, 180]."""
    if -180.0 <= lon <= 180.0:
        return lon
    return (lon + 180.0) % 360.0 - 180.0


def haversine_distance(
    lat1: float, lon1: float, lat2: float, lon2: float,
) -> float:
    """Great-circle distance in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_valid_coordinates(lat: object, lon: object) -> bool:
    if not (_is_number(lat) and _is_number(lon)):
        return False
    if math.isnan(lat) or math.isnan(lon):
        return False
    return -90 <= lat <= 90 and -180 <= lon <= 180


def is_within_mexico(lat: float, lon: float) -> bool:
    return (
        MEXICO_BOUNDS["min_lat"] <= lat <= MEXICO_BOUNDS["max_lat"]
        and MEXICO_BOUNDS["min_lon"] <= lon <= MEXICO_BOUNDS["max_lon"]
    )


def bounding_box(lat: float, lon: float, radius_km: float) -> BoundingBox:
    """Lat/lon rectangle enclosing the circle of radius_km around (lat, lon)."""
    angular = radius_km / EARTH_RADIUS_KM
    d_lat = math.degrees(angular)
    cos_lat = math.cos(math.radians(lat))
    if cos_lat <= math.sin(angular):
        # circle reaches a pole: every longitude qualifies
        d_lon = 180.0
    else:
        d_lon = math.degrees(math.asin(math.sin(angular) / cos_lat))
    if d_lon >= 180.0:
        min_lon, max_lon = -180.0, 180.0
    else:
        min_lon = normalize_longitude(lon - d_lon)
        max_lon = normalize_longitude(lon + d_lon)
    return BoundingBox(
        min_lat=max(-90.0, lat - d_lat),
        max_lat=min(90.0, lat + d_lat),
        min_lon=min_lon,
        max_lon=max_lon,
    )


def format_coordinates(lat: float, lon: float) -> str:
    """Human-readable coordinates, Spanish cardinal letters (O = oeste)."""
    lat_dir = "N" if lat >= 0 else "S"
    lon_dir = "E" if lon >= 0 else "O"
    return f"{abs(lat):.6f}° {lat_dir}, {abs(lon):.6f}° {lon_dir}"


def google_maps_url(lat: float, lon: float) -> str:
    return f"https://www.google.com/maps?q={lat},{lon}"


def google_maps_directions_url(
    from_lat: float, from_lon: float, to_lat: float, to_lon: float,
) -> str:
    return (
        f"https://www.google.com/maps/dir/"
        f"{from_lat},{from_lon}/{to_lat},{to_lon}"
    )
