"""Pure geographic helpers: distance, bearing, walking estimates and regions."""

from __future__ import annotations

import math

from dayguide.contracts import Coordinate


EARTH_RADIUS_METERS = 6_371_000.0
DEFAULT_WALK_SPEED_MPS = 1.25  # 4.5 km/h
MEDINA_WALK_MULTIPLIER = 0.7
_SLOW_WALK_REGIONS = {"medina", "medina_core", "kasbah", "souks"}


def distance_meters(origin: Coordinate, destination: Coordinate) -> float:
    """Great-circle distance using the haversine formula."""
    lat1 = math.radians(origin.lat)
    lat2 = math.radians(destination.lat)
    delta_lat = math.radians(destination.lat - origin.lat)
    delta_lng = math.radians(destination.lng - origin.lng)

    raw_a = math.sin(delta_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(delta_lng / 2) ** 2
    a = max(0.0, min(1.0, raw_a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def bearing_degrees(origin: Coordinate, destination: Coordinate) -> float:
    """Initial bearing in degrees, 0 = north, clockwise, normalized to [0, 360)."""
    lat1 = math.radians(origin.lat)
    lat2 = math.radians(destination.lat)
    delta_lng = math.radians(destination.lng - origin.lng)

    x = math.sin(delta_lng) * math.cos(lat2)
    y = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(delta_lng)
    return (math.degrees(math.atan2(x, y)) + 360) % 360


def relative_angle(target_bearing: float, device_heading: float) -> float:
    return (target_bearing - device_heading) % 360


def estimate_walk_minutes(meters: float, region: str) -> int:
    """Walking minutes with a 10% navigation buffer; old-city regions walk slower."""
    if meters <= 0:
        return 0
    multiplier = MEDINA_WALK_MULTIPLIER if region.lower() in _SLOW_WALK_REGIONS else 1.0
    seconds = meters / (DEFAULT_WALK_SPEED_MPS * multiplier)
    return math.ceil(seconds / 60.0 * 1.1)


def format_distance(meters: float) -> str:
    safe = max(0.0, meters)
    if safe < 100:
        return f"{_round_half_up(safe)} m"
    if safe < 1000:
        return f"{_round_half_up(safe / 10) * 10} m"
    return f"{_round_half_up(safe / 100) / 10:.1f} km"


def is_within_city(coordinate: Coordinate) -> bool:
    return 31.55 <= coordinate.lat <= 31.70 and -8.10 <= coordinate.lng <= -7.90


def determine_region(coordinate: Coordinate) -> str:
    lat, lng = coordinate.lat, coordinate.lng
    if 31.615 <= lat <= 31.640 and -8.00 <= lng <= -7.975:
        return "medina"
    if 31.630 <= lat <= 31.650 and -8.020 <= lng <= -7.995:
        return "gueliz"
    if lat < 31.620 and lng < -7.980:
        return "kasbah"
    return "other"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
