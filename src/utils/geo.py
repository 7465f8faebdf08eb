"""
Geographic utilities

Great-circle distances and local projections used by the mission checks.
"""

import math
from typing import Tuple

# WGS84 equatorial radius
EARTH_RADIUS_M = 6378137.0


def haversine_distance(lat1: float, lon1: float,
                       lat2: float, lon2: float) -> float:
    """
    Calculate great-circle distance between two points

    Uses haversine formula for accuracy over long distances.

    Args:
        lat1, lon1: First point in degrees
        lat2, lon2: Second point in degrees

    Returns:
        Distance in meters
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = (math.sin(d_lat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(d_lon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def gps_to_local(lat: float, lon: float,
                 ref_lat: float, ref_lon: float) -> Tuple[float, float]:
    """
    Project a GPS position onto a local North-East plane

    Uses flat Earth approximation, accurate for distances < 10km

    Args:
        lat, lon: Position in degrees
        ref_lat, ref_lon: Origin of the local frame

    Returns:
        Tuple of (north, east) in meters
    """
    d_lat = math.radians(lat - ref_lat)
    d_lon = math.radians(lon - ref_lon)

    north = d_lat * EARTH_RADIUS_M
    east = d_lon * EARTH_RADIUS_M * math.cos(math.radians(ref_lat))

    return north, east


def destination_point(lat: float, lon: float,
                      bearing_deg: float, distance_m: float) -> Tuple[float, float]:
    """
    Calculate destination point given start, bearing and distance

    Args:
        lat, lon: Start point in degrees
        bearing_deg: Bearing in degrees
        distance_m: Distance in meters

    Returns:
        Tuple of (lat, lon) in degrees
    """
    lat_rad = math.radians(lat)
    lon_rad = math.radians(lon)
    bearing_rad = math.radians(bearing_deg)

    angular_dist = distance_m / EARTH_RADIUS_M

    lat2_rad = math.asin(
        math.sin(lat_rad) * math.cos(angular_dist) +
        math.cos(lat_rad) * math.sin(angular_dist) * math.cos(bearing_rad)
    )

    lon2_rad = lon_rad + math.atan2(
        math.sin(bearing_rad) * math.sin(angular_dist) * math.cos(lat_rad),
        math.cos(angular_dist) - math.sin(lat_rad) * math.sin(lat2_rad)
    )

    return math.degrees(lat2_rad), math.degrees(lon2_rad)
