"""
Utility modules
"""

from .geo import haversine_distance, gps_to_local, destination_point
from .logger import setup_logging

__all__ = [
    'haversine_distance',
    'gps_to_local',
    'destination_point',
    'setup_logging',
]
