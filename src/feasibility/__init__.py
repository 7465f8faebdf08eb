"""
Mission feasibility checks

Rule engine deciding whether a stored mission may fly on a given vehicle.
"""

from .checker import MissionFeasibilityChecker, check_items
from .context import (
    CheckerState,
    FeasibilityResult,
    HomePosition,
    MissionResult,
    TakeoffLandRequired,
    VehicleContext,
    VehicleType,
)
from .events import (
    CollectingEventChannel,
    Diagnostic,
    EventChannel,
    LoggingEventChannel,
    Severity,
)
from .geofence import FenceCircle, FencePolygon, Geofence, NoGeofence, PolygonGeofence

__all__ = [
    # Checker
    'MissionFeasibilityChecker',
    'check_items',
    # Context
    'CheckerState',
    'FeasibilityResult',
    'HomePosition',
    'MissionResult',
    'TakeoffLandRequired',
    'VehicleContext',
    'VehicleType',
    # Events
    'CollectingEventChannel',
    'Diagnostic',
    'EventChannel',
    'LoggingEventChannel',
    'Severity',
    # Geofence
    'FenceCircle',
    'FencePolygon',
    'Geofence',
    'NoGeofence',
    'PolygonGeofence',
]
