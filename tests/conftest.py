"""
Pytest configuration and fixtures
"""

import math
import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.feasibility.checker import item_contains_position
from src.feasibility.context import (
    CheckContext,
    CheckerState,
    HomePosition,
    VehicleContext,
    VehicleType,
)
from src.feasibility.events import CollectingEventChannel
from src.feasibility.geofence import NoGeofence
from src.mission.models import MissionItem
from src.mission.store import ItemStore, MemoryItemStore, StorageError
from src.utils.geo import destination_point, haversine_distance

HOME_LAT = 47.397742
HOME_LON = 8.545594
HOME_ALT = 488.0


class FailingStore(ItemStore):
    """Item store whose reads fail from a given index on"""

    def __init__(self, items, fail_from: int = 0):
        self.items = list(items)
        self.fail_from = fail_from

    def read(self, storage_id, index):
        if index >= self.fail_from:
            raise StorageError(f"read of item {index} failed")
        return self.items[index]


@pytest.fixture
def home():
    """Fixture for a fully known home position"""
    return HomePosition.at(HOME_LAT, HOME_LON, HOME_ALT)


@pytest.fixture
def rotary_wing(home):
    """Fixture for a landed multicopter"""
    return VehicleContext(vehicle_type=VehicleType.ROTARY_WING, home=home)


@pytest.fixture
def fixed_wing(home):
    """Fixture for a landed fixed-wing with 5 degree landing angle"""
    return VehicleContext(vehicle_type=VehicleType.FIXED_WING, home=home, landing_angle_deg=5.0)


@pytest.fixture
def vtol(home):
    """Fixture for a landed VTOL"""
    return VehicleContext(vehicle_type=VehicleType.VTOL, home=home)


@pytest.fixture
def channel():
    """Fixture for an event channel keeping diagnostics in memory"""
    return CollectingEventChannel()


@pytest.fixture
def item_at(home):
    """
    Factory for mission items placed relative to home

    item_at(cmd, north=0, east=0, alt=20, **fields) places the item
    north/east meters from home, altitude relative unless given otherwise.
    """
    def make(cmd, north=0.0, east=0.0, alt=20.0, **fields):
        distance = math.hypot(north, east)
        bearing = math.degrees(math.atan2(east, north))
        lat, lon = destination_point(home.lat, home.lon, bearing, distance)
        return MissionItem(nav_cmd=cmd, lat=lat, lon=lon, altitude=alt, **fields)

    return make


@pytest.fixture
def run_check():
    """
    Run a single sub-check over a list of items

    run_check(check, items, vehicle, geofence=None, state=None, store=None,
    distance=None, **kwargs) returns the CheckOutcome.
    """
    def run(check, items, vehicle, geofence=None, state=None, store=None,
            distance=None, **kwargs):
        if store is None:
            store = MemoryItemStore()
            mission = store.store(items)
        else:
            mission = MemoryItemStore().store(items)
        ctx = CheckContext(
            store=store,
            vehicle=vehicle,
            geofence=geofence or NoGeofence(),
            distance=distance or haversine_distance,
            contains_position=item_contains_position,
        )
        return check(mission, ctx, state or CheckerState(), **kwargs)

    return run


@pytest.fixture
def failing_store():
    """Factory for stores failing from a given item index"""
    return FailingStore
