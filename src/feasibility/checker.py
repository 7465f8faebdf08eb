"""
Mission Feasibility Checker

Decides whether an uploaded mission may fly on the current vehicle.
Every sub-check runs on every pass so that a single upload reports all of
its problems at once.
"""

import logging
from functools import partial
from typing import Callable, Dict, List, Optional, Sequence

from ..mission.models import Mission, MissionItem
from ..mission.store import ItemStore, MemoryItemStore
from ..utils.geo import haversine_distance
from . import events
from .checks import (
    check_distance_to_first_waypoint,
    check_distances_between_waypoints,
    check_geofence,
    check_home_position_altitude,
    check_mission_item_validity,
    check_takeoff,
)
from .context import (
    CheckContext,
    CheckerState,
    CheckOutcome,
    FeasibilityResult,
    MissionResult,
    VehicleContext,
    VehicleType,
)
from .events import EventChannel, LoggingEventChannel
from .geofence import Geofence, NoGeofence
from .landing import (
    check_fixed_wing_landing,
    check_takeoff_land_available,
    check_vtol_landing,
    has_mission_landing,
)

logger = logging.getLogger(__name__)

SubCheck = Callable[[Mission, CheckContext, CheckerState], CheckOutcome]

LANDING_CHECKS: Dict[VehicleType, SubCheck] = {
    VehicleType.VTOL: check_vtol_landing,
    VehicleType.FIXED_WING: check_fixed_wing_landing,
    VehicleType.ROTARY_WING: has_mission_landing,
}


def item_contains_position(item: MissionItem) -> bool:
    """Default position predicate, from the command capability table"""
    return item.contains_position


class MissionFeasibilityChecker:
    """
    Runs all mission checks against one vehicle

    The checker holds no per-pass state: the takeoff/landing flags live in
    a CheckerState created for each call. Calls sharing a MissionResult
    must still be serialized by the caller.
    """

    def __init__(self, store: ItemStore, vehicle: VehicleContext,
                 geofence: Optional[Geofence] = None,
                 event_channel: Optional[EventChannel] = None,
                 mission_result: Optional[MissionResult] = None,
                 distance: Callable[[float, float, float, float], float] = haversine_distance,
                 contains_position: Callable[[MissionItem], bool] = item_contains_position):
        """
        Initialize feasibility checker

        Args:
            store: Item store the missions are read from
            vehicle: Vehicle, home and parameter state
            geofence: Geofence evaluator (no geofence if None)
            event_channel: Destination of diagnostics (log if None)
            mission_result: External result object receiving the warning flag
            distance: Great-circle distance function in meters
            contains_position: Predicate for items carrying a position
        """
        self.store = store
        self.vehicle = vehicle
        self.geofence = geofence or NoGeofence()
        self.event_channel = event_channel or LoggingEventChannel()
        self.mission_result = mission_result or MissionResult()
        self.distance = distance
        self.contains_position = contains_position

    def _context(self) -> CheckContext:
        return CheckContext(
            store=self.store,
            vehicle=self.vehicle,
            geofence=self.geofence,
            distance=self.distance,
            contains_position=self.contains_position,
        )

    def _pipeline(self, max_distance_between_waypoints: float) -> List[SubCheck]:
        """Sub-checks run after the home position checks, in order"""
        return [
            check_mission_item_validity,
            partial(check_distances_between_waypoints,
                    max_distance=max_distance_between_waypoints),
            check_geofence,
            check_home_position_altitude,
            check_takeoff,
            LANDING_CHECKS[self.vehicle.vehicle_type],
            check_takeoff_land_available,
        ]

    def check_mission_feasible(self, mission: Mission,
                               max_distance_to_first_waypoint: float = 0.0,
                               max_distance_between_waypoints: float = 0.0) -> FeasibilityResult:
        """
        Check whether a stored mission may fly

        Args:
            mission: Handle of the stored mission
            max_distance_to_first_waypoint: Max home to first waypoint distance
                in meters (<= 0 disables)
            max_distance_between_waypoints: Max distance between consecutive
                waypoints in meters (<= 0 disables)

        Returns:
            FeasibilityResult with the verdict, the warning flag and every
            diagnostic emitted during the pass
        """
        self.mission_result.warning = False

        # A mission without items cannot be valid
        if mission.count <= 0:
            return FeasibilityResult(accepted=False)

        ctx = self._context()
        state = CheckerState()
        outcomes: List[CheckOutcome] = []

        if not self.vehicle.home.alt_valid:
            outcomes.append(CheckOutcome.failed(state, events.info(
                "mission_no_position_lock", "Not yet ready for mission, no position lock")))
        else:
            outcomes.append(check_distance_to_first_waypoint(
                mission, ctx, state, max_distance=max_distance_to_first_waypoint))

        for sub_check in self._pipeline(max_distance_between_waypoints):
            outcome = sub_check(mission, ctx, state)
            state = outcome.state
            outcomes.append(outcome)

        diagnostics = []
        for outcome in outcomes:
            for diagnostic in outcome.diagnostics:
                self.event_channel.emit(diagnostic)
                diagnostics.append(diagnostic)

        accepted = all(outcome.passed for outcome in outcomes)
        warning = any(outcome.warning for outcome in outcomes)
        self.mission_result.warning = warning

        if accepted:
            logger.info(f"Mission {mission.storage_id} feasible ({mission.count} items"
                        f"{', with warnings' if warning else ''})")
        else:
            failures = sum(1 for outcome in outcomes if not outcome.passed)
            logger.warning(f"Mission {mission.storage_id} rejected: {failures} check(s) failed")

        return FeasibilityResult(accepted=accepted, warning=warning, diagnostics=diagnostics)


def check_items(items: Sequence[MissionItem], vehicle: VehicleContext,
                geofence: Optional[Geofence] = None,
                max_distance_to_first_waypoint: float = 0.0,
                max_distance_between_waypoints: float = 0.0,
                event_channel: Optional[EventChannel] = None) -> FeasibilityResult:
    """
    Check a mission given as a list of items

    Stores the items in a fresh in-memory store and runs a full pass.
    """
    store = MemoryItemStore()
    mission = store.store(items)
    checker = MissionFeasibilityChecker(store, vehicle, geofence=geofence,
                                        event_channel=event_channel)
    return checker.check_mission_feasible(
        mission,
        max_distance_to_first_waypoint=max_distance_to_first_waypoint,
        max_distance_between_waypoints=max_distance_between_waypoints,
    )
