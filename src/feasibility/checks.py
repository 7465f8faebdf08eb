"""
Mission feasibility sub-checks

Each check scans the stored mission through the item store and returns a
CheckOutcome. A check stops at its first hard failure; warnings are
collected and the scan continues.
"""

import logging
import math
from dataclasses import replace
from typing import Iterator, List, Optional, Tuple

from ..mission.commands import NavCommand, is_pre_takeoff_tolerable, is_supported
from ..mission.models import Mission, MissionItem
from ..mission.store import ItemStore, StorageError
from . import events
from .context import CheckContext, CheckerState, CheckOutcome

logger = logging.getLogger(__name__)

# Valid set-servo actuator indices
MAX_SERVO_INDEX = 5

# Item acceptance radii at or below this use the vehicle default
NAV_EPSILON_POSITION = 0.001    # meters

# Takeoff must climb this far beyond the acceptance radius
TAKEOFF_MIN_CLEARANCE = 1.0     # meters

# Altitude comparisons tolerate float error from frame conversion
ALTITUDE_TOLERANCE = 1e-6       # meters

# Condition gates closer than this to their neighbour have no direction
MIN_GATE_SEPARATION = 0.05      # meters

TAKEOFF_COMMANDS = (NavCommand.TAKEOFF, NavCommand.VTOL_TAKEOFF)


def iter_items(store: ItemStore, mission: Mission) -> Iterator[Tuple[int, MissionItem]]:
    """Yield (index, item) for every stored item, StorageError on read failure"""
    for index in range(mission.count):
        yield index, store.read(mission.storage_id, index)


def storage_failure(error: StorageError, message: str = "Mission rejected: Cannot access mission storage"):
    logger.debug(f"Mission storage read failed: {error}")
    return events.error("mission_storage_failure", message)


def check_mission_item_validity(mission: Mission, ctx: CheckContext,
                                state: CheckerState) -> CheckOutcome:
    """Reject unsupported commands and out of range actuator settings"""
    max_value = ctx.vehicle.max_actuator_value

    try:
        for index, item in iter_items(ctx.store, mission):
            if not is_supported(item.nav_cmd):
                return CheckOutcome.failed(state, events.error(
                    "mission_unsupported_command",
                    "Mission rejected: item {0}: unsupported command: {1}",
                    index + 1, int(item.nav_cmd), item=index + 1))

            if item.nav_cmd == NavCommand.DO_SET_SERVO:
                actuator = item.params[0]
                if actuator < 0 or actuator > MAX_SERVO_INDEX:
                    return CheckOutcome.failed(state, events.error(
                        "mission_actuator_index",
                        "Actuator number {0} is out of bounds 0..{1}",
                        int(actuator), MAX_SERVO_INDEX, item=index + 1))

                value = item.params[1]
                if value < -max_value or value > max_value:
                    return CheckOutcome.failed(state, events.error(
                        "mission_actuator_range",
                        "Actuator value {0} is out of bounds -{1}..{1}",
                        int(value), int(max_value), item=index + 1))

            if index == 0 and item.nav_cmd == NavCommand.LAND and ctx.vehicle.landed:
                return CheckOutcome.failed(state, events.error(
                    "mission_starts_with_landing",
                    "Mission rejected: starts with landing", item=1))

    except StorageError as e:
        return CheckOutcome.failed(state, storage_failure(e))

    return CheckOutcome.ok(state)


def check_geofence(mission: Mission, ctx: CheckContext,
                   state: CheckerState) -> CheckOutcome:
    """All position items must lie inside the geofence"""
    geofence = ctx.geofence
    home = ctx.vehicle.home

    if geofence.is_home_required() and not home.valid:
        return CheckOutcome.failed(state, events.error(
            "mission_geofence_no_home", "Geofence requires a valid home position"))

    if not geofence.valid():
        return CheckOutcome.ok(state)

    try:
        for index, item in iter_items(ctx.store, mission):
            if item.altitude_is_relative and not home.valid:
                return CheckOutcome.failed(state, events.error(
                    "mission_geofence_no_home",
                    "Geofence requires a valid home position", item=index + 1))

            # Geofence altitudes are AMSL
            resolved = item.with_altitude_amsl(home.alt)

            if ctx.contains_position(resolved) and not geofence.check(resolved):
                return CheckOutcome.failed(state, events.error(
                    "mission_geofence_violation",
                    "Geofence violation for waypoint {0}", index + 1, item=index + 1))

    except StorageError as e:
        return CheckOutcome.failed(state, storage_failure(e))

    return CheckOutcome.ok(state)


def check_home_position_altitude(mission: Mission, ctx: CheckContext,
                                 state: CheckerState) -> CheckOutcome:
    """Warn about waypoints below home, reject relative altitudes without home"""
    home = ctx.vehicle.home
    warnings: List[events.Diagnostic] = []

    try:
        for index, item in iter_items(ctx.store, mission):
            has_position = ctx.contains_position(item)

            if item.altitude_is_relative and not home.alt_valid and has_position:
                return CheckOutcome.failed(state, events.error(
                    "mission_no_home_relative_alt",
                    "Mission rejected: No home position, waypoint {0} uses relative altitude",
                    index + 1, item=index + 1), warning=True, diagnostics=tuple(warnings))

            wp_alt = item.altitude_amsl(home.alt)

            if home.alt_valid and home.alt > wp_alt and has_position:
                warnings.append(events.warning(
                    "mission_waypoint_below_home",
                    "Waypoint {0} below home", index + 1, item=index + 1))

    except StorageError as e:
        return CheckOutcome.failed(state, storage_failure(e), warning=True,
                                   diagnostics=tuple(warnings))

    return CheckOutcome.ok(state, warning=bool(warnings), diagnostics=tuple(warnings))


def check_distance_to_first_waypoint(mission: Mission, ctx: CheckContext,
                                     state: CheckerState,
                                     max_distance: float) -> CheckOutcome:
    """The first position item must be within max_distance of home"""
    if max_distance <= 0.0:
        # Check disabled
        return CheckOutcome.ok(state)

    home = ctx.vehicle.home

    try:
        for index, item in iter_items(ctx.store, mission):
            if not ctx.contains_position(item):
                continue

            dist_to_first = ctx.distance(item.lat, item.lon, home.lat, home.lon)

            if dist_to_first < max_distance:
                return CheckOutcome.ok(state)

            return CheckOutcome.failed(state, events.error(
                "mission_first_waypoint_too_far",
                "First waypoint too far away: {0}m (maximum: {1}m)",
                int(dist_to_first), int(max_distance), item=index + 1), warning=True)

    except StorageError as e:
        return CheckOutcome.failed(state, storage_failure(e, "Error reading mission storage"))

    # No position items, the vehicle will not fly away
    return CheckOutcome.ok(state)


def check_distances_between_waypoints(mission: Mission, ctx: CheckContext,
                                      state: CheckerState,
                                      max_distance: float) -> CheckOutcome:
    """Consecutive position items must be neither too far apart nor coincident gates"""
    if max_distance <= 0.0:
        # Check disabled
        return CheckOutcome.ok(state)

    last: Optional[MissionItem] = None

    try:
        for index, item in iter_items(ctx.store, mission):
            if not ctx.contains_position(item):
                continue

            if last is not None:
                dist = ctx.distance(item.lat, item.lon, last.lat, last.lon)

                if dist > max_distance:
                    return CheckOutcome.failed(state, events.error(
                        "mission_waypoints_too_far",
                        "Distance between waypoints too far: {0}m, (maximum: {1}m)",
                        int(dist), int(max_distance), item=index + 1), warning=True)

                gate = NavCommand.CONDITION_GATE
                if dist < MIN_GATE_SEPARATION and (item.nav_cmd == gate or last.nav_cmd == gate):
                    # A gate on top of its neighbour has no direction
                    return CheckOutcome.failed(state, events.error(
                        "mission_gate_too_close",
                        "Distance between waypoint and gate too close: {0:.3f}m (minimum: {1:.3f}m)",
                        dist, MIN_GATE_SEPARATION, item=index + 1), warning=True)

            last = item

    except StorageError as e:
        return CheckOutcome.failed(state, storage_failure(e, "Error reading mission storage"))

    return CheckOutcome.ok(state)


def check_takeoff(mission: Mission, ctx: CheckContext,
                  state: CheckerState) -> CheckOutcome:
    """
    Validate takeoff items

    Every takeoff must climb at least one meter beyond its acceptance radius
    so the takeoff is not considered complete while still near the ground.
    The first takeoff must also be the first item that moves the vehicle:
    only pre-takeoff tolerable commands may precede it.

    Sets has_takeoff in the returned state.
    """
    home_alt = ctx.vehicle.home.alt
    has_takeoff = state.has_takeoff
    first_takeoff: Optional[int] = None
    leading_commands: List[int] = []

    try:
        for index, item in iter_items(ctx.store, mission):
            if item.nav_cmd not in TAKEOFF_COMMANDS:
                if first_takeoff is None:
                    leading_commands.append(item.nav_cmd)
                continue

            if item.altitude_is_relative:
                takeoff_alt = item.altitude
            else:
                takeoff_alt = item.altitude - home_alt

            acceptance_radius = ctx.vehicle.default_acceptance_radius
            if item.acceptance_radius > NAV_EPSILON_POSITION:
                acceptance_radius = item.acceptance_radius

            minimum = acceptance_radius + TAKEOFF_MIN_CLEARANCE
            if (takeoff_alt < minimum and
                    not math.isclose(takeoff_alt, minimum, abs_tol=ALTITUDE_TOLERANCE)):
                return CheckOutcome.failed(replace(state, has_takeoff=has_takeoff), events.error(
                    "mission_takeoff_too_low",
                    "Mission rejected: takeoff altitude too low! Minimum: {0:.1f}m",
                    minimum, item=index + 1))

            has_takeoff = True
            if first_takeoff is None:
                first_takeoff = index

    except StorageError as e:
        return CheckOutcome.failed(replace(state, has_takeoff=has_takeoff), storage_failure(e))

    state = replace(state, has_takeoff=has_takeoff)

    if first_takeoff is not None:
        takeoff_first = all(is_pre_takeoff_tolerable(cmd) for cmd in leading_commands)
        if not takeoff_first:
            return CheckOutcome.failed(state, events.error(
                "mission_takeoff_not_first",
                "Mission rejected: takeoff is not the first waypoint item",
                item=first_takeoff + 1))

    return CheckOutcome.ok(state)
