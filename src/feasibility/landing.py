"""
Landing checks

Landing sequences are validated per vehicle type. The ordering rules
around DO_LAND_START and RTL are shared; each vehicle type supplies the
step that validates a single landing item.
"""

import logging
import math
from dataclasses import replace
from typing import Callable, Collection, Optional

from ..mission.commands import NavCommand
from ..mission.models import Mission, MissionItem
from ..mission.store import StorageError
from . import events
from .checks import iter_items, storage_failure
from .context import CheckContext, CheckerState, CheckOutcome, TakeoffLandRequired

logger = logging.getLogger(__name__)

# float32 machine epsilon, minimum height of the approach above the landing point
FLT_EPSILON = 1.1920929e-07

# Rounding margin on the configured landing angle
LANDING_ANGLE_MARGIN_DEG = 0.1

# Validates one landing item, returns the rejection or None
LandingStep = Callable[[Mission, CheckContext, int, MissionItem], Optional[events.Diagnostic]]


def max_glide_slope(landing_angle_deg: float) -> float:
    """Steepest accepted glide slope (altitude / distance) for a landing angle"""
    return math.tan(math.radians(landing_angle_deg + LANDING_ANGLE_MARGIN_DEG))


def tangent_exit_distance(center_to_land: float, orbit_radius: float) -> float:
    """
    Distance from the tangent exit of an orbit to a point outside it

    Args:
        center_to_land: Distance from orbit center to the landing point
        orbit_radius: Orbit radius (absolute value is used)

    Returns:
        Length of the tangent segment in meters
    """
    radius = abs(orbit_radius)
    return math.sqrt(center_to_land * center_to_land - radius * radius)


def check_landing_sequence(mission: Mission, ctx: CheckContext, state: CheckerState,
                           landing_commands: Collection[int],
                           validate_landing: LandingStep,
                           require_validated: bool) -> CheckOutcome:
    """
    Scan the mission for landing sequences

    A DO_LAND_START must come before the landing approach, at most one may
    exist, and no RTL may follow it. Every landing item is handed to
    validate_landing.

    Args:
        landing_commands: Commands treated as a landing item
        validate_landing: Vehicle specific validation of one landing item
        require_validated: Reject if a landing is recorded but no landing
            item passed validation

    Returns:
        Outcome with has_landing set in its state
    """
    has_landing = state.has_landing
    land_start_index = 0
    approach_index = 0
    landing_validated = False

    def fail(diagnostic: events.Diagnostic) -> CheckOutcome:
        return CheckOutcome.failed(replace(state, has_landing=has_landing), diagnostic)

    try:
        for index, item in iter_items(ctx.store, mission):
            if item.nav_cmd == NavCommand.DO_LAND_START:
                if has_landing:
                    return fail(events.error(
                        "mission_multiple_land_start",
                        "Mission rejected: more than one land start commands",
                        item=index + 1))

                has_landing = True
                land_start_index = index

            if item.nav_cmd in landing_commands:
                has_landing = True

                if index > 0:
                    approach_index = index - 1

                rejection = validate_landing(mission, ctx, index, item)
                if rejection is not None:
                    return fail(rejection)

                landing_validated = True

            elif item.nav_cmd == NavCommand.RETURN_TO_LAUNCH:
                if has_landing and land_start_index < index:
                    return fail(events.error(
                        "mission_land_start_before_rtl",
                        "Mission rejected: land start item before RTL item is not possible",
                        item=index + 1))

    except StorageError as e:
        return fail(storage_failure(e))

    if has_landing and ((require_validated and not landing_validated)
                        or land_start_index > approach_index):
        return fail(events.error(
            "mission_invalid_land_start", "Mission rejected: invalid land start"))

    return CheckOutcome.ok(replace(state, has_landing=has_landing))


def _validate_fixed_wing_landing(mission: Mission, ctx: CheckContext,
                                 index: int, item: MissionItem) -> Optional[events.Diagnostic]:
    """
    Check the glide slope from the approach item to the landing point

    The approach is either a WAYPOINT, flown straight to the landing point,
    or a LOITER_TO_ALT orbit left on the tangent towards the landing point.
    """
    landing_angle = ctx.vehicle.landing_angle_deg
    if landing_angle is None:
        return events.error(
            "mission_land_angle_missing",
            "Mission rejected: landing angle parameter is missing", item=index + 1)

    if index == 0:
        return events.error(
            "mission_starts_with_landing",
            "Mission rejected: starts with landing", item=1)

    approach = ctx.store.read(mission.storage_id, index - 1)

    if not ctx.contains_position(approach):
        return events.error(
            "mission_landing_approach_required",
            "Mission rejected: landing approach is required", item=index + 1)

    home_alt = ctx.vehicle.home.alt
    relative_approach_alt = approach.altitude_amsl(home_alt) - item.altitude_amsl(home_alt)

    if relative_approach_alt < FLT_EPSILON:
        return events.error(
            "mission_approach_below_land",
            "Mission rejected: the approach waypoint must be above the landing point",
            item=index)

    if approach.nav_cmd == NavCommand.LOITER_TO_ALT:
        center_to_land = ctx.distance(approach.lat, approach.lon, item.lat, item.lon)
        orbit_radius = abs(approach.loiter_radius)

        if center_to_land <= orbit_radius:
            return events.error(
                "mission_land_inside_orbit",
                "Mission rejected: the landing point must be outside the orbit radius",
                item=index + 1)

        approach_distance = tangent_exit_distance(center_to_land, orbit_radius)

    elif approach.nav_cmd == NavCommand.WAYPOINT:
        approach_distance = ctx.distance(approach.lat, approach.lon, item.lat, item.lon)

    else:
        return events.error(
            "mission_unsupported_landing_approach",
            "Mission rejected: unsupported landing approach entrance waypoint type. "
            "Only LOITER_TO_ALT or WAYPOINT allowed", item=index)

    max_slope = max_glide_slope(landing_angle)

    if approach_distance > 0.0:
        glide_slope = relative_approach_alt / approach_distance
    else:
        glide_slope = math.inf

    if glide_slope > max_slope:
        acceptable_entrance_alt = int(max_slope * approach_distance)
        acceptable_landing_dist = int(math.ceil(relative_approach_alt / max_slope))
        return events.error(
            "mission_glide_slope_too_steep",
            "Mission rejected: the landing glide slope is steeper than the vehicle setting "
            "of {0}.{1} degrees. Reduce the glide slope, lower the entrance altitude {2} "
            "meters, or increase the landing approach distance {3} meters",
            int(landing_angle), int((landing_angle - math.floor(landing_angle)) * 10.0),
            acceptable_entrance_alt, acceptable_landing_dist, item=index + 1)

    return None


def _validate_vtol_landing(mission: Mission, ctx: CheckContext,
                           index: int, item: MissionItem) -> Optional[events.Diagnostic]:
    """VTOL landings only need an item before them"""
    if index == 0:
        return events.error(
            "mission_starts_with_landing",
            "Mission rejected: starts with land waypoint", item=1)

    ctx.store.read(mission.storage_id, index - 1)
    return None


def check_fixed_wing_landing(mission: Mission, ctx: CheckContext,
                             state: CheckerState) -> CheckOutcome:
    """Landing sequence check with full glide slope validation"""
    return check_landing_sequence(
        mission, ctx, state,
        landing_commands=(NavCommand.LAND,),
        validate_landing=_validate_fixed_wing_landing,
        require_validated=True,
    )


def check_vtol_landing(mission: Mission, ctx: CheckContext,
                       state: CheckerState) -> CheckOutcome:
    """Landing sequence check without approach geometry"""
    return check_landing_sequence(
        mission, ctx, state,
        landing_commands=(NavCommand.LAND, NavCommand.VTOL_LAND),
        validate_landing=_validate_vtol_landing,
        require_validated=False,
    )


def has_mission_landing(mission: Mission, ctx: CheckContext,
                        state: CheckerState) -> CheckOutcome:
    """
    Only detect whether the mission lands

    Used for rotary wing vehicles, whose landings need no approach.
    """
    found = False
    try:
        for _, item in iter_items(ctx.store, mission):
            if item.nav_cmd == NavCommand.LAND:
                found = True
    except StorageError as e:
        logger.warning(f"Landing scan aborted: {e}")
        found = False

    return CheckOutcome.ok(replace(state, has_landing=found))


def check_takeoff_land_available(mission: Mission, ctx: CheckContext,
                                 state: CheckerState) -> CheckOutcome:
    """Enforce the configured takeoff/landing presence policy"""
    try:
        policy = TakeoffLandRequired(ctx.vehicle.takeoff_land_required)
    except ValueError:
        # Unknown policy values are not enforced
        return CheckOutcome.ok(state)

    has_takeoff = state.has_takeoff
    has_landing = state.has_landing

    if policy == TakeoffLandRequired.TAKEOFF and not has_takeoff:
        return CheckOutcome.failed(state, events.error(
            "mission_takeoff_missing", "Mission rejected: Takeoff waypoint required"))

    if policy == TakeoffLandRequired.LANDING and not has_landing:
        return CheckOutcome.failed(state, events.error(
            "mission_land_missing", "Mission rejected: Landing waypoint/pattern required"))

    if policy == TakeoffLandRequired.BOTH and not (has_takeoff and has_landing):
        return CheckOutcome.failed(state, events.error(
            "mission_takeoff_or_land_missing",
            "Mission rejected: Takeoff or Landing item missing"))

    if policy == TakeoffLandRequired.SYMMETRIC and has_takeoff != has_landing:
        if has_takeoff:
            return CheckOutcome.failed(state, events.error(
                "mission_add_land_or_remove_takeoff",
                "Mission rejected: Add Landing item or remove Takeoff"))
        return CheckOutcome.failed(state, events.error(
            "mission_add_takeoff_or_remove_land",
            "Mission rejected: Add Takeoff item or remove Landing"))

    return CheckOutcome.ok(state)
