"""
Tests for the mission feasibility checker

Runs complete passes over realistic missions.
"""

import pytest
from dataclasses import replace

from src.feasibility import (
    HomePosition,
    MissionFeasibilityChecker,
    MissionResult,
    Severity,
    TakeoffLandRequired,
    check_items,
)
from src.feasibility.checker import LANDING_CHECKS
from src.feasibility.context import VehicleType
from src.feasibility.landing import check_fixed_wing_landing, check_vtol_landing, has_mission_landing
from src.mission.commands import NavCommand
from src.mission.models import Mission, MissionItem
from src.mission.store import MemoryItemStore


def codes(result):
    return [d.code for d in result.diagnostics]


@pytest.fixture
def survey(item_at):
    """Multicopter mission: takeoff, two waypoints, land"""
    return [
        item_at(NavCommand.TAKEOFF, alt=20),
        item_at(NavCommand.WAYPOINT, north=300, alt=30),
        item_at(NavCommand.WAYPOINT, north=300, east=300, alt=30),
        item_at(NavCommand.LAND, north=300, east=300, alt=0),
    ]


@pytest.fixture
def fixed_wing_mission(item_at):
    """Fixed-wing mission with a 500m final approach"""
    return [
        item_at(NavCommand.TAKEOFF, alt=30),
        item_at(NavCommand.WAYPOINT, north=800, alt=40),
        MissionItem(NavCommand.DO_LAND_START),
        item_at(NavCommand.WAYPOINT, north=500, alt=40),
        item_at(NavCommand.LAND, alt=0),
    ]


class TestMissionFeasibilityChecker:
    """Test complete feasibility passes"""

    def test_accepts_valid_mission(self, rotary_wing, survey, channel):
        result = check_items(survey, rotary_wing, max_distance_to_first_waypoint=900.0,
                             max_distance_between_waypoints=900.0, event_channel=channel)

        assert result.accepted
        assert not result.warning
        assert result.diagnostics == []
        assert channel.diagnostics == []

    def test_accepts_fixed_wing_mission(self, fixed_wing, fixed_wing_mission):
        result = check_items(fixed_wing_mission, fixed_wing,
                             max_distance_to_first_waypoint=900.0,
                             max_distance_between_waypoints=900.0)

        assert result.accepted

    def test_empty_mission_rejected(self, rotary_wing, channel):
        result = check_items([], rotary_wing, event_channel=channel)

        assert not result.accepted
        assert result.diagnostics == []
        assert channel.diagnostics == []

    def test_reports_every_failure(self, rotary_wing, item_at):
        """Later checks still run after an earlier one rejected"""
        items = [
            item_at(NavCommand.TAKEOFF, alt=5),
            item_at(NavCommand.LOITER_TURNS, north=100),
        ]
        result = check_items(items, rotary_wing)

        assert not result.accepted
        assert "mission_unsupported_command" in codes(result)
        assert "mission_takeoff_too_low" in codes(result)
        assert len(result.violations) == 2

    def test_no_position_lock(self, rotary_wing, survey):
        vehicle = replace(rotary_wing, home=HomePosition())
        result = check_items(survey, vehicle, max_distance_to_first_waypoint=900.0)

        assert not result.accepted
        assert result.diagnostics[0].code == "mission_no_position_lock"
        assert result.diagnostics[0].severity == Severity.INFO
        assert "mission_no_home_relative_alt" in codes(result)
        assert result.violations[0].code == "mission_no_position_lock"

    def test_warning_only_mission_accepted(self, rotary_wing, item_at):
        items = [
            item_at(NavCommand.TAKEOFF, alt=20),
            item_at(NavCommand.WAYPOINT, north=100, alt=-10),
        ]
        result = check_items(items, rotary_wing)

        assert result.accepted
        assert result.warning
        assert codes(result) == ["mission_waypoint_below_home"]
        assert result.violations == []
        assert len(result.warnings) == 1

    def test_warning_mirrored_and_reset(self, rotary_wing, item_at, survey):
        store = MemoryItemStore()
        mission_result = MissionResult()
        checker = MissionFeasibilityChecker(store, rotary_wing, mission_result=mission_result)

        low = store.store([item_at(NavCommand.TAKEOFF), item_at(NavCommand.WAYPOINT, alt=-10)])
        checker.check_mission_feasible(low)
        assert mission_result.warning

        checker.check_mission_feasible(store.store(survey))
        assert not mission_result.warning

    def test_distance_warning_mirrored(self, rotary_wing, item_at):
        store = MemoryItemStore()
        mission_result = MissionResult()
        checker = MissionFeasibilityChecker(store, rotary_wing, mission_result=mission_result)
        mission = store.store([item_at(NavCommand.WAYPOINT, north=1000.5)])

        result = checker.check_mission_feasible(mission, max_distance_to_first_waypoint=900.0)

        assert not result.accepted
        assert result.warning
        assert mission_result.warning
        assert codes(result) == ["mission_first_waypoint_too_far"]

    def test_events_emitted_in_order(self, rotary_wing, item_at, channel):
        items = [
            item_at(NavCommand.WAYPOINT, north=1000.5),
            item_at(NavCommand.WAYPOINT, north=2500.5, alt=-10),
        ]
        result = check_items(items, rotary_wing, max_distance_to_first_waypoint=900.0,
                             max_distance_between_waypoints=900.0, event_channel=channel)

        assert channel.codes == codes(result)
        assert channel.codes == [
            "mission_first_waypoint_too_far",
            "mission_waypoints_too_far",
            "mission_waypoint_below_home",
        ]

    def test_storage_failure(self, rotary_wing, failing_store, survey):
        checker = MissionFeasibilityChecker(failing_store(survey, fail_from=1), rotary_wing)
        result = checker.check_mission_feasible(Mission(count=len(survey), storage_id="broken"),
                                                max_distance_to_first_waypoint=900.0,
                                                max_distance_between_waypoints=900.0)

        assert not result.accepted
        assert "mission_storage_failure" in codes(result)
        assert "mission_storage_failure" == result.violations[0].code

    def test_injected_distance(self, rotary_wing, item_at):
        store = MemoryItemStore()
        checker = MissionFeasibilityChecker(store, rotary_wing, distance=lambda *args: 0.0)
        mission = store.store([item_at(NavCommand.TAKEOFF), item_at(NavCommand.WAYPOINT, north=5000)])

        assert checker.check_mission_feasible(mission, max_distance_to_first_waypoint=900.0).accepted

    def test_injected_position_predicate(self, rotary_wing, item_at):
        store = MemoryItemStore()
        checker = MissionFeasibilityChecker(store, rotary_wing,
                                            contains_position=lambda item: False)
        mission = store.store([item_at(NavCommand.WAYPOINT, north=5000)])

        assert checker.check_mission_feasible(mission, max_distance_to_first_waypoint=900.0).accepted

    def test_result_to_dict(self, rotary_wing, item_at):
        result = check_items([item_at(NavCommand.LOITER_TURNS)], rotary_wing)
        data = result.to_dict()

        assert data["accepted"] is False
        assert data["diagnostics"][0] == {
            "severity": "error",
            "code": "mission_unsupported_command",
            "message": "Mission rejected: item 1: unsupported command: 18",
            "item": 1,
        }


class TestLandingDispatch:
    """Test that each vehicle type gets its landing check"""

    def test_landing_checks_table(self):
        assert LANDING_CHECKS[VehicleType.FIXED_WING] is check_fixed_wing_landing
        assert LANDING_CHECKS[VehicleType.VTOL] is check_vtol_landing
        assert LANDING_CHECKS[VehicleType.ROTARY_WING] is has_mission_landing

    def test_steep_landing_only_matters_for_fixed_wing(self, rotary_wing, fixed_wing, item_at):
        items = [
            item_at(NavCommand.TAKEOFF, alt=30),
            item_at(NavCommand.WAYPOINT, north=100, alt=60),
            item_at(NavCommand.LAND, alt=0),
        ]

        assert check_items(items, rotary_wing).accepted

        result = check_items(items, fixed_wing)
        assert not result.accepted
        assert codes(result) == ["mission_glide_slope_too_steep"]

    def test_vtol_land_counts_as_landing_for_vtol(self, rotary_wing, vtol, item_at):
        items = [
            item_at(NavCommand.VTOL_TAKEOFF, alt=30),
            item_at(NavCommand.WAYPOINT, north=100, alt=30),
            item_at(NavCommand.VTOL_LAND, north=100, alt=0),
        ]
        both = TakeoffLandRequired.BOTH

        assert check_items(items, replace(vtol, takeoff_land_required=both)).accepted

        result = check_items(items, replace(rotary_wing, takeoff_land_required=both))
        assert not result.accepted
        assert codes(result) == ["mission_takeoff_or_land_missing"]

    def test_landing_policy_sees_fixed_wing_landing(self, fixed_wing, fixed_wing_mission):
        vehicle = replace(fixed_wing, takeoff_land_required=TakeoffLandRequired.SYMMETRIC)

        assert check_items(fixed_wing_mission, vehicle).accepted

    def test_policy_requires_takeoff(self, rotary_wing, item_at):
        vehicle = replace(rotary_wing, takeoff_land_required=TakeoffLandRequired.TAKEOFF)
        result = check_items([item_at(NavCommand.WAYPOINT, north=50)], vehicle)

        assert codes(result) == ["mission_takeoff_missing"]
