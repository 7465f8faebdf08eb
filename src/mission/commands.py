"""
Mission command taxonomy

Numeric command codes understood by the mission checks and the capability
table that classifies them. Codes follow the MAVLink MAV_CMD numbering, with
IDLE (0) as the placeholder for an empty item.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Optional, Union


class NavCommand(IntEnum):
    """Known mission item commands"""
    IDLE = 0
    WAYPOINT = 16
    LOITER_UNLIMITED = 17
    LOITER_TURNS = 18
    LOITER_TIME_LIMIT = 19
    RETURN_TO_LAUNCH = 20
    LAND = 21
    TAKEOFF = 22
    LOITER_TO_ALT = 31
    DO_FOLLOW_REPOSITION = 33
    VTOL_TAKEOFF = 84
    VTOL_LAND = 85
    DELAY = 93
    DO_JUMP = 177
    DO_CHANGE_SPEED = 178
    DO_SET_HOME = 179
    DO_SET_SERVO = 183
    DO_SET_ACTUATOR = 187
    DO_LAND_START = 189
    DO_SET_ROI_LOCATION = 195
    DO_SET_ROI_WPNEXT_OFFSET = 196
    DO_SET_ROI_NONE = 197
    DO_CONTROL_VIDEO = 200
    DO_SET_ROI = 201
    DO_DIGICAM_CONTROL = 203
    DO_MOUNT_CONFIGURE = 204
    DO_MOUNT_CONTROL = 205
    DO_SET_CAM_TRIGG_DIST = 206
    DO_GRIPPER = 211
    DO_SET_CAM_TRIGG_INTERVAL = 214
    OBLIQUE_SURVEY = 260
    SET_CAMERA_MODE = 530
    SET_CAMERA_ZOOM = 531
    SET_CAMERA_FOCUS = 532
    DO_GIMBAL_MANAGER_PITCHYAW = 1000
    DO_GIMBAL_MANAGER_CONFIGURE = 1001
    IMAGE_START_CAPTURE = 2000
    IMAGE_STOP_CAPTURE = 2001
    DO_TRIGGER_CONTROL = 2003
    VIDEO_START_CAPTURE = 2500
    VIDEO_STOP_CAPTURE = 2501
    DO_VTOL_TRANSITION = 3000
    CONDITION_GATE = 4501
    FENCE_RETURN_POINT = 5000
    FENCE_POLYGON_VERTEX_INCLUSION = 5001
    FENCE_POLYGON_VERTEX_EXCLUSION = 5002
    FENCE_CIRCLE_INCLUSION = 5003
    FENCE_CIRCLE_EXCLUSION = 5004
    RALLY_POINT = 5100
    DO_WINCH = 42600


@dataclass(frozen=True)
class CommandCapability:
    """What the mission checks may assume about a command"""
    supported: bool = False         # may appear in an uploaded mission
    contains_position: bool = False  # lat/lon are meaningful
    pre_takeoff: bool = False       # may precede the first takeoff


_NAV = CommandCapability(supported=True, contains_position=True)
_SUPPORTED = CommandCapability(supported=True)
_PRE_TAKEOFF = CommandCapability(supported=True, pre_takeoff=True)

# IDLE and DO_SET_ACTUATOR are supported but not tolerated before a takeoff
# (ordering policy pending confirmation, see DESIGN.md).
CAPABILITIES: Dict[NavCommand, CommandCapability] = {
    NavCommand.IDLE: _SUPPORTED,
    NavCommand.WAYPOINT: _NAV,
    NavCommand.LOITER_UNLIMITED: _NAV,
    NavCommand.LOITER_TIME_LIMIT: _NAV,
    NavCommand.RETURN_TO_LAUNCH: _SUPPORTED,
    NavCommand.LAND: _NAV,
    NavCommand.TAKEOFF: _NAV,
    NavCommand.LOITER_TO_ALT: _NAV,
    NavCommand.VTOL_TAKEOFF: _NAV,
    NavCommand.VTOL_LAND: _NAV,
    NavCommand.DELAY: _PRE_TAKEOFF,
    NavCommand.CONDITION_GATE: _NAV,
    NavCommand.DO_WINCH: _SUPPORTED,
    NavCommand.DO_GRIPPER: _SUPPORTED,
    NavCommand.DO_JUMP: _PRE_TAKEOFF,
    NavCommand.DO_CHANGE_SPEED: _PRE_TAKEOFF,
    NavCommand.DO_SET_HOME: _PRE_TAKEOFF,
    NavCommand.DO_SET_SERVO: _PRE_TAKEOFF,
    NavCommand.DO_SET_ACTUATOR: _SUPPORTED,
    NavCommand.DO_LAND_START: _PRE_TAKEOFF,
    NavCommand.DO_TRIGGER_CONTROL: _PRE_TAKEOFF,
    NavCommand.DO_DIGICAM_CONTROL: _PRE_TAKEOFF,
    NavCommand.IMAGE_START_CAPTURE: _PRE_TAKEOFF,
    NavCommand.IMAGE_STOP_CAPTURE: _PRE_TAKEOFF,
    NavCommand.VIDEO_START_CAPTURE: _PRE_TAKEOFF,
    NavCommand.VIDEO_STOP_CAPTURE: _PRE_TAKEOFF,
    NavCommand.DO_CONTROL_VIDEO: _PRE_TAKEOFF,
    NavCommand.DO_MOUNT_CONFIGURE: _PRE_TAKEOFF,
    NavCommand.DO_MOUNT_CONTROL: _PRE_TAKEOFF,
    NavCommand.DO_GIMBAL_MANAGER_PITCHYAW: _PRE_TAKEOFF,
    NavCommand.DO_GIMBAL_MANAGER_CONFIGURE: _PRE_TAKEOFF,
    NavCommand.DO_SET_ROI: _PRE_TAKEOFF,
    NavCommand.DO_SET_ROI_LOCATION: _PRE_TAKEOFF,
    NavCommand.DO_SET_ROI_WPNEXT_OFFSET: _PRE_TAKEOFF,
    NavCommand.DO_SET_ROI_NONE: _PRE_TAKEOFF,
    NavCommand.DO_SET_CAM_TRIGG_DIST: _PRE_TAKEOFF,
    NavCommand.OBLIQUE_SURVEY: _PRE_TAKEOFF,
    NavCommand.DO_SET_CAM_TRIGG_INTERVAL: _PRE_TAKEOFF,
    NavCommand.SET_CAMERA_MODE: _PRE_TAKEOFF,
    NavCommand.SET_CAMERA_ZOOM: _PRE_TAKEOFF,
    NavCommand.SET_CAMERA_FOCUS: _PRE_TAKEOFF,
    NavCommand.DO_VTOL_TRANSITION: _PRE_TAKEOFF,
    # Known to the autopilot but rejected in missions
    NavCommand.LOITER_TURNS: CommandCapability(contains_position=True),
    NavCommand.DO_FOLLOW_REPOSITION: CommandCapability(contains_position=True),
}

_UNKNOWN = CommandCapability()


def to_command(code: Union[int, NavCommand]) -> Optional[NavCommand]:
    """Map a raw command code onto NavCommand, None if unknown"""
    try:
        return NavCommand(int(code))
    except ValueError:
        return None


def capability(code: Union[int, NavCommand]) -> CommandCapability:
    """Capability entry for a raw command code"""
    command = to_command(code)
    if command is None:
        return _UNKNOWN
    return CAPABILITIES.get(command, _UNKNOWN)


def is_supported(code: Union[int, NavCommand]) -> bool:
    return capability(code).supported


def has_position(code: Union[int, NavCommand]) -> bool:
    return capability(code).contains_position


def is_pre_takeoff_tolerable(code: Union[int, NavCommand]) -> bool:
    return capability(code).pre_takeoff


def command_name(code: Union[int, NavCommand]) -> str:
    """Human readable command name for reports"""
    command = to_command(code)
    return command.name if command is not None else f"UNKNOWN({int(code)})"
