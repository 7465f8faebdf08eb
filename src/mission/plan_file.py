"""
Mission file loading

Reads missions from QGroundControl ".plan" files or from the plain JSON
format used by the REST API:

    {
        "items": [{"command": 22, "alt": 30}, ...],
        "home": {"lat": 47.39, "lon": 8.54, "alt": 488.0},
        "geofence": {"polygons": [...], "circles": [...]}
    }
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..feasibility.context import HomePosition
from ..feasibility.geofence import Geofence, NoGeofence, PolygonGeofence
from .commands import NavCommand
from .models import PARAM_COUNT, MissionItem, ValidationError, items_from_list

logger = logging.getLogger(__name__)

# MAV_FRAME values whose altitude is not AMSL
RELATIVE_FRAMES = {
    3,      # GLOBAL_RELATIVE_ALT
    6,      # GLOBAL_RELATIVE_ALT_INT
    10,     # GLOBAL_TERRAIN_ALT
    11,     # GLOBAL_TERRAIN_ALT_INT
}

# Index into the 7 MAVLink params holding the loiter radius
LOITER_RADIUS_PARAM = {
    NavCommand.LOITER_UNLIMITED: 2,
    NavCommand.LOITER_TIME_LIMIT: 2,
    NavCommand.LOITER_TURNS: 2,
    NavCommand.LOITER_TO_ALT: 1,
}


@dataclass
class MissionFile:
    """Contents of a mission file"""
    items: List[MissionItem]
    home: Optional[HomePosition] = None
    geofence: Geofence = field(default_factory=NoGeofence)


def _item_from_plan(data: Dict[str, Any]) -> MissionItem:
    """Convert a QGroundControl SimpleItem"""
    try:
        command = int(data["command"])
        params = [float(p) if p is not None else 0.0 for p in data.get("params", [])]
        frame = int(data.get("frame", 3))
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"invalid plan item: {e}")

    if len(params) != PARAM_COUNT:
        raise ValidationError(f"plan item needs {PARAM_COUNT} params, got {len(params)}")

    acceptance_radius = params[1] if command == NavCommand.WAYPOINT else 0.0

    radius_param = LOITER_RADIUS_PARAM.get(command)
    loiter_radius = params[radius_param] if radius_param is not None else 0.0

    return MissionItem(
        nav_cmd=command,
        lat=params[4],
        lon=params[5],
        altitude=params[6],
        altitude_is_relative=frame in RELATIVE_FRAMES,
        acceptance_radius=acceptance_radius,
        loiter_radius=loiter_radius,
        params=tuple(params),
    )


def _flatten_plan_items(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Expand complex items (surveys, corridor scans) into their simple items"""
    if not isinstance(entries, list):
        raise ValidationError("plan items must be a list")

    simple = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValidationError(f"plan item must be an object, got {entry!r}")
        item_type = entry.get("type", "SimpleItem")
        if item_type == "SimpleItem":
            simple.append(entry)
        elif item_type == "ComplexItem":
            transect = entry.get("TransectStyleComplexItem", {})
            nested = transect.get("Items", entry.get("Items"))
            if nested is None:
                raise ValidationError(
                    f"complex item '{entry.get('complexItemType', '?')}' has no generated items")
            simple.extend(_flatten_plan_items(nested))
        else:
            raise ValidationError(f"unknown plan item type '{item_type}'")
    return simple


def parse_plan(data: Dict[str, Any]) -> MissionFile:
    """
    Parse a QGroundControl plan

    Raises:
        ValidationError: If the plan is malformed
    """
    mission = data.get("mission")
    if not isinstance(mission, dict):
        raise ValidationError("plan has no mission section")

    items = []
    for i, entry in enumerate(_flatten_plan_items(mission.get("items", []))):
        try:
            items.append(_item_from_plan(entry))
        except ValidationError as e:
            raise ValidationError(f"Item {i + 1}: {e}")

    home = None
    planned_home = mission.get("plannedHomePosition")
    if planned_home:
        try:
            lat, lon, alt = (float(v) for v in planned_home)
        except (TypeError, ValueError):
            raise ValidationError(f"invalid plannedHomePosition {planned_home!r}")
        home = HomePosition.at(lat, lon, alt)

    geofence: Geofence = NoGeofence()
    if data.get("geoFence"):
        geofence = PolygonGeofence.from_dict(data["geoFence"])

    return MissionFile(items=items, home=home, geofence=geofence)


def parse_mission(data: Dict[str, Any]) -> MissionFile:
    """
    Parse mission data in either supported format

    Raises:
        ValidationError: If the data is malformed
    """
    if not isinstance(data, dict):
        raise ValidationError("mission data must be an object")

    if data.get("fileType") == "Plan":
        return parse_plan(data)

    if "items" not in data:
        raise ValidationError("mission has no items")
    if not isinstance(data["items"], list):
        raise ValidationError("mission items must be a list")

    items = items_from_list(data["items"])

    home = None
    if data.get("home"):
        try:
            home_data = data["home"]
            home = HomePosition.at(float(home_data["lat"]), float(home_data["lon"]),
                                   float(home_data["alt"]))
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"invalid home position: {e}")

    geofence: Geofence = NoGeofence()
    if data.get("geofence"):
        geofence = PolygonGeofence.from_dict(data["geofence"])

    return MissionFile(items=items, home=home, geofence=geofence)


def load_mission_file(path: Union[str, Path]) -> MissionFile:
    """
    Load a mission file from disk

    Raises:
        ValidationError: If the file cannot be read or parsed
    """
    path = Path(path)
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except OSError as e:
        raise ValidationError(f"cannot read {path}: {e}")
    except json.JSONDecodeError as e:
        raise ValidationError(f"{path} is not valid JSON: {e}")

    mission_file = parse_mission(data)
    logger.info(f"Loaded {len(mission_file.items)} items from {path}")
    return mission_file
