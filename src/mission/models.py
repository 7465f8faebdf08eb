"""
Mission models

Stored mission items as uploaded by a ground station, and the mission
handle the feasibility checks operate on.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Tuple

from .commands import command_name, has_position


class ValidationError(Exception):
    """Raised when mission data cannot be parsed"""
    pass


PARAM_COUNT = 7


@dataclass(frozen=True)
class MissionItem:
    """
    One stored mission item

    Coordinates are in degrees, altitude in meters. A relative altitude is
    measured from the home position, otherwise it is AMSL.
    """
    nav_cmd: int
    lat: float = 0.0
    lon: float = 0.0
    altitude: float = 0.0
    altitude_is_relative: bool = True
    acceptance_radius: float = 0.0   # <= 0: use vehicle default
    loiter_radius: float = 0.0       # sign gives the turn direction
    params: Tuple[float, ...] = field(default=(0.0,) * PARAM_COUNT)

    @property
    def command_name(self) -> str:
        return command_name(self.nav_cmd)

    @property
    def contains_position(self) -> bool:
        return has_position(self.nav_cmd)

    def with_altitude_amsl(self, home_alt: float) -> 'MissionItem':
        """Copy of the item with its altitude resolved to AMSL"""
        if not self.altitude_is_relative:
            return self
        return replace(self, altitude=self.altitude + home_alt, altitude_is_relative=False)

    def altitude_amsl(self, home_alt: float) -> float:
        if self.altitude_is_relative:
            return self.altitude + home_alt
        return self.altitude

    def to_dict(self) -> Dict[str, Any]:
        return {
            "command": int(self.nav_cmd),
            "lat": self.lat,
            "lon": self.lon,
            "alt": self.altitude,
            "relative_alt": self.altitude_is_relative,
            "acceptance_radius": self.acceptance_radius,
            "loiter_radius": self.loiter_radius,
            "params": list(self.params),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MissionItem':
        """
        Create an item from a dictionary

        Raises:
            ValidationError: If a required field is missing or malformed
        """
        if "command" not in data:
            raise ValidationError("missing required field 'command'")

        try:
            params = [float(p) for p in data.get("params", [])]
        except (TypeError, ValueError):
            raise ValidationError(f"invalid params {data.get('params')!r}")
        if len(params) > PARAM_COUNT:
            raise ValidationError(f"at most {PARAM_COUNT} params allowed, got {len(params)}")
        params += [0.0] * (PARAM_COUNT - len(params))

        relative_alt = data.get("relative_alt", True)
        if not isinstance(relative_alt, bool):
            raise ValidationError(f"relative_alt must be true or false, got {relative_alt!r}")

        try:
            return cls(
                nav_cmd=int(data["command"]),
                lat=float(data.get("lat", 0.0)),
                lon=float(data.get("lon", 0.0)),
                altitude=float(data.get("alt", 0.0)),
                altitude_is_relative=relative_alt,
                acceptance_radius=float(data.get("acceptance_radius", 0.0)),
                loiter_radius=float(data.get("loiter_radius", 0.0)),
                params=tuple(params),
            )
        except (TypeError, ValueError) as e:
            raise ValidationError(str(e))


@dataclass(frozen=True)
class Mission:
    """Handle on a stored mission: item count and storage location"""
    count: int
    storage_id: str


def items_from_list(data: List[Dict[str, Any]]) -> List[MissionItem]:
    """
    Parse a list of item dictionaries

    Raises:
        ValidationError: With the 1-based index of the offending item
    """
    items = []
    for i, item_data in enumerate(data):
        if not isinstance(item_data, dict):
            raise ValidationError(f"Item {i + 1}: expected an object")
        try:
            items.append(MissionItem.from_dict(item_data))
        except ValidationError as e:
            raise ValidationError(f"Item {i + 1}: {e}")
    return items
