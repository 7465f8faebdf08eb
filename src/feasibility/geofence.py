"""
Geofence evaluation

The checks only need three answers from a geofence: whether it needs a
home position, whether a usable boundary is configured, and whether an
item (altitude already resolved to AMSL) lies inside it.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from shapely.geometry import Point, Polygon

from ..mission.models import MissionItem, ValidationError
from ..utils.geo import gps_to_local, haversine_distance

logger = logging.getLogger(__name__)


class Geofence(ABC):
    """Permitted operating area"""

    @abstractmethod
    def is_home_required(self) -> bool:
        pass

    @abstractmethod
    def valid(self) -> bool:
        pass

    @abstractmethod
    def check(self, item: MissionItem) -> bool:
        """True if the item (AMSL altitude) is inside the permitted area"""
        pass


class NoGeofence(Geofence):
    """No boundary configured"""

    def is_home_required(self) -> bool:
        return False

    def valid(self) -> bool:
        return False

    def check(self, item: MissionItem) -> bool:
        return True


@dataclass
class FencePolygon:
    """Polygon fence, vertices as (lat, lon)"""
    vertices: List[Tuple[float, float]]
    inclusion: bool = True
    _shape: Optional[Polygon] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        if len(self.vertices) >= 3:
            self._shape = Polygon([self._project(lat, lon) for lat, lon in self.vertices])

    def _project(self, lat: float, lon: float) -> Tuple[float, float]:
        """(east, north) in meters from the first vertex"""
        ref_lat, ref_lon = self.vertices[0]
        north, east = gps_to_local(lat, lon, ref_lat, ref_lon)
        return east, north

    def contains(self, lat: float, lon: float) -> bool:
        if self._shape is None:
            return False
        return self._shape.contains(Point(*self._project(lat, lon)))


@dataclass
class FenceCircle:
    """Circular fence"""
    lat: float
    lon: float
    radius: float
    inclusion: bool = True

    def contains(self, lat: float, lon: float) -> bool:
        return haversine_distance(self.lat, self.lon, lat, lon) <= self.radius


class PolygonGeofence(Geofence):
    """
    Geofence made of inclusion/exclusion polygons and circles

    An item is inside when it lies in at least one inclusion area (if any
    are defined), in no exclusion area, and not above the altitude ceiling.
    """

    def __init__(self,
                 polygons: Sequence[FencePolygon] = (),
                 circles: Sequence[FenceCircle] = (),
                 max_altitude_amsl: Optional[float] = None,
                 home_required: bool = False):
        self.polygons = [p for p in polygons if len(p.vertices) >= 3]
        self.circles = [c for c in circles if c.radius > 0]
        self.max_altitude_amsl = max_altitude_amsl
        self.home_required = home_required

        dropped = len(polygons) - len(self.polygons) + len(circles) - len(self.circles)
        if dropped:
            logger.warning(f"Ignoring {dropped} degenerate geofence area(s)")

    def is_home_required(self) -> bool:
        return self.home_required

    def valid(self) -> bool:
        return bool(self.polygons or self.circles or self.max_altitude_amsl is not None)

    def check(self, item: MissionItem) -> bool:
        if self.max_altitude_amsl is not None and item.altitude > self.max_altitude_amsl:
            return False

        areas = [*self.polygons, *self.circles]
        inclusions = [a for a in areas if a.inclusion]
        if inclusions and not any(a.contains(item.lat, item.lon) for a in inclusions):
            return False

        return not any(a.contains(item.lat, item.lon) for a in areas if not a.inclusion)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PolygonGeofence':
        """
        Create a geofence from a QGroundControl style "geoFence" section

        Raises:
            ValidationError: If an area is malformed
        """
        polygons = []
        circles = []
        try:
            for entry in data.get("polygons", []):
                vertices = [(float(lat), float(lon)) for lat, lon in entry["polygon"]]
                polygons.append(FencePolygon(vertices, bool(entry.get("inclusion", True))))

            for entry in data.get("circles", []):
                circle = entry["circle"]
                lat, lon = circle["center"]
                circles.append(FenceCircle(float(lat), float(lon), float(circle["radius"]),
                                           bool(entry.get("inclusion", True))))

            max_alt = data.get("max_altitude_amsl")
            return cls(
                polygons=polygons,
                circles=circles,
                max_altitude_amsl=float(max_alt) if max_alt is not None else None,
                home_required=bool(data.get("home_required", False)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"invalid geofence: {e}")
