"""
Feasibility check context

Vehicle and home state consumed by the checks, the per-pass checker state
and the result types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

from .events import Diagnostic, Severity

if TYPE_CHECKING:
    from ..mission.models import MissionItem
    from ..mission.store import ItemStore
    from .geofence import Geofence


class VehicleType(Enum):
    """Airframe classes with distinct landing rules"""
    ROTARY_WING = "rotary-wing"
    FIXED_WING = "fixed-wing"
    VTOL = "vtol"


class TakeoffLandRequired(IntEnum):
    """Policy on takeoff/landing items a mission must contain"""
    NONE = 0
    TAKEOFF = 1
    LANDING = 2
    BOTH = 3
    SYMMETRIC = 4      # takeoff present iff landing present


@dataclass
class HomePosition:
    """Home position as known by the vehicle"""
    lat: float = 0.0
    lon: float = 0.0
    alt: float = 0.0            # meters AMSL
    valid: bool = False         # global position known
    alt_valid: bool = False     # altitude known

    @classmethod
    def at(cls, lat: float, lon: float, alt: float) -> 'HomePosition':
        """Fully known home position"""
        return cls(lat=lat, lon=lon, alt=alt, valid=True, alt_valid=True)


@dataclass
class VehicleContext:
    """Vehicle state and configured parameters relevant to mission checks"""
    vehicle_type: VehicleType = VehicleType.ROTARY_WING
    landed: bool = True
    home: HomePosition = field(default_factory=HomePosition)
    default_acceptance_radius: float = 10.0     # meters
    landing_angle_deg: Optional[float] = 5.0    # None: parameter not configured
    takeoff_land_required: int = TakeoffLandRequired.NONE
    max_actuator_value: float = 2000.0          # set-servo value limit (+/-)


@dataclass(frozen=True)
class CheckerState:
    """
    Flags shared between sub-checks of one feasibility pass

    Created fresh for every pass and handed from one sub-check to the next.
    """
    has_takeoff: bool = False
    has_landing: bool = False


@dataclass
class CheckContext:
    """Collaborators the sub-checks read from"""
    store: 'ItemStore'
    vehicle: VehicleContext
    geofence: 'Geofence'
    distance: Callable[[float, float, float, float], float]
    contains_position: Callable[['MissionItem'], bool]


@dataclass(frozen=True)
class CheckOutcome:
    """Result of one sub-check"""
    passed: bool
    state: CheckerState
    warning: bool = False
    diagnostics: Tuple[Diagnostic, ...] = ()

    @classmethod
    def ok(cls, state: CheckerState, warning: bool = False,
           diagnostics: Tuple[Diagnostic, ...] = ()) -> 'CheckOutcome':
        return cls(passed=True, state=state, warning=warning, diagnostics=tuple(diagnostics))

    @classmethod
    def failed(cls, state: CheckerState, diagnostic: Optional[Diagnostic] = None,
               warning: bool = False,
               diagnostics: Tuple[Diagnostic, ...] = ()) -> 'CheckOutcome':
        collected = tuple(diagnostics)
        if diagnostic is not None:
            collected += (diagnostic,)
        return cls(passed=False, state=state, warning=warning, diagnostics=collected)


@dataclass
class MissionResult:
    """Externally owned mission status the checker mirrors its warning onto"""
    warning: bool = False


@dataclass
class FeasibilityResult:
    """Verdict of a full feasibility pass"""
    accepted: bool
    warning: bool = False
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def violations(self) -> List[Diagnostic]:
        """Diagnostics that caused the rejection (everything but warnings)"""
        return [d for d in self.diagnostics if d.severity != Severity.WARNING]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.WARNING]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accepted": self.accepted,
            "warning": self.warning,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }
