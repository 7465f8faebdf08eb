"""
Configuration management for the mission feasibility checker

All parameters are configurable and can be overridden via:
1. config/default.yaml
2. Environment variables (prefixed with MISCHECK_)
3. Command line arguments
"""

import os
import yaml
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional
from pathlib import Path

from .feasibility.context import HomePosition, VehicleContext, VehicleType


@dataclass
class FeasibilityConfig:
    """Mission distance limits (<= 0 disables a check)"""
    max_distance_to_first_waypoint: float = 900.0   # meters from home
    max_distance_between_waypoints: float = 900.0   # meters


@dataclass
class VehicleConfig:
    """Vehicle parameters the checks depend on"""
    type: str = "rotary-wing"               # rotary-wing, fixed-wing, vtol
    landed: bool = True
    default_acceptance_radius: float = 10.0  # meters
    landing_angle_deg: Optional[float] = 5.0  # fixed-wing max landing angle, null = unset
    takeoff_land_required: int = 0          # 0 none, 1 takeoff, 2 landing, 3 both, 4 symmetric
    max_actuator_value: float = 2000.0


@dataclass
class InterfaceConfig:
    """Interface configuration"""

    # REST API
    rest_host: str = "0.0.0.0"
    rest_port: int = 8080

    # Logging
    log_file: Optional[str] = None
    log_level: str = "INFO"


@dataclass
class Config:
    """Main configuration container"""

    feasibility: FeasibilityConfig = field(default_factory=FeasibilityConfig)
    vehicle: VehicleConfig = field(default_factory=VehicleConfig)
    interface: InterfaceConfig = field(default_factory=InterfaceConfig)

    SECTIONS = ('feasibility', 'vehicle', 'interface')

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """Load configuration from YAML file and environment"""
        config = cls()

        # Load from file if exists
        if config_path is None:
            config_path = Path(__file__).parent.parent / "config" / "default.yaml"

        if Path(config_path).exists():
            with open(config_path, 'r') as f:
                yaml_config = yaml.safe_load(f)
                if yaml_config:
                    config._update_from_dict(yaml_config)

        # Override from environment variables
        config._update_from_env()

        return config

    def _update_from_dict(self, d: dict):
        """Update config from dictionary (e.g., YAML)"""
        for section_name, section_data in d.items():
            if section_name in self.SECTIONS and isinstance(section_data, dict):
                section = getattr(self, section_name)
                for key, value in section_data.items():
                    if hasattr(section, key):
                        setattr(section, key, value)

    def _update_from_env(self):
        """Override config from environment variables"""
        prefix = "MISCHECK_"
        for key, value in os.environ.items():
            if key.startswith(prefix):
                # Parse MISCHECK_SECTION_KEY format
                parts = key[len(prefix):].lower().split("_", 1)
                if len(parts) == 2:
                    section_name, param_name = parts
                    if section_name in self.SECTIONS:
                        section = getattr(self, section_name)
                        if hasattr(section, param_name):
                            # Type conversion
                            current_value = getattr(section, param_name)
                            if isinstance(current_value, bool):
                                setattr(section, param_name, value.lower() in ('true', '1', 'yes'))
                            elif isinstance(current_value, int):
                                setattr(section, param_name, int(value))
                            elif isinstance(current_value, float):
                                setattr(section, param_name, float(value))
                            elif current_value is None and param_name == 'landing_angle_deg':
                                setattr(section, param_name, float(value))
                            else:
                                setattr(section, param_name, value)

    def vehicle_context(self, home: Optional[HomePosition] = None,
                        overrides: Optional[Dict[str, Any]] = None) -> VehicleContext:
        """
        Build the vehicle context for a check

        Args:
            home: Known home position (unknown if None)
            overrides: Per-request values for VehicleConfig fields

        Raises:
            ValueError: On unknown override keys, vehicle types or a non-boolean
                landed flag
        """
        if overrides is not None and not isinstance(overrides, dict):
            raise ValueError("vehicle settings must be an object")

        values = {f.name: getattr(self.vehicle, f.name) for f in fields(VehicleConfig)}
        for key, value in (overrides or {}).items():
            if key not in values:
                raise ValueError(f"unknown vehicle setting '{key}'")
            values[key] = value

        if not isinstance(values['landed'], bool):
            raise ValueError(f"vehicle setting 'landed' must be true or false, got {values['landed']!r}")

        landing_angle = values['landing_angle_deg']

        return VehicleContext(
            vehicle_type=VehicleType(values['type']),
            landed=values['landed'],
            home=home if home is not None else HomePosition(),
            default_acceptance_radius=float(values['default_acceptance_radius']),
            landing_angle_deg=float(landing_angle) if landing_angle is not None else None,
            takeoff_land_required=int(values['takeoff_land_required']),
            max_actuator_value=float(values['max_actuator_value']),
        )

    def save(self, config_path: str):
        """Save current configuration to YAML file"""
        data = {}
        for section_name in self.SECTIONS:
            section = getattr(self, section_name)
            data[section_name] = {k: v for k, v in section.__dict__.items()}

        with open(config_path, 'w') as f:
            yaml.dump(data, f, default_flow_style=False)


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        _config = Config.load()
    return _config


def set_config(config: Config):
    """Set the global configuration instance"""
    global _config
    _config = config
