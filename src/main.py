#!/usr/bin/env python3
"""
Mission Feasibility Checker - Main Entry Point

Checks mission files before upload:

    mission-check check survey.plan --vehicle fixed-wing
    mission-check check mission.json --home 47.397 8.545 488 --json
    mission-check serve --port 8080
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from .config import Config, set_config
from .feasibility import Diagnostic, FeasibilityResult, HomePosition, Severity, check_items
from .feasibility.context import VehicleType
from .mission import ValidationError
from .mission.plan_file import load_mission_file
from .utils.logger import setup_logging

logger = logging.getLogger(__name__)

# Exit codes
EXIT_ACCEPTED = 0
EXIT_REJECTED = 1
EXIT_LOAD_ERROR = 2


class Colors:
    RESET = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[91m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    CYAN = '\033[96m'


_use_color = True


def color(text: str, c: str) -> str:
    """Apply color to text"""
    if not _use_color:
        return text
    return f"{c}{text}{Colors.RESET}"


def print_error(msg: str):
    """Print error message"""
    print(color(f"Error: {msg}", Colors.RED), file=sys.stderr)


SEVERITY_COLORS = {
    Severity.ERROR: Colors.RED,
    Severity.WARNING: Colors.YELLOW,
    Severity.INFO: Colors.CYAN,
}


def format_diagnostic(diagnostic: Diagnostic) -> str:
    """One report line for a diagnostic"""
    label = color(f"{diagnostic.severity.value.upper():<7}", SEVERITY_COLORS[diagnostic.severity])
    where = f"item {diagnostic.item:<3}" if diagnostic.item is not None else " " * 8
    return f"  {label} {where} {diagnostic.message}  [{diagnostic.code}]"


def print_report(path: str, item_count: int, result: FeasibilityResult):
    """Print the human readable report"""
    print(color(f"Mission {path} ({item_count} items)", Colors.BOLD))

    for diagnostic in result.diagnostics:
        print(format_diagnostic(diagnostic))

    if result.accepted:
        verdict = "ACCEPTED with warnings" if result.warning else "ACCEPTED"
        print(color(verdict, Colors.GREEN))
    else:
        print(color(f"REJECTED ({len(result.violations)} violation(s))", Colors.RED))


def vehicle_overrides(args) -> Dict[str, Any]:
    """Vehicle settings given on the command line"""
    overrides: Dict[str, Any] = {}
    if args.vehicle:
        overrides['type'] = args.vehicle
    if args.landed is not None:
        overrides['landed'] = args.landed
    if args.landing_angle is not None:
        overrides['landing_angle_deg'] = args.landing_angle
    if args.acceptance_radius is not None:
        overrides['default_acceptance_radius'] = args.acceptance_radius
    if args.require is not None:
        overrides['takeoff_land_required'] = args.require
    return overrides


def cmd_check(args, config: Config) -> int:
    """Check one mission file"""
    try:
        mission_file = load_mission_file(args.file)
    except ValidationError as e:
        print_error(str(e))
        return EXIT_LOAD_ERROR

    home = mission_file.home
    if args.home:
        lat, lon, alt = args.home
        home = HomePosition.at(lat, lon, alt)

    try:
        vehicle = config.vehicle_context(home, vehicle_overrides(args))
    except ValueError as e:
        print_error(str(e))
        return EXIT_LOAD_ERROR

    limits = config.feasibility
    max_first = args.max_first_wp_dist
    if max_first is None:
        max_first = limits.max_distance_to_first_waypoint
    max_between = args.max_wp_dist
    if max_between is None:
        max_between = limits.max_distance_between_waypoints

    result = check_items(
        mission_file.items, vehicle,
        geofence=mission_file.geofence,
        max_distance_to_first_waypoint=max_first,
        max_distance_between_waypoints=max_between,
    )

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print_report(args.file, len(mission_file.items), result)

    return EXIT_ACCEPTED if result.accepted else EXIT_REJECTED


def cmd_serve(args, config: Config) -> int:
    """Run the REST API"""
    from .server.main import run_server

    if args.host:
        config.interface.rest_host = args.host
    if args.port:
        config.interface.rest_port = args.port

    return run_server(config, args.missions_dir)


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="Mission Feasibility Checker",
        prog="mission-check"
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        help="Path to configuration file (YAML)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Log file path"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # check
    check = subparsers.add_parser("check", help="Check a mission file (.plan or JSON)")
    check.add_argument("file", help="Mission file")
    check.add_argument(
        "--vehicle",
        choices=[t.value for t in VehicleType],
        default=None,
        help="Vehicle type (default: from config)"
    )
    landed = check.add_mutually_exclusive_group()
    landed.add_argument("--landed", dest="landed", action="store_true", default=None,
                        help="Vehicle is on the ground")
    landed.add_argument("--airborne", dest="landed", action="store_false",
                        help="Vehicle is flying")
    check.add_argument(
        "--home",
        type=float,
        nargs=3,
        metavar=("LAT", "LON", "ALT"),
        default=None,
        help="Home position, altitude AMSL (default: from the mission file)"
    )
    check.add_argument(
        "--landing-angle",
        type=float,
        default=None,
        help="Fixed-wing max landing angle in degrees"
    )
    check.add_argument(
        "--acceptance-radius",
        type=float,
        default=None,
        help="Default acceptance radius in meters"
    )
    check.add_argument(
        "--max-first-wp-dist",
        type=float,
        default=None,
        help="Max distance home to first waypoint in meters (<= 0 disables)"
    )
    check.add_argument(
        "--max-wp-dist",
        type=float,
        default=None,
        help="Max distance between waypoints in meters (<= 0 disables)"
    )
    check.add_argument(
        "--require",
        type=int,
        choices=range(5),
        default=None,
        help="Takeoff/landing policy: 0 none, 1 takeoff, 2 landing, 3 both, 4 symmetric"
    )
    check.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON"
    )
    check.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output"
    )

    # serve
    serve = subparsers.add_parser("serve", help="Run the REST API")
    serve.add_argument("--host", type=str, default=None, help="REST API host")
    serve.add_argument("--port", type=int, default=None, help="REST API port")
    serve.add_argument("--missions-dir", type=str, default=None,
                       help="Directory for stored missions")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    global _use_color

    args = parse_args(argv)

    config = Config.load(args.config)
    if args.log_file:
        config.interface.log_file = args.log_file

    log_level = logging.DEBUG if args.verbose else config.interface.log_level
    setup_logging(level=log_level, log_file=config.interface.log_file)

    set_config(config)

    if args.command == "check":
        _use_color = not (args.no_color or args.json) and sys.stdout.isatty()
        return cmd_check(args, config)

    return cmd_serve(args, config)


if __name__ == "__main__":
    sys.exit(main())
