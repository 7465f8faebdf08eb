"""
REST API for the mission feasibility checker

Lets ground stations upload missions and get the feasibility verdict with
every diagnostic.
"""

import logging
from typing import Any, Dict, Optional

try:
    from flask import Flask, request, jsonify
    from flask_cors import CORS
    FLASK_AVAILABLE = True
except ImportError:
    FLASK_AVAILABLE = False

from ..config import Config, get_config
from ..feasibility import MissionFeasibilityChecker, check_items
from ..feasibility.context import HomePosition
from ..feasibility.geofence import Geofence, NoGeofence, PolygonGeofence
from ..mission import MissionStore, ValidationError
from ..mission.plan_file import parse_mission

logger = logging.getLogger(__name__)

# Default missions directory
DEFAULT_MISSIONS_DIR = '~/.mischeck/missions'


def create_api_server(config: Optional[Config] = None,
                      missions_dir: Optional[str] = None) -> Optional['APIServer']:
    """
    Create REST API server

    Args:
        config: Configuration (global config if None)
        missions_dir: Directory for mission storage

    Returns:
        APIServer instance or None if Flask not available
    """
    if not FLASK_AVAILABLE:
        logger.warning("Flask not installed - REST API disabled")
        return None

    return APIServer(config or get_config(), missions_dir or DEFAULT_MISSIONS_DIR)


def _parse_home(data: Dict[str, Any]) -> Optional[HomePosition]:
    home = data.get('home')
    if not home:
        return None
    try:
        return HomePosition.at(float(home['lat']), float(home['lon']), float(home['alt']))
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"invalid home position: {e}")


def _parse_geofence(data: Dict[str, Any]) -> Geofence:
    if data.get('geofence'):
        return PolygonGeofence.from_dict(data['geofence'])
    return NoGeofence()


class APIServer:
    """REST API Server"""

    def __init__(self, config: Config, missions_dir: str = DEFAULT_MISSIONS_DIR):
        self.config = config
        self.host = config.interface.rest_host
        self.port = config.interface.rest_port

        self.app = Flask(__name__)
        CORS(self.app)

        self.mission_store = MissionStore(missions_dir)

        self._setup_routes()

    def _limits(self, data: Dict[str, Any]) -> Dict[str, float]:
        """Distance limits, request values override the configuration"""
        limits = self.config.feasibility
        return {
            'max_distance_to_first_waypoint': float(data.get(
                'max_distance_to_first_waypoint', limits.max_distance_to_first_waypoint)),
            'max_distance_between_waypoints': float(data.get(
                'max_distance_between_waypoints', limits.max_distance_between_waypoints)),
        }

    def _setup_routes(self):
        """Setup API routes"""

        # ==================== Health ====================

        @self.app.route('/api/health', methods=['GET'])
        def health():
            """Health check endpoint"""
            return jsonify({
                'status': 'ok',
                'vehicle_type': self.config.vehicle.type,
            })

        # ==================== Ad hoc check ====================

        @self.app.route('/api/missions/check', methods=['POST'])
        def check_mission():
            """
            Check a mission without storing it

            Request body: mission JSON or QGroundControl plan, optionally
            with "vehicle" overrides and distance limits
            Returns: {accepted, warning, diagnostics}
            """
            data = request.get_json(silent=True)
            if not data:
                return jsonify({'error': 'No data provided'}), 400

            try:
                mission_file = parse_mission(data)
                vehicle = self.config.vehicle_context(mission_file.home, data.get('vehicle'))
                limits = self._limits(data)
            except (ValidationError, ValueError, TypeError) as e:
                return jsonify({'error': str(e)}), 400

            result = check_items(mission_file.items, vehicle,
                                 geofence=mission_file.geofence, **limits)
            return jsonify(result.to_dict())

        # ==================== Stored missions ====================

        @self.app.route('/api/missions', methods=['GET'])
        def list_missions():
            """List stored mission ids"""
            return jsonify({'missions': self.mission_store.list_all()})

        @self.app.route('/api/missions', methods=['POST'])
        def create_mission():
            """
            Store mission items

            Returns: {storage_id, count}
            """
            data = request.get_json(silent=True)
            if not data:
                return jsonify({'error': 'No data provided'}), 400

            try:
                mission_file = parse_mission(data)
            except ValidationError as e:
                return jsonify({'error': str(e)}), 400

            mission = self.mission_store.create(mission_file.items)
            return jsonify({'storage_id': mission.storage_id, 'count': mission.count}), 201

        @self.app.route('/api/missions/<storage_id>/check', methods=['POST'])
        def check_stored_mission(storage_id: str):
            """
            Check a stored mission

            Request body: {home?, geofence?, vehicle?, distance limits?}
            """
            mission = self.mission_store.get(storage_id)
            if mission is None:
                return jsonify({'error': 'Mission not found'}), 404

            data = request.get_json(silent=True) or {}
            try:
                vehicle = self.config.vehicle_context(_parse_home(data), data.get('vehicle'))
                geofence = _parse_geofence(data)
                limits = self._limits(data)
            except (ValidationError, ValueError, TypeError) as e:
                return jsonify({'error': str(e)}), 400

            checker = MissionFeasibilityChecker(self.mission_store, vehicle, geofence=geofence)
            result = checker.check_mission_feasible(mission, **limits)
            return jsonify(result.to_dict())

        @self.app.route('/api/missions/<storage_id>', methods=['DELETE'])
        def delete_mission(storage_id: str):
            """Delete a stored mission"""
            if self.mission_store.delete(storage_id):
                return jsonify({'success': True})
            return jsonify({'error': 'Mission not found'}), 404

    def run(self):
        """Serve requests until interrupted"""
        logger.info(f"REST API listening on {self.host}:{self.port}")
        self.app.run(host=self.host, port=self.port, threaded=False, use_reloader=False)
