#!/usr/bin/env python3
"""
Mission Feasibility Server - Entry Point

Serves the REST API that checks uploaded missions.
"""

import argparse
import logging
import signal
import sys
from typing import List, Optional

from ..config import Config, set_config
from ..utils.logger import setup_logging

logger = logging.getLogger(__name__)


def signal_handler(signum, frame):
    """Handle shutdown signals gracefully"""
    logging.info(f"Received signal {signum}, shutting down...")
    sys.exit(0)


def run_server(config: Config, missions_dir: Optional[str] = None) -> int:
    """
    Run the REST API until interrupted

    Returns:
        Process exit code
    """
    from .api import create_api_server

    api_server = create_api_server(config, missions_dir)
    if api_server is None:
        logger.error("REST API not available, install the 'full' extra")
        return 1

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        api_server.run()
    except KeyboardInterrupt:
        pass
    finally:
        logger.info("Shutting down...")

    return 0


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="Mission Feasibility Server",
        prog="mission-check-server"
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        help="Path to configuration file (YAML)"
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="REST API port (default: from config, 8080)"
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="REST API host (default: from config, 0.0.0.0)"
    )

    parser.add_argument(
        "--missions-dir",
        type=str,
        default=None,
        help="Directory for stored missions"
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

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    """Main entry point for mission-check-server"""
    args = parse_args(argv)

    config = Config.load(args.config)

    if args.host:
        config.interface.rest_host = args.host
    if args.port:
        config.interface.rest_port = args.port
    if args.log_file:
        config.interface.log_file = args.log_file

    log_level = logging.DEBUG if args.verbose else config.interface.log_level
    setup_logging(level=log_level, log_file=config.interface.log_file)

    logger.info("Mission Feasibility Server starting...")

    set_config(config)

    sys.exit(run_server(config, args.missions_dir))


if __name__ == "__main__":
    main()
