#!/usr/bin/env python3
"""
Media Access Control - Bootstrap and entry point.

Provides bootstrap() for the WSGI worker (media_access.wsgi). The server is
started via run_server.py (Gunicorn); do not run Flask's built-in server.

Run the app with: python run_server.py
"""

import logging
import sys
from pathlib import Path

from media_access.config import load_config
from media_access.logging_utils import setup_logging
from media_access.orchestrator import MediaAccessOrchestrator

# Early logging for config loading (reconfigured after config is loaded)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %I:%M:%S %p",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger("media-access")


def _load_version() -> str:
    """Load version from the version.txt shipped as package data."""
    try:
        version_file = Path(__file__).resolve().parent / "version.txt"
        if version_file.exists():
            return version_file.read_text().strip()
    except OSError:
        pass
    return "unknown"


def bootstrap() -> tuple[dict, MediaAccessOrchestrator]:
    """Load config, set up logging, create and return (config, orchestrator).

    Used by the WSGI entry point (wsgi.py). Does not start the web server.
    """
    config = load_config()
    setup_logging(config.get("LOG_LEVEL", "INFO"))

    version = _load_version()
    logger.info("VERSION = %s", version)

    orchestrator = MediaAccessOrchestrator(config)
    return config, orchestrator


def main():
    """Entry point: direct user to run_server.py (Gunicorn is the only server)."""
    logger.error(
        "Media Access Control must be started with run_server.py (Gunicorn). "
        "Do not use python -m media_access.main to run the server."
    )
    sys.exit(1)


if __name__ == "__main__":
    main()
