"""
WSGI entry point for Gunicorn.

Bootstraps config and MediaAccessOrchestrator, freezes the access filter
chain and exposes the Flask app. Registers shutdown on SIGTERM/SIGINT so the
filter chain is torn down when the container stops.
"""

import logging
import signal

from media_access.main import bootstrap

logger = logging.getLogger("media-access")

# Module-level orchestrator reference for signal handler (set in create_application).
_orchestrator = None


def _shutdown_handler(signum: int, frame) -> None:
    """Call orchestrator.stop() on SIGTERM/SIGINT."""
    global _orchestrator
    logger.info("Received signal %s, shutting down...", signum)
    if _orchestrator:
        _orchestrator.stop()
    raise SystemExit(0)


def create_application():
    """Create the WSGI application: bootstrap, start, return Flask app."""
    global _orchestrator

    config, orchestrator = bootstrap()
    _orchestrator = orchestrator

    orchestrator.start()

    signal.signal(signal.SIGTERM, _shutdown_handler)
    signal.signal(signal.SIGINT, _shutdown_handler)

    return orchestrator.flask_app


application = create_application()
