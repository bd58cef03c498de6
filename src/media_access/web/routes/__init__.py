"""Flask blueprints for the web app. Each module exposes create_bp(orchestrator)."""

from media_access.web.routes.api import create_bp as create_api_bp
from media_access.web.routes.uploads import create_bp as create_uploads_bp

__all__ = [
    "create_api_bp",
    "create_uploads_bp",
]
