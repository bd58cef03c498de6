"""Flask app for the media access gate."""

import logging
import os

from flask import Flask

from media_access.web.routes import create_api_bp, create_uploads_bp

logger = logging.getLogger('media-access')


def create_app(orchestrator):
    """Create Flask app with all endpoints. Routes close over orchestrator."""
    _template_dir = os.path.join(os.path.dirname(__file__), 'templates')
    app = Flask(__name__, template_folder=_template_dir, static_folder=None)

    app.register_blueprint(create_api_bp(orchestrator))
    # Uploads last: with an upload URL at the site root its static route is a catch-all
    app.register_blueprint(create_uploads_bp(orchestrator))

    return app
