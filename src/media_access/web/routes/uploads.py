"""Uploads blueprint: access gate for protected extensions, direct serving for the rest."""

import logging
import os

from flask import Blueprint, abort, request, send_from_directory

from media_access.web.path_helpers import resolve_under_uploads

logger = logging.getLogger("media-access")


def create_bp(orchestrator):
    """Create uploads blueprint with routes closed over orchestrator."""
    bp = Blueprint("uploads", __name__)
    upload_dir = orchestrator.config["UPLOAD_DIR"]
    rules = orchestrator.rewrite_rules
    gate = orchestrator.gate

    @bp.before_app_request
    def gate_protected_uploads():
        """Route protected uploads through the gate before normal dispatch."""
        if request.method not in ("GET", "HEAD"):
            return None
        relative_path = rules.match(request.path)
        if relative_path is None:
            return None
        response = gate.handle(relative_path)
        if response is None:
            abort(404)
        return response

    @bp.route(f"/{rules.uploads_path}<path:filename>", methods=["GET", "HEAD"])
    def serve_upload(filename):
        """Serve unprotected uploads straight from the upload directory."""
        safe_path = resolve_under_uploads(upload_dir, filename)
        if safe_path is None or not os.path.isfile(safe_path):
            return "File not found", 404
        directory = os.path.realpath(upload_dir)
        return send_from_directory(directory, os.path.relpath(safe_path, directory))

    return bp
