"""API blueprint: protected extension settings and status."""

import hmac
import logging

from flask import Blueprint, jsonify, request

from media_access.constants import EXTENSIONS_OPTION_KEY
from media_access.logging_utils import error_buffer

logger = logging.getLogger("media-access")


def create_bp(orchestrator):
    """Create API blueprint with routes closed over orchestrator."""
    bp = Blueprint("api", __name__)
    settings = orchestrator.settings_manager
    admin_token = orchestrator.config.get("ADMIN_TOKEN") or ""

    def _authorized() -> bool:
        if not admin_token:
            return False
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token:
            return False
        return hmac.compare_digest(token.strip(), admin_token)

    @bp.route("/api/settings", methods=["GET"])
    def get_settings():
        return jsonify({EXTENSIONS_OPTION_KEY: settings.get_extensions_string()})

    @bp.route("/api/settings", methods=["POST"])
    def update_settings():
        """Sanitize and store the extension list; the routing rule regenerates."""
        if not admin_token:
            return jsonify({"status": "error", "message": "Settings updates are disabled (no admin token configured)"}), 403
        if not _authorized():
            return jsonify({"status": "error", "message": "Invalid or missing admin token"}), 401

        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"status": "error", "message": "Expected a JSON object"}), 400
        value = data.get(EXTENSIONS_OPTION_KEY, "")
        if value is None:
            value = ""
        valid_list = isinstance(value, list) and all(isinstance(v, str) for v in value)
        if not isinstance(value, str) and not valid_list:
            return jsonify({"status": "error", "message": "extensions must be a string or a list of strings"}), 400

        try:
            stored = settings.update_extensions(value)
        except OSError as e:
            logger.error("Could not save settings: %s", e)
            return jsonify({"status": "error", "message": str(e)}), 500
        return jsonify({"status": "success", EXTENSIONS_OPTION_KEY: " ".join(stored)}), 200

    @bp.route("/api/status")
    def status():
        pattern = orchestrator.rewrite_rules.pattern
        return jsonify({
            EXTENSIONS_OPTION_KEY: settings.get_extensions(),
            "pattern": pattern.pattern if pattern is not None else None,
            "filters": len(orchestrator.filter_registry),
            "attachments": len(orchestrator.attachment_index),
            "errors": error_buffer.get_all(),
        })

    return bp
