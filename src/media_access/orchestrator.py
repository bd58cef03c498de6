"""
Media Access Orchestrator - composition root for the access gate.

Builds the option store, attachment index, access filter registry, routing
rule and gate from config, wires the settings-update listener that
regenerates the rule, and creates the Flask app.
"""

import logging
import os

from media_access.gate import AccessGate
from media_access.hooks import AccessFilterRegistry, access_filters, load_filters
from media_access.managers.attachments import AttachmentIndex
from media_access.managers.settings import SettingsManager
from media_access.web.rewrite import RewriteRules, uploads_url_path

logger = logging.getLogger("media-access")


class MediaAccessOrchestrator:
    """Main orchestrator wiring all components."""

    def __init__(self, config: dict, filter_registry: AccessFilterRegistry | None = None):
        self.config = config

        upload_dir = config["UPLOAD_DIR"]
        if not os.path.isdir(upload_dir):
            logger.warning("Upload directory %s does not exist", upload_dir)

        self.settings_manager = SettingsManager(config["DATA_PATH"])
        if self.settings_manager.seed_extensions(config.get("EXTENSIONS_SEED")):
            logger.info("Seeded protected extensions from config")

        self.attachment_index = AttachmentIndex(config["DATA_PATH"])

        # Filters from config join whatever collaborators registered at import time
        self.filter_registry = filter_registry if filter_registry is not None else access_filters
        load_filters(self.filter_registry, config.get("ACCESS_FILTERS") or [])

        self.rewrite_rules = RewriteRules(
            self.settings_manager,
            uploads_url_path(config.get("UPLOAD_URL", ""), config.get("SITE_URL", "")),
        )
        self.settings_manager.add_update_listener(self.rewrite_rules.flush)

        upload_url = config.get("UPLOAD_URL") or "/" + self.rewrite_rules.uploads_path.rstrip("/")
        self.gate = AccessGate(
            self.filter_registry,
            upload_dir,
            upload_url,
            self.attachment_index,
        )

        # Flask app (lazy import to avoid circular deps)
        from media_access.web.server import create_app

        self.flask_app = create_app(self)

    def start(self):
        """Freeze the filter chain; no registrations after this point."""
        self.filter_registry.freeze()
        logger.info(
            "Media access gate ready: %d filter(s), extensions: %s",
            len(self.filter_registry),
            self.settings_manager.get_extensions_string() or "(none)",
        )

    def stop(self):
        """Graceful shutdown: tear down the filter chain."""
        logger.info("Shutting down media access gate...")
        self.filter_registry.clear()
