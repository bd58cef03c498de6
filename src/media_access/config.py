"""Configuration loading and validation."""

import os
import logging
import sys

import yaml
from voluptuous import Schema, Required, Optional, Any, ALLOW_EXTRA, Invalid

logger = logging.getLogger('media-access')


# Configuration Schema
CONFIG_SCHEMA = Schema({
    # Upload tree served by this app; basedir is required at runtime (config or env).
    Required('uploads'): {
        Optional('basedir'): str,     # Absolute path of the upload root on disk.
        Optional('baseurl'): str,     # Public URL of the upload root (e.g. http://host/wp-content/uploads).
        Optional('site_url'): str,    # Site root URL; the routing pattern is built relative to it.
    },
    # Access control: protected extensions seed and collaborator filters.
    Optional('access'): {
        # Seed for the extension option when nothing is stored yet; space-separated string or list.
        Optional('extensions'): Any(str, [str]),
        # Dotted paths ("package.module:callable") of access filters, registered in order.
        Optional('filters'): [str],
    },
    # Application behavior: logging and where option/attachment data is stored.
    Optional('settings'): {
        Optional('log_level'): Any('DEBUG', 'INFO', 'WARNING', 'ERROR'),  # Logging verbosity.
        Optional('data_path'): str,   # Directory for media_access_control.json and attachments.json.
        Optional('admin_token'): str,  # Bearer token required by POST /api/settings; unset disables updates.
    },
    # Web server binding used by run_server.py.
    Optional('network'): {
        Optional('flask_host'): str,  # Bind address for Gunicorn.
        Optional('flask_port'): int,  # Port for Gunicorn.
    },
}, extra=ALLOW_EXTRA)


def load_config() -> dict:
    """Load configuration from config.yaml merged with environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. config.yaml
    3. Default values

    Note: UPLOAD_DIR is REQUIRED and must be provided via config.yaml
    (uploads.basedir) or the environment.
    """
    config = {
        # Upload tree - NO DEFAULT for the directory (required from config)
        'UPLOAD_DIR': None,
        'UPLOAD_URL': '',
        'SITE_URL': '',

        # Access control
        'EXTENSIONS_SEED': None,
        'ACCESS_FILTERS': [],

        # Settings defaults
        'LOG_LEVEL': 'INFO',
        'DATA_PATH': '/app/data',
        'ADMIN_TOKEN': None,

        # Network defaults
        'FLASK_HOST': '0.0.0.0',
        'FLASK_PORT': 5060,
    }

    # Load from config.yaml if exists
    config_paths = ['/app/config.yaml', '/app/data/config.yaml', './config.yaml']
    config_loaded = False

    for path in config_paths:
        if os.path.exists(path):
            try:
                logger.info(f"Loading config from {path}")
                with open(path, 'r') as f:
                    yaml_config = yaml.safe_load(f) or {}

                # Validate schema
                try:
                    yaml_config = CONFIG_SCHEMA(yaml_config)
                except Invalid as e:
                    logger.error(f"Invalid configuration in {path}: {e}")
                    sys.exit(1)

                uploads = yaml_config['uploads']
                config['UPLOAD_DIR'] = uploads.get('basedir', config['UPLOAD_DIR'])
                config['UPLOAD_URL'] = uploads.get('baseurl', config['UPLOAD_URL']) or ''
                config['SITE_URL'] = uploads.get('site_url', config['SITE_URL']) or ''

                if 'access' in yaml_config:
                    access = yaml_config['access']
                    config['EXTENSIONS_SEED'] = access.get('extensions', config['EXTENSIONS_SEED'])
                    config['ACCESS_FILTERS'] = list(access.get('filters') or [])

                if 'settings' in yaml_config:
                    settings = yaml_config['settings']
                    config['LOG_LEVEL'] = settings.get('log_level', config['LOG_LEVEL'])
                    config['DATA_PATH'] = settings.get('data_path', config['DATA_PATH'])
                    config['ADMIN_TOKEN'] = settings.get('admin_token') or config['ADMIN_TOKEN']

                if 'network' in yaml_config:
                    network = yaml_config['network']
                    config['FLASK_HOST'] = network.get('flask_host', config['FLASK_HOST'])
                    config['FLASK_PORT'] = network.get('flask_port', config['FLASK_PORT'])

                config_loaded = True
                break

            except (OSError, yaml.YAMLError) as e:
                logger.error(f"Error loading config from {path}: {e}")

    if not config_loaded:
        logger.info("No config.yaml found, using defaults")

    # Environment variables override everything (for deployment)
    config['UPLOAD_DIR'] = os.getenv('UPLOAD_DIR') or config['UPLOAD_DIR']
    config['UPLOAD_URL'] = (os.getenv('UPLOAD_URL') or config['UPLOAD_URL']).rstrip('/')
    config['SITE_URL'] = os.getenv('SITE_URL') or config['SITE_URL']
    config['DATA_PATH'] = os.getenv('DATA_PATH', config['DATA_PATH'])
    config['LOG_LEVEL'] = os.getenv('LOG_LEVEL', config['LOG_LEVEL'])
    config['ADMIN_TOKEN'] = os.getenv('MEDIA_ACCESS_ADMIN_TOKEN') or config['ADMIN_TOKEN']
    config['FLASK_HOST'] = os.getenv('FLASK_HOST') or config['FLASK_HOST']
    config['FLASK_PORT'] = int(os.getenv('FLASK_PORT', str(config['FLASK_PORT'])))
    _extensions = os.getenv('MEDIA_ACCESS_EXTENSIONS')
    if _extensions is not None:
        config['EXTENSIONS_SEED'] = _extensions

    # Validate required settings
    if not config['UPLOAD_DIR']:
        raise ValueError(
            "Missing required configuration: UPLOAD_DIR (uploads.basedir). "
            "Set it in config.yaml under 'uploads:' or as an environment variable."
        )

    return config
