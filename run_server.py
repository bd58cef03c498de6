#!/usr/bin/env python3
"""
Start the media access gate under Gunicorn.

Bind address comes from config (network.flask_host / flask_port, or the
FLASK_HOST / FLASK_PORT env vars). GUNICORN_WORKERS and GUNICORN_THREADS
size the pool. Every worker builds its own orchestrator from the same
DATA_PATH, so an extension change saved through one worker takes effect in
the others on their next request.

The launcher execs Gunicorn in place so it receives container signals
directly.

Usage: python run_server.py
"""

import os
import sys

# Source checkout without an install
if __name__ == "__main__":
    _src = os.path.join(os.path.dirname(os.path.abspath(__file__)), "src")
    if os.path.isdir(_src) and _src not in sys.path:
        sys.path.insert(0, _src)

from media_access.config import load_config


def gunicorn_argv(config: dict) -> list[str]:
    """Command line for the Gunicorn process serving media_access.wsgi."""
    host = config.get("FLASK_HOST", "0.0.0.0")
    port = config.get("FLASK_PORT", 5060)
    return [
        sys.executable,
        "-m",
        "gunicorn",
        "--bind",
        f"{host}:{port}",
        "--workers",
        os.environ.get("GUNICORN_WORKERS", "2"),
        "--threads",
        os.environ.get("GUNICORN_THREADS", "4"),
        "--capture-output",
        "--enable-stdio-inheritance",
        "media_access.wsgi:application",
    ]


def main() -> None:
    argv = gunicorn_argv(load_config())
    os.execvp(argv[0], argv)


if __name__ == "__main__":
    main()
