"""
Logging setup and the recent-problem buffer behind GET /api/status.

Everything the gate reports at WARNING or above (rejected traversal
attempts, access filters that raised, granted files that could not be read,
settings that failed to save) is kept in a small in-memory ring so an
operator can see it without tailing worker logs. Each Gunicorn worker has
its own buffer; the status endpoint shows the one that answered.
"""

import logging
import threading
import time
from collections import deque

from media_access.constants import ERROR_BUFFER_MAX_SIZE

logger = logging.getLogger('media-access')

MAX_MESSAGE_LENGTH = 500


class ErrorBuffer:
    """Newest-first ring of recent WARNING/ERROR records."""

    def __init__(self, max_size: int = ERROR_BUFFER_MAX_SIZE):
        self._entries: deque[dict] = deque(maxlen=max_size)
        self._lock = threading.Lock()

    def append(self, timestamp: str, level: str, message: str, source: str = "") -> None:
        """Record one problem; the oldest entry drops out when the ring is full.

        source is the emitting logger's name, so filter failures logged by a
        collaborator's own logger can be told apart from the gate's.
        """
        with self._lock:
            self._entries.append({
                "ts": timestamp,
                "level": level,
                "source": source,
                "message": (message or "")[:MAX_MESSAGE_LENGTH],
            })

    def get_all(self) -> list[dict]:
        with self._lock:
            return list(reversed(self._entries))

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class ErrorBufferHandler(logging.Handler):
    """Copies WARNING and above into an ErrorBuffer."""

    def __init__(self, buffer: ErrorBuffer):
        super().__init__(level=logging.WARNING)
        self._buffer = buffer

    def emit(self, record: logging.LogRecord) -> None:
        try:
            ts = time.strftime('%Y-%m-%d %H:%M:%S', time.localtime(record.created))
            self._buffer.append(ts, record.levelname, record.getMessage(), record.name)
        except Exception:
            self.handleError(record)


error_buffer = ErrorBuffer()


def setup_logging(log_level: str):
    """Apply LOG_LEVEL and attach the status buffer to the media-access logger."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.getLogger().setLevel(level)
    logger.setLevel(level)

    # bootstrap() may run more than once per process (tests)
    if not any(isinstance(h, ErrorBufferHandler) for h in logger.handlers):
        logger.addHandler(ErrorBufferHandler(error_buffer))

    # The gate logs one line per protected request; werkzeug's access log is noise
    logging.getLogger('werkzeug').setLevel(logging.WARNING)

    logger.info("Log level set to %s", log_level.upper())
