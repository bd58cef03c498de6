"""
Routing pattern for protected uploads.

Compiles the protected extension set into one anchored regex of the form
``^<uploads path>/(.*\\.(?i:pdf|doc))$``. Only the extension is
case-insensitive; the uploads prefix must match exactly, as it does for the
static route. A request path that matches is handed to the access gate
with group 1 as the upload-relative path. With no extensions configured
there is no pattern and every upload is served by the default static route.
"""

import logging
import re
import threading
from urllib.parse import urlsplit

from media_access.constants import DEFAULT_UPLOADS_URL_PATH

logger = logging.getLogger("media-access")


def uploads_url_path(upload_url: str, site_url: str = "") -> str:
    """Upload URL relative to the site root, with a trailing slash.

    e.g. ("http://example.com/blog/wp-content/uploads", "http://example.com/blog/")
    -> "wp-content/uploads/".
    """
    if not upload_url:
        return DEFAULT_UPLOADS_URL_PATH.strip("/") + "/"
    upload_url = upload_url.rstrip("/") + "/"
    site_root = site_url.rstrip("/") + "/" if site_url else ""
    if site_root and upload_url.startswith(site_root):
        relative = upload_url[len(site_root):]
    else:
        relative = urlsplit(upload_url).path
    relative = relative.strip("/")
    return relative + "/" if relative else ""


def build_pattern(uploads_path: str, extensions: list[str]) -> re.Pattern | None:
    """Compile the protected-upload regex, or None when there are no extensions."""
    if not extensions:
        return None
    alternation = "|".join(re.escape(ext) for ext in extensions)
    return re.compile(
        "^" + re.escape(uploads_path) + r"(.*\.(?i:" + alternation + r"))$"
    )


class RewriteRules:
    """Current routing pattern, regenerated when the extension option changes.

    flush() is registered as a SettingsManager listener for in-process
    updates; match() also compares the option file's version so writes from
    another worker are picked up on the next request.
    """

    def __init__(self, settings, uploads_path: str) -> None:
        self._settings = settings
        self._uploads_path = uploads_path
        self._lock = threading.Lock()
        self._pattern: re.Pattern | None = None
        self._version: tuple[int, int, int] | None = None
        self.flush()

    @property
    def uploads_path(self) -> str:
        return self._uploads_path

    @property
    def pattern(self) -> re.Pattern | None:
        self._check_version()
        return self._pattern

    def flush(self, *_args) -> None:
        """Rebuild the pattern from the stored extensions.

        Accepts and ignores (old_value, new_value) so it can be used directly
        as a settings update listener.
        """
        version = self._settings.version
        extensions = self._settings.get_extensions()
        pattern = build_pattern(self._uploads_path, extensions)
        with self._lock:
            self._pattern = pattern
            self._version = version
        if pattern is None:
            logger.info("No protected extensions configured; uploads are served directly")
        else:
            logger.info("Protected upload rule: %s", pattern.pattern)

    def match(self, request_path: str) -> str | None:
        """Return the upload-relative path if request_path is a protected upload."""
        pattern = self.pattern
        if pattern is None:
            return None
        m = pattern.match(request_path.lstrip("/"))
        if not m:
            return None
        return m.group(1)

    def _check_version(self) -> None:
        if self._settings.version != self._version:
            logger.debug("Extension option changed on disk, regenerating rule")
            self.flush()
