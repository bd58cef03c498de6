"""Thread-safe storage for the protected extension option.

The option lives under DATA_PATH as media_access_control.json so it persists
across restarts and is shared by every Gunicorn worker. Writes always go
through the sanitizing setter; raw user input never reaches the file.
Listeners registered with add_update_listener run after every write (the
rewrite rules use this to regenerate their pattern).
"""

import json
import logging
import os
import re
import tempfile
import threading
from typing import Callable, Iterable

from media_access.constants import EXTENSIONS_OPTION_KEY, SETTINGS_FILENAME

logger = logging.getLogger("media-access")

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def file_stamp(path: str) -> tuple[int, int, int] | None:
    """(st_ino, st_mtime_ns, st_size) of path, or None if it cannot be stat'd."""
    try:
        st = os.stat(path)
    except OSError:
        return None
    return (st.st_ino, st.st_mtime_ns, st.st_size)


def sanitize_file_extensions_list(extensions: str | Iterable[str] | None) -> list[str]:
    """Sanitize an array or space-separated string of file extensions.

    Each entry is trimmed, lowercased and stripped of anything outside
    [a-z0-9]; empty results are dropped and duplicates keep their first
    position.

    >>> sanitize_file_extensions_list([" PDF ", "doc!", ""])
    ['pdf', 'doc']
    """
    if extensions is None:
        return []
    if isinstance(extensions, str):
        extensions = extensions.split(" ")

    sanitized: list[str] = []
    for ext in extensions:
        token = _NON_ALNUM.sub("", str(ext).strip().lower())
        if token and token not in sanitized:
            sanitized.append(token)
    return sanitized


def sanitize_settings(value: dict | None) -> dict:
    """Return the option dict to persist; omits 'extensions' when none survive."""
    raw = (value or {}).get(EXTENSIONS_OPTION_KEY)
    extensions = sanitize_file_extensions_list(raw) if raw is not None else []

    option: dict = {}
    if extensions:
        option[EXTENSIONS_OPTION_KEY] = " ".join(extensions)
    return option


class SettingsManager:
    """Read/write of media_access_control.json under data_path.

    All file I/O is protected by a single lock so concurrent settings API
    requests cannot interleave partial writes. Readers always see the last
    complete file because writes go through a temp file and os.replace.
    """

    def __init__(self, data_path: str) -> None:
        """Initialize with the application data directory.

        Args:
            data_path: Directory under which media_access_control.json
                will be created (config DATA_PATH).
        """
        self._data_path = os.path.realpath(os.path.abspath(data_path))
        self._file_path = os.path.join(self._data_path, SETTINGS_FILENAME)
        self._lock = threading.Lock()
        self._listeners: list[Callable[[dict, dict], None]] = []

    @property
    def file_path(self) -> str:
        return self._file_path

    @property
    def version(self) -> tuple[int, int, int] | None:
        """Identity stamp of the option file: (inode, mtime_ns, size), None when missing.

        Lets callers notice writes made by another worker process. Every
        write replaces the file, so the inode changes even when a coarse
        filesystem clock leaves the mtime unchanged.
        """
        return file_stamp(self._file_path)

    def has_option(self) -> bool:
        return os.path.isfile(self._file_path)

    def get_option(self) -> dict:
        """Return the stored option dict ({} when missing or unreadable)."""
        with self._lock:
            return self._read() or {}

    def get_extensions(self) -> list[str]:
        """Return the protected extensions in stored order."""
        value = self.get_option().get(EXTENSIONS_OPTION_KEY, "")
        if not isinstance(value, str):
            return []
        return [ext for ext in value.split(" ") if ext]

    def get_extensions_string(self) -> str:
        return " ".join(self.get_extensions())

    def update_extensions(self, extensions: str | Iterable[str] | None) -> list[str]:
        """Sanitize and persist the extension list, then notify listeners.

        Returns:
            The sanitized extension list as stored.
        """
        new_value = sanitize_settings({EXTENSIONS_OPTION_KEY: extensions})
        with self._lock:
            old_value = self._read() or {}
            self._write(new_value)
        logger.info(
            "Protected extensions updated: %s",
            new_value.get(EXTENSIONS_OPTION_KEY) or "(none)",
        )
        for listener in list(self._listeners):
            listener(old_value, new_value)
        return [ext for ext in new_value.get(EXTENSIONS_OPTION_KEY, "").split(" ") if ext]

    def seed_extensions(self, extensions: str | Iterable[str] | None) -> bool:
        """Store extensions from config only when no option has been saved yet.

        Returns:
            True if the seed was written.
        """
        if extensions is None or self.has_option():
            return False
        self.update_extensions(extensions)
        return True

    def add_update_listener(self, listener: Callable[[dict, dict], None]) -> None:
        """Register listener(old_value, new_value), called after each write."""
        self._listeners.append(listener)

    def _read(self) -> dict | None:
        """Read and parse the JSON file; return None if missing or invalid."""
        if not os.path.isfile(self._file_path):
            return None
        try:
            with open(self._file_path, encoding="utf-8") as f:
                out = json.load(f)
            if not isinstance(out, dict):
                return None
            return out
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read settings file %s: %s", self._file_path, e)
            return None

    def _write(self, data: dict) -> None:
        """Write data as JSON atomically; creates parent dir and file if needed."""
        os.makedirs(self._data_path, exist_ok=True)
        tmp_fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=self._data_path,
            delete=False,
            suffix=".tmp",
            encoding="utf-8",
        )
        tmp_path = tmp_fd.name
        try:
            json.dump(data, tmp_fd, indent=2)
            tmp_fd.close()
            os.replace(tmp_path, self._file_path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
