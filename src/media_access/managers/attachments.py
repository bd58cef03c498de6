"""Best-effort lookup from upload-relative file path to attachment id.

The index is a JSON object {"2023/05/report.pdf": 42, ...} under DATA_PATH,
maintained by whatever tracks attachments in the host system. Only files
registered there resolve; anything else dropped into the upload tree maps to
NO_ATTACHMENT_ID. This module only reads the index.
"""

import json
import logging
import os
import threading

from media_access.constants import ATTACHMENTS_FILENAME, NO_ATTACHMENT_ID
from media_access.managers.settings import file_stamp

logger = logging.getLogger("media-access")


class AttachmentIndex:
    """Read-through cache over attachments.json, reloaded when the file is replaced or modified."""

    def __init__(self, data_path: str) -> None:
        self._file_path = os.path.join(
            os.path.realpath(os.path.abspath(data_path)), ATTACHMENTS_FILENAME
        )
        self._lock = threading.Lock()
        self._entries: dict[str, int] = {}
        self._loaded_stamp: tuple[int, int, int] | None = None

    @property
    def file_path(self) -> str:
        return self._file_path

    def lookup(self, relative_path: str) -> int:
        """Return the attachment id for an exact relative path, else 0."""
        with self._lock:
            self._refresh()
            return self._entries.get(relative_path, NO_ATTACHMENT_ID)

    def __len__(self) -> int:
        with self._lock:
            self._refresh()
            return len(self._entries)

    def _refresh(self) -> None:
        """Reload the index if the file changed since the last read. Caller holds the lock."""
        stamp = file_stamp(self._file_path)
        if stamp is None:
            self._entries = {}
            self._loaded_stamp = None
            return
        if stamp == self._loaded_stamp:
            return
        self._entries = self._read()
        self._loaded_stamp = stamp

    def _read(self) -> dict[str, int]:
        try:
            with open(self._file_path, encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read attachment index %s: %s", self._file_path, e)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Attachment index %s is not a JSON object; ignoring", self._file_path)
            return {}

        entries: dict[str, int] = {}
        for path, attachment_id in raw.items():
            try:
                entries[str(path)] = int(attachment_id)
            except (TypeError, ValueError):
                logger.debug("Skipping attachment entry %s=%r", path, attachment_id)
        logger.debug("Loaded %d attachment entries", len(entries))
        return entries
