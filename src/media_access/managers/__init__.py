"""Manager modules for the extension option store and the attachment index."""

from media_access.managers.attachments import AttachmentIndex
from media_access.managers.settings import SettingsManager

__all__ = [
    "AttachmentIndex",
    "SettingsManager",
]
