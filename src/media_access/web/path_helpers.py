"""
Path safety helpers for the web layer.

Centralizes "path under the upload root" checks so the gate and the default
static route do not duplicate normpath/startswith logic. A resolved path must
lie strictly under the real upload root; ".." segments are rejected outright
rather than normalized away.
"""

import os

from media_access.models import AccessRequest


def resolve_under_uploads(upload_dir: str, relative_path: str) -> str | None:
    """
    Resolve a request path under the upload root and return it if safe, else None.

    Backslashes are treated as separators. Returns None for empty paths,
    absolute paths, NUL bytes, any ".." segment, or a result that would escape
    or equal the upload root.

    Does not require the resolved path to exist.
    """
    if not upload_dir or not relative_path or "\x00" in relative_path:
        return None
    parts = relative_path.replace("\\", "/").split("/")
    if relative_path.startswith(("/", "\\")) or ".." in parts:
        return None
    parts = [p for p in parts if p and p != "."]
    if not parts or os.path.isabs(parts[0]) or os.path.splitdrive(parts[0])[0]:
        return None

    base = os.path.realpath(upload_dir)
    candidate = os.path.normpath(os.path.join(base, *parts))
    if not candidate.startswith(base + os.sep):
        return None
    return candidate


def build_file_url(upload_url: str, relative_path: str) -> str:
    """Public URL of an upload: trailing-slashed upload URL + relative path."""
    return upload_url.rstrip("/") + "/" + relative_path.lstrip("/")


def resolve_access_request(
    upload_dir: str,
    upload_url: str,
    relative_path: str,
    attachments=None,
) -> AccessRequest | None:
    """Build the AccessRequest for a matched upload path, or None if unsafe.

    attachments is any object with lookup(relative_path) -> int (normally an
    AttachmentIndex); omitted means every request gets attachment id 0.
    """
    file_path = resolve_under_uploads(upload_dir, relative_path)
    if file_path is None:
        return None
    attachment_id = attachments.lookup(relative_path) if attachments is not None else 0
    return AccessRequest(
        relative_path=relative_path,
        file_path=file_path,
        file_url=build_file_url(upload_url, relative_path),
        attachment_id=attachment_id or 0,
    )
