"""
Shared constants for the access gate, option storage and response headers.

Centralizes the fixed unauthorized message, file names under the data
directory and the header values sent on a granted download so routes and
tests do not duplicate literals.
"""

# Message shown with the 401 response when a protected file exists but every
# access filter denied it.
UNAUTHORIZED_MESSAGE: str = "You do not have access to the requested file."
UNAUTHORIZED_TITLE: str = "Unauthorized"

# Option store and attachment index live under DATA_PATH.
SETTINGS_FILENAME: str = "media_access_control.json"
ATTACHMENTS_FILENAME: str = "attachments.json"

# Key inside the option store holding the space-separated extension list.
EXTENSIONS_OPTION_KEY: str = "extensions"

# Attachment id handed to access filters when no index entry matches.
NO_ATTACHMENT_ID: int = 0

# Priority used by add_filter when the caller does not pass one. Lower runs
# first; equal priorities keep registration order.
DEFAULT_FILTER_PRIORITY: int = 10

# Headers sent with every granted download (forced attachment, no caching).
DOWNLOAD_CONTENT_TYPE: str = "application/octet-stream"
NOCACHE_HEADERS: dict[str, str] = {
    "Expires": "Wed, 11 Jan 1984 05:00:00 GMT",
    "Cache-Control": "no-cache, must-revalidate, max-age=0",
    "Pragma": "no-cache",
}

# Error buffer for the status endpoint: max number of recent ERROR/WARNING
# log entries.
ERROR_BUFFER_MAX_SIZE: int = 10

# Default uploads URL path relative to the site root, used when neither
# UPLOAD_URL nor SITE_URL is configured.
DEFAULT_UPLOADS_URL_PATH: str = "wp-content/uploads"
