"""
Access gate for protected uploads.

Runs the access filter chain for a resolved upload and turns the final
value into one of three outcomes:

* SERVE: the filtered path is non-empty and exists; send it as a forced
  download.
* DENY: the filtered path is empty or missing but the originally requested
  file exists; answer 401.
* PASSTHROUGH: the original file does not exist either; return nothing and
  let the app answer 404.

The existence re-check uses the original path, not the filtered one, so a
filter that substitutes a nonexistent path still yields 401 for a real file
and a genuinely missing file still yields 404.
"""

import logging
import os
from urllib.parse import quote

from flask import Response, render_template

from media_access.constants import (
    DOWNLOAD_CONTENT_TYPE,
    NOCACHE_HEADERS,
    UNAUTHORIZED_MESSAGE,
    UNAUTHORIZED_TITLE,
)
from media_access.hooks import AccessFilterRegistry
from media_access.models import AccessDecision, AccessRequest, DecisionOutcome
from media_access.web.path_helpers import resolve_access_request

logger = logging.getLogger("media-access")


def _content_disposition(file_path: str) -> str:
    """attachment; filename="<basename>", with an RFC 5987 form for non-ASCII names."""
    name = os.path.basename(file_path).replace('"', "").replace("\r", "").replace("\n", "")
    ascii_name = name.encode("ascii", "ignore").decode("ascii")
    if ascii_name == name:
        return f'attachment; filename="{name}"'
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(name)}"


def build_download_response(file_path: str) -> Response:
    """Whole-file forced-download response for a granted path."""
    with open(file_path, "rb") as f:
        data = f.read()
    response = Response(data, status=200, mimetype=DOWNLOAD_CONTENT_TYPE)
    for name, value in NOCACHE_HEADERS.items():
        response.headers[name] = value
    response.headers["Content-Disposition"] = _content_disposition(file_path)
    response.headers["Content-Transfer-Encoding"] = "binary"
    response.headers["Content-Length"] = str(len(data))
    return response


def build_unauthorized_response() -> Response:
    """401 page with the fixed access-denied message."""
    body = render_template(
        "unauthorized.html",
        title=UNAUTHORIZED_TITLE,
        message=UNAUTHORIZED_MESSAGE,
    )
    return Response(body, status=401, mimetype="text/html")


class AccessGate:
    """Resolves, decides and responds for protected upload requests."""

    def __init__(
        self,
        registry: AccessFilterRegistry,
        upload_dir: str,
        upload_url: str = "",
        attachments=None,
    ) -> None:
        self.registry = registry
        self.upload_dir = upload_dir
        self.upload_url = upload_url
        self.attachments = attachments

    def resolve(self, relative_path: str) -> AccessRequest | None:
        return resolve_access_request(
            self.upload_dir, self.upload_url, relative_path, self.attachments
        )

    def decide(self, access_request: AccessRequest) -> AccessDecision:
        """Run the filter chain seeded with the resolved path and classify the result."""
        candidate = self.registry.apply(
            access_request.file_path,
            access_request.relative_path,
            access_request.attachment_id,
        )
        if candidate and isinstance(candidate, (str, os.PathLike)) and os.path.isfile(candidate):
            return AccessDecision(DecisionOutcome.SERVE, access_request, os.fspath(candidate))

        if os.path.exists(access_request.file_path):
            return AccessDecision(DecisionOutcome.DENY, access_request)

        return AccessDecision(DecisionOutcome.PASSTHROUGH, access_request)

    def respond(self, decision: AccessDecision) -> Response | None:
        """Response for a decision; None means the caller should 404."""
        if decision.granted:
            try:
                return build_download_response(decision.file_path)
            except OSError as e:
                # File vanished or became unreadable between the check and the read
                logger.warning("Could not read granted file %s: %s", decision.file_path, e)
                if os.path.exists(decision.request.file_path):
                    return build_unauthorized_response()
                return None
        if decision.outcome is DecisionOutcome.DENY:
            return build_unauthorized_response()
        return None

    def handle(self, relative_path: str) -> Response | None:
        """Full gate pass for one request path relative to the upload root."""
        access_request = self.resolve(relative_path)
        if access_request is None:
            logger.warning("Rejected unsafe upload path: %r", relative_path)
            return None

        decision = self.decide(access_request)
        if decision.granted:
            logger.debug(
                "Serving %s as %s (attachment %s)",
                relative_path, decision.file_path, access_request.attachment_id,
            )
        elif decision.outcome is DecisionOutcome.DENY:
            logger.info("Denied access to %s (attachment %s)", relative_path, access_request.attachment_id)
        else:
            logger.debug("No file for %s, passing through to 404", relative_path)
        return self.respond(decision)
