"""Per-request access models: the resolved request and the gate's decision."""

from dataclasses import dataclass
from enum import Enum, auto

from media_access.constants import NO_ATTACHMENT_ID


@dataclass(frozen=True)
class AccessRequest:
    """A protected upload request after path resolution.

    file_path is the absolute path under the upload root (not checked for
    existence); file_url is informational only and never used for serving.
    """
    relative_path: str
    file_path: str
    file_url: str
    attachment_id: int = NO_ATTACHMENT_ID


class DecisionOutcome(Enum):
    """Terminal outcome of one pass through the access gate."""
    SERVE = auto()        # Final filtered path exists: send it (200)
    DENY = auto()         # Filtered away but the original file exists (401)
    PASSTHROUGH = auto()  # Original file does not exist: host answers 404


@dataclass(frozen=True)
class AccessDecision:
    """Result of AccessGate.decide(); computed per request, never persisted."""
    outcome: DecisionOutcome
    request: AccessRequest
    file_path: str | None = None  # Path to send when outcome is SERVE

    @property
    def granted(self) -> bool:
        return self.outcome is DecisionOutcome.SERVE
