# stylevision/errors.py
from typing import Any, Optional


class StyleVisionError(Exception):
    """Base exception for the service."""

    error_code = "internal_error"


class ConfigError(StyleVisionError):
    """A required credential or setting is missing."""

    error_code = "config_missing"

    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(message)
        self.setting = setting


class CameraError(StyleVisionError):
    """Camera stream could not be opened or is owned elsewhere."""

    error_code = "camera_unavailable"


class TransientNetworkError(StyleVisionError):
    """Timeout, connection reset or rate limit that survived every retry."""

    error_code = "upstream_unavailable"


class UpstreamRejectionError(StyleVisionError):
    """Non-2xx answer from the AI backend that is not worth retrying."""

    error_code = "upstream_rejected"

    def __init__(self, message: str, status_code: int = 502, payload: Optional[Any] = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class ContentBlockedError(UpstreamRejectionError):
    """The backend refused the request on content-policy grounds."""

    error_code = "content_blocked"


class MalformedResponseError(StyleVisionError):
    """The backend answered, but not in the shape we expect."""

    error_code = "malformed_response"


class PollTimeoutError(StyleVisionError):
    """An asynchronous prediction never reached a terminal state."""

    error_code = "poll_timeout"


class RateLimitedError(TransientNetworkError):
    """HTTP 429 that was still coming back after the last retry."""

    error_code = "rate_limited"
