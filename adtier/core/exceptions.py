"""
Error taxonomy for the sync & classification pipeline
"""
from typing import Optional


class AdTierError(Exception):
    """Base class for all pipeline errors"""


class ConfigError(AdTierError):
    """No active connection or no selected ad account. Raised before any network call."""


class DataError(AdTierError):
    """A single record failed to normalize or persist."""

    def __init__(self, message: str, record_id: Optional[str] = None):
        super().__init__(message)
        self.record_id = record_id


class GraphAPIError(AdTierError):
    """A call to the ads platform failed."""

    retryable = True

    def __init__(self, message: str, code: Optional[int] = None, retryable: Optional[bool] = None):
        super().__init__(message)
        self.code = code
        if retryable is not None:
            self.retryable = retryable


class AuthError(GraphAPIError):
    """Expired or invalid access token. Fatal for the current sync."""

    retryable = False


class PermissionDeniedError(GraphAPIError):
    """Missing permission/scope or invalid field. Fatal for the call."""

    retryable = False


class RateLimitError(GraphAPIError):
    """Provider throttling."""


class TransientError(GraphAPIError):
    """Network failure, 5xx, or any other retryable provider error."""
