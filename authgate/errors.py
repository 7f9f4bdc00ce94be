"""
Gateway Exceptions
==================

Errors raised by the gateway itself. Failures returned by the remote API
(403, 404, 5xx, network errors...) are not wrapped: callers receive the
original ``httpx`` exception.
"""

from typing import Optional


class GatewayError(Exception):
    """Base exception for errors raised by the gateway"""
    pass


class ConfigurationError(GatewayError):
    """Raised when the gateway is built from unusable settings"""
    pass


class SessionTerminatedError(GatewayError):
    """
    The stored session is gone and the user has to authenticate again.

    Attributes:
        reason: Short machine-readable reason ("missing_refresh_token",
                "renewal_failed", "logout")
    """

    def __init__(self, message: str, reason: str = "session_terminated"):
        super().__init__(message)
        self.reason = reason


class RenewalFailedError(SessionTerminatedError):
    """
    The credential renewal call itself failed.

    Every caller waiting on the same renewal receives this same instance.

    Attributes:
        status_code: HTTP status of the renewal response, or None for
                     transport errors and malformed payloads
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, reason="renewal_failed")
        self.status_code = status_code
