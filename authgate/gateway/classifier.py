"""
Response Classification
=======================

Decides what a failed request means for the gateway. Only an expired
credential on a request that has not been replayed yet is recoverable;
everything else is logged, reported to observers and handed back to the
caller untouched.

Status mapping:
    401 -> AUTH_EXPIRED (first attempt only, OTHER once replayed)
    403 -> FORBIDDEN
    404 -> NOT_FOUND
    422 -> VALIDATION
    429 -> RATE_LIMITED
    5xx -> SERVER_ERROR
    no response -> NETWORK_ERROR
    anything else -> OTHER
"""

import logging
from enum import Enum
from typing import Callable, List, NamedTuple, Optional

import httpx

from ..models import RequestRecord

logger = logging.getLogger("authgate.gateway.classifier")


class FailureKind(str, Enum):
    AUTH_EXPIRED = "auth_expired"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"
    OTHER = "other"


_STATUS_KINDS = {
    403: FailureKind.FORBIDDEN,
    404: FailureKind.NOT_FOUND,
    422: FailureKind.VALIDATION,
    429: FailureKind.RATE_LIMITED,
}


class FailureReport(NamedTuple):
    """What observers learn about a terminal failure."""
    kind: FailureKind
    status_code: Optional[int]
    method: str
    url: str


FailureObserver = Callable[[FailureReport], None]


def status_of(error: Exception) -> Optional[int]:
    """Return the HTTP status carried by an error, or None without a response."""
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    return None


class ResponseClassifier:
    """Maps request failures to a FailureKind and reports terminal ones."""

    def __init__(self):
        self._observers: List[FailureObserver] = []

    def add_observer(self, observer: FailureObserver) -> None:
        """Register a callback for terminal failures (toasts, metrics...)."""
        self._observers.append(observer)

    def classify(self, error: Exception, record: RequestRecord) -> FailureKind:
        """
        Classify a failure without side effects.

        Args:
            error: ``httpx.HTTPStatusError`` or a transport-level error
            record: The request that failed

        Returns:
            Exactly one FailureKind
        """
        status_code = status_of(error)

        if status_code is None:
            return FailureKind.NETWORK_ERROR

        if status_code == 401:
            if record.retried:
                return FailureKind.OTHER
            return FailureKind.AUTH_EXPIRED

        if 500 <= status_code <= 599:
            return FailureKind.SERVER_ERROR

        return _STATUS_KINDS.get(status_code, FailureKind.OTHER)

    def observe(self, error: Exception, record: RequestRecord) -> FailureKind:
        """
        Classify a failure and report it when it is terminal.

        Returns:
            The FailureKind; AUTH_EXPIRED is returned without being reported
        """
        kind = self.classify(error, record)
        if kind is not FailureKind.AUTH_EXPIRED:
            self._report(kind, error, record)
        return kind

    def _report(self, kind: FailureKind, error: Exception, record: RequestRecord) -> None:
        status_code = status_of(error)
        context = {**record.describe(), "status_code": status_code, "failure": kind.value}

        if kind is FailureKind.FORBIDDEN:
            logger.warning("Access denied - insufficient permissions", extra=context)
        elif kind is FailureKind.NOT_FOUND:
            logger.warning("Resource not found", extra=context)
        elif kind is FailureKind.VALIDATION:
            logger.warning(
                f"Validation error: {_response_text(error)}",
                extra=context,
            )
        elif kind is FailureKind.RATE_LIMITED:
            logger.warning("Rate limit exceeded - please try again later", extra=context)
        elif kind is FailureKind.SERVER_ERROR:
            logger.error("Server error - please try again later", extra=context)
        elif kind is FailureKind.NETWORK_ERROR:
            logger.error(
                f"Network error - unable to connect to server: {error!r}",
                extra=context,
            )
        else:
            logger.info(f"Request failed with status {status_code}", extra=context)

        report = FailureReport(
            kind=kind,
            status_code=status_code,
            method=record.method,
            url=record.url,
        )
        for observer in list(self._observers):
            try:
                observer(report)
            except Exception as e:
                logger.error(f"Failure observer raised: {e}", exc_info=True)


def _response_text(error: Exception, limit: int = 500) -> str:
    if not isinstance(error, httpx.HTTPStatusError):
        return ""
    try:
        return error.response.text[:limit]
    except httpx.ResponseNotRead:
        return ""
