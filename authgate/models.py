"""
Data Models Module

This module defines Pydantic models for the renewal wire contract and the
session events published by the gateway, plus the request record that
travels through the authentication pipeline.

Models are organized by functional area:
- Renewal models (refresh request, token payload)
- Session models (termination events)
- Pipeline records (outbound requests annotated with a retry marker)
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Renewal Models
# ============================================================================

class RenewalRequest(BaseModel):
    """Body sent to the renewal endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str = Field(..., alias="refreshToken", min_length=1)


class RenewedTokens(BaseModel):
    """Token bundle returned by the renewal endpoint."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    access_token: str = Field(..., alias="accessToken", min_length=1)


class RenewalResponse(BaseModel):
    """Successful renewal payload; fields other than ``tokens`` are ignored."""
    model_config = ConfigDict(extra="ignore")

    tokens: RenewedTokens

    @classmethod
    def from_payload(cls, payload: Any) -> "RenewalResponse":
        """
        Parse a renewal response body.

        The API wraps successful bodies as ``{"data": {...}}``; the bare
        ``{"tokens": {...}}`` shape is accepted too.

        Raises:
            pydantic.ValidationError: If no access token can be found
        """
        if isinstance(payload, dict) and "tokens" not in payload:
            envelope = payload.get("data")
            if isinstance(envelope, dict):
                payload = envelope
        return cls.model_validate(payload)


# ============================================================================
# Session Models
# ============================================================================

class SessionTerminatedEvent(BaseModel):
    """Published to listeners whenever the stored session is discarded."""
    reason: str = Field(..., description="Why the session ended")
    occurred_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Event timestamp",
    )
    redirected: bool = Field(
        default=False,
        description="Whether the host was navigated to the login surface",
    )


# ============================================================================
# Pipeline Records
# ============================================================================

class RequestRecord:
    """
    An outbound request annotated with a one-shot ``retried`` marker.

    A record is replayed at most once; a second authentication failure on a
    retried record is terminal.
    """

    def __init__(self, request: httpx.Request):
        self.request = request
        self.retried = False

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def url(self) -> str:
        return str(self.request.url)

    def describe(self) -> Dict[str, Any]:
        """Logging context for this record (never includes headers)."""
        return {"method": self.method, "url": self.url, "retried": self.retried}

    def __repr__(self) -> str:
        return f"RequestRecord({self.method} {self.url}, retried={self.retried})"


def build_record(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any,
) -> RequestRecord:
    """
    Build a RequestRecord using the client's base URL and default headers.

    Args:
        client: Client whose base URL, headers and timeout apply
        method: HTTP method
        url: Absolute URL or path relative to the client's base URL
        headers: Extra headers for this request
        **kwargs: Forwarded to ``httpx.AsyncClient.build_request``
                  (json, params, content, data, files, timeout...)
    """
    request = client.build_request(method, url, headers=headers, **kwargs)
    return RequestRecord(request)
