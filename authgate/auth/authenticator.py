"""
Request Authentication
======================

Stamps outbound requests with the current access credential.
"""

import logging
from typing import Optional

import httpx

from .store import CredentialStore

logger = logging.getLogger("authgate.auth.authenticator")

AUTHORIZATION_HEADER = "Authorization"
BEARER_PREFIX = "Bearer"


def bearer_value(token: str) -> str:
    """
    Build an Authorization header value for a bearer token.

    Example:
        >>> bearer_value("abc")
        'Bearer abc'
    """
    return f"{BEARER_PREFIX} {token}"


class RequestAuthenticator:
    """
    Attaches ``Authorization: Bearer <token>`` to outbound requests.

    Pure and synchronous: the only side effect is on the request headers.
    """

    def __init__(self, store: CredentialStore):
        self.store = store

    def stamp(self, request: httpx.Request, token: Optional[str] = None) -> httpx.Request:
        """
        Attach the credential to a request.

        Args:
            request: Outbound request (mutated in place)
            token: Credential to use; read from the store when omitted

        Returns:
            The same request, for chaining
        """
        if token is None:
            token = self.store.get_access()

        if token:
            request.headers[AUTHORIZATION_HEADER] = bearer_value(token)
        else:
            # A replayed or reused request must not keep a stale credential
            request.headers.pop(AUTHORIZATION_HEADER, None)
            logger.debug(
                "No access token stored, sending request unauthenticated",
                extra={"method": request.method, "url": str(request.url)},
            )

        return request
