"""
Gateway Client
==============

Authenticated HTTP client for the remote API.

Flow for every call:
1. Stamp the request with the stored access token
2. Send it through the underlying httpx.AsyncClient
3. On failure, classify it
4. Expired token (first attempt): wait for the single-flight renewal, then
   replay the request once with the new token
5. Anything else: hand the original httpx exception back to the caller

Example:
--------
    async with GatewayClient(httpx.AsyncClient(base_url=url), store, owns_http_client=True) as api:
        response = await api.get("/tours")
"""

import logging
from typing import Any, Optional

import httpx

from .auth.authenticator import RequestAuthenticator
from .auth.store import CredentialStore
from .gateway.classifier import FailureKind, ResponseClassifier
from .gateway.coordinator import RefreshCoordinator
from .gateway.replayer import RequestReplayer
from .models import RequestRecord, build_record
from .session import SessionTerminator

logger = logging.getLogger("authgate.client")


class GatewayClient:
    """
    Wires the authentication pipeline around one httpx.AsyncClient.

    Each instance owns its own RefreshCoordinator, so two clients never
    share a renewal.

    Args:
        http_client: Client used for every outbound call
        store: Credential store
        terminator: Session-termination signal (a bare one is created when
                    omitted)
        refresh_path: Renewal endpoint path
        owns_http_client: Close ``http_client`` in ``aclose()`` (off for
                          borrowed clients, on for factory-built ones)
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        store: CredentialStore,
        terminator: Optional[SessionTerminator] = None,
        refresh_path: str = "/auth/refresh",
        owns_http_client: bool = False,
    ):
        self.http_client = http_client
        self.store = store
        self.terminator = terminator or SessionTerminator()
        self._owns_http_client = owns_http_client

        self.authenticator = RequestAuthenticator(store)
        self.classifier = ResponseClassifier()
        self.coordinator = RefreshCoordinator(
            http_client,
            store,
            self.terminator,
            refresh_path=refresh_path,
        )
        self.replayer = RequestReplayer(http_client, self.authenticator, self.classifier)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> "GatewayClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this gateway owns it."""
        if self._owns_http_client and not self.http_client.is_closed:
            await self.http_client.aclose()
            logger.debug("Closed gateway HTTP client")

    # ------------------------------------------------------------------
    # Session helpers
    # ------------------------------------------------------------------

    def login(self, access_token: str, refresh_token: str) -> None:
        """Store the token pair obtained from a login call."""
        set_tokens = getattr(self.store, "set_tokens", None)
        if set_tokens is not None:
            set_tokens(access_token, refresh_token)
        else:
            # Minimal stores only know about the access token
            self.store.set_access(access_token)
        logger.info("Stored new session tokens")

    def logout(self) -> None:
        """Discard the stored session and signal termination."""
        self.store.clear()
        self.terminator.terminate("logout")

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Send an authenticated request.

        Args:
            method: HTTP method
            url: Path relative to the base URL, or an absolute URL
            **kwargs: Forwarded to ``httpx.AsyncClient.build_request``

        Returns:
            The 2xx response

        Raises:
            httpx.HTTPStatusError: Non-2xx response (unchanged)
            httpx.RequestError: Transport failure (unchanged)
            RenewalFailedError: The token had expired and renewal failed
            SessionTerminatedError: The token had expired and no refresh
                                    token was stored
        """
        record = build_record(self.http_client, method, url, **kwargs)
        return await self.send(record)

    async def send(self, record: RequestRecord) -> httpx.Response:
        """Run a prepared record through the authentication pipeline."""
        self.authenticator.stamp(record.request)

        try:
            response = await self.http_client.send(record.request)
            response.raise_for_status()
            return response
        except httpx.HTTPError as e:
            kind = self.classifier.observe(e, record)
            if kind is not FailureKind.AUTH_EXPIRED:
                raise
            cause = e

        logger.info("Access token rejected, waiting for renewal", extra=record.describe())
        access_token = await self.coordinator.renew(cause)
        return await self.replayer.replay(record, access_token)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PATCH", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)
