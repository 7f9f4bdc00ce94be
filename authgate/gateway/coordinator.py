"""
Credential Renewal Coordinator
==============================

Single-flight renewal of the access credential.

When a burst of requests all fail because the access token expired, only the
first one to notice performs the renewal call. Every other caller is parked
on a future and resumed, in arrival order, with the outcome of that one call.

States:
    Idle      -> no renewal in flight, the waiter queue is empty
    Renewing  -> exactly one renewal call in flight

Ordering constraints:
    - the ``renewing`` flag is set before the first suspension point, so no
      second renewal can start in the gap
    - on success the store is updated before any waiter is resumed
    - all waiters queued during a renewal receive that renewal's outcome

The coordinator runs on a single asyncio event loop and is not thread-safe.
"""

import asyncio
import logging
from collections import deque
from typing import Deque, Optional

import httpx
from pydantic import ValidationError

from ..auth.store import CredentialStore
from ..errors import RenewalFailedError, SessionTerminatedError
from ..models import RenewalRequest, RenewalResponse
from ..session import SessionTerminator

logger = logging.getLogger("authgate.gateway.coordinator")


class RefreshCoordinator:
    """
    Owns the renewal flag and the waiter queue for one gateway client.

    Args:
        http_client: Client used for the renewal call (sent directly, never
                     through the authenticated pipeline)
        store: Credential store read and updated by the coordinator
        terminator: Receives the session-termination signal
        refresh_path: Renewal endpoint path
        timeout: Optional timeout override for the renewal call
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        store: CredentialStore,
        terminator: SessionTerminator,
        refresh_path: str = "/auth/refresh",
        timeout: Optional[httpx.Timeout] = None,
    ):
        self.http_client = http_client
        self.store = store
        self.terminator = terminator
        self.refresh_path = refresh_path
        self.timeout = timeout

        self._renewing = False
        self._waiters: Deque[asyncio.Future] = deque()

    # ------------------------------------------------------------------
    # State inspection
    # ------------------------------------------------------------------

    @property
    def renewing(self) -> bool:
        """True while a renewal call is in flight."""
        return self._renewing

    @property
    def waiting(self) -> int:
        """Number of callers parked on the current renewal."""
        return len(self._waiters)

    # ------------------------------------------------------------------
    # Renewal
    # ------------------------------------------------------------------

    async def renew(self, cause: Optional[Exception] = None) -> str:
        """
        Obtain a fresh access credential after an authentication failure.

        The first caller performs the renewal; callers arriving while it is
        in flight wait for its outcome.

        Args:
            cause: The authentication failure that triggered the renewal

        Returns:
            The new access token

        Raises:
            RenewalFailedError: The renewal call failed (same instance for
                                every caller of this renewal)
            SessionTerminatedError: No refresh token was stored

        If the renewal ends any other way (the leader is cancelled, the store
        rejects the new token), the leader sees that error and every waiter
        receives a RenewalFailedError chained from it.
        """
        if self._renewing:
            waiter = asyncio.get_running_loop().create_future()
            self._waiters.append(waiter)
            logger.debug(
                "Renewal in flight, queueing caller",
                extra={"waiting": len(self._waiters)},
            )
            return await waiter

        self._renewing = True
        try:
            refresh_token = self.store.get_refresh()

            if not refresh_token:
                logger.warning("Access token expired and no refresh token is stored")
                self.store.clear()
                self.terminator.terminate("missing_refresh_token")
                error = SessionTerminatedError(
                    "Session expired and no refresh token is available",
                    reason="missing_refresh_token",
                )
                raise error from cause

            try:
                access_token = await self._request_renewal(refresh_token)
            except RenewalFailedError as error:
                self._reject_waiters(error)
                self.store.clear()
                self.terminator.terminate(error.reason)
                raise

            self.store.set_access(access_token)
            self._resolve_waiters(access_token)
            return access_token
        except BaseException as error:
            # Leader cancelled or crashed; waiters must not outlive this cycle
            if self._waiters:
                self._abandon_waiters(error)
            raise
        finally:
            self._renewing = False

    async def _request_renewal(self, refresh_token: str) -> str:
        body = RenewalRequest(refresh_token=refresh_token).model_dump(by_alias=True)

        logger.info(
            "Renewing access token",
            extra={"refresh_path": self.refresh_path, "waiting": len(self._waiters)},
        )

        kwargs = {"json": body}
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout

        try:
            response = await self.http_client.post(self.refresh_path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            logger.error(
                f"Token renewal rejected: {status_code}",
                extra={"status_code": status_code},
            )
            raise RenewalFailedError(
                f"Token renewal rejected with status {status_code}",
                status_code=status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Token renewal network error: {e!r}")
            raise RenewalFailedError(f"Token renewal failed: {e}") from e

        try:
            payload = RenewalResponse.from_payload(response.json())
        except (ValueError, ValidationError) as e:
            logger.error("Token renewal returned an unusable payload")
            raise RenewalFailedError(
                "Token renewal response did not contain an access token",
                status_code=response.status_code,
            ) from e

        logger.info("Access token renewed", extra={"waiting": len(self._waiters)})
        return payload.tokens.access_token

    # ------------------------------------------------------------------
    # Waiter settlement
    # ------------------------------------------------------------------

    def _drain(self):
        while self._waiters:
            waiter = self._waiters.popleft()
            if waiter.done():
                # Owner cancelled it; nothing left to deliver
                continue
            yield waiter

    def _resolve_waiters(self, access_token: str) -> None:
        for waiter in self._drain():
            waiter.set_result(access_token)

    def _reject_waiters(self, error: Exception) -> None:
        for waiter in self._drain():
            waiter.set_exception(error)

    def _abandon_waiters(self, error: BaseException) -> None:
        logger.error(
            f"Token renewal interrupted: {error!r}",
            extra={"waiting": len(self._waiters)},
        )
        failure = RenewalFailedError(f"Token renewal interrupted: {error!r}")
        failure.__cause__ = error
        self._reject_waiters(failure)
