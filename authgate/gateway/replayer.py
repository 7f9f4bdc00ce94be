"""
Request Replay
==============

Re-issues a request once a new access credential is available.
"""

import logging

import httpx

from ..auth.authenticator import RequestAuthenticator
from ..models import RequestRecord
from .classifier import ResponseClassifier

logger = logging.getLogger("authgate.gateway.replayer")


class RequestReplayer:
    """
    Replays a failed request exactly once with a new credential.

    A replay failure is terminal. It is reported through the classifier and
    re-raised; the ``retried`` marker keeps it from being treated as an
    expired credential again.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        authenticator: RequestAuthenticator,
        classifier: ResponseClassifier,
    ):
        self.http_client = http_client
        self.authenticator = authenticator
        self.classifier = classifier

    async def replay(self, record: RequestRecord, access_token: str) -> httpx.Response:
        """
        Send ``record`` again with ``access_token``.

        Raises:
            RuntimeError: If the record was already replayed
            httpx.HTTPStatusError: The replay got a non-2xx response
            httpx.RequestError: The replay failed at transport level
        """
        if record.retried:
            raise RuntimeError(f"{record!r} has already been replayed")

        record.retried = True
        self.authenticator.stamp(record.request, access_token)

        logger.info("Replaying request with renewed token", extra=record.describe())

        try:
            response = await self.http_client.send(record.request)
            response.raise_for_status()
        except httpx.HTTPError as e:
            self.classifier.observe(e, record)
            raise

        return response
