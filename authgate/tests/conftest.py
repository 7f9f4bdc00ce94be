"""
Shared fixtures for gateway tests.

FakeApi plays the remote API behind an ``httpx.MockTransport``: protected
paths accept only tokens issued by its renewal endpoint, and the renewal
endpoint can be held open until a given number of callers are queued.
"""

import asyncio
import json
from typing import Awaitable, Callable, Dict, List, Optional, Set, Tuple

import httpx
import pytest

from authgate.auth.store import InMemoryCredentialStore

BASE_URL = "https://api.example.com/api"
REFRESH_PATH = "/auth/refresh"


class FakeApi:
    """Async request handler emulating the remote API."""

    def __init__(self, new_token: str = "T2"):
        self.new_token = new_token
        self.valid_tokens: Set[str] = set()
        self.refresh_status = 200
        self.refresh_payload: Optional[dict] = None
        self.refresh_error: Optional[Exception] = None
        self.refresh_gate: Optional[Callable[[], Awaitable[None]]] = None
        # path -> forced status code, regardless of the token
        self.fixed_status: Dict[str, int] = {}
        self.network_down: Set[str] = set()

        self.refresh_calls: List[dict] = []
        self.calls: List[Tuple[str, str, Optional[str]]] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api")

        if path == REFRESH_PATH:
            return await self._refresh(request)

        auth = request.headers.get("Authorization")
        self.calls.append((request.method, path, auth))

        if path in self.network_down:
            raise httpx.ConnectError("Connection refused", request=request)

        if path in self.fixed_status:
            return httpx.Response(
                self.fixed_status[path],
                json={"success": False, "message": f"forced {self.fixed_status[path]}"},
            )

        if not auth or auth.removeprefix("Bearer ") not in self.valid_tokens:
            return httpx.Response(401, json={"success": False, "message": "Invalid token"})

        return httpx.Response(200, json={"success": True, "data": {"path": path}})

    async def _refresh(self, request: httpx.Request) -> httpx.Response:
        self.refresh_calls.append(json.loads(request.content))

        if self.refresh_gate is not None:
            await self.refresh_gate()

        if self.refresh_error is not None:
            raise self.refresh_error

        if self.refresh_status != 200:
            return httpx.Response(
                self.refresh_status,
                json={"success": False, "message": "Invalid refresh token"},
            )

        if self.refresh_payload is not None:
            return httpx.Response(200, json=self.refresh_payload)

        self.valid_tokens.add(self.new_token)
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": {"tokens": {"accessToken": self.new_token, "refreshToken": "R2"}},
            },
        )

    def authorizations_for(self, path: str) -> List[Optional[str]]:
        return [auth for _, p, auth in self.calls if p == path]


class CountingStore(InMemoryCredentialStore):
    """In-memory store that counts clear() calls."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.clear_calls = 0

    def clear(self) -> None:
        self.clear_calls += 1
        super().clear()


async def wait_for_waiters(coordinator, count: int) -> None:
    """Yield to the loop until ``count`` callers are parked on the renewal."""
    while coordinator.waiting < count:
        await asyncio.sleep(0)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def fake_api():
    """Remote API whose current access token has already expired"""
    return FakeApi()


@pytest.fixture
def store():
    """Store holding an expired access token and a valid refresh token"""
    return CountingStore(access_token="T1", refresh_token="R1")


@pytest.fixture
def http_client(fake_api):
    """httpx client routed to the fake API"""
    return httpx.AsyncClient(
        base_url=BASE_URL,
        transport=httpx.MockTransport(fake_api),
    )
