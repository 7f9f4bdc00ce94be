"""
Gateway Factory Tests
=====================

Tests for authgate/main.py
"""

from unittest.mock import Mock

import httpx
import pytest

from authgate.auth.store import FileCredentialStore, InMemoryCredentialStore
from authgate.config import Settings
from authgate.errors import ConfigurationError
from authgate.main import build_store, create_gateway, gateway_lifespan

from conftest import FakeApi


@pytest.fixture
def settings():
    return Settings(API_BASE_URL="https://api.example.com/api", LOGIN_PATH="/login")


def test_build_store_defaults_to_memory(settings):
    """Test store selection without CREDENTIALS_FILE"""
    assert isinstance(build_store(settings), InMemoryCredentialStore)


def test_build_store_uses_file(tmp_path):
    """Test store selection with CREDENTIALS_FILE"""
    settings = Settings(
        API_BASE_URL="https://api.example.com",
        CREDENTIALS_FILE=str(tmp_path / "creds.json"),
    )
    assert isinstance(build_store(settings), FileCredentialStore)


def test_create_gateway_rejects_invalid_settings():
    """Test that validation errors stop the factory"""
    settings = Settings(API_BASE_URL="https://api.example.com", LOGIN_PATH="/auth/refresh")

    with pytest.raises(ConfigurationError):
        create_gateway(settings)


@pytest.mark.asyncio
async def test_create_gateway_end_to_end(settings):
    """Test a factory-built gateway renewing against the configured endpoint"""
    fake_api = FakeApi()
    navigate = Mock()
    store = InMemoryCredentialStore("T1", "R1")

    gateway = create_gateway(
        settings,
        store=store,
        navigate=navigate,
        current_location=lambda: "/tours",
        transport=httpx.MockTransport(fake_api),
    )

    response = await gateway.get("/tours")
    await gateway.aclose()

    assert response.json()["data"]["path"] == "/tours"
    assert fake_api.refresh_calls == [{"refreshToken": "R1"}]
    assert fake_api.authorizations_for("/tours") == ["Bearer T1", "Bearer T2"]
    assert gateway.http_client.is_closed
    navigate.assert_not_called()


@pytest.mark.asyncio
async def test_gateway_lifespan_closes_client(settings):
    """Test that the lifespan closes the HTTP client on exit"""
    fake_api = FakeApi()
    fake_api.refresh_status = 401

    async with gateway_lifespan(
        settings,
        store=InMemoryCredentialStore("T1", "R1"),
        transport=httpx.MockTransport(fake_api),
    ) as gateway:
        assert gateway.terminator.login_path == "/login"
        assert gateway.coordinator.refresh_path == "/auth/refresh"

    assert gateway.http_client.is_closed
