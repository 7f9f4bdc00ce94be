"""
Gateway Factory
===============

Builds a ready-to-use GatewayClient from Settings.

Environment Variables:
    - API_BASE_URL: Remote API base URL (required)
    - REFRESH_PATH: Renewal endpoint path (default: /auth/refresh)
    - LOGIN_PATH: Login surface path (default: /login)
    - CREDENTIALS_FILE: Persist credentials to this JSON file (optional)
    - REQUEST_TIMEOUT_SECONDS / CONNECT_TIMEOUT_SECONDS: HTTP timeouts
    - LOG_LEVEL: Logging level (default: INFO)

Usage:
    async with gateway_lifespan() as api:
        response = await api.get("/marketplace/products")
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

import httpx

from .auth.store import CredentialStore, FileCredentialStore, InMemoryCredentialStore
from .client import GatewayClient
from .config import Settings, get_settings, validate_configuration
from .errors import ConfigurationError
from .session import SessionTerminator


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the gateway.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def build_store(settings: Settings) -> CredentialStore:
    """Pick the credential store described by the settings."""
    if settings.CREDENTIALS_FILE:
        return FileCredentialStore(settings.CREDENTIALS_FILE)
    return InMemoryCredentialStore()


def create_gateway(
    settings: Optional[Settings] = None,
    store: Optional[CredentialStore] = None,
    terminator: Optional[SessionTerminator] = None,
    navigate: Optional[Callable[[str], None]] = None,
    current_location: Optional[Callable[[], Optional[str]]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> GatewayClient:
    """
    Gateway factory function.

    Creates the httpx.AsyncClient, the credential store and the session
    terminator, and wires them into a GatewayClient.

    Args:
        settings: Gateway settings (loaded from the environment when omitted)
        store: Credential store (derived from settings when omitted)
        terminator: Session terminator (built from navigate/current_location
                    when omitted)
        navigate: Host callback used to redirect to the login surface
        current_location: Host callback returning the current path
        transport: Custom httpx transport (mock or ASGI transports in tests)

    Returns:
        GatewayClient owning its HTTP client

    Raises:
        ConfigurationError: If the settings fail validation
    """
    settings = settings or get_settings()

    status = validate_configuration(settings)
    if not status["valid"]:
        raise ConfigurationError("; ".join(status["errors"]))

    logger = logging.getLogger("authgate.main")
    for warning in status["warnings"]:
        logger.warning(warning)

    timeout = httpx.Timeout(
        settings.REQUEST_TIMEOUT_SECONDS,
        connect=settings.CONNECT_TIMEOUT_SECONDS,
    )
    http_client = httpx.AsyncClient(
        base_url=settings.api_base_url_str,
        timeout=timeout,
        headers={"Accept": "application/json"},
        transport=transport,
    )

    if terminator is None:
        terminator = SessionTerminator(
            login_path=settings.LOGIN_PATH,
            navigate=navigate,
            current_location=current_location,
        )

    gateway = GatewayClient(
        http_client,
        store if store is not None else build_store(settings),
        terminator=terminator,
        refresh_path=settings.REFRESH_PATH,
        owns_http_client=True,
    )

    logger.info(
        "Gateway client created",
        extra={
            "api_base_url": settings.api_base_url_str,
            "refresh_path": settings.REFRESH_PATH,
        },
    )
    return gateway


@asynccontextmanager
async def gateway_lifespan(
    settings: Optional[Settings] = None,
    **kwargs,
) -> AsyncIterator[GatewayClient]:
    """
    Gateway lifespan manager.

    Sets up logging, yields a GatewayClient and closes its HTTP client on
    exit. Keyword arguments are forwarded to ``create_gateway``.
    """
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    gateway = create_gateway(settings, **kwargs)
    try:
        yield gateway
    finally:
        await gateway.aclose()
        logging.getLogger("authgate.main").info("Gateway client closed")
