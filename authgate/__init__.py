"""
authgate
========

Authenticated-request gateway for async HTTP APIs.

Every call carries the stored access token. When the API answers 401, one
renewal call is made for the whole burst of affected requests and each of
them is replayed once with the new token.

Modules:
- client: GatewayClient (the pipeline)
- gateway: classifier, single-flight coordinator, replayer
- auth: credential stores and the request authenticator
- session: session-termination signal and login redirect guard
- config / main: settings and the gateway factory
- web: FastAPI exception handler for terminated sessions
"""

from .auth import (
    CredentialStore,
    FileCredentialStore,
    InMemoryCredentialStore,
    RequestAuthenticator,
)
from .client import GatewayClient
from .config import Settings, get_settings
from .errors import (
    ConfigurationError,
    GatewayError,
    RenewalFailedError,
    SessionTerminatedError,
)
from .gateway import FailureKind, RefreshCoordinator, RequestReplayer, ResponseClassifier
from .main import create_gateway, gateway_lifespan
from .session import SessionTerminator

__all__ = [
    "ConfigurationError",
    "CredentialStore",
    "FailureKind",
    "FileCredentialStore",
    "GatewayClient",
    "GatewayError",
    "InMemoryCredentialStore",
    "RefreshCoordinator",
    "RenewalFailedError",
    "RequestAuthenticator",
    "RequestReplayer",
    "ResponseClassifier",
    "SessionTerminatedError",
    "SessionTerminator",
    "Settings",
    "create_gateway",
    "gateway_lifespan",
    "get_settings",
]
