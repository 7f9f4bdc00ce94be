"""
Authentication Package

This package holds the credential side of the gateway.

Key responsibilities:
- Storing the access token, refresh token and user profile
- Stamping outbound requests with the current access token

Modules:
- store: CredentialStore protocol plus in-memory and JSON-file stores
- authenticator: RequestAuthenticator and the bearer header helper
"""

from .authenticator import RequestAuthenticator, bearer_value
from .store import CredentialStore, FileCredentialStore, InMemoryCredentialStore

__all__ = [
    "CredentialStore",
    "FileCredentialStore",
    "InMemoryCredentialStore",
    "RequestAuthenticator",
    "bearer_value",
]
