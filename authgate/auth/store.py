"""
Credential Storage
==================

The gateway treats credential storage as an opaque key-value store. Anything
implementing :class:`CredentialStore` can be plugged in; two reference stores
are provided:

- InMemoryCredentialStore: process-local, lost on exit
- FileCredentialStore: JSON file on disk, survives restarts

Both keep the access token, the refresh token and the cached user profile,
and ``clear()`` always drops the three together.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, runtime_checkable

logger = logging.getLogger("authgate.auth.store")

ACCESS_TOKEN_KEY = "accessToken"
REFRESH_TOKEN_KEY = "refreshToken"
USER_KEY = "user"


@runtime_checkable
class CredentialStore(Protocol):
    """Minimal storage contract the gateway depends on."""

    def get_access(self) -> Optional[str]: ...

    def get_refresh(self) -> Optional[str]: ...

    def set_access(self, token: str) -> None: ...

    def clear(self) -> None: ...


class InMemoryCredentialStore:
    """
    Dictionary-backed credential store.

    Args:
        access_token: Initial access token
        refresh_token: Initial refresh token
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
    ):
        self._data: Dict[str, Any] = {}
        if access_token:
            self._data[ACCESS_TOKEN_KEY] = access_token
        if refresh_token:
            self._data[REFRESH_TOKEN_KEY] = refresh_token

    # ------------------------------------------------------------------
    # Raw access (overridden by persistent stores)
    # ------------------------------------------------------------------

    def _read(self) -> Dict[str, Any]:
        return self._data

    def _write(self, data: Dict[str, Any]) -> None:
        self._data = data

    def _get(self, key: str) -> Any:
        value = self._read().get(key)
        return value or None

    def _set(self, key: str, value: Any) -> None:
        data = dict(self._read())
        data[key] = value
        self._write(data)

    def _remove(self, key: str) -> None:
        data = dict(self._read())
        data.pop(key, None)
        self._write(data)

    # ------------------------------------------------------------------
    # Token management
    # ------------------------------------------------------------------

    def get_access(self) -> Optional[str]:
        return self._get(ACCESS_TOKEN_KEY)

    def set_access(self, token: str) -> None:
        self._set(ACCESS_TOKEN_KEY, token)

    def get_refresh(self) -> Optional[str]:
        return self._get(REFRESH_TOKEN_KEY)

    def set_refresh(self, token: str) -> None:
        self._set(REFRESH_TOKEN_KEY, token)

    def set_tokens(self, access_token: str, refresh_token: str) -> None:
        """Store an access/refresh token pair, e.g. right after login."""
        data = dict(self._read())
        data[ACCESS_TOKEN_KEY] = access_token
        data[REFRESH_TOKEN_KEY] = refresh_token
        self._write(data)

    # ------------------------------------------------------------------
    # User management
    # ------------------------------------------------------------------

    def set_user(self, user: Dict[str, Any]) -> None:
        self._set(USER_KEY, user)

    def get_user(self) -> Optional[Dict[str, Any]]:
        return self._get(USER_KEY)

    # ------------------------------------------------------------------
    # Session helpers
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Remove the access token, refresh token and user together."""
        data = dict(self._read())
        for key in (ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, USER_KEY):
            data.pop(key, None)
        self._write(data)
        logger.debug("Cleared stored credentials")

    def is_authenticated(self) -> bool:
        """True when both an access token and a user profile are stored."""
        return bool(self.get_access() and self.get_user())


class FileCredentialStore(InMemoryCredentialStore):
    """
    Credential store persisted as a JSON document.

    The file is re-read on every access so several processes sharing the
    same file see each other's updates. Writes go through a temporary file
    and ``os.replace`` so readers never see a half-written document.

    Args:
        path: Location of the JSON file (created on first write)
    """

    def __init__(self, path: "str | os.PathLike[str]"):
        self.path = Path(path)
        super().__init__()

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                parsed = json.load(handle)
        except json.JSONDecodeError as e:
            logger.warning(
                f"Ignoring unreadable credentials file: {e}",
                extra={"path": str(self.path)},
            )
            return {}
        if not isinstance(parsed, dict):
            logger.warning(
                "Ignoring credentials file without a JSON object at its root",
                extra={"path": str(self.path)},
            )
            return {}
        return parsed

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as handle:
                json.dump(data, handle)
            os.replace(tmp_path, self.path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
