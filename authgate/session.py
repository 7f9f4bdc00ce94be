"""
Session Termination
===================

Publishes the "session ended" signal that hosting applications use to send
the user back to the login surface.

Listeners receive a SessionTerminatedEvent. When the host provides a
``navigate`` callable, the terminator also redirects to the login path,
unless the current location is already on it.
"""

import logging
from typing import Callable, List, Optional

from .models import SessionTerminatedEvent

logger = logging.getLogger("authgate.session")

SessionListener = Callable[[SessionTerminatedEvent], None]


def should_redirect(current_path: Optional[str], login_path: str) -> bool:
    """
    Decide whether a session-termination redirect is needed.

    Args:
        current_path: Where the user currently is (None when unknown)
        login_path: Login surface path

    Returns:
        False when the current path already points at the login surface
    """
    if not current_path:
        return True
    return login_path not in current_path


class SessionTerminator:
    """
    Emits session-termination events and guards the login redirect.

    Args:
        login_path: Path of the login surface
        navigate: Called with ``login_path`` to redirect the host
        current_location: Returns the host's current path
    """

    def __init__(
        self,
        login_path: str = "/login",
        navigate: Optional[Callable[[str], None]] = None,
        current_location: Optional[Callable[[], Optional[str]]] = None,
    ):
        self.login_path = login_path
        self._navigate = navigate
        self._current_location = current_location
        self._listeners: List[SessionListener] = []

    def add_listener(self, listener: SessionListener) -> None:
        """Register a callback invoked on every termination."""
        self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def terminate(self, reason: str) -> SessionTerminatedEvent:
        """
        Signal that the stored session has been discarded.

        Args:
            reason: Why the session ended

        Returns:
            The event delivered to listeners
        """
        redirected = self._redirect()
        event = SessionTerminatedEvent(reason=reason, redirected=redirected)

        logger.warning(
            "Session terminated",
            extra={"reason": reason, "redirected": redirected},
        )

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(
                    f"Session listener failed: {e}",
                    exc_info=True,
                    extra={"reason": reason},
                )

        return event

    def _redirect(self) -> bool:
        if self._navigate is None:
            return False

        current = self._current_location() if self._current_location else None
        if not should_redirect(current, self.login_path):
            logger.debug(
                "Already on login surface, skipping redirect",
                extra={"current_location": current},
            )
            return False

        try:
            self._navigate(self.login_path)
        except Exception as e:
            logger.error(
                f"Login redirect failed: {e}",
                exc_info=True,
                extra={"login_path": self.login_path},
            )
            return False
        return True
