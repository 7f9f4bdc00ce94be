"""
FastAPI Integration
===================

Lets a FastAPI host turn a terminated gateway session into a login
redirect.

Usage:
------
    app = FastAPI()
    install_session_handlers(app, login_path="/login")

Any route that lets SessionTerminatedError (or RenewalFailedError) escape is
answered with a 303 redirect to the login page, or a 401 JSON body when the
request is already on the login page.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from .errors import SessionTerminatedError
from .session import should_redirect

logger = logging.getLogger("authgate.web")


def install_session_handlers(app: FastAPI, login_path: str = "/login") -> None:
    """
    Register the session-termination exception handler on ``app``.

    Args:
        app: FastAPI application
        login_path: Login surface path
    """

    @app.exception_handler(SessionTerminatedError)
    async def session_terminated_handler(
        request: Request,
        exc: SessionTerminatedError,
    ):
        """Redirect to the login page unless the user is already there."""
        path = request.url.path

        if not should_redirect(path, login_path):
            logger.info(
                "Session terminated on login surface, not redirecting",
                extra={"path": path, "reason": exc.reason},
            )
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={
                    "error": "session_terminated",
                    "reason": exc.reason,
                    "message": str(exc),
                },
            )

        logger.info(
            "Session terminated, redirecting to login",
            extra={"path": path, "reason": exc.reason},
        )
        return RedirectResponse(url=login_path, status_code=status.HTTP_303_SEE_OTHER)
