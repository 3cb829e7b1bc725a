from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import Depends, HTTPException, Request, status

from graph_auth.core.errors import SignedRequestError
from graph_auth.models.session import SessionInfo
from graph_auth.oauth import GraphOAuth

logger = logging.getLogger(__name__)

# FastAPI glue: turn request.cookies into a SessionInfo.
#
#   oauth = GraphOAuth.from_settings()
#   signed_in = require_session(oauth)
#
#   @router.get("/me")
#   def me(session: SessionInfo = Depends(signed_in)): ...


def session_dependency(oauth: GraphOAuth) -> Callable[[Request], SessionInfo | None]:
    """Dependency factory: the caller's session, or None.

    A forged or malformed signed cookie is logged and treated as "no
    session" here; the HTTP boundary has nothing better to do with it.
    """

    def _session(request: Request) -> SessionInfo | None:
        try:
            return oauth.user_info_from_cookies(request.cookies)
        except SignedRequestError as e:
            logger.warning("Rejected signed cookie  app_id=%s: %s", oauth.app_id, e.message)
            return None

    return _session


def require_session(oauth: GraphOAuth) -> Callable[..., SessionInfo]:
    """Dependency factory: demand a session, else 401."""
    current_session = session_dependency(oauth)

    def _guard(session: SessionInfo | None = Depends(current_session)) -> SessionInfo:
        if session is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Not authenticated",
            )
        logger.debug("Session resolved for user=%s source=%s", session.user_id, session.source)
        return session

    return _guard
