"""Shared API dependencies: database session, session manager, request guard."""
from dataclasses import dataclass
import logging

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from travellers.api.cookies import set_session_cookies
from travellers.config import get_settings
from travellers.database import get_db
from travellers.errors import UnauthorizedError
from travellers.models.user import User
from travellers.services.session_store import SessionStore
from travellers.services.sessions import SessionManager

logger = logging.getLogger(__name__)

__all__ = [
    "AuthContext",
    "get_auth_context",
    "get_current_user",
    "get_db",
    "get_session_manager",
]


@dataclass
class AuthContext:
    """Resolved caller identity attached to a guarded request."""

    user: User
    session_id: str
    refreshed: bool = False


def get_session_manager(db: Session = Depends(get_db)) -> SessionManager:
    """Session manager bound to this request's database session."""
    return SessionManager(SessionStore(db))


def get_auth_context(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
) -> AuthContext:
    """Resolve the caller from session cookies, refreshing on demand."""
    settings = get_settings()
    session_id = request.cookies.get(settings.session_cookie_name)
    access_token = request.cookies.get(settings.access_cookie_name)
    refresh_token = request.cookies.get(settings.refresh_cookie_name)

    if not session_id or not access_token:
        raise UnauthorizedError("No active session")

    session = sessions.resolve_session(session_id, access_token)
    if session is None:
        raise UnauthorizedError("Invalid session")

    user_id = session.user_id
    refreshed = False
    if sessions.access_expired(session):
        if not sessions.refresh_matches(session, refresh_token):
            raise UnauthorizedError("Session expired")

        issued = sessions.refresh_session(session_id, refresh_token)
        set_session_cookies(response, issued)
        logger.debug(f"Refreshed expired access token for user {user_id} on {request.url.path}")
        session_id = issued.session_id
        refreshed = True

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise UnauthorizedError("User not found")

    context = AuthContext(user=user, session_id=session_id, refreshed=refreshed)
    request.state.auth = context
    return context


def get_current_user(context: AuthContext = Depends(get_auth_context)) -> User:
    """Dependency returning the authenticated user."""
    return context.user
