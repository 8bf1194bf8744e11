"""Session manager: issue, resolve, rotate and revoke login sessions."""
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
import secrets

from travellers.config import get_settings
from travellers.errors import SessionExpiredError, SessionNotFoundError
from travellers.models.session import UserSession
from travellers.services.session_store import SessionStore, hash_token

logger = logging.getLogger(__name__)

TOKEN_BYTES = 30


@dataclass(frozen=True)
class IssuedSession:
    """A freshly created session, including the plain token values.

    This is the only place the plain tokens exist server-side; they go
    straight into the response cookies.
    """

    session_id: str
    user_id: str
    access_token: str
    access_token_valid_until: datetime
    refresh_token: str
    refresh_token_valid_until: datetime


def generate_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


class SessionManager:
    """Sole authority for creating, rotating and invalidating sessions."""

    def __init__(
        self,
        store: SessionStore,
        clock: Callable[[], datetime] = datetime.utcnow,
        access_ttl: timedelta | None = None,
        refresh_ttl: timedelta | None = None,
    ):
        settings = get_settings()
        self.store = store
        self.clock = clock
        self.access_ttl = access_ttl or timedelta(minutes=settings.access_token_expire_minutes)
        self.refresh_ttl = refresh_ttl or timedelta(days=settings.refresh_token_expire_days)
        if self.access_ttl >= self.refresh_ttl:
            raise ValueError("Access token lifetime must be shorter than refresh token lifetime.")

    def create_session(self, user_id: str) -> IssuedSession:
        """Persist a new session with a fresh token pair."""
        now = self.clock()
        access_token = generate_token()
        refresh_token = generate_token()
        access_valid_until = now + self.access_ttl
        refresh_valid_until = now + self.refresh_ttl

        session = self.store.create(
            user_id=user_id,
            access_token_hash=hash_token(access_token),
            access_token_valid_until=access_valid_until,
            refresh_token_hash=hash_token(refresh_token),
            refresh_token_valid_until=refresh_valid_until,
        )
        logger.debug(f"Created session {session.id} for user {user_id}")
        return IssuedSession(
            session_id=session.id,
            user_id=user_id,
            access_token=access_token,
            access_token_valid_until=access_valid_until,
            refresh_token=refresh_token,
            refresh_token_valid_until=refresh_valid_until,
        )

    def resolve_session(self, session_id: str, access_token: str) -> UserSession | None:
        """Find the session matching both the id and the access token."""
        return self.store.find_by_access_token(session_id, hash_token(access_token))

    def refresh_session(self, session_id: str, refresh_token: str) -> IssuedSession:
        """Rotate a session: delete the old record and issue a new one.

        Raises SessionNotFoundError when no session carries this id and
        refresh token, including when a concurrent refresh already rotated
        it, and SessionExpiredError when the refresh token is past expiry.
        An expired session is deleted before the error is raised.
        """
        refresh_hash = hash_token(refresh_token)
        session = self.store.find_by_refresh_token(session_id, refresh_hash)
        if session is None:
            raise SessionNotFoundError()

        if session.refresh_expired(self.clock()):
            self.store.delete_if_match(session_id, refresh_hash)
            logger.info(f"Removed expired session {session_id}")
            raise SessionExpiredError()

        user_id = session.user_id
        if not self.store.delete_if_match(session_id, refresh_hash):
            logger.warning(f"Session {session_id} was rotated by a concurrent refresh")
            raise SessionNotFoundError()

        issued = self.create_session(user_id)
        logger.info(f"Rotated session {session_id} -> {issued.session_id} for user {user_id}")
        return issued

    def refresh_matches(self, session: UserSession, refresh_token: str | None) -> bool:
        """Whether a presented refresh token belongs to the session and is still valid."""
        if not refresh_token:
            return False
        if not secrets.compare_digest(session.refresh_token_hash, hash_token(refresh_token)):
            return False
        return not session.refresh_expired(self.clock())

    def access_expired(self, session: UserSession) -> bool:
        return session.access_expired(self.clock())

    def terminate_session(self, session_id: str) -> None:
        """Delete a session; absent sessions are not an error."""
        if self.store.delete(session_id):
            logger.info(f"Terminated session {session_id}")

    def terminate_all_sessions_for_user(self, user_id: str) -> int:
        """Delete every session of a user."""
        removed = self.store.delete_for_user(user_id)
        logger.info(f"Terminated {removed} session(s) for user {user_id}")
        return removed
