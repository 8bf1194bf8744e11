"""Persistence for authentication sessions."""
import hashlib
from datetime import datetime

from sqlalchemy.orm import Session

from travellers.models.session import UserSession


def hash_token(token: str) -> str:
    """Hash a session token before persisting or comparing it."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class SessionStore:
    """Session records keyed by id, always matched together with a token.

    Every lookup and the conditional delete take the session id and a token
    digest. A delete reports whether it removed a row, which is what makes
    concurrent refreshes of one session resolve to a single winner.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        user_id: str,
        access_token_hash: str,
        access_token_valid_until: datetime,
        refresh_token_hash: str,
        refresh_token_valid_until: datetime,
    ) -> UserSession:
        session = UserSession(
            user_id=user_id,
            access_token_hash=access_token_hash,
            access_token_valid_until=access_token_valid_until.isoformat(),
            refresh_token_hash=refresh_token_hash,
            refresh_token_valid_until=refresh_token_valid_until.isoformat(),
        )
        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)
        return session

    def find_by_access_token(self, session_id: str, access_token_hash: str) -> UserSession | None:
        return self.db.query(UserSession).filter(
            UserSession.id == session_id,
            UserSession.access_token_hash == access_token_hash,
        ).first()

    def find_by_refresh_token(self, session_id: str, refresh_token_hash: str) -> UserSession | None:
        return self.db.query(UserSession).filter(
            UserSession.id == session_id,
            UserSession.refresh_token_hash == refresh_token_hash,
        ).first()

    def delete_if_match(self, session_id: str, refresh_token_hash: str) -> bool:
        """Delete the session only if it still carries this refresh token."""
        removed = self.db.query(UserSession).filter(
            UserSession.id == session_id,
            UserSession.refresh_token_hash == refresh_token_hash,
        ).delete(synchronize_session=False)
        self.db.commit()
        return removed > 0

    def delete(self, session_id: str) -> bool:
        removed = self.db.query(UserSession).filter(
            UserSession.id == session_id,
        ).delete(synchronize_session=False)
        self.db.commit()
        return removed > 0

    def delete_for_user(self, user_id: str) -> int:
        removed = self.db.query(UserSession).filter(
            UserSession.user_id == user_id,
        ).delete(synchronize_session=False)
        self.db.commit()
        return removed
