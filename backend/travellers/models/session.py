"""Authentication session model."""
import uuid
from datetime import datetime

from sqlalchemy import Column, ForeignKey, Index, String
from sqlalchemy.orm import relationship

from travellers.database import Base


class UserSession(Base):
    """One login: a hashed access/refresh token pair and their expiries.

    Token values are never stored; only their SHA-256 digests are, so a
    session can be found solely by its id together with a presented token.
    """

    __tablename__ = "sessions"
    __table_args__ = (
        Index("ix_sessions_id_access", "id", "access_token_hash"),
        Index("ix_sessions_id_refresh", "id", "refresh_token_hash"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    access_token_hash = Column(String(64), nullable=False)
    access_token_valid_until = Column(String(26), nullable=False)
    refresh_token_hash = Column(String(64), nullable=False)
    refresh_token_valid_until = Column(String(26), nullable=False)
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())

    user = relationship("User", back_populates="sessions")

    def access_expired(self, now: datetime) -> bool:
        return now > datetime.fromisoformat(self.access_token_valid_until)

    def refresh_expired(self, now: datetime) -> bool:
        return now > datetime.fromisoformat(self.refresh_token_valid_until)
