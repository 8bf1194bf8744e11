"""User model."""
import uuid
from datetime import datetime

from sqlalchemy import Column, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import relationship

from travellers.database import Base

DEFAULT_AVATAR_URL = "https://ac.goit.global/fullstack/react/default-avatar.jpg"

saved_stories = Table(
    "saved_stories",
    Base.metadata,
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("story_id", String(36), ForeignKey("stories.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    """User account."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(32), nullable=False)
    email = Column(String(64), unique=True, nullable=False, index=True)  # stored lower-cased
    password_hash = Column(String(255), nullable=False)
    avatar_url = Column(String(255), nullable=False, default=DEFAULT_AVATAR_URL)
    description = Column(Text, nullable=False, default="")
    articles_amount = Column(Integer, nullable=False, default=0)
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())
    updated_at = Column(String(26), default=lambda: datetime.utcnow().isoformat(), onupdate=lambda: datetime.utcnow().isoformat())

    # Relationships
    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    stories = relationship("Story", back_populates="owner")
    saved_stories = relationship("Story", secondary=saved_stories, back_populates="saved_by")
