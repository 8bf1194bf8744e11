"""Story model."""
import uuid
from datetime import datetime

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from travellers.database import Base
from travellers.models.user import saved_stories


class Story(Base):
    """A published travel story."""

    __tablename__ = "stories"
    __table_args__ = (
        Index("ix_stories_popularity", "favorite_count", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(80), nullable=False)
    article = Column(Text, nullable=False)
    img = Column(String(255), nullable=False)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False, index=True)
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(String(10), nullable=False)  # DD.MM.YYYY
    favorite_count = Column(Integer, nullable=False, default=0)
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())
    updated_at = Column(String(26), default=lambda: datetime.utcnow().isoformat(), onupdate=lambda: datetime.utcnow().isoformat())

    # Relationships
    category = relationship("Category", back_populates="stories")
    owner = relationship("User", back_populates="stories")
    saved_by = relationship("User", secondary=saved_stories, back_populates="saved_stories")
