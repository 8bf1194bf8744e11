"""Story category model."""
import uuid

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from travellers.database import Base


class Category(Base):
    """Story category (seeded from YAML)."""

    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(50), unique=True, nullable=False, index=True)

    stories = relationship("Story", back_populates="category")
