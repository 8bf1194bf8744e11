"""SQLAlchemy models package."""
from travellers.models.user import User
from travellers.models.category import Category
from travellers.models.story import Story
from travellers.models.session import UserSession

__all__ = [
    "User",
    "Category",
    "Story",
    "UserSession",
]
