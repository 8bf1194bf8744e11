"""Public user schemas."""
from typing import Any

from pydantic import BaseModel, Field, field_validator

from travellers.schemas.story import StoryResponse


class AuthorResponse(BaseModel):
    """Public author card (no email, no saved list)."""

    id: str
    name: str
    avatar_url: str
    description: str
    articles_amount: int
    created_at: str

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    """Paginated list of authors."""

    users: list[AuthorResponse]
    page: int
    per_page: int
    total: int
    total_pages: int


class UserDetailResponse(BaseModel):
    """An author with a page of their stories."""

    user: AuthorResponse
    stories: list[StoryResponse]
    page: int
    per_page: int
    total: int
    total_pages: int


class UserProfileUpdate(BaseModel):
    """Request to update the current user's profile."""

    name: str | None = Field(None, min_length=2, max_length=32)
    description: str | None = Field(None, max_length=150)

    @field_validator("name", "description", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v
