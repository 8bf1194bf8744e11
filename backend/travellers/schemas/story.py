"""Story schemas."""
from pydantic import BaseModel

from travellers.schemas.category import CategoryResponse


class StoryOwner(BaseModel):
    id: str
    name: str
    avatar_url: str

    class Config:
        from_attributes = True


class StoryResponse(BaseModel):
    """Story with its category and author."""

    id: str
    title: str
    article: str
    img: str
    category: CategoryResponse
    owner: StoryOwner
    date: str
    favorite_count: int
    created_at: str

    class Config:
        from_attributes = True


class StoryListResponse(BaseModel):
    """Paginated story list response."""

    stories: list[StoryResponse]
    page: int
    per_page: int
    total: int
    total_pages: int


class SavedStoryResponse(BaseModel):
    """Result of adding or removing a saved story."""

    message: str
    story_id: str
    favorite_count: int
    saved_stories: list[str]
