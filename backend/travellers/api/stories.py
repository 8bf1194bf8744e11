"""Stories API endpoints."""
from datetime import datetime
import logging
from typing import Literal

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session, joinedload

from travellers.api.deps import get_current_user, get_db
from travellers.errors import ForbiddenError, NotFoundError, ValidationError
from travellers.models.category import Category
from travellers.models.story import Story
from travellers.models.user import User
from travellers.schemas.story import SavedStoryResponse, StoryListResponse, StoryResponse
from travellers.services.images import read_image_upload, upload_image
from travellers.services.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stories", tags=["stories"])

STORY_IMAGE_FOLDER = "story-covers"
SORT_COLUMNS = {"created_at": Story.created_at, "title": Story.title}


def _story_query(db: Session):
    return db.query(Story).options(joinedload(Story.category), joinedload(Story.owner))


def _story_page(query, page: int, per_page: int) -> StoryListResponse:
    stories, total, total_pages = paginate(query, page, per_page)
    return StoryListResponse(
        stories=[StoryResponse.model_validate(s) for s in stories],
        page=page,
        per_page=per_page,
        total=total,
        total_pages=total_pages,
    )


def _get_category(db: Session, category_id: str) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise ValidationError("Invalid category", details=[{"field": "category", "message": "Category not found"}])
    return category


@router.get("", response_model=StoryListResponse)
def list_stories(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=50),
    category: str | None = Query(None, description="Filter by category id"),
    author: str | None = Query(None, description="Filter by author id"),
    sort_by: Literal["created_at", "title"] = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    db: Session = Depends(get_db),
):
    """List stories with optional filters (no auth required)."""
    query = _story_query(db)
    if category:
        query = query.filter(Story.category_id == category)
    if author:
        query = query.filter(Story.owner_id == author)

    column = SORT_COLUMNS[sort_by]
    query = query.order_by(column.asc() if sort_order == "asc" else column.desc(), Story.id)

    return _story_page(query, page, per_page)


@router.get("/own", response_model=StoryListResponse)
def list_own_stories(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get the current user's stories, most saved first."""
    query = _story_query(db).filter(Story.owner_id == current_user.id).order_by(
        Story.favorite_count.desc(),
        Story.created_at.desc(),
    )
    return _story_page(query, page, per_page)


@router.get("/saved", response_model=StoryListResponse)
def list_saved_stories(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get stories saved by the current user."""
    query = _story_query(db).filter(Story.saved_by.any(User.id == current_user.id)).order_by(
        Story.created_at.desc(),
    )
    return _story_page(query, page, per_page)


@router.get("/{story_id}", response_model=StoryResponse)
def get_story(story_id: str, db: Session = Depends(get_db)):
    """Get story details."""
    story = _story_query(db).filter(Story.id == story_id).first()
    if not story:
        raise NotFoundError("Story not found")
    return story


@router.post("", response_model=StoryResponse, status_code=status.HTTP_201_CREATED)
def create_story(
    title: str = Form(..., min_length=1, max_length=80),
    article: str = Form(..., min_length=1, max_length=2500),
    category: str = Form(...),
    img: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Publish a new story with a cover image."""
    story_category = _get_category(db, category)
    content = read_image_upload(img)
    img_url = upload_image(content, STORY_IMAGE_FOLDER)

    story = Story(
        title=title,
        article=article,
        img=img_url,
        category_id=story_category.id,
        owner_id=current_user.id,
        date=datetime.utcnow().strftime("%d.%m.%Y"),
    )
    db.add(story)
    current_user.articles_amount = (current_user.articles_amount or 0) + 1
    db.commit()
    db.refresh(story)
    logger.info(f"User {current_user.id} published story {story.id}")

    return story


@router.patch("/{story_id}", response_model=StoryResponse)
def update_story(
    story_id: str,
    title: str | None = Form(None, min_length=1, max_length=80),
    article: str | None = Form(None, min_length=1, max_length=2500),
    category: str | None = Form(None),
    img: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update a story owned by the current user."""
    story = db.query(Story).filter(Story.id == story_id).first()
    if not story:
        raise NotFoundError("Story not found")
    if story.owner_id != current_user.id:
        raise ForbiddenError("You do not have permission to edit this story")

    if category is not None:
        story.category_id = _get_category(db, category).id
    if title is not None:
        story.title = title
    if article is not None:
        story.article = article
    if img is not None:
        content = read_image_upload(img)
        story.img = upload_image(content, STORY_IMAGE_FOLDER)

    db.commit()
    db.refresh(story)
    return story


@router.post("/{story_id}/save", response_model=SavedStoryResponse)
def save_story(
    story_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Add a story to the current user's saved list."""
    story = db.query(Story).filter(Story.id == story_id).first()
    if not story:
        raise NotFoundError("Story not found")

    if story not in current_user.saved_stories:
        current_user.saved_stories.append(story)
        story.favorite_count = (story.favorite_count or 0) + 1
        db.commit()

    return SavedStoryResponse(
        message="Story added to saved",
        story_id=story.id,
        favorite_count=story.favorite_count,
        saved_stories=[s.id for s in current_user.saved_stories],
    )


@router.delete("/{story_id}/save", response_model=SavedStoryResponse)
def unsave_story(
    story_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Remove a story from the current user's saved list."""
    story = db.query(Story).filter(Story.id == story_id).first()
    if not story:
        raise NotFoundError("Story not found")

    if story in current_user.saved_stories:
        current_user.saved_stories.remove(story)
        story.favorite_count = max((story.favorite_count or 0) - 1, 0)
        db.commit()

    return SavedStoryResponse(
        message="Story removed from saved",
        story_id=story.id,
        favorite_count=story.favorite_count,
        saved_stories=[s.id for s in current_user.saved_stories],
    )
