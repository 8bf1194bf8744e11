"""Users API endpoints."""
from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session, joinedload

from travellers.api.deps import get_current_user, get_db
from travellers.errors import NotFoundError, ValidationError
from travellers.models.story import Story
from travellers.models.user import User
from travellers.schemas.auth import UserResponse
from travellers.schemas.story import StoryResponse
from travellers.schemas.user import AuthorResponse, UserDetailResponse, UserListResponse, UserProfileUpdate
from travellers.services.images import read_image_upload, upload_image
from travellers.services.pagination import paginate

router = APIRouter(prefix="/users", tags=["users"])

AVATAR_FOLDER = "avatars"


@router.get("", response_model=UserListResponse)
def list_users(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
):
    """List authors, newest first (no auth required)."""
    query = db.query(User).order_by(User.created_at.desc(), User.id)
    users, total, total_pages = paginate(query, page, per_page)
    return UserListResponse(
        users=[AuthorResponse.model_validate(u) for u in users],
        page=page,
        per_page=per_page,
        total=total,
        total_pages=total_pages,
    )


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    """Get the current user's profile."""
    return current_user


@router.patch("/me/avatar", response_model=UserResponse)
def update_avatar(
    avatar: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Upload a new avatar for the current user."""
    content = read_image_upload(avatar, field="avatar")
    current_user.avatar_url = upload_image(content, AVATAR_FOLDER)
    db.commit()
    db.refresh(current_user)
    return current_user


@router.patch("/me/profile", response_model=UserResponse)
def update_profile(
    profile: UserProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update the current user's name and description."""
    updates = profile.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        raise ValidationError("Nothing to update")

    for field, value in updates.items():
        setattr(current_user, field, value)
    db.commit()
    db.refresh(current_user)
    return current_user


@router.get("/{user_id}", response_model=UserDetailResponse)
def get_user(
    user_id: str,
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
):
    """Get an author with a page of their stories."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")

    query = (
        db.query(Story)
        .options(joinedload(Story.category), joinedload(Story.owner))
        .filter(Story.owner_id == user.id)
        .order_by(Story.created_at.desc(), Story.id)
    )
    stories, total, total_pages = paginate(query, page, per_page)
    return UserDetailResponse(
        user=AuthorResponse.model_validate(user),
        stories=[StoryResponse.model_validate(s) for s in stories],
        page=page,
        per_page=per_page,
        total=total,
        total_pages=total_pages,
    )
