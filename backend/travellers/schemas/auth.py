"""Authentication schemas."""
from typing import Any

from pydantic import BaseModel, EmailStr, Field, field_validator


MAX_EMAIL_LENGTH = 64


def _normalize_email(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip().lower()
        if len(value) > MAX_EMAIL_LENGTH:
            raise ValueError(f"Email must be at most {MAX_EMAIL_LENGTH} characters")
    return value


class UserRegister(BaseModel):
    """User registration request."""

    name: str = Field(..., min_length=2, max_length=32)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: Any) -> Any:
        return _normalize_email(v)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class UserLogin(BaseModel):
    """User login request."""

    email: EmailStr
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: Any) -> Any:
        return _normalize_email(v)


class ResetEmailRequest(BaseModel):
    """Password reset email request."""

    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: Any) -> Any:
        return _normalize_email(v)


class ResetPasswordRequest(BaseModel):
    """Password reset with a signed token."""

    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8, max_length=128)


class UserResponse(BaseModel):
    """User info response (never includes the password hash)."""

    id: str
    name: str
    email: str
    avatar_url: str
    description: str
    articles_amount: int
    saved_stories: list[str] = []
    created_at: str

    @field_validator("saved_stories", mode="before")
    @classmethod
    def story_ids(cls, v: Any) -> list[str]:
        return [item if isinstance(item, str) else item.id for item in v or []]

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
