"""Authentication API endpoints."""
import logging

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from travellers.api.cookies import clear_session_cookies, set_session_cookies
from travellers.api.deps import get_current_user, get_db, get_session_manager
from travellers.config import get_settings
from travellers.errors import ConflictError, NotFoundError, SessionNotFoundError, UnauthorizedError
from travellers.models.user import User
from travellers.schemas.auth import (
    MessageResponse,
    ResetEmailRequest,
    ResetPasswordRequest,
    UserLogin,
    UserRegister,
    UserResponse,
)
from travellers.services.credentials import (
    create_reset_token,
    decode_reset_token,
    get_password_hash,
    verify_password,
)
from travellers.services.mailer import generate_reset_password_html, send_email
from travellers.services.sessions import SessionManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

RESET_EMAIL_SENT = "Password reset email sent successfully"


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserRegister,
    response: Response,
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Register a new user and start a session."""
    if db.query(User).filter(User.email == user_data.email).first():
        raise ConflictError("Email in use")

    user = User(
        name=user_data.name,
        email=user_data.email,
        password_hash=get_password_hash(user_data.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    issued = sessions.create_session(user.id)
    set_session_cookies(response, issued)
    logger.info(f"Registered user {user.id}")

    return user


@router.post("/login", response_model=UserResponse)
def login(
    user_data: UserLogin,
    response: Response,
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Login, replacing any previous sessions of the user."""
    user = db.query(User).filter(User.email == user_data.email).first()

    if not user or not verify_password(user_data.password, user.password_hash):
        logger.warning("Failed login attempt")
        raise UnauthorizedError("Invalid credentials")

    sessions.terminate_all_sessions_for_user(user.id)
    issued = sessions.create_session(user.id)
    set_session_cookies(response, issued)

    return user


@router.post("/refresh", response_model=MessageResponse)
def refresh_session(
    request: Request,
    response: Response,
    sessions: SessionManager = Depends(get_session_manager),
):
    """Rotate the session using the refresh-token cookie."""
    settings = get_settings()
    session_id = request.cookies.get(settings.session_cookie_name)
    refresh_token = request.cookies.get(settings.refresh_cookie_name)
    if not session_id or not refresh_token:
        raise SessionNotFoundError()

    issued = sessions.refresh_session(session_id, refresh_token)
    set_session_cookies(response, issued)

    return MessageResponse(message="Session refreshed")


@router.get("/check", response_model=UserResponse)
def check_session(current_user: User = Depends(get_current_user)):
    """Return the authenticated user (refreshing the session if needed)."""
    return current_user


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    request: Request,
    response: Response,
    sessions: SessionManager = Depends(get_session_manager),
):
    """Terminate the caller's session if any and clear cookies; always 204."""
    session_id = request.cookies.get(get_settings().session_cookie_name)
    if session_id:
        sessions.terminate_session(session_id)
        logger.info(f"Session {session_id} logged out")
    clear_session_cookies(response)


@router.post("/request-reset-email", response_model=MessageResponse)
def request_reset_email(
    payload: ResetEmailRequest,
    db: Session = Depends(get_db),
):
    """Email a password reset link; responds identically for unknown emails."""
    user = db.query(User).filter(User.email == payload.email).first()
    if not user:
        return MessageResponse(message=RESET_EMAIL_SENT)

    settings = get_settings()
    token = create_reset_token(user.id, user.email)
    link = f"{settings.frontend_domain}/reset-password?token={token}"
    send_email(
        to_email=user.email,
        subject="Reset your password",
        html_content=generate_reset_password_html(user.name or "User", link),
    )
    logger.info(f"Sent password reset email to user {user.id}")

    return MessageResponse(message=RESET_EMAIL_SENT)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    payload: ResetPasswordRequest,
    response: Response,
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Set a new password and terminate every session of the user."""
    user_id, email = decode_reset_token(payload.token)

    user = db.query(User).filter(User.id == user_id, User.email == email).first()
    if not user:
        raise NotFoundError("User not found")

    user.password_hash = get_password_hash(payload.password)
    db.commit()

    sessions.terminate_all_sessions_for_user(user.id)
    clear_session_cookies(response)
    logger.info(f"Password reset for user {user.id}")

    return MessageResponse(message="Password reset successfully")
