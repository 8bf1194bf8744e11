"""Session cookie helpers."""
from fastapi import Response

from travellers.config import get_settings
from travellers.services.sessions import IssuedSession


def set_session_cookies(response: Response, issued: IssuedSession) -> None:
    """Issue the three HttpOnly session cookies for a new token pair."""
    settings = get_settings()
    max_age = settings.refresh_token_expire_days * 24 * 60 * 60
    values = {
        settings.session_cookie_name: issued.session_id,
        settings.access_cookie_name: issued.access_token,
        settings.refresh_cookie_name: issued.refresh_token,
    }
    for key, value in values.items():
        response.set_cookie(
            key=key,
            value=value,
            httponly=True,
            secure=settings.cookie_secure,
            samesite=settings.cookie_samesite,
            path=settings.cookie_path,
            max_age=max_age,
        )


def clear_session_cookies(response: Response) -> None:
    """Clear all session cookies."""
    settings = get_settings()
    for key in (settings.session_cookie_name, settings.access_cookie_name, settings.refresh_cookie_name):
        response.delete_cookie(
            key=key,
            path=settings.cookie_path,
            secure=settings.cookie_secure,
            httponly=True,
            samesite=settings.cookie_samesite,
        )
