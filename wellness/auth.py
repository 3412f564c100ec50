"""Auth cookie helpers and the authentication gate dependency."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, Response

from wellness.config import Settings
from wellness.dependencies import get_app_settings
from wellness.security import create_access_token, decode_access_token

UNAUTHORIZED_MESSAGE = "Not authenticated"


def set_auth_cookie(response: Response, email: str, settings: Settings) -> str:
    token = create_access_token(email, settings)
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=settings.auth_cookie_max_age,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite=settings.auth_cookie_samesite,
        path="/",
    )
    return token


def clear_auth_cookie(response: Response, settings: Settings) -> None:
    # path, secure and samesite must match set_auth_cookie()
    response.delete_cookie(
        settings.auth_cookie_name,
        path="/",
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite=settings.auth_cookie_samesite,
    )


def require_user_email(
    request: Request, settings: Settings = Depends(get_app_settings)
) -> str:
    """Return the email from a valid auth cookie, or reject with 401."""
    token = request.cookies.get(settings.auth_cookie_name)
    email = decode_access_token(token, settings) if token else None
    if not email:
        raise HTTPException(status_code=401, detail=UNAUTHORIZED_MESSAGE)
    request.state.user_email = email
    return email
