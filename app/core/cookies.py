from typing import Optional

from fastapi import Response

from app.core.config import settings

ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"
REFRESH_COOKIE_PATH = "/api"


def set_session_cookies(
    response: Response, access_token: str, refresh_token: Optional[str] = None
) -> None:
    """Set the session cookies. HttpOnly and SameSite=Strict always, Secure when served over TLS."""
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        access_token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_SECONDS,
        path="/",
        domain=settings.COOKIE_DOMAIN,
        secure=settings.cookie_secure,
        httponly=True,
        samesite="strict",
    )
    if refresh_token:
        response.set_cookie(
            REFRESH_TOKEN_COOKIE,
            refresh_token,
            max_age=settings.REFRESH_TOKEN_EXPIRE_SECONDS,
            path=REFRESH_COOKIE_PATH,
            domain=settings.COOKIE_DOMAIN,
            secure=settings.cookie_secure,
            httponly=True,
            samesite="strict",
        )


def clear_access_cookie(response: Response) -> None:
    response.delete_cookie(
        ACCESS_TOKEN_COOKIE,
        path="/",
        domain=settings.COOKIE_DOMAIN,
        secure=settings.cookie_secure,
        httponly=True,
        samesite="strict",
    )


def clear_session_cookies(response: Response) -> None:
    clear_access_cookie(response)
    response.delete_cookie(
        REFRESH_TOKEN_COOKIE,
        path=REFRESH_COOKIE_PATH,
        domain=settings.COOKIE_DOMAIN,
        secure=settings.cookie_secure,
        httponly=True,
        samesite="strict",
    )
