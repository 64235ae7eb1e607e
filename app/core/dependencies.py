"""
FastAPI Authentication Dependencies
This module provides FastAPI dependency functions that can be injected into route handlers
to extract and validate the session token.
Usage in endpoints:
    @router.get("/protected")
    def protected_route(identity: CurrentIdentity = Depends(get_current_identity)):
        # identity is decoded from the token, no database lookup
        return {"user": identity.user_id}
Flow:
1. Client sends the token in the access_token cookie or an Authorization: Bearer <token> header
2. FastAPI calls get_current_identity() (API routes) or get_page_identity() (page routes)
3. _extract_token() reads the cookie first, then the header
4. verify_token() validates the JWT (from jwt_utils.py)
5. The decoded identity is stored on request.state and returned to the route handler
On failure API routes answer 401, page routes redirect to the login page. An invalid or
expired token also clears the cookie (see the AppError handler in main.py).
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from app.core.challenge import current_time_ms
from app.core.config import settings
from app.core.cookies import ACCESS_TOKEN_COOKIE
from app.core.errors import AuthError, AuthReason
from app.core.jwt_utils import verify_token


@dataclass(frozen=True)
class CurrentIdentity:
    user_id: str
    email: str
    public_key: str
    role: str = "authenticated"


def _extract_token(request: Request) -> Optional[str]:
    """
    Extract the JWT from the request.
    The access_token cookie wins; otherwise "Bearer <token>" or a plain token in the
    Authorization header is accepted.
    Returns:
        The token string, None if the request carries none
    """
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if token:
        return token

    authorization = request.headers.get("Authorization")
    if not authorization:
        return None
    authorization = authorization.strip()
    if authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    else:
        token = authorization
    return token or None


def _authenticate(request: Request, redirect_to: Optional[str] = None) -> CurrentIdentity:
    token = _extract_token(request)
    if not token:
        raise AuthError(AuthReason.UNAUTHENTICATED, "Not authenticated", redirect_to=redirect_to)

    try:
        payload = verify_token(token)
    except AuthError as e:
        e.redirect_to = redirect_to
        raise

    identity = CurrentIdentity(
        user_id=payload["sub"],
        email=payload["email"],
        public_key=payload["public_key"],
        role=payload.get("role", "authenticated"),
    )
    request.state.identity = identity
    return identity


def get_current_identity(request: Request) -> CurrentIdentity:
    """Identity for API routes, 401 when missing or invalid."""
    return _authenticate(request)


def get_page_identity(request: Request) -> CurrentIdentity:
    """Identity for page routes, redirects to the login page when missing or invalid."""
    return _authenticate(request, redirect_to=settings.LOGIN_PAGE_PATH)


def get_now_ms() -> int:
    """Clock used for the challenge freshness check, overridden in tests."""
    return current_time_ms()
