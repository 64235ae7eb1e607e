"""
JWT Token Utilities

This module handles JSON Web Token (JWT) creation and verification for wallet authentication.
After a user's wallet signature is verified and their profile resolved, this module creates a
JWT that is used for subsequent authenticated requests.

Flow:
1. Session issuer resolves the profile -> create_access_token() generates the JWT
2. Client sends the JWT back in the access_token cookie or Authorization header -> verify_token() validates it
3. Protected endpoints use get_current_identity() from dependencies.py to read the claims

The JWT contains:
- sub: The profile's user_id
- email: The profile's email (a placeholder for wallet-only users)
- public_key: The authenticated wallet public key (base58)
- aud / role: "authenticated"
- iat: Issued at timestamp
- exp: Expiration timestamp (configurable via ACCESS_TOKEN_EXPIRE_SECONDS)

Tokens are self-contained: verification needs the signing key only, there is no store lookup.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from app.core.config import settings
from app.core.errors import AuthError, AuthReason, ConfigError

logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ("sub", "email", "public_key", "exp", "iat")
ROLE_AUTHENTICATED = "authenticated"


def ensure_signing_key() -> str:
    """
    Return the token signing key.

    Raises:
        ConfigError: If ENCODE_KEY is not configured
    """
    if not settings.ENCODE_KEY:
        raise ConfigError("Server configuration error")
    return settings.ENCODE_KEY


def create_access_token(
    user_id: str,
    email: str,
    public_key: str,
    now: Optional[datetime] = None,
    extra_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Create a JWT access token for an authenticated profile.

    Args:
        user_id: The profile id, stored as `sub`
        email: The profile email
        public_key: The wallet public key that signed the challenge
        now: Issue time, defaults to the current UTC time
        extra_claims: Optional additional claims to include in the JWT payload

    Returns:
        A JWT token string usable as the access_token cookie or in an Authorization: Bearer <token> header

    Raises:
        ValueError: If user_id is empty
        ConfigError: If the signing key is missing
    """
    if not user_id:
        raise ValueError("user_id is required")
    key = ensure_signing_key()

    if now is None:
        now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": user_id,
        "email": email,
        "public_key": public_key,
        "aud": settings.TOKEN_AUDIENCE,
        "role": ROLE_AUTHENTICATED,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=settings.ACCESS_TOKEN_EXPIRE_SECONDS)).timestamp()),
    }
    if extra_claims:
        payload.update(extra_claims)

    return jwt.encode(payload, key, algorithm=settings.ENCODE_ALGORITHM)


def verify_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode a JWT token.

    Checks the token signature, expiration, audience and required payload fields.

    Args:
        token: The JWT token string

    Returns:
        Decoded JWT payload dictionary

    Raises:
        AuthError: If the token is missing, expired, invalid, or missing a required claim
        ConfigError: If the signing key is missing
    """
    if not token:
        raise AuthError(AuthReason.UNAUTHENTICATED, "Not authenticated")
    key = ensure_signing_key()

    try:
        payload = jwt.decode(
            token,
            key,
            algorithms=[settings.ENCODE_ALGORITHM],
            audience=settings.TOKEN_AUDIENCE,
            options={"require": list(REQUIRED_CLAIMS)},
        )
    except jwt.ExpiredSignatureError:
        logger.info("rejected expired token")
        raise AuthError(AuthReason.INVALID_OR_EXPIRED, "Invalid or expired token")
    except jwt.InvalidTokenError as e:
        logger.info("rejected invalid token: %s", e)
        raise AuthError(AuthReason.INVALID_OR_EXPIRED, "Invalid or expired token")

    return payload
