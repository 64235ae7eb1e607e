"""
Application error taxonomy.

Every error carries the message that is sent to the client and the HTTP status
it maps to. The handlers registered in main.py render them as {"error": message}.

- ValidationError: malformed or missing request fields -> 400
- AuthError: bad signature, expired challenge, missing/invalid token -> 401 (or 403)
- ConfigError: signing key or store not configured -> 500
- StoreError: identity persistence failure -> 500
"""

import enum
from typing import Optional

from fastapi import status


class AppError(Exception):
    """Base error for the service."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthReason(str, enum.Enum):
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"
    NOT_YET_VALID = "not_yet_valid"
    UNAUTHENTICATED = "unauthenticated"
    INVALID_OR_EXPIRED = "invalid_or_expired"
    FORBIDDEN = "forbidden"


class AuthError(AppError):
    """
    Authentication failure.

    `redirect_to` is set by page routes: instead of a 401 body the client is sent
    to the login page.
    """

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(
        self,
        reason: AuthReason,
        message: str,
        *,
        status_code: Optional[int] = None,
        redirect_to: Optional[str] = None,
    ) -> None:
        if status_code is None and reason == AuthReason.FORBIDDEN:
            status_code = status.HTTP_403_FORBIDDEN
        super().__init__(message, status_code=status_code)
        self.reason = reason
        self.redirect_to = redirect_to

    @property
    def clears_cookie(self) -> bool:
        return self.reason == AuthReason.INVALID_OR_EXPIRED


class ConfigError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class StoreError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
