"""
Session issuer.

Turns a verified wallet public key into a session:
1. resolve_identity() finds the profile for the key or creates it, last_login_at is stamped
2. a JWT access token is minted for the profile (jwt_utils.create_access_token)
3. when refresh tokens are enabled, an opaque refresh value is stored alongside

The endpoint delivers the access token both as an HTTP-only cookie and in the JSON body.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Tuple

from fastapi import Depends

from app.core.config import settings
from app.core.errors import AuthError, AuthReason
from app.core.jwt_utils import create_access_token
from app.services.identity_store import (
    IdentityRecord,
    IdentityStore,
    RefreshRecord,
    get_identity_store,
)

logger = logging.getLogger(__name__)

REFRESH_TOKEN_NUM_BYTES = 48


def short_public_key(public_key: str) -> str:
    """First 6 and last 4 characters, e.g. 9xQeWv...VFin"""
    return f"{public_key[:6]}...{public_key[-4:]}"


def default_display_name(public_key: str) -> str:
    return f"Solana User {short_public_key(public_key)}"


def placeholder_email(public_key: str) -> str:
    return f"{public_key.lower()}@{settings.WALLET_EMAIL_DOMAIN}"


@dataclass(frozen=True)
class IssuedSession:
    identity: IdentityRecord
    access_token: str
    refresh_token: Optional[str] = None
    created: bool = False


class SessionIssuer:
    def __init__(self, store: IdentityStore, refresh_tokens: Optional[bool] = None) -> None:
        self.store = store
        self.refresh_tokens = (
            settings.REFRESH_TOKENS_ENABLED if refresh_tokens is None else refresh_tokens
        )

    def resolve_identity(self, public_key: str) -> Tuple[IdentityRecord, bool]:
        """Find the profile for `public_key`, creating it on first login."""
        existing = self.store.find_by_public_key(public_key)
        if existing:
            return existing, False
        return self.store.insert_if_absent(
            public_key,
            display_name=default_display_name(public_key),
            email=placeholder_email(public_key),
        )

    def _mint(self, identity: IdentityRecord, created: bool, now: datetime) -> IssuedSession:
        access_token = create_access_token(
            identity.user_id, identity.email, identity.public_key, now=now
        )
        refresh_token = None
        if self.refresh_tokens:
            issued_at = int(now.timestamp())
            refresh_token = secrets.token_urlsafe(REFRESH_TOKEN_NUM_BYTES)
            self.store.save_refresh_record(
                RefreshRecord(
                    token=refresh_token,
                    user_id=identity.user_id,
                    created_at=issued_at,
                    expires_at=issued_at + settings.REFRESH_TOKEN_EXPIRE_SECONDS,
                )
            )
        return IssuedSession(
            identity=identity,
            access_token=access_token,
            refresh_token=refresh_token,
            created=created,
        )

    def issue(self, public_key: str, now: Optional[datetime] = None) -> IssuedSession:
        """
        Issue a session for a wallet whose signature has already been verified.

        Raises:
            ConfigError: If the token signing key is missing
            StoreError: If the profile cannot be read or created
        """
        if now is None:
            now = datetime.now(timezone.utc)
        identity, created = self.resolve_identity(public_key)
        # None when the profile was deleted in between
        identity = self.store.record_login(identity.user_id, now) or identity
        session = self._mint(identity, created, now)
        logger.info("issued session for user %s (new=%s)", identity.user_id, created)
        return session

    def refresh(self, refresh_token: str, now: Optional[datetime] = None) -> IssuedSession:
        """
        Exchange a refresh token for a new access/refresh pair. The old refresh token is consumed.

        Raises:
            AuthError: If the refresh token is unknown, expired, or its profile is gone
        """
        if now is None:
            now = datetime.now(timezone.utc)
        if not refresh_token:
            raise AuthError(AuthReason.UNAUTHENTICATED, "Not authenticated")

        record = self.store.pop_refresh_record(refresh_token)
        if record is None:
            logger.info("refresh token not found")
            raise AuthError(AuthReason.INVALID_OR_EXPIRED, "Invalid or expired token")
        if record.expires_at < int(now.timestamp()):
            logger.info("refresh token for user %s expired", record.user_id)
            raise AuthError(AuthReason.INVALID_OR_EXPIRED, "Invalid or expired token")

        identity = self.store.find_by_user_id(record.user_id)
        if identity is None:
            logger.warning("refresh token for missing user %s", record.user_id)
            raise AuthError(AuthReason.INVALID_OR_EXPIRED, "Invalid or expired token")
        return self._mint(identity, False, now)

    def revoke(self, refresh_token: Optional[str] = None, user_id: Optional[str] = None) -> int:
        """Delete the given refresh token, or every refresh token of `user_id`."""
        revoked = 0
        if refresh_token and self.store.pop_refresh_record(refresh_token) is not None:
            revoked += 1
        if user_id:
            revoked += self.store.delete_refresh_records(user_id)
        return revoked


def get_session_issuer(store: IdentityStore = Depends(get_identity_store)) -> SessionIssuer:
    return SessionIssuer(store)
