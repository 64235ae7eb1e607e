"""
Identity store.

Persistence collaborator for the sign-in flow. Endpoints receive it through the
get_identity_store() dependency so tests can swap in a fake.

The unique constraint on profiles.public_key is the only guard against duplicate
identities: insert_if_absent() never locks, it inserts and on a uniqueness
violation re-reads the row the concurrent request created.
"""

import abc
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from fastapi import Depends
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import StoreError
from app.db.session import get_db
from app.models.auth import RefreshToken
from app.models.users import Profile

logger = logging.getLogger(__name__)

AUTH_METHOD_SOLANA = "solana"


@dataclass(frozen=True)
class IdentityRecord:
    user_id: str
    public_key: str
    display_name: str
    email: str
    auth_method: str = AUTH_METHOD_SOLANA
    last_login_at: Optional[datetime] = None


@dataclass(frozen=True)
class RefreshRecord:
    token: str
    user_id: str
    created_at: int
    expires_at: int


class IdentityStore(abc.ABC):
    @abc.abstractmethod
    def find_by_public_key(self, public_key: str) -> Optional[IdentityRecord]:
        ...

    @abc.abstractmethod
    def find_by_user_id(self, user_id: str) -> Optional[IdentityRecord]:
        ...

    @abc.abstractmethod
    def insert_if_absent(
        self, public_key: str, display_name: str, email: str
    ) -> Tuple[IdentityRecord, bool]:
        """Return the stored record for `public_key` and whether this call created it."""

    @abc.abstractmethod
    def update_profile(
        self, user_id: str, display_name: Optional[str] = None, email: Optional[str] = None
    ) -> Optional[IdentityRecord]:
        ...

    @abc.abstractmethod
    def record_login(self, user_id: str, logged_in_at: datetime) -> Optional[IdentityRecord]:
        """Set last_login_at, None if the profile does not exist."""

    @abc.abstractmethod
    def save_refresh_record(self, record: RefreshRecord) -> None:
        ...

    @abc.abstractmethod
    def pop_refresh_record(self, token: str) -> Optional[RefreshRecord]:
        """Delete and return the refresh record, None if it does not exist."""

    @abc.abstractmethod
    def delete_refresh_records(self, user_id: str) -> int:
        ...


def _to_record(profile: Profile) -> IdentityRecord:
    return IdentityRecord(
        user_id=profile.user_id,
        public_key=profile.public_key,
        display_name=profile.display_name,
        email=profile.email,
        auth_method=profile.auth_method,
        last_login_at=profile.last_login_at,
    )


class SqlIdentityStore(IdentityStore):
    """IdentityStore on top of a SQLAlchemy session (profiles and refresh_tokens tables)."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _rollback(self, action: str) -> None:
        try:
            self.db.rollback()
        except SQLAlchemyError:
            logger.exception("rollback after failed %s also failed", action)

    def find_by_public_key(self, public_key: str) -> Optional[IdentityRecord]:
        try:
            profile = self.db.query(Profile).filter(Profile.public_key == public_key).first()
        except SQLAlchemyError:
            logger.exception("profile lookup by public key failed")
            raise StoreError("Failed to load user")
        return _to_record(profile) if profile else None

    def find_by_user_id(self, user_id: str) -> Optional[IdentityRecord]:
        try:
            profile = self.db.get(Profile, user_id)
        except SQLAlchemyError:
            logger.exception("profile lookup by user id failed")
            raise StoreError("Failed to load user")
        return _to_record(profile) if profile else None

    def insert_if_absent(
        self, public_key: str, display_name: str, email: str
    ) -> Tuple[IdentityRecord, bool]:
        # callers look the key up first, the unique index settles the rest
        profile = Profile(
            public_key=public_key,
            display_name=display_name,
            email=email,
            auth_method=AUTH_METHOD_SOLANA,
        )
        self.db.add(profile)
        try:
            self.db.commit()
        except IntegrityError:
            # the profile exists, created by a concurrent request or before this call
            self._rollback("profile insert")
            logger.info("profile for %s already exists, re-reading", public_key)
            existing = self.find_by_public_key(public_key)
            if existing is None:
                raise StoreError("Failed to create user")
            return existing, False
        except SQLAlchemyError:
            self._rollback("profile insert")
            logger.exception("profile insert for %s failed", public_key)
            raise StoreError("Failed to create user")

        self.db.refresh(profile)
        logger.info("created profile %s for %s", profile.user_id, public_key)
        return _to_record(profile), True

    def update_profile(
        self, user_id: str, display_name: Optional[str] = None, email: Optional[str] = None
    ) -> Optional[IdentityRecord]:
        profile = self.db.get(Profile, user_id)
        if profile is None:
            return None
        if display_name is not None:
            profile.display_name = display_name
        if email is not None:
            profile.email = email
        try:
            self.db.commit()
        except SQLAlchemyError:
            self._rollback("profile update")
            logger.exception("profile update for %s failed", user_id)
            raise StoreError("Failed to update profile")
        self.db.refresh(profile)
        return _to_record(profile)

    def record_login(self, user_id: str, logged_in_at: datetime) -> Optional[IdentityRecord]:
        try:
            profile = self.db.get(Profile, user_id)
            if profile is None:
                return None
            profile.last_login_at = logged_in_at
            self.db.commit()
        except SQLAlchemyError:
            self._rollback("last login update")
            logger.exception("last login update for %s failed", user_id)
            raise StoreError("Failed to update user")
        self.db.refresh(profile)
        return _to_record(profile)

    def save_refresh_record(self, record: RefreshRecord) -> None:
        self.db.add(
            RefreshToken(
                token=record.token,
                user_id=record.user_id,
                created_at=record.created_at,
                expires_at=record.expires_at,
            )
        )
        try:
            self.db.commit()
        except SQLAlchemyError:
            self._rollback("refresh token insert")
            logger.exception("refresh token insert for %s failed", record.user_id)
            raise StoreError("Failed to create session")

    def pop_refresh_record(self, token: str) -> Optional[RefreshRecord]:
        try:
            row = self.db.get(RefreshToken, token)
            if row is None:
                return None
            record = RefreshRecord(
                token=row.token,
                user_id=row.user_id,
                created_at=row.created_at,
                expires_at=row.expires_at,
            )
            # rowcount tells a concurrent consumer of the same token that it lost
            result = self.db.execute(delete(RefreshToken).where(RefreshToken.token == token))
            self.db.commit()
        except SQLAlchemyError:
            self._rollback("refresh token delete")
            logger.exception("refresh token consume failed")
            raise StoreError("Failed to load session")
        if result.rowcount == 0:
            return None
        return record

    def delete_refresh_records(self, user_id: str) -> int:
        try:
            result = self.db.execute(delete(RefreshToken).where(RefreshToken.user_id == user_id))
            self.db.commit()
        except SQLAlchemyError:
            self._rollback("refresh token delete")
            logger.exception("refresh token delete for %s failed", user_id)
            raise StoreError("Failed to end session")
        return result.rowcount


def get_identity_store(db: Session = Depends(get_db)) -> IdentityStore:
    return SqlIdentityStore(db)
