import os

# settings are read at import time, configure the test environment first
os.environ.setdefault("ENCODE_KEY", "test-signing-key-0123456789abcdef0123456789abcdef")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("ENVIRONMENT", "test")

import dataclasses
import threading
import uuid
from datetime import datetime
from typing import Dict, Generator, List, Optional, Tuple

import base58
import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from main import app
from app.core.challenge import build_challenge_message, current_time_ms
from app.core.dependencies import get_now_ms
from app.db.base import Base
from app.db.session import get_db
from app.services.identity_store import IdentityRecord, IdentityStore, RefreshRecord


# Create in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

APP_NAME = "What Bird"
CHALLENGE_TIMESTAMP = 1700000000000


def override_get_db() -> Generator:
    """Override database dependency for testing"""
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


class FakeClock:
    """Clock for the challenge freshness check, in epoch milliseconds"""

    def __init__(self, now_ms: int) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms


class Wallet:
    """ED25519 keypair standing in for a Solana wallet"""

    def __init__(self) -> None:
        self.private_key = Ed25519PrivateKey.generate()
        raw = self.private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
        self.public_key = base58.b58encode(raw).decode()

    def sign(self, message: str) -> List[int]:
        return list(self.private_key.sign(message.encode("utf-8")))

    def login_body(self, timestamp_ms: int = CHALLENGE_TIMESTAMP) -> dict:
        message = build_challenge_message(APP_NAME, timestamp_ms)
        return {
            "publicKey": self.public_key,
            "message": message,
            "signature": self.sign(message),
        }


class InMemoryIdentityStore(IdentityStore):
    """
    Dict backed IdentityStore.

    insert_if_absent() is atomic under a lock, the same guarantee the unique index gives the
    SQL store. `read_barrier` holds every lookup until all parties arrived, so concurrent
    first logins all miss the profile and race on the insert.
    """

    def __init__(self, read_barrier: Optional[threading.Barrier] = None) -> None:
        self._lock = threading.Lock()
        self.profiles: Dict[str, IdentityRecord] = {}
        self.refresh_records: Dict[str, RefreshRecord] = {}
        self.read_barrier = read_barrier
        self.insert_attempts = 0

    def find_by_public_key(self, public_key: str) -> Optional[IdentityRecord]:
        with self._lock:
            record = self.profiles.get(public_key)
        if self.read_barrier is not None:
            self.read_barrier.wait(timeout=5)
        return record

    def find_by_user_id(self, user_id: str) -> Optional[IdentityRecord]:
        with self._lock:
            for record in self.profiles.values():
                if record.user_id == user_id:
                    return record
        return None

    def insert_if_absent(
        self, public_key: str, display_name: str, email: str
    ) -> Tuple[IdentityRecord, bool]:
        with self._lock:
            self.insert_attempts += 1
            existing = self.profiles.get(public_key)
            if existing:
                return existing, False
            record = IdentityRecord(
                user_id=str(uuid.uuid4()),
                public_key=public_key,
                display_name=display_name,
                email=email,
            )
            self.profiles[public_key] = record
            return record, True

    def update_profile(
        self, user_id: str, display_name: Optional[str] = None, email: Optional[str] = None
    ) -> Optional[IdentityRecord]:
        record = self.find_by_user_id(user_id)
        if record is None:
            return None
        changes = {}
        if display_name is not None:
            changes["display_name"] = display_name
        if email is not None:
            changes["email"] = email
        updated = dataclasses.replace(record, **changes)
        with self._lock:
            self.profiles[record.public_key] = updated
        return updated

    def record_login(self, user_id: str, logged_in_at: datetime) -> Optional[IdentityRecord]:
        record = self.find_by_user_id(user_id)
        if record is None:
            return None
        updated = dataclasses.replace(record, last_login_at=logged_in_at)
        with self._lock:
            self.profiles[record.public_key] = updated
        return updated

    def save_refresh_record(self, record: RefreshRecord) -> None:
        with self._lock:
            self.refresh_records[record.token] = record

    def pop_refresh_record(self, token: str) -> Optional[RefreshRecord]:
        with self._lock:
            return self.refresh_records.pop(token, None)

    def delete_refresh_records(self, user_id: str) -> int:
        with self._lock:
            tokens = [t for t, r in self.refresh_records.items() if r.user_id == user_id]
            for token in tokens:
                del self.refresh_records[token]
        return len(tokens)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Fresh schema for every test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(current_time_ms())


@pytest.fixture
def client(db_session: Session, clock: FakeClock) -> TestClient:
    """Create a test client for the FastAPI application"""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now_ms] = clock
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def wallet() -> Wallet:
    return Wallet()


@pytest.fixture
def memory_store() -> InMemoryIdentityStore:
    return InMemoryIdentityStore()
