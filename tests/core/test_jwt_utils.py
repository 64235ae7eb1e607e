from datetime import datetime, timedelta, timezone

import jwt
import pytest

from app.core.config import settings
from app.core.errors import AuthError, AuthReason, ConfigError
from app.core.jwt_utils import create_access_token, verify_token

USER_ID = "550e8400-e29b-41d4-a716-446655440000"
EMAIL = "wallet@solana.wallet"
PUBLIC_KEY = "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin"


class TestAccessToken:
    """Test cases for session token minting and verification"""

    def test_round_trip(self):
        """Test that a fresh token decodes to the identity it was issued for"""
        token = create_access_token(USER_ID, EMAIL, PUBLIC_KEY)

        payload = verify_token(token)

        assert payload["sub"] == USER_ID
        assert payload["email"] == EMAIL
        assert payload["public_key"] == PUBLIC_KEY
        assert payload["aud"] == "authenticated"
        assert payload["role"] == "authenticated"

    def test_token_lifetime(self):
        """Test that the token expires one TTL after issue"""
        now = datetime.now(timezone.utc)
        token = create_access_token(USER_ID, EMAIL, PUBLIC_KEY, now=now)

        payload = verify_token(token)

        assert payload["iat"] == int(now.timestamp())
        assert payload["exp"] - payload["iat"] == settings.ACCESS_TOKEN_EXPIRE_SECONDS

    def test_extra_claims(self):
        """Test that additional claims are carried"""
        token = create_access_token(USER_ID, EMAIL, PUBLIC_KEY, extra_claims={"client": "bot"})

        assert verify_token(token)["client"] == "bot"

    def test_expired_token(self):
        """Test that a token past its expiry is rejected"""
        issued = datetime.now(timezone.utc) - timedelta(hours=2)
        token = create_access_token(USER_ID, EMAIL, PUBLIC_KEY, now=issued)

        with pytest.raises(AuthError) as exc_info:
            verify_token(token)

        assert exc_info.value.reason == AuthReason.INVALID_OR_EXPIRED
        assert exc_info.value.status_code == 401

    def test_tampered_token(self):
        """Test that altering the signature part invalidates the token"""
        token = create_access_token(USER_ID, EMAIL, PUBLIC_KEY)
        header, payload, signature = token.split(".")
        tampered = ".".join([header, payload, signature[::-1]])

        with pytest.raises(AuthError) as exc_info:
            verify_token(tampered)

        assert exc_info.value.reason == AuthReason.INVALID_OR_EXPIRED

    def test_token_signed_with_other_key(self):
        """Test that tokens from another signer are rejected"""
        now = int(datetime.now(timezone.utc).timestamp())
        token = jwt.encode(
            {"sub": USER_ID, "email": EMAIL, "public_key": PUBLIC_KEY, "aud": "authenticated",
             "iat": now, "exp": now + 60},
            "another-signing-key-0123456789abcdef0123456789",
            algorithm="HS256",
        )

        with pytest.raises(AuthError):
            verify_token(token)

    def test_token_missing_claim(self):
        """Test that a correctly signed token without public_key is rejected"""
        now = int(datetime.now(timezone.utc).timestamp())
        token = jwt.encode(
            {"sub": USER_ID, "email": EMAIL, "aud": "authenticated", "iat": now, "exp": now + 60},
            settings.ENCODE_KEY,
            algorithm="HS256",
        )

        with pytest.raises(AuthError) as exc_info:
            verify_token(token)

        assert exc_info.value.reason == AuthReason.INVALID_OR_EXPIRED

    def test_token_wrong_audience(self):
        """Test that a token for another audience is rejected"""
        token = create_access_token(USER_ID, EMAIL, PUBLIC_KEY, extra_claims={"aud": "admin"})

        with pytest.raises(AuthError):
            verify_token(token)

    def test_empty_token(self):
        """Test that no token means unauthenticated"""
        with pytest.raises(AuthError) as exc_info:
            verify_token("")

        assert exc_info.value.reason == AuthReason.UNAUTHENTICATED

    def test_empty_user_id(self):
        """Test that a token cannot be issued without a user"""
        with pytest.raises(ValueError):
            create_access_token("", EMAIL, PUBLIC_KEY)

    def test_missing_signing_key(self, monkeypatch):
        """Test that minting and verifying fail with ConfigError without ENCODE_KEY"""
        token = create_access_token(USER_ID, EMAIL, PUBLIC_KEY)
        monkeypatch.setattr(settings, "ENCODE_KEY", None)

        with pytest.raises(ConfigError):
            create_access_token(USER_ID, EMAIL, PUBLIC_KEY)
        with pytest.raises(ConfigError):
            verify_token(token)
