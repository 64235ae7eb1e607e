"""
Solana Wallet Authentication Utilities

This module handles the cryptographic side of wallet sign-in.

Authentication Flow:
1. Client builds a challenge message with an embedded timestamp -> challenge.build_challenge_message()
2. Wallet signs the UTF-8 bytes of the message (ED25519 detached signature)
3. Client sends: publicKey (base58), message, signature (array of byte values)
4. Backend verifies: verify_login_challenge()
   - Verifies all fields are present
   - Verifies the ED25519 signature over the exact message
   - Verifies the embedded timestamp is inside the freshness window

The caller never learns which part of the signature check failed: an undecodable
key, a key of the wrong size and a signature that does not verify all answer
"Invalid signature". The log keeps the distinction.
"""

import logging
from typing import Optional, Sequence

import base58
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from app.core.challenge import current_time_ms, parse_challenge_timestamp
from app.core.config import settings
from app.core.errors import AuthError, AuthReason, ValidationError

logger = logging.getLogger(__name__)

PUBLIC_KEY_NUM_BYTES = 32
SIGNATURE_NUM_BYTES = 64


def _decode_public_key(public_key: str) -> Optional[bytes]:
    """Helper: Decode a base58 public key, None if it is not a 32 byte key."""
    try:
        raw = base58.b58decode(public_key.strip())
    except ValueError:
        logger.info("public key is not valid base58")
        return None
    if len(raw) != PUBLIC_KEY_NUM_BYTES:
        logger.info("public key has %d bytes, expected %d", len(raw), PUBLIC_KEY_NUM_BYTES)
        return None
    return raw


def _signature_bytes(signature: Sequence[int]) -> Optional[bytes]:
    """Helper: Pack the signature byte values, None if any value is out of range."""
    try:
        raw = bytes(signature)
    except (TypeError, ValueError):
        logger.info("signature contains values outside 0..255")
        return None
    if len(raw) != SIGNATURE_NUM_BYTES:
        logger.info("signature has %d bytes, expected %d", len(raw), SIGNATURE_NUM_BYTES)
        return None
    return raw


def verify_signature(public_key: str, message: str, signature: Sequence[int]) -> bool:
    """
    Verify an ED25519 detached signature made by a Solana wallet.

    Args:
        public_key: base58 encoded wallet public key
        message: The exact text that was signed
        signature: Signature as a sequence of byte values

    Returns:
        True if the signature was produced by the key's owner over `message`, False otherwise
    """
    public_key_bytes = _decode_public_key(public_key)
    if public_key_bytes is None:
        return False
    signature_bytes = _signature_bytes(signature)
    if signature_bytes is None:
        return False

    try:
        Ed25519PublicKey.from_public_bytes(public_key_bytes).verify(
            signature_bytes, message.encode("utf-8")
        )
    except InvalidSignature:
        logger.info("signature does not verify for %s", public_key)
        return False
    except ValueError:
        logger.info("public key %s is not a valid ED25519 point", public_key)
        return False
    return True


def check_message_freshness(
    message: str,
    now_ms: int,
    window_seconds: int,
    skew_seconds: int,
) -> int:
    """
    Check the timestamp embedded in a challenge against the current time.

    Args:
        message: The signed challenge message
        now_ms: Current time in epoch milliseconds
        window_seconds: Maximum age of the challenge
        skew_seconds: How far in the future a timestamp may lie (client clock drift)

    Returns:
        The parsed timestamp

    Raises:
        ValidationError: If the message carries no timestamp
        AuthError: If the challenge is too old or too far in the future
    """
    timestamp = parse_challenge_timestamp(message)
    age_ms = now_ms - timestamp
    if age_ms > window_seconds * 1000:
        logger.info("challenge is %d ms old, window is %d s", age_ms, window_seconds)
        raise AuthError(AuthReason.EXPIRED, "Message expired")
    if -age_ms > skew_seconds * 1000:
        logger.info("challenge is %d ms in the future, skew is %d s", -age_ms, skew_seconds)
        raise AuthError(AuthReason.NOT_YET_VALID, "Message timestamp is in the future")
    return timestamp


def verify_login_challenge(
    public_key: Optional[str],
    message: Optional[str],
    signature: Optional[Sequence[int]],
    now_ms: Optional[int] = None,
) -> int:
    """
    Run every check for a wallet sign-in request.

    This is the function called by POST /api/solana-auth. The checks run in order:
    1. All three fields are present and non-empty
    2. The ED25519 signature is valid for the message
    3. The embedded timestamp is fresh

    Returns:
        The challenge timestamp (epoch ms)

    Raises:
        ValidationError: Missing fields or no timestamp in the message
        AuthError: Invalid signature, expired or future challenge
    """
    if not public_key or not message or not signature:
        raise ValidationError("Missing required fields")

    if not verify_signature(public_key, message, signature):
        raise AuthError(AuthReason.INVALID_SIGNATURE, "Invalid signature")

    if now_ms is None:
        now_ms = current_time_ms()
    return check_message_freshness(
        message,
        now_ms,
        window_seconds=settings.CHALLENGE_EXPIRY_SECONDS,
        skew_seconds=settings.CHALLENGE_CLOCK_SKEW_SECONDS,
    )
