"""
Sign-in challenge messages.

The wallet signs a human readable message that embeds the time it was created:

    Sign this message to authenticate with What Bird.
    Timestamp: 1700000000000

Nothing is stored server side. Freshness is re-derived from the timestamp in the
received message (see solana_auth.check_message_freshness).
"""

import re
import time
from typing import Optional

from app.core.errors import ValidationError

# epoch milliseconds fit in 16 digits, longer runs are not a timestamp
TIMESTAMP_PATTERN = re.compile(r"Timestamp: (\d{1,16})(?!\d)")


def current_time_ms() -> int:
    return int(time.time() * 1000)


def build_challenge_message(app_name: str, now_ms: Optional[int] = None) -> str:
    """Build the message a wallet signs to log in. The millisecond timestamp keeps it unique."""
    if now_ms is None:
        now_ms = current_time_ms()
    return f"Sign this message to authenticate with {app_name}.\nTimestamp: {now_ms}"


def parse_challenge_timestamp(message: str) -> int:
    """
    Extract the epoch millisecond timestamp from a challenge message.

    Raises:
        ValidationError: If the message has no `Timestamp: <digits>` part of at most 16 digits
    """
    match = TIMESTAMP_PATTERN.search(message or "")
    if not match:
        raise ValidationError("Invalid message format")
    return int(match.group(1))
