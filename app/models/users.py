import uuid

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func

from app.db.base import Base


def _new_user_id() -> str:
    return str(uuid.uuid4())


class Profile(Base):
    """Model for profiles table, one row per wallet identity
    Example:
    {
        "user_id": "550e8400-e29b-41d4-a716-446655440000",
        "public_key": "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin",
        "display_name": "Solana User 9xQeWv...VFin",
        "email": "9xqewvg816bux9epjhmat23yvvm2zwbrrpzb9pusvfin@solana.wallet",
        "auth_method": "solana",
        "created_at": "2024-01-01T12:00:00",
        "updated_at": "2024-01-01T12:00:00",
        "last_login_at": "2024-01-01T12:00:00"
    }
    """

    __tablename__ = "profiles"

    user_id = Column(String(36), primary_key=True, default=_new_user_id)
    # unique index: at most one profile per wallet, concurrent first logins race on it
    public_key = Column(String(64), nullable=False, unique=True, index=True)
    display_name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    auth_method = Column(String(32), nullable=False, default="solana")
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    last_login_at = Column(DateTime(timezone=True), nullable=True)
