from sqlalchemy import BigInteger, Column, String

from app.db.base import Base


class RefreshToken(Base):
    """Model for refresh tokens. Deleting a row forces a logout once the access token expires."""

    __tablename__ = "refresh_tokens"

    token = Column(String(128), primary_key=True)
    user_id = Column(String(36), nullable=False, index=True)
    created_at = Column(BigInteger, nullable=False)
    expires_at = Column(BigInteger, nullable=False)
