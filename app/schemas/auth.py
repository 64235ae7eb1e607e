from typing import List, Optional

from pydantic import BaseModel, Field, conint

from app.schemas.my_base_model import CustomBaseModel


class SolanaAuthRequest(BaseModel):
    """Request model for wallet sign-in - presence of fields is checked by the verifier (400)"""

    publicKey: Optional[str] = Field(None, description="Wallet public key, base58")
    message: Optional[str] = Field(None, description="The exact challenge message that was signed")
    signature: Optional[List[conint(ge=0, le=255)]] = Field(
        None, description="ED25519 signature as an array of byte values (0-255)"
    )


class RefreshRequest(BaseModel):
    """Request model for token refresh - the refresh_token cookie is used when the body has none"""

    refresh_token: Optional[str] = Field(None, description="Refresh token from sign-in")


class ChallengeResponse(CustomBaseModel):
    """Response model for challenge generation - output"""

    message: str = ""
    timestamp: int = 0
    expires_in: int = 0


class AuthUser(CustomBaseModel):
    id: str = ""
    name: str = ""
    email: str = ""
    public_key: str = ""


class AuthResponse(CustomBaseModel):
    """Response model for authentication - output"""

    message: str = ""
    user: AuthUser
    access_token: str
    token_type: str = "bearer"
    refresh_token: Optional[str] = None
