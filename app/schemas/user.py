from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from app.schemas.my_base_model import CustomBaseModel


class ProfileResponse(CustomBaseModel):
    """Response model for user profile"""

    user_id: str = ""
    public_key: str = ""
    display_name: str = ""
    email: str = ""
    auth_method: str = "solana"


class ProfileUpdateRequest(BaseModel):
    """Request model for profile update - only the given fields change"""

    name: Optional[str] = Field(None, min_length=1, max_length=100, description="Display name")
    email: Optional[EmailStr] = Field(None, description="Contact email")
