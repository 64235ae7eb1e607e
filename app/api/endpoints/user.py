import logging
from enum import Enum
from typing import List

from fastapi import Depends, HTTPException, status

from app.core.dependencies import CurrentIdentity, get_current_identity, get_page_identity
from app.core.router_decorated import APIRouter
from app.schemas.my_base_model import Message
from app.schemas.user import ProfileResponse, ProfileUpdateRequest
from app.services.identity_store import AUTH_METHOD_SOLANA, IdentityStore, get_identity_store

logger = logging.getLogger(__name__)

router = APIRouter()
group_tags: List[str | Enum] = ["user"]


def _load_profile(identity: CurrentIdentity, store: IdentityStore) -> ProfileResponse:
    record = store.find_by_user_id(identity.user_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return ProfileResponse.from_record(record)


@router.get(
    "/profile",
    tags=group_tags,
    response_model=ProfileResponse,
    status_code=status.HTTP_200_OK,
)
def get_profile_page(
    identity: CurrentIdentity = Depends(get_page_identity),
    store: IdentityStore = Depends(get_identity_store),
) -> ProfileResponse:
    """
    Profile of the signed-in user. Browser route: without a valid session the client is
    redirected to the login page.
    """
    return _load_profile(identity, store)


@router.get(
    "/api/profile",
    tags=group_tags,
    response_model=ProfileResponse,
    status_code=status.HTTP_200_OK,
)
def get_profile(
    identity: CurrentIdentity = Depends(get_current_identity),
    store: IdentityStore = Depends(get_identity_store),
) -> ProfileResponse:
    """Profile of the signed-in user, 401 without a valid session."""
    return _load_profile(identity, store)


@router.put(
    "/api/profile/solana",
    tags=group_tags,
    response_model=Message,
    status_code=status.HTTP_200_OK,
)
def update_solana_profile(
    body: ProfileUpdateRequest,
    identity: CurrentIdentity = Depends(get_current_identity),
    store: IdentityStore = Depends(get_identity_store),
) -> Message:
    """
    Update name and/or email of a wallet user.

    Body:
    - name: Optional new display name
    - email: Optional new contact email

    The public key never changes.
    """
    record = store.find_by_user_id(identity.user_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    if record.auth_method != AUTH_METHOD_SOLANA or not record.public_key:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a Solana wallet user")

    updated = store.update_profile(
        identity.user_id,
        display_name=body.name,
        email=str(body.email) if body.email is not None else None,
    )
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    logger.info("profile %s updated", identity.user_id)
    return Message(message="Profile updated successfully")
