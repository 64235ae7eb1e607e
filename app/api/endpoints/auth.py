import logging
from typing import List, Optional

from fastapi import Body, Depends, Request, Response, status

from app.core.challenge import build_challenge_message
from app.core.config import settings
from app.core.cookies import REFRESH_TOKEN_COOKIE, clear_session_cookies, set_session_cookies
from app.core.dependencies import get_now_ms
from app.core.router_decorated import APIRouter
from app.core.solana_auth import verify_login_challenge
from app.schemas.my_base_model import Message
from app.services.session_issuer import IssuedSession, SessionIssuer, get_session_issuer
import app.schemas.auth as schemas

logger = logging.getLogger(__name__)

router = APIRouter()
group_tags: List[str] = ["Auth"]


def _auth_response(session: IssuedSession, message: str) -> schemas.AuthResponse:
    identity = session.identity
    return schemas.AuthResponse(
        message=message,
        user=schemas.AuthUser(
            id=identity.user_id,
            name=identity.display_name,
            email=identity.email,
            public_key=identity.public_key,
        ),
        access_token=session.access_token,
        refresh_token=session.refresh_token,
    )


@router.get(
    "/solana-auth/challenge",
    tags=group_tags,
    response_model=schemas.ChallengeResponse,
    status_code=status.HTTP_200_OK,
)
def get_challenge(now_ms: int = Depends(get_now_ms)) -> schemas.ChallengeResponse:
    """Build a challenge message for clients that cannot build one themselves. Nothing is stored."""
    return schemas.ChallengeResponse(
        message=build_challenge_message(settings.APP_NAME, now_ms),
        timestamp=now_ms,
        expires_in=settings.CHALLENGE_EXPIRY_SECONDS,
    )


@router.post(
    "/solana-auth",
    tags=group_tags,
    response_model=schemas.AuthResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
)
def solana_auth(
    body: schemas.SolanaAuthRequest,
    response: Response,
    now_ms: int = Depends(get_now_ms),
    issuer: SessionIssuer = Depends(get_session_issuer),
) -> schemas.AuthResponse:
    """
    Verify a signed challenge and sign the wallet in.

    Request body:
    - publicKey: base58 wallet public key
    - message: "Sign this message to authenticate with What Bird.\\nTimestamp: <epoch_ms>"
    - signature: ED25519 signature of the message as an array of byte values

    The access token is returned in the body and set as the access_token cookie.
    """
    logger.info("Solana auth attempt for public key: %s", body.publicKey)
    verify_login_challenge(body.publicKey, body.message, body.signature, now_ms=now_ms)

    session = issuer.issue(body.publicKey.strip())
    set_session_cookies(response, session.access_token, session.refresh_token)
    return _auth_response(session, "Solana authentication successful")


@router.post(
    "/auth/refresh",
    tags=group_tags,
    response_model=schemas.AuthResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
)
def refresh_session(
    request: Request,
    response: Response,
    body: Optional[schemas.RefreshRequest] = Body(None),
    issuer: SessionIssuer = Depends(get_session_issuer),
) -> schemas.AuthResponse:
    """Exchange a refresh token (body or cookie) for a new token pair. The old refresh token stops working."""
    refresh_token = (body.refresh_token if body else None) or request.cookies.get(REFRESH_TOKEN_COOKIE)
    session = issuer.refresh(refresh_token)
    set_session_cookies(response, session.access_token, session.refresh_token)
    return _auth_response(session, "Session refreshed")


@router.post(
    "/logout",
    tags=group_tags,
    response_model=Message,
    status_code=status.HTTP_200_OK,
)
def logout(
    request: Request,
    response: Response,
    body: Optional[schemas.RefreshRequest] = Body(None),
    issuer: SessionIssuer = Depends(get_session_issuer),
) -> Message:
    """Revoke the presented refresh token and clear the session cookies."""
    refresh_token = (body.refresh_token if body else None) or request.cookies.get(REFRESH_TOKEN_COOKIE)
    if refresh_token:
        issuer.revoke(refresh_token=refresh_token)
    clear_session_cookies(response)
    return Message(message="Logged out")
