import html

from fastapi import Depends, status
from fastapi.responses import HTMLResponse

from app.core.challenge import build_challenge_message
from app.core.config import settings
from app.core.dependencies import get_now_ms
from app.core.router_decorated import APIRouter

router = APIRouter()
group_tags = ["pages"]

# the real sign-in UI is served by the front end, this page is the redirect target of protected routes
AUTH_PAGE = """<!doctype html>
<html>
<head><title>{app_name} - Sign in</title></head>
<body>
<h1>Sign in to {app_name}</h1>
<p>Connect your Solana wallet, sign the message below and POST it to <code>/api/solana-auth</code>.</p>
<pre id="challenge">{challenge}</pre>
</body>
</html>
"""


@router.get(
    "/auth",
    tags=group_tags,
    response_class=HTMLResponse,
    status_code=status.HTTP_200_OK,
    include_in_schema=False,
)
def auth_page(now_ms: int = Depends(get_now_ms)) -> HTMLResponse:
    return HTMLResponse(
        AUTH_PAGE.format(
            app_name=html.escape(settings.APP_NAME),
            challenge=html.escape(build_challenge_message(settings.APP_NAME, now_ms)),
        )
    )
