from fastapi import status
from pydantic import BaseModel

from app.core.router_decorated import APIRouter

router = APIRouter()
group_tags = ["health"]


class HealthCheck(BaseModel):
    status: str = "ok"


@router.get(
    "/health",
    tags=group_tags,
    response_model=HealthCheck,
    status_code=status.HTTP_200_OK,
)
def get_health() -> HealthCheck:
    return HealthCheck(status="ok")
