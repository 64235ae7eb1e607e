from typing import Any, Callable

from fastapi import APIRouter as FastAPIRouter

from app.schemas.my_base_model import ErrorResponse

# error bodies every route may answer with, added to the OpenAPI docs
DEFAULT_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or malformed fields"},
    401: {"model": ErrorResponse, "description": "Not authenticated"},
    500: {"model": ErrorResponse, "description": "Server or store error"},
}


class APIRouter(FastAPIRouter):
    """APIRouter that documents the {"error": ...} bodies produced by the AppError handlers."""

    def api_route(self, path: str, **kwargs: Any) -> Callable:
        responses = dict(DEFAULT_ERROR_RESPONSES)
        responses.update(kwargs.pop("responses", None) or {})
        return super().api_route(path, responses=responses, **kwargs)
