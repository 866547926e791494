"""Route tables: explicit (method, path, handler) bindings turned into routers."""
from typing import Any, Callable, NamedTuple, Optional

from fastapi import APIRouter, status


class Route(NamedTuple):
    method: str
    path: str
    endpoint: Callable[..., Any]
    response_model: Optional[Any] = None
    status_code: int = status.HTTP_200_OK


def build_router(routes: tuple[Route, ...]) -> APIRouter:
    router = APIRouter()
    for route in routes:
        router.add_api_route(
            route.path,
            route.endpoint,
            methods=[route.method],
            response_model=route.response_model,
            status_code=route.status_code,
        )
    return router
