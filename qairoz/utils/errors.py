# qairoz/utils/errors.py
import logging
from typing import List

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def list_routes(app) -> List[str]:
    """`METHOD /path` for every API route, in registration order."""
    routes = []
    for route in app.routes:
        if isinstance(route, APIRoute):
            for method in sorted(route.methods - {"HEAD", "OPTIONS"}):
                routes.append(f"{method} {route.path}")
    return routes


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are a 400 with per-field messages."""
    fields = {}
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"] if part != "body") or "body"
        fields[loc] = err["msg"]
    logger.info("Rejected %s %s: %s", request.method, request.url.path, fields)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid data format", "fields": fields},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # unknown path, or a known path with the wrong method
    if (exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found") or \
            exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "Route not found", "availableRoutes": list_routes(request.app)},
        )
    if exc.status_code >= 500:
        logger.error("HTTP exception: %s (%s)", exc.detail, exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Something went wrong!"},
    )
