from fastapi import APIRouter, Request

from qairoz import config
from qairoz.utils.errors import list_routes
from qairoz.utils.timeutils import utcnow, to_iso

router = APIRouter(tags=["Info"])


@router.get("/")
def root(request: Request):
    """Landing payload listing the API routes."""
    return {
        "message": "Qairoz Backend Server is running!",
        "version": config.APP_VERSION,
        "endpoints": [r for r in list_routes(request.app) if r != "GET /"],
    }


@router.get("/api/health")
def health():
    return {
        "status": "OK",
        "message": "Server is running",
        "timestamp": to_iso(utcnow()),
        "port": config.PORT,
    }
