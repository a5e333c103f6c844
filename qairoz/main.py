# main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from qairoz import config
from qairoz.database import database
from qairoz.models import models  # noqa: F401 (registers tables on Base)
from qairoz.routers import (
    info,
    colleges,
    students,
    stats,
    storage,
    email,
    otp,
)
from qairoz.utils.errors import (
    general_exception_handler,
    http_exception_handler,
    list_routes,
    validation_exception_handler,
)

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------- Lifespan context ----------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Handles startup and shutdown events.
    Creates all tables on startup and logs registered routes.
    """
    database.Base.metadata.create_all(bind=database.engine)

    logger.info("Qairoz backend %s starting on port %s", config.APP_VERSION, config.PORT)
    logger.info("CORS enabled for: %s", ", ".join(config.CORS_ORIGINS))
    logger.info("ROUTES REGISTERED:")
    for route in list_routes(app):
        logger.info("  %s", route)

    yield

    logger.info("Qairoz backend shutting down")


# ---------------- FastAPI instance ----------------
app = FastAPI(title="Qairoz Backend", version=config.APP_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------- Error handlers ----------------
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

# ---------------- Include routers ----------------
app.include_router(info.router)
app.include_router(colleges.router)
app.include_router(students.router)
app.include_router(stats.router)
app.include_router(storage.router)
app.include_router(email.router)
app.include_router(otp.router)


def run():
    import uvicorn

    uvicorn.run("qairoz.main:app", host="0.0.0.0", port=config.PORT)


if __name__ == "__main__":
    run()
