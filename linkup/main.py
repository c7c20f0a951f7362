"""Application entry point for the LinkUp backend."""
from __future__ import annotations

import logging
from typing import Iterable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .database import init_db
from .routers import activities_router, auth_router, join_router, profiles_router, realtime_router

logger = logging.getLogger(__name__)

settings = get_settings()
APP_NAME = settings.app_name
API_VERSION = settings.api_version


def configure_logging(level_name: str | None = None) -> None:
    """Attach a stream handler to the package logger at ``LOG_LEVEL``."""

    level = getattr(logging, (level_name or settings.log_level).upper(), logging.INFO)
    package_logger = logging.getLogger("linkup")
    package_logger.setLevel(level)

    # Uvicorn does not attach handlers for application loggers.
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
        package_logger.addHandler(handler)

    package_logger.propagate = False


configure_logging()

app = FastAPI(title=APP_NAME, version=API_VERSION)

if settings.cors_origins:
    origins: Iterable[str] = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
else:
    origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(activities_router)
app.include_router(profiles_router)
app.include_router(join_router)
app.include_router(realtime_router)


@app.on_event("startup")
async def _startup() -> None:
    """Ensure the database schema exists before serving."""

    try:
        init_db()
    except Exception:
        logger.exception("Database initialisation failed")
        raise
    logger.info("%s %s ready", APP_NAME, API_VERSION)


@app.get("/api", tags=["system"])
def api_info() -> dict[str, str]:
    return {"service": APP_NAME, "version": API_VERSION}


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    return {"status": "healthy"}


__all__ = ["app", "configure_logging"]
