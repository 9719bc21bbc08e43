import os
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from loguru import logger

from core.exceptions import ImageBoardError
from core.logging_config import setup_logging
from core.realtime.broadcaster import NotificationBroadcaster
from core.realtime.connections import ConnectionRegistry
from core.realtime.lifecycle import ConnectionManager
from core.settings import Settings, get_settings
from core.storage import ObjectStorage
from core.storage.gateway import ObjectStoreGateway
from core.uploads import UploadHandler
from services.api.exception_handlers import imageboard_exception_handler, unhandled_exception_handler
from services.api.middleware import RequestLoggingMiddleware
from services.api.routers.qr import router as qr_router
from services.api.routers.realtime import router as realtime_router
from services.api.routes import router as images_router
from services.api.schemas import HealthResponse


def create_app(settings: Settings | None = None, storage: ObjectStorage | None = None) -> FastAPI:
    """Build the API.

    Args:
        settings: Configuration; loaded through ``get_settings`` when omitted.
        storage: Object storage backend; an S3 client built from settings when omitted.
    """
    # Setup structured logging
    json_logging = os.getenv("JSON_LOGGING", "false").lower() in {"true", "1", "yes"}
    log_level = os.getenv("LOG_LEVEL", "INFO")
    log_file = os.getenv("LOG_FILE")
    setup_logging(
        level=log_level,
        json_format=json_logging,
        log_file=Path(log_file) if log_file else None,
    )

    settings = settings or get_settings()

    app = FastAPI(
        title="ImageBoard API",
        version="0.1.0",
        description="Image uploads to S3 with live listing updates over WebSocket",
    )

    registry = ConnectionRegistry()
    gateway = ObjectStoreGateway.from_settings(settings.storage, storage=storage)
    broadcaster = NotificationBroadcaster(
        registry,
        event=settings.realtime.event,
        send_timeout=settings.realtime.send_timeout_seconds,
    )
    app.state.settings = settings
    app.state.gateway = gateway
    app.state.broadcaster = broadcaster
    app.state.connection_manager = ConnectionManager(registry, gateway, broadcaster)
    app.state.upload_handler = UploadHandler(
        gateway,
        broadcaster,
        field_name=settings.upload.field_name,
        max_bytes=settings.upload.max_bytes,
    )

    app.add_middleware(RequestLoggingMiddleware)

    # Credentials cannot be combined with a wildcard origin
    cors_origins = settings.server.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials="*" not in cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info(f"CORS allowed origins: {sorted(cors_origins)}")

    @app.on_event("startup")
    async def _log_settings() -> None:
        logger.info(
            "API initialised with bucket={bucket} region={region} event={event}",
            bucket=settings.storage.bucket,
            region=settings.storage.region,
            event=settings.realtime.event,
        )

    @app.on_event("shutdown")
    async def _close_connections() -> None:
        """Close open WebSocket sessions on server shutdown (including hot reload)."""
        await app.state.connection_manager.close_all()

    @app.get("/healthz", tags=["meta"], response_model=HealthResponse)
    async def healthcheck() -> HealthResponse:
        return HealthResponse(status="ok", connections=app.state.connection_manager.connection_count)

    # Register exception handlers
    app.add_exception_handler(ImageBoardError, imageboard_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Include routers
    app.include_router(images_router)
    app.include_router(qr_router)
    app.include_router(realtime_router)

    app.mount("/static", StaticFiles(directory=settings.server.static_dir, check_dir=False), name="static")

    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "services.api.main:app",
        host=settings.server.host,
        port=settings.server.port,
    )


app = create_app()


if __name__ == "__main__":
    run()


__all__ = ["app", "create_app", "run"]
