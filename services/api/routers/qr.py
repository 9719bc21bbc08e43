"""QR code rendering endpoint."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, PlainTextResponse
from loguru import logger

from core.exceptions import RenderError
from core.qr import render_qr_data_uri
from core.settings import Settings
from services.api.dependencies import get_app_settings


router = APIRouter(prefix="/api", tags=["qr"])

RENDER_FAILURE_MESSAGE = "Failed to generate the QR code."


@router.get("/qr", response_class=HTMLResponse)
async def qr_code(
    settings: Annotated[Settings, Depends(get_app_settings)],
    text: str | None = None,
):
    """Render ``text`` (or the configured default) as an inline QR image."""
    qr_settings = settings.qr
    try:
        data_uri = render_qr_data_uri(
            text or qr_settings.default_text,
            error=qr_settings.error_correction,
            scale=qr_settings.scale,
            border=qr_settings.border,
        )
    except RenderError as exc:
        logger.error("QR rendering failed: {message} {details}", message=exc.message, details=exc.details)
        return PlainTextResponse(RENDER_FAILURE_MESSAGE, status_code=500)
    return HTMLResponse(f'<img src="{data_uri}" />')
