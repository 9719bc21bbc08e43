"""Accessors for the service objects wired onto ``app.state`` by ``create_app``."""

from __future__ import annotations

from fastapi import Request, WebSocket

from core.realtime.lifecycle import ConnectionManager
from core.settings import Settings
from core.storage.gateway import ObjectStoreGateway
from core.uploads import UploadHandler


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_gateway(request: Request) -> ObjectStoreGateway:
    return request.app.state.gateway


def get_upload_handler(request: Request) -> UploadHandler:
    return request.app.state.upload_handler


def get_connection_manager(websocket: WebSocket) -> ConnectionManager:
    return websocket.app.state.connection_manager
