"""WebSocket channel pushing image listings to clients."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, WebSocket

from core.realtime.lifecycle import ConnectionManager
from services.api.dependencies import get_connection_manager


router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def images_channel(
    websocket: WebSocket,
    manager: Annotated[ConnectionManager, Depends(get_connection_manager)],
) -> None:
    """Send the current listing on connect, then every update until the client leaves.

    Messages look like ``{"event": "imagesUpdated", "data": [<public url>, ...]}``.
    """
    await manager.serve(websocket)
