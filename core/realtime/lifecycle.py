"""Connection lifecycle: accept, snapshot, drain, disconnect."""

from __future__ import annotations

from typing import Any

from loguru import logger

from core.realtime.broadcaster import NotificationBroadcaster
from core.realtime.connections import Connection, ConnectionRegistry, ConnectionState
from core.storage.gateway import ObjectStoreGateway
from core.storage.models import ListFailure, ObjectListing

GOING_AWAY = 1001


class ConnectionManager:
    """Owns the connection registry.

    Connections are added on ``open`` and removed on ``disconnect``; nothing
    else mutates the registry.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        gateway: ObjectStoreGateway,
        broadcaster: NotificationBroadcaster,
    ) -> None:
        self._registry = registry
        self._gateway = gateway
        self._broadcaster = broadcaster

    @property
    def connection_count(self) -> int:
        return len(self._registry)

    async def open(self, websocket: Any) -> Connection:
        await websocket.accept()
        connection = Connection(websocket=websocket)
        self._registry.add(connection)
        logger.info(
            "Client {conn} connected ({total} open)",
            conn=connection.id,
            total=len(self._registry),
        )
        return connection

    async def send_snapshot(self, connection: Connection) -> bool:
        listing = await self._gateway.list_objects()
        if isinstance(listing, ListFailure):
            logger.warning(
                "Snapshot listing for {conn} failed ({reason}); sending empty listing",
                conn=connection.id,
                reason=listing.reason,
            )
            listing = ObjectListing()
        sent = await self._broadcaster.send_to(connection, listing, force=True)
        connection.mark_connected()
        await self._broadcaster.release(connection)
        return sent

    async def disconnect(self, connection: Connection) -> None:
        removed = self._registry.remove(connection.id)
        connection.mark_disconnected()
        if removed is not None:
            logger.info(
                "Client {conn} disconnected ({total} open)",
                conn=connection.id,
                total=len(self._registry),
            )

    async def serve(self, websocket: Any) -> None:
        connection = await self.open(websocket)
        try:
            await self.send_snapshot(connection)
            while connection.state is not ConnectionState.DISCONNECTED:
                message = await websocket.receive()
                if message.get("type") == "websocket.disconnect":
                    break
                # Clients have nothing to say on this channel
                logger.debug("Ignoring message from {conn}", conn=connection.id)
        finally:
            await self.disconnect(connection)

    async def close_all(self) -> None:
        for connection in self._registry.connections():
            try:
                await connection.websocket.close(code=GOING_AWAY)
            except Exception as exc:
                logger.debug("Closing {conn} failed: {error!r}", conn=connection.id, error=exc)
            await self.disconnect(connection)


__all__ = ["ConnectionManager"]
