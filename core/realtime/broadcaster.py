"""Push object listings to connected real-time clients."""

from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger

from core.realtime.connections import Connection, ConnectionRegistry, ConnectionState
from core.storage.models import ObjectListing

# Close code sent to a client whose send failed or timed out
INTERNAL_ERROR = 1011


class NotificationBroadcaster:
    """Sends listings to one or all connections in a registry.

    The broadcaster only reads the registry. A failed or timed-out send marks
    the connection disconnected and closes its socket; removing it is left to
    the lifecycle manager once the receive loop ends.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        *,
        event: str = "imagesUpdated",
        send_timeout: float = 5.0,
    ) -> None:
        self._registry = registry
        self.event = event
        self.send_timeout = send_timeout

    def message(self, listing: ObjectListing) -> dict[str, Any]:
        return {"event": self.event, "data": listing.urls()}

    async def send_to(self, connection: Connection, listing: ObjectListing, *, force: bool = False) -> bool:
        """Deliver ``listing`` to a single connection.

        Unless ``force`` is set, a listing that is not newer than what the
        connection already received is dropped.

        Returns:
            True if the message was written to the socket.
        """
        async with connection.lock:
            if not connection.is_open:
                return False
            if not force and listing.revision <= connection.delivered_revision:
                logger.debug(
                    "Skipping stale listing r{revision} for {conn} (has r{delivered})",
                    revision=listing.revision,
                    conn=connection.id,
                    delivered=connection.delivered_revision,
                )
                return False
            try:
                await asyncio.wait_for(
                    connection.websocket.send_json(self.message(listing)),
                    timeout=self.send_timeout,
                )
            except Exception as exc:
                logger.warning("Send to connection {conn} failed: {error!r}", conn=connection.id, error=exc)
                connection.mark_disconnected()
                await self._close(connection)
                return False
            connection.delivered_revision = max(connection.delivered_revision, listing.revision)
            return True

    async def broadcast_all(self, listing: ObjectListing) -> int:
        """Send ``listing`` to every connected client.

        Connections still waiting for their snapshot get the listing parked
        instead and receive it from ``release``.

        Returns:
            Number of clients the message was delivered to.
        """
        targets: list[Connection] = []
        for connection in self._registry.connections():
            if connection.state is ConnectionState.CONNECTING:
                connection.park(listing)
            elif connection.state is ConnectionState.CONNECTED:
                targets.append(connection)

        if not targets:
            logger.debug("Broadcast r{revision}: no connected clients", revision=listing.revision)
            return 0

        results = await asyncio.gather(*(self.send_to(connection, listing) for connection in targets))
        delivered = sum(1 for ok in results if ok)
        logger.info(
            "Broadcast {event} r{revision} ({count} objects) to {delivered}/{total} clients",
            event=self.event,
            revision=listing.revision,
            count=len(listing),
            delivered=delivered,
            total=len(targets),
        )
        return delivered

    async def release(self, connection: Connection) -> bool:
        """Deliver the listing parked while the connection's snapshot was in flight."""
        pending = connection.take_pending()
        if pending is None:
            return False
        return await self.send_to(connection, pending)

    async def _close(self, connection: Connection) -> None:
        # Ends the connection's receive loop so the lifecycle manager cleans it up
        try:
            await connection.websocket.close(code=INTERNAL_ERROR)
        except Exception as exc:
            logger.debug("Closing {conn} failed: {error!r}", conn=connection.id, error=exc)


__all__ = ["INTERNAL_ERROR", "NotificationBroadcaster"]
