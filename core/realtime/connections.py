from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator
from uuid import uuid4

from core.storage.models import ObjectListing


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


@dataclass(eq=False)
class Connection:
    """A real-time session with one client.

    ``websocket`` only needs an awaitable ``send_json``. ``delivered_revision``
    is the newest listing revision this client has received; ``pending`` holds
    the newest broadcast that arrived while the snapshot was still in flight.
    """

    websocket: Any
    id: str = field(default_factory=lambda: uuid4().hex)
    state: ConnectionState = ConnectionState.CONNECTING
    delivered_revision: int = -1
    pending: ObjectListing | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def is_open(self) -> bool:
        return self.state is not ConnectionState.DISCONNECTED

    def park(self, listing: ObjectListing) -> None:
        if self.pending is None or listing.revision > self.pending.revision:
            self.pending = listing

    def take_pending(self) -> ObjectListing | None:
        listing, self.pending = self.pending, None
        return listing

    def mark_connected(self) -> None:
        if self.state is ConnectionState.CONNECTING:
            self.state = ConnectionState.CONNECTED

    def mark_disconnected(self) -> None:
        self.state = ConnectionState.DISCONNECTED
        self.pending = None


class ConnectionRegistry:
    """Addressable set of live connections, keyed by connection id."""

    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}

    def add(self, connection: Connection) -> None:
        self._connections[connection.id] = connection

    def remove(self, connection_id: str) -> Connection | None:
        return self._connections.pop(connection_id, None)

    def connections(self) -> list[Connection]:
        # Copy so callers may await while connections come and go
        return list(self._connections.values())

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    def __iter__(self) -> Iterator[Connection]:
        return iter(self.connections())


__all__ = ["Connection", "ConnectionRegistry", "ConnectionState"]
