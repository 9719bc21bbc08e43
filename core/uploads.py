"""Single-file upload handling and the post-upload refresh broadcast."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from loguru import logger

from core.exceptions import (
    EmptyUploadError,
    ImageBoardError,
    NoFileProvidedError,
    StorageError,
    UploadTooLargeError,
)
from core.realtime.broadcaster import NotificationBroadcaster
from core.storage.gateway import ObjectStoreGateway
from core.storage.models import ListFailure, ObjectEntry, StoreFailure


class UploadState(str, Enum):
    IDLE = "idle"
    RECEIVING = "receiving"
    STORED = "stored"
    REJECTED = "rejected"

    def advance(self, target: "UploadState") -> "UploadState":
        if target not in _TRANSITIONS[self]:
            raise ValueError(f"Illegal upload transition {self.value} -> {target.value}")
        return target


_TRANSITIONS: dict[UploadState, frozenset[UploadState]] = {
    UploadState.IDLE: frozenset({UploadState.RECEIVING}),
    UploadState.RECEIVING: frozenset({UploadState.STORED, UploadState.REJECTED}),
    UploadState.STORED: frozenset(),
    UploadState.REJECTED: frozenset(),
}


@dataclass(frozen=True)
class UploadedFile:
    field_name: str
    filename: str
    data: bytes
    content_type: str | None = None


@dataclass(frozen=True)
class UploadSuccess:
    entry: ObjectEntry
    state: UploadState = UploadState.STORED

    @property
    def location(self) -> str:
        return self.entry.public_url


@dataclass(frozen=True)
class UploadFailure:
    error: ImageBoardError
    state: UploadState = UploadState.REJECTED

    @property
    def reason(self) -> str:
        return self.error.message


UploadResult = Union[UploadSuccess, UploadFailure]


class UploadHandler:
    def __init__(
        self,
        gateway: ObjectStoreGateway,
        broadcaster: NotificationBroadcaster,
        *,
        field_name: str = "image",
        max_bytes: int | None = None,
    ) -> None:
        self.gateway = gateway
        self.broadcaster = broadcaster
        self.field_name = field_name
        self.max_bytes = max_bytes

    async def handle(self, upload: UploadedFile | None) -> UploadResult:
        """Store one uploaded file; never raises for rejected input.

        Every call walks ``IDLE -> RECEIVING`` and ends in ``STORED`` or
        ``REJECTED``, which the returned result carries.
        """
        state = UploadState.IDLE.advance(UploadState.RECEIVING)
        if upload is None:
            return self._reject(state, NoFileProvidedError("No file was uploaded.", {"field": self.field_name}))

        if not upload.data:
            return self._reject(state, EmptyUploadError("The uploaded file is empty.", {"filename": upload.filename}))
        if self.max_bytes is not None and len(upload.data) > self.max_bytes:
            return self._reject(
                state,
                UploadTooLargeError(
                    "The uploaded file is too large.",
                    {"filename": upload.filename, "max_bytes": str(self.max_bytes)},
                )
            )

        result = await self.gateway.store_object(
            upload.data,
            upload.filename,
            content_type=upload.content_type,
            metadata={"fieldname": upload.field_name},
        )
        if isinstance(result, StoreFailure):
            return self._reject(
                state,
                StorageError("The file could not be stored.", {"reason": result.reason, "key": result.key or ""}),
            )
        return UploadSuccess(entry=result, state=state.advance(UploadState.STORED))

    async def refresh_and_broadcast(self) -> int:
        """List the store again and push it to every client.

        Runs after the uploader already has its response; a failed listing is
        logged and this update is skipped.
        """
        listing = await self.gateway.list_objects()
        if isinstance(listing, ListFailure):
            logger.warning("Post-upload refresh failed ({reason}); skipping broadcast", reason=listing.reason)
            return 0
        return await self.broadcaster.broadcast_all(listing)

    def _reject(self, state: UploadState, error: ImageBoardError) -> UploadFailure:
        logger.info("Upload rejected: {type} - {message}", type=type(error).__name__, message=error.message)
        return UploadFailure(error=error, state=state.advance(UploadState.REJECTED))


__all__ = [
    "UploadHandler",
    "UploadState",
    "UploadedFile",
    "UploadSuccess",
    "UploadFailure",
    "UploadResult",
]
