"""Object storage abstraction (S3 or any S3-compatible store)."""

from __future__ import annotations

from typing import Protocol


class ObjectStorage(Protocol):
    def put_bytes(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str:  # returns the stored key
        ...

    def list_keys(self) -> list[str]:
        ...
