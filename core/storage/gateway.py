"""Gateway between the service and the object store.

Every store call runs in a worker thread under a timeout. Failures come back
as ``ListFailure`` / ``StoreFailure`` values and never propagate as
exceptions; each caller decides its own fallback.
"""

from __future__ import annotations

import asyncio
import itertools
from urllib.parse import quote

from loguru import logger

from core.settings import StorageSettings
from core.storage import ObjectStorage
from core.storage.keys import generate_object_key
from core.storage.models import (
    ListFailure,
    ListResult,
    ObjectEntry,
    ObjectListing,
    StoreFailure,
    StoreResult,
)
from core.storage.s3 import S3Storage


def s3_public_url(bucket: str, region: str, key: str) -> str:
    return f"https://{bucket}.s3.{region}.amazonaws.com/{quote(key, safe='/')}"


class ObjectStoreGateway:
    def __init__(
        self,
        storage: ObjectStorage,
        *,
        bucket: str,
        region: str,
        timeout_seconds: float = 10.0,
        random_suffix: bool = False,
        public_base_url: str | None = None,
    ) -> None:
        self.storage = storage
        self.bucket = bucket
        self.region = region
        self.timeout_seconds = timeout_seconds
        self.random_suffix = random_suffix
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None
        self._revisions = itertools.count()

    @classmethod
    def from_settings(
        cls, settings: StorageSettings, storage: ObjectStorage | None = None
    ) -> "ObjectStoreGateway":
        return cls(
            storage or S3Storage.from_settings(settings),
            bucket=settings.bucket,
            region=settings.region,
            timeout_seconds=settings.timeout_seconds,
            random_suffix=settings.key_random_suffix,
            public_base_url=settings.public_base_url,
        )

    def public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{quote(key, safe='/')}"
        return s3_public_url(self.bucket, self.region, key)

    async def list_objects(self) -> ListResult:
        revision = next(self._revisions)
        try:
            keys = await asyncio.wait_for(
                asyncio.to_thread(self.storage.list_keys),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            logger.warning(
                "Listing bucket {bucket} timed out after {timeout}s",
                bucket=self.bucket,
                timeout=self.timeout_seconds,
            )
            return ListFailure(reason=f"listing timed out after {self.timeout_seconds}s", error=exc)
        except Exception as exc:
            logger.opt(exception=exc).warning("Listing bucket {bucket} failed", bucket=self.bucket)
            return ListFailure(reason=str(exc) or type(exc).__name__, error=exc)

        entries = tuple(ObjectEntry(key=key, public_url=self.public_url(key)) for key in keys)
        logger.debug("Listed {count} objects (revision {revision})", count=len(entries), revision=revision)
        return ObjectListing(entries=entries, revision=revision)

    async def store_object(
        self,
        data: bytes,
        original_name: str,
        *,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> StoreResult:
        key = generate_object_key(original_name, random_suffix=self.random_suffix)
        try:
            stored_key = await asyncio.wait_for(
                asyncio.to_thread(
                    self.storage.put_bytes,
                    key,
                    data,
                    content_type=content_type,
                    metadata=metadata,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            logger.warning("Upload of {key} timed out after {timeout}s", key=key, timeout=self.timeout_seconds)
            return StoreFailure(reason=f"upload timed out after {self.timeout_seconds}s", key=key, error=exc)
        except Exception as exc:
            logger.opt(exception=exc).warning("Upload of {key} failed", key=key)
            return StoreFailure(reason=str(exc) or type(exc).__name__, key=key, error=exc)

        logger.info("Stored {key} ({size} bytes) in {bucket}", key=stored_key, size=len(data), bucket=self.bucket)
        return ObjectEntry(key=stored_key, public_url=self.public_url(stored_key))


__all__ = ["ObjectStoreGateway", "s3_public_url"]
