from __future__ import annotations

from typing import Any, Optional

import boto3
from botocore.config import Config

from core.settings import StorageSettings


class S3Storage:
    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        region: Optional[str] = None,
        *,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        client: Any = None,
    ) -> None:
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        if client is None:
            session = boto3.session.Session(
                region_name=region,
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
            )
            client = session.client("s3", config=Config(retries={"max_attempts": 3, "mode": "standard"}))
        self.client = client

    @classmethod
    def from_settings(cls, settings: StorageSettings) -> "S3Storage":
        return cls(
            settings.bucket,
            prefix=settings.prefix,
            region=settings.region,
            access_key_id=settings.access_key_id,
            secret_access_key=settings.secret_access_key,
        )

    def _key(self, key: str) -> str:
        return f"{self.prefix}/{key}" if self.prefix else key

    def put_bytes(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str:
        s3_key = self._key(key)
        kwargs: dict[str, Any] = {"Bucket": self.bucket, "Key": s3_key, "Body": data}
        if content_type:
            kwargs["ContentType"] = content_type
        if metadata:
            # S3 metadata keys and values must be strings
            kwargs["Metadata"] = {str(k): str(v) for k, v in metadata.items()}
        self.client.put_object(**kwargs)
        return s3_key

    def list_keys(self) -> list[str]:
        kwargs: dict[str, Any] = {"Bucket": self.bucket}
        if self.prefix:
            kwargs["Prefix"] = f"{self.prefix}/"
        resp = self.client.list_objects_v2(**kwargs)
        # An empty bucket has no "Contents" entry at all
        return [item["Key"] for item in resp.get("Contents") or []]


__all__ = ["S3Storage"]
