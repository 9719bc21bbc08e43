from __future__ import annotations

import pytest

from core.realtime.broadcaster import NotificationBroadcaster
from core.realtime.connections import ConnectionRegistry
from core.settings import Settings
from core.storage.gateway import ObjectStoreGateway
from core.storage.s3 import S3Storage
from tests.fakes import FakeS3Client

BUCKET = "bucket"
REGION = "us-east-2"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        storage={"bucket": BUCKET, "region": REGION, "timeout_seconds": 2.0},
        realtime={"send_timeout_seconds": 1.0},
        upload={"max_bytes": 1024},
    )


@pytest.fixture
def s3_client() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def storage(s3_client: FakeS3Client) -> S3Storage:
    return S3Storage(BUCKET, region=REGION, client=s3_client)


@pytest.fixture
def gateway(storage: S3Storage, settings: Settings) -> ObjectStoreGateway:
    return ObjectStoreGateway.from_settings(settings.storage, storage=storage)


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def broadcaster(registry: ConnectionRegistry) -> NotificationBroadcaster:
    return NotificationBroadcaster(registry, send_timeout=0.5)


@pytest.fixture
def app(settings: Settings, storage: S3Storage):
    from services.api.main import create_app

    return create_app(settings=settings, storage=storage)
