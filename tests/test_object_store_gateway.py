from __future__ import annotations

import re

import pytest

from core.storage.gateway import ObjectStoreGateway, s3_public_url
from core.storage.keys import generate_object_key
from core.storage.models import ListFailure, ObjectEntry, ObjectListing, StoreFailure
from core.storage.s3 import S3Storage
from tests.fakes import FakeS3Client


@pytest.mark.asyncio()
async def test_listing_maps_keys_to_public_urls(gateway, s3_client) -> None:
    s3_client.objects.update({"a.png": b"", "b.png": b""})

    listing = await gateway.list_objects()

    assert isinstance(listing, ObjectListing)
    assert listing.urls() == [
        "https://bucket.s3.us-east-2.amazonaws.com/a.png",
        "https://bucket.s3.us-east-2.amazonaws.com/b.png",
    ]
    assert listing.keys() == ["a.png", "b.png"]


@pytest.mark.asyncio()
async def test_listing_twice_on_unchanged_store_is_identical(gateway, s3_client) -> None:
    s3_client.objects.update({"one.jpg": b"", "two.jpg": b"", "three.jpg": b""})

    first = await gateway.list_objects()
    second = await gateway.list_objects()

    assert first == second
    assert len(first) == 3
    assert second.revision > first.revision


@pytest.mark.asyncio()
async def test_empty_store_gives_empty_listing(gateway) -> None:
    listing = await gateway.list_objects()

    assert listing == ObjectListing()
    assert listing.urls() == []


@pytest.mark.asyncio()
async def test_store_error_comes_back_as_list_failure(gateway, s3_client) -> None:
    s3_client.fail_list = True

    result = await gateway.list_objects()

    assert isinstance(result, ListFailure)
    assert "Access Denied" in result.reason


@pytest.mark.asyncio()
async def test_slow_store_times_out_as_list_failure(storage, s3_client) -> None:
    s3_client.list_delay = 0.3
    gateway = ObjectStoreGateway(storage, bucket="bucket", region="us-east-2", timeout_seconds=0.05)

    result = await gateway.list_objects()

    assert isinstance(result, ListFailure)
    assert "timed out" in result.reason


@pytest.mark.asyncio()
async def test_stored_object_shows_up_in_next_listing(gateway, s3_client) -> None:
    entry = await gateway.store_object(b"\x89PNG", "cat.png", content_type="image/png", metadata={"fieldname": "image"})

    assert isinstance(entry, ObjectEntry)
    assert re.fullmatch(r"\d{13}-cat\.png", entry.key)
    assert entry.public_url == f"https://bucket.s3.us-east-2.amazonaws.com/{entry.key}"

    put = s3_client.puts[-1]
    assert put["Bucket"] == "bucket"
    assert put["ContentType"] == "image/png"
    assert put["Metadata"] == {"fieldname": "image"}

    listing = await gateway.list_objects()
    assert entry.key in listing.keys()


@pytest.mark.asyncio()
async def test_failed_write_comes_back_as_store_failure(gateway, s3_client) -> None:
    s3_client.fail_put = True

    result = await gateway.store_object(b"data", "cat.png")

    assert isinstance(result, StoreFailure)
    assert result.key is not None and result.key.endswith("-cat.png")
    assert s3_client.objects == {}


@pytest.mark.asyncio()
async def test_prefix_is_part_of_key_and_url() -> None:
    client = FakeS3Client(["other/x.png"])
    storage = S3Storage("bucket", prefix="/uploads/", region="eu-west-1", client=client)
    gateway = ObjectStoreGateway(storage, bucket="bucket", region="eu-west-1")

    entry = await gateway.store_object(b"data", "dog.png")
    listing = await gateway.list_objects()

    assert entry.key.startswith("uploads/")
    assert listing.keys() == [entry.key]
    assert listing.urls() == [f"https://bucket.s3.eu-west-1.amazonaws.com/{entry.key}"]


def test_public_url_quotes_key_but_keeps_slashes(gateway) -> None:
    assert gateway.public_url("dir/my photo.png") == "https://bucket.s3.us-east-2.amazonaws.com/dir/my%20photo.png"
    assert s3_public_url("b", "us-west-2", "k.png") == "https://b.s3.us-west-2.amazonaws.com/k.png"


def test_public_base_url_overrides_s3_host(storage) -> None:
    gateway = ObjectStoreGateway(
        storage,
        bucket="bucket",
        region="us-east-2",
        public_base_url="https://cdn.example.com/images/",
    )

    assert gateway.public_url("a.png") == "https://cdn.example.com/images/a.png"


def test_key_is_millis_dash_basename() -> None:
    assert generate_object_key("cat.png", now_ms=1700000000123) == "1700000000123-cat.png"
    assert generate_object_key("C:\\Users\\me\\cat.png", now_ms=1) == "1-cat.png"
    assert generate_object_key("../../etc/passwd", now_ms=1) == "1-passwd"
    assert generate_object_key("", now_ms=1) == "1-upload"


def test_random_suffix_separates_same_name_same_millisecond() -> None:
    first = generate_object_key("cat.png", now_ms=5, random_suffix=True)
    second = generate_object_key("cat.png", now_ms=5, random_suffix=True)

    assert re.fullmatch(r"5-[0-9a-f]{8}-cat\.png", first)
    assert first != second
