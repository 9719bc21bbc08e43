from __future__ import annotations

import base64

import pytest
from httpx import ASGITransport, AsyncClient

from core.exceptions import RenderError
from core.qr import render_qr_data_uri

PNG_PREFIX = "data:image/png;base64,"


def test_render_returns_png_data_uri() -> None:
    uri = render_qr_data_uri("hello")

    assert uri.startswith(PNG_PREFIX)
    assert base64.b64decode(uri[len(PNG_PREFIX):]).startswith(b"\x89PNG")


def test_render_overflow_raises_render_error() -> None:
    with pytest.raises(RenderError):
        render_qr_data_uri("x" * 5000)


@pytest.mark.asyncio()
async def test_qr_endpoint_renders_img_tag(app) -> None:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/api/qr", params={"text": "https://example.com"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert response.text.startswith(f'<img src="{PNG_PREFIX}')
    assert response.text.endswith('" />')


@pytest.mark.asyncio()
async def test_qr_endpoint_falls_back_to_default_text(app) -> None:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        default = await client.get("/api/qr")
        explicit = await client.get("/api/qr", params={"text": "Default text"})

    assert default.status_code == 200
    assert default.text == explicit.text


@pytest.mark.asyncio()
async def test_qr_endpoint_overflow_is_plain_text_500(app) -> None:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/api/qr", params={"text": "x" * 5000})

    assert response.status_code == 500
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == "Failed to generate the QR code."
