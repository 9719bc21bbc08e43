from __future__ import annotations

import segno

from core.exceptions import RenderError


def render_qr_data_uri(text: str, *, error: str = "h", scale: int = 4, border: int = 4) -> str:
    """Encode ``text`` as a QR code and return it as a PNG data URI."""
    try:
        qr = segno.make_qr(text, error=error)
        return qr.png_data_uri(scale=scale, border=border)
    except ValueError as exc:  # segno.DataOverflowError is a ValueError
        raise RenderError("Failed to generate the QR code.", {"reason": str(exc)}) from exc


__all__ = ["render_qr_data_uri"]
