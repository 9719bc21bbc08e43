"""Object key generation for uploaded files."""

from __future__ import annotations

import secrets
import time
from pathlib import PurePosixPath

DEFAULT_NAME = "upload"


def _basename(original_name: str) -> str:
    cleaned = (original_name or "").replace("\\", "/").strip()
    name = PurePosixPath(cleaned).name.strip() if cleaned else ""
    if name in {"", ".", ".."}:
        return DEFAULT_NAME
    return name


def generate_object_key(
    original_name: str,
    *,
    now_ms: int | None = None,
    random_suffix: bool = False,
) -> str:
    """Build ``<epoch millis>-<basename>`` for an upload.

    Two uploads of the same name within the same millisecond collide unless
    ``random_suffix`` adds eight hex characters between stamp and name.
    """
    stamp = int(time.time() * 1000) if now_ms is None else int(now_ms)
    name = _basename(original_name)
    if random_suffix:
        return f"{stamp}-{secrets.token_hex(4)}-{name}"
    return f"{stamp}-{name}"


__all__ = ["generate_object_key", "DEFAULT_NAME"]
