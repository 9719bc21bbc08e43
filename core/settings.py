from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load .env file from project root
_env_path = Path(__file__).parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "default.yaml"


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(3000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    static_dir: str = "public"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> list[str]:
        if value is None:
            return ["*"]
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()] or ["*"]
        return value


class StorageSettings(BaseModel):
    bucket: str
    region: str = "us-east-1"
    prefix: str = ""
    timeout_seconds: float = Field(10.0, gt=0.0)
    key_random_suffix: bool = False
    # CDN or S3-compatible endpoint serving the objects; None means the S3 virtual-hosted URL
    public_base_url: str | None = None
    access_key_id_env: str = "AWS_ACCESS_KEY_ID"
    secret_access_key_env: str = "AWS_SECRET_ACCESS_KEY"

    @field_validator("bucket")
    @classmethod
    def _require_bucket(cls, value: str) -> str:
        value = (value or "").strip()
        if not value:
            raise ValueError("storage.bucket must not be empty")
        return value

    @property
    def access_key_id(self) -> str | None:
        return os.getenv(self.access_key_id_env) or None

    @property
    def secret_access_key(self) -> str | None:
        return os.getenv(self.secret_access_key_env) or None


class UploadSettings(BaseModel):
    field_name: str = "image"
    max_bytes: int = Field(50 * 1024 * 1024, gt=0)


class RealtimeSettings(BaseModel):
    event: str = "imagesUpdated"
    send_timeout_seconds: float = Field(5.0, gt=0.0)


class QRSettings(BaseModel):
    default_text: str = "Default text"
    error_correction: str = "h"
    scale: int = Field(4, ge=1, le=40)
    border: int = Field(4, ge=0)

    @field_validator("error_correction")
    @classmethod
    def _normalize_error(cls, value: str) -> str:
        value = (value or "").strip().lower()
        if value not in {"l", "m", "q", "h"}:
            raise ValueError("qr.error_correction must be one of L, M, Q, H")
        return value


class Settings(BaseModel):
    server: ServerSettings = Field(default_factory=ServerSettings)
    storage: StorageSettings
    upload: UploadSettings = Field(default_factory=UploadSettings)
    realtime: RealtimeSettings = Field(default_factory=RealtimeSettings)
    qr: QRSettings = Field(default_factory=QRSettings)

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from YAML configuration file.

        Args:
            path: Optional path to configuration file. If not provided, uses
                IMAGEBOARD_CONFIG environment variable or defaults to config/default.yaml.

        Returns:
            Settings instance with loaded configuration and environment overrides applied.

        Raises:
            FileNotFoundError: If configuration file does not exist.
            ValueError: If configuration is invalid.
        """
        config_path = path or Path(os.getenv("IMAGEBOARD_CONFIG", str(DEFAULT_CONFIG_PATH)))
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        with config_path.open("r", encoding="utf-8") as fp:
            payload = yaml.safe_load(fp) or {}
        _apply_env_overrides(payload)
        try:
            return cls(**payload)
        except Exception as exc:
            raise ValueError(f"Invalid configuration: {exc}") from exc


# (section, field) -> environment variable
ENV_OVERRIDES: dict[tuple[str, str], str] = {
    ("server", "port"): "SERVER_PORT",
    ("storage", "region"): "AWS_REGION",
    ("storage", "bucket"): "S3_BUCKET_NAME",
    ("storage", "prefix"): "S3_PREFIX",
}


def _apply_env_overrides(payload: dict[str, Any]) -> None:
    for (section, field), env_name in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value is None or not value.strip():
            continue
        target = payload.get(section)
        if not isinstance(target, dict):
            target = {}
            payload[section] = target
        target[field] = value.strip()


@lru_cache(maxsize=1)
def get_settings(path: str | None = None) -> Settings:
    return Settings.load(Path(path) if path else None)


__all__ = [
    "Settings",
    "ServerSettings",
    "StorageSettings",
    "UploadSettings",
    "RealtimeSettings",
    "QRSettings",
    "DEFAULT_CONFIG_PATH",
    "ENV_OVERRIDES",
    "get_settings",
]
