from __future__ import annotations

from pydantic import BaseModel


class UploadResponse(BaseModel):
    message: str
    location: str


class HealthResponse(BaseModel):
    status: str
    connections: int
