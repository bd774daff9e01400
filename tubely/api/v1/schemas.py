from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    status: str = Field(default="ok", description="Health status indicator.")
    storage_mode: str = Field(..., description="local | s3 | memory")
    public_base_url: str = Field(..., description="Prefix of every asset URL handed out.")
    time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class VideoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AssetReferenceModel(BaseModel):
    identifier: str = Field(..., json_schema_extra={"example": "q0Wm1Z0bVt8n2qkS3JcF1cG9yPp7uU2yZlKxB8v5a4E"})
    extension: str = Field(..., json_schema_extra={"example": ".mp4"})
    classification: str = Field(default="", description="landscape | portrait | other, empty for thumbnails")


class UploadResponse(BaseModel):
    url: str
    asset: AssetReferenceModel
    video: VideoResponse


class ErrorResponse(BaseModel):
    detail: str


__all__ = [
    "HealthResponse",
    "VideoResponse",
    "AssetReferenceModel",
    "UploadResponse",
    "ErrorResponse",
]
