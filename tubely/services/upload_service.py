from __future__ import annotations

import asyncio
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from sqlalchemy.ext.asyncio import AsyncSession

from tubely.assets.aspect_ratio import AspectRatioClassifier
from tubely.assets.errors import NotVideoOwner, UploadTooLarge, VideoNotFound
from tubely.assets.identifiers import generate_identifier
from tubely.assets.locator import AssetLocator, AssetReference
from tubely.assets.media_types import extension_for
from tubely.core.config import Settings
from tubely.core.logging import get_logger
from tubely.core.storage import AssetStore
from tubely.db.models import Video
from tubely.db.repository import VideoRepository

CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True, slots=True)
class UploadResult:
    reference: AssetReference
    url: str
    video: Video


class UploadService:
    """Stores uploaded thumbnails and videos and points the video record at them.

    A failed upload never leaves the record referencing a missing object:
    anything already written to the asset store is deleted and the session
    rolled back before the error propagates.
    """

    def __init__(
        self,
        settings: Settings,
        session: AsyncSession,
        store: AssetStore,
        locator: AssetLocator,
        classifier: AspectRatioClassifier,
    ):
        self.settings = settings
        self.videos = VideoRepository(session)
        self.store = store
        self.locator = locator
        self.classifier = classifier
        self.logger = get_logger(component="upload_service")

    async def upload_thumbnail(
        self,
        *,
        owner_id: str,
        video_id: str,
        stream: BinaryIO,
        media_type: str,
    ) -> UploadResult:
        extension = extension_for(media_type)
        data = await asyncio.to_thread(_read_limited, stream, self.settings.max_thumbnail_bytes)
        video = await self._owned_video(owner_id, video_id)

        reference = AssetReference(identifier=generate_identifier(), extension=extension)
        url = await self._store_and_link(video, reference, data, media_type, field="thumbnail_url")
        self.logger.info("thumbnail_uploaded", video_id=video_id, owner_id=owner_id, url=url, size_bytes=len(data))
        return UploadResult(reference=reference, url=url, video=video)

    async def upload_video(
        self,
        *,
        owner_id: str,
        video_id: str,
        stream: BinaryIO,
        media_type: str,
    ) -> UploadResult:
        extension = extension_for(media_type)
        video = await self._owned_video(owner_id, video_id)

        temp_path = await asyncio.to_thread(_spool_to_tempfile, stream, self.settings.max_video_bytes)
        try:
            orientation = await asyncio.to_thread(self.classifier.classify, temp_path)
            reference = AssetReference(
                identifier=generate_identifier(),
                extension=extension,
                classification=orientation.value,
            )
            with temp_path.open("rb") as handle:
                url = await self._store_and_link(video, reference, handle, media_type, field="video_url")
        finally:
            await asyncio.to_thread(_remove_quietly, temp_path)

        self.logger.info(
            "video_uploaded",
            video_id=video_id,
            owner_id=owner_id,
            url=url,
            orientation=reference.classification,
        )
        return UploadResult(reference=reference, url=url, video=video)

    async def _owned_video(self, owner_id: str, video_id: str) -> Video:
        video = await self.videos.get(video_id)
        if video is None:
            raise VideoNotFound(video_id)
        if video.user_id != owner_id:
            raise NotVideoOwner(video_id)
        return video

    async def _store_and_link(
        self,
        video: Video,
        reference: AssetReference,
        body: bytes | BinaryIO,
        media_type: str,
        *,
        field: str,
    ) -> str:
        key = self.locator.storage_key(reference)
        url = self.locator.public_url(reference)

        stored = False
        try:
            await asyncio.to_thread(self.store.put, key, body, media_type)
            stored = True
            setattr(video, field, url)
            await self.videos.save(video)
        except Exception:
            await self._roll_back(key, stored)
            raise
        # The record is committed from here on, so the stored object must stay.
        await self.videos.refresh(video)
        return url

    async def _roll_back(self, key: str, stored: bool) -> None:
        await self.videos.rollback()
        if not stored:
            return
        try:
            await asyncio.to_thread(self.store.delete, key)
        except Exception:
            self.logger.exception("upload_rollback_failed", key=key)
        else:
            self.logger.info("upload_rolled_back", key=key)


def _read_limited(stream: BinaryIO, limit: int) -> bytes:
    buffer = bytearray()
    while chunk := stream.read(CHUNK_SIZE):
        buffer.extend(chunk)
        if len(buffer) > limit:
            raise UploadTooLarge(limit)
    return bytes(buffer)


def _spool_to_tempfile(stream: BinaryIO, limit: int) -> Path:
    """Copy the upload into a named temporary file the probe can read."""
    handle = tempfile.NamedTemporaryFile(prefix="tubely-upload-", suffix=".tmp", delete=False)
    path = Path(handle.name)
    try:
        with handle:
            written = 0
            while chunk := stream.read(CHUNK_SIZE):
                written += len(chunk)
                if written > limit:
                    raise UploadTooLarge(limit)
                handle.write(chunk)
    except BaseException:
        _remove_quietly(path)
        raise
    return path


def _remove_quietly(path: Path) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


__all__ = ["UploadService", "UploadResult"]
