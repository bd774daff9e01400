from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from .models import Video


class VideoRepository:
    """Thin access to the ``videos`` table; the session owns the transaction."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, video_id: str) -> Video | None:
        return await self.session.get(Video, video_id)

    async def save(self, video: Video) -> Video:
        self.session.add(video)
        await self.session.commit()
        return video

    async def refresh(self, video: Video) -> Video:
        await self.session.refresh(video)
        return video

    async def rollback(self) -> None:
        await self.session.rollback()


__all__ = ["VideoRepository"]
