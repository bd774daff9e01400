from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tubely.assets.aspect_ratio import AspectRatioClassifier, MediaProbe
from tubely.assets.locator import AssetLocator
from tubely.core.auth import AuthContext, get_auth_context
from tubely.core.config import Settings, get_settings
from tubely.core.storage import AssetStore
from tubely.services.upload_service import UploadService


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    session_factory = request.app.state.session_factory
    if not isinstance(session_factory, async_sessionmaker):
        raise RuntimeError("session_factory_not_configured")
    async with session_factory() as session:
        yield session


def get_asset_store(request: Request) -> AssetStore:
    store: AssetStore = request.app.state.asset_store
    return store


def get_locator(request: Request) -> AssetLocator:
    locator: AssetLocator = request.app.state.locator
    return locator


def get_media_probe(request: Request) -> MediaProbe:
    probe: MediaProbe = request.app.state.media_probe
    return probe


def get_app_settings() -> Settings:
    return get_settings()


async def get_upload_service(
    session: AsyncSession = Depends(get_session),
    store: AssetStore = Depends(get_asset_store),
    locator: AssetLocator = Depends(get_locator),
    probe: MediaProbe = Depends(get_media_probe),
    settings: Settings = Depends(get_app_settings),
) -> AsyncIterator[UploadService]:
    yield UploadService(settings, session, store, locator, AspectRatioClassifier(probe))


UploadServiceDependency = Annotated[UploadService, Depends(get_upload_service)]
AuthDependency = Annotated[AuthContext, Depends(get_auth_context)]


__all__ = [
    "get_session",
    "get_asset_store",
    "get_locator",
    "get_media_probe",
    "get_app_settings",
    "get_upload_service",
    "UploadServiceDependency",
    "AuthDependency",
]
