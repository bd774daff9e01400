from __future__ import annotations

import asyncio
import mimetypes
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, HTTPException, Request, Response, status

from tubely.api.v1 import get_api_router
from tubely.assets.aspect_ratio import FFprobeMediaProbe
from tubely.assets.errors import StorageUnavailable
from tubely.assets.locator import AssetLocator
from tubely.core.config import get_settings
from tubely.core.db import create_engine, create_session_factory
from tubely.core.logging import configure_logging, get_logger, level_from_name
from tubely.core.storage import AssetStore, get_asset_store

logger = get_logger(component="app")
assets_router = APIRouter(tags=["assets"])


@assets_router.get("/assets/{key:path}", summary="Serve a locally stored asset")
async def serve_asset(key: str, request: Request) -> Response:
    store: AssetStore = request.app.state.asset_store
    try:
        payload = await asyncio.to_thread(store.get, key)
    except FileNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="asset_not_found")
    except StorageUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="asset_not_found") from exc
    media_type = store.content_type(key) or mimetypes.guess_type(key)[0]
    return Response(content=payload, media_type=media_type or "application/octet-stream")


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(level=level_from_name(settings.log_level))

    locator = AssetLocator.from_settings(settings)
    if settings.storage_mode == "local":
        locator.ensure_storage_root()
    asset_store = get_asset_store(settings, locator)
    media_probe = FFprobeMediaProbe(settings.ffprobe_binary)

    engine = create_engine(settings)
    session_factory = create_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = settings
        app.state.locator = locator
        app.state.asset_store = asset_store
        app.state.media_probe = media_probe
        app.state.engine = engine
        app.state.session_factory = session_factory
        logger.info("app_started", storage_mode=settings.storage_mode, assets_root=str(locator.assets_root))
        try:
            yield
        finally:
            await engine.dispose()

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        lifespan=lifespan,
        openapi_url="/openapi.json",
        docs_url="/docs",
    )

    app.include_router(get_api_router())
    if settings.storage_mode != "s3":
        app.include_router(assets_router)
    return app


__all__ = ["create_app", "serve_asset"]
