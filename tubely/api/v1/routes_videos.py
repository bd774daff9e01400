from __future__ import annotations

import uuid

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from tubely.api import deps
from tubely.assets.errors import (
    AssetError,
    MalformedMediaType,
    NotVideoOwner,
    ProbeError,
    UploadError,
    UploadTooLarge,
    VideoNotFound,
)
from tubely.core.logging import get_logger
from tubely.services.upload_service import UploadResult

from . import schemas


router = APIRouter(prefix="/videos", tags=["videos"])
logger = get_logger(component="routes_videos")

_ERROR_RESPONSES = {
    code: {"model": schemas.ErrorResponse} for code in (400, 401, 403, 404, 413, 422, 500)
}


def _parse_video_id(video_id: str) -> str:
    try:
        return str(uuid.UUID(video_id))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid_video_id") from exc


def _require_media_type(upload: UploadFile) -> str:
    if not upload.content_type:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="missing_content_type")
    return upload.content_type


def _http_error(exc: AssetError | UploadError) -> HTTPException:
    if isinstance(exc, MalformedMediaType):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="malformed_media_type")
    if isinstance(exc, VideoNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="video_not_found")
    if isinstance(exc, NotVideoOwner):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="video_not_owned")
    if isinstance(exc, UploadTooLarge):
        return HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="upload_too_large")
    if isinstance(exc, ProbeError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"probe_failed: {exc}")
    logger.error("upload_failed", error=str(exc), error_type=type(exc).__name__)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="storage_unavailable")


def _response(result: UploadResult) -> schemas.UploadResponse:
    return schemas.UploadResponse(
        url=result.url,
        asset=schemas.AssetReferenceModel(
            identifier=result.reference.identifier,
            extension=result.reference.extension,
            classification=result.reference.classification,
        ),
        video=schemas.VideoResponse.model_validate(result.video),
    )


@router.post("/{video_id}/thumbnail", response_model=schemas.UploadResponse, responses=_ERROR_RESPONSES)
async def upload_thumbnail(
    video_id: str,
    service: deps.UploadServiceDependency,
    context: deps.AuthDependency,
    thumbnail: UploadFile = File(...),
) -> schemas.UploadResponse:
    video_id = _parse_video_id(video_id)
    try:
        media_type = _require_media_type(thumbnail)
        result = await service.upload_thumbnail(
            owner_id=context.user_id,
            video_id=video_id,
            stream=thumbnail.file,
            media_type=media_type,
        )
    except (AssetError, UploadError) as exc:
        raise _http_error(exc) from exc
    finally:
        await thumbnail.close()
    return _response(result)


@router.post("/{video_id}/video", response_model=schemas.UploadResponse, responses=_ERROR_RESPONSES)
async def upload_video(
    video_id: str,
    service: deps.UploadServiceDependency,
    context: deps.AuthDependency,
    video: UploadFile = File(...),
) -> schemas.UploadResponse:
    video_id = _parse_video_id(video_id)
    try:
        media_type = _require_media_type(video)
        result = await service.upload_video(
            owner_id=context.user_id,
            video_id=video_id,
            stream=video.file,
            media_type=media_type,
        )
    except (AssetError, UploadError) as exc:
        raise _http_error(exc) from exc
    finally:
        await video.close()
    return _response(result)


__all__ = ["router"]
