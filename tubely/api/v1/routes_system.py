from __future__ import annotations

from fastapi import APIRouter, Request

from .schemas import HealthResponse


router = APIRouter(tags=["system"])


@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
async def health(request: Request) -> HealthResponse:
    locator = request.app.state.locator
    return HealthResponse(storage_mode=request.app.state.settings.storage_mode, public_base_url=locator.strategy.base_url)


__all__ = ["router"]
