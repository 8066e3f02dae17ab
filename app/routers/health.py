from __future__ import annotations

from fastapi import APIRouter, Request

from app.schemas import HealthOut

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthOut)
async def health(request: Request):
    return HealthOut(token=request.app.state.token_cache.status())
