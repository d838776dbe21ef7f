"""APIRouter registration for the media records service."""

from __future__ import annotations

from fastapi import APIRouter

from media_api.routes.media import router as media_router

api_router = APIRouter()
api_router.include_router(media_router, tags=["Media"])

__all__ = ["api_router"]
