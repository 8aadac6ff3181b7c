"""API v1 router combining all endpoint routers."""

from fastapi import APIRouter

from app.api.v1 import politicians, sync

api_router = APIRouter()

api_router.include_router(
    politicians.router, prefix="/politicians", tags=["politicians"]
)
api_router.include_router(sync.router, prefix="/sync", tags=["sync"])
