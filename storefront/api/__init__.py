"""API routers mounted under ``/api``."""

from fastapi import APIRouter

from .auth import router as auth_router
from .collections import router as collections_router
from .logs import router as logs_router
from .media import folder_router as media_folder_router
from .media import router as media_router
from .products import router as products_router

api_router = APIRouter(prefix="/api")
api_router.include_router(auth_router)
api_router.include_router(products_router)
api_router.include_router(collections_router)
api_router.include_router(media_router)
api_router.include_router(media_folder_router)
api_router.include_router(logs_router)

__all__ = ["api_router"]
