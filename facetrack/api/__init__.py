"""API v1 router initialization."""
from fastapi import APIRouter

from .admin import router as admin_router
from .tracks import router as tracks_router

# Create v1 router
router = APIRouter()

router.include_router(
    tracks_router,
    prefix="/tracks",
    tags=["tracks"]
)
router.include_router(
    admin_router,
    prefix="/admin",
    tags=["admin"]
)
