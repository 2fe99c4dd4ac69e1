"""Operator API endpoints."""
from typing import Any, Dict, Literal

from fastapi import APIRouter, Depends, HTTPException, Query

from facetrack.core.exceptions import (
    ExternalServiceError,
    ServiceNotInitializedError,
    StorageError,
    StoreUnavailableError,
)
from facetrack.core.logging import get_logger
from facetrack.infrastructure.dependencies import get_admin_service
from facetrack.services.admin import AdminService

logger = get_logger(__name__)
router = APIRouter()


@router.get(
    "/face-tracks",
    summary="Face track statistics",
    description="Database and storage statistics, the most recent mappings, or the stored audio files.",
)
async def face_tracks(
    action: Literal["stats", "list", "storage"] = Query("stats"),
    service: AdminService = Depends(get_admin_service)
) -> Dict[str, Any]:
    try:
        if action == "list":
            return await service.recent()
        if action == "storage":
            return await service.storage()
        return await service.stats()
    except StoreUnavailableError as e:
        logger.error("Admin query failed", action=action, error=str(e))
        raise HTTPException(status_code=503, detail="Database not available")
    except StorageError as e:
        logger.error("Admin query failed", action=action, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to get storage stats")


@router.post(
    "/reset-collection",
    summary="Recreate the recognizer collection",
)
async def reset_collection(
    service: AdminService = Depends(get_admin_service)
) -> Dict[str, Any]:
    try:
        return await service.reset_collection()
    except ServiceNotInitializedError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ExternalServiceError as e:
        logger.error("Failed to reset collection", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to reset collection")
