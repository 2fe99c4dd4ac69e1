"""Operator statistics and maintenance."""
from typing import Any, Dict, Optional

from facetrack.core.config import settings
from facetrack.core.exceptions import ServiceNotInitializedError, StorageError, StoreUnavailableError
from facetrack.core.logging import get_logger
from facetrack.domain.interfaces.recognition.face_recognizer import CloudFaceRecognizer
from facetrack.domain.interfaces.storage.artifact_store import ArtifactStore
from facetrack.domain.interfaces.storage.record_store import FaceTrackStore

logger = get_logger(__name__)

RECENT_LIMIT = 50


class AdminService:
    """Reports on the record store and the artifact store, and resets the recognizer.

    Each report degrades per source: an unreachable store is reported as
    unavailable instead of failing the whole report.
    """

    def __init__(
        self,
        store: FaceTrackStore,
        artifact_store: ArtifactStore,
        recognizer: Optional[CloudFaceRecognizer] = None,
        audio_prefix: Optional[str] = None,
    ) -> None:
        self.store = store
        self.artifact_store = artifact_store
        self.recognizer = recognizer
        prefix = settings.GENERATED_AUDIO_PREFIX if audio_prefix is None else audio_prefix
        self.audio_prefix = f"{prefix.strip('/')}/" if prefix.strip("/") else ""

    async def stats(self) -> Dict[str, Any]:
        """Mapping and generation totals alongside the stored file count."""
        database: Dict[str, Any] = {"available": True}
        try:
            records = await self.store.list_all()
            total = sum(r.generated_count for r in records)
            database.update(
                total_mappings=len(records),
                total_generations=total,
                average_generations_per_face=round(total / len(records), 2) if records else 0,
                with_email=sum(1 for r in records if r.user_email),
            )
        except StoreUnavailableError as e:
            logger.warning("Record store unavailable for stats", error=str(e))
            database.update(available=False, error=str(e))

        storage: Dict[str, Any] = {"available": True}
        try:
            objects = await self.artifact_store.list_objects(self.audio_prefix)
            storage["total_files"] = len(objects)
        except StorageError as e:
            logger.warning("Artifact store unavailable for stats", error=str(e))
            storage.update(available=False, error=str(e))

        if database["available"] and storage["available"]:
            consistency = (
                f"{database['total_mappings']} DB mappings vs {storage['total_files']} storage files"
            )
        else:
            consistency = "Cannot compare - one source unavailable"

        return {"database": database, "storage": storage, "consistency": consistency}

    async def recent(self, limit: int = RECENT_LIMIT) -> Dict[str, Any]:
        """Most recently accessed mappings.

        Raises:
            StoreUnavailableError: If the store cannot be reached
        """
        records = await self.store.list_recent(limit)
        return {
            "total": len(records),
            "mappings": [
                {
                    "track_id": r.track_id,
                    "generated_count": r.generated_count,
                    "created_at": r.created_at.isoformat(),
                    "last_accessed": r.last_accessed.isoformat(),
                    "audio_url": r.audio_url,
                    "has_email": bool(r.user_email),
                }
                for r in records
            ],
        }

    async def storage(self) -> Dict[str, Any]:
        """Stored audio files, newest first.

        Raises:
            StorageError: If the artifact store cannot be listed
        """
        objects = await self.artifact_store.list_objects(self.audio_prefix)
        files = []
        for obj in objects:
            key = obj["key"]
            name = key.rsplit("/", 1)[-1]
            last_modified = obj.get("last_modified")
            files.append({
                "name": name,
                "track_id": name[:-4] if name.endswith(".mp3") else name,
                "size": obj.get("size", 0),
                "last_modified": last_modified.isoformat() if last_modified else None,
                "public_url": self.artifact_store.public_url(key),
            })
        files.sort(key=lambda f: f["last_modified"] or "", reverse=True)
        return {
            "total_files": len(files),
            "total_size": sum(f["size"] for f in files),
            "files": files,
        }

    async def reset_collection(self) -> Dict[str, Any]:
        """Delete and recreate the recognizer collection.

        Raises:
            ServiceNotInitializedError: If no cloud recognizer is configured
            ExternalServiceError: If the recognizer call fails
        """
        if self.recognizer is None:
            raise ServiceNotInitializedError("Cloud face recognizer is not configured")
        await self.recognizer.reset_collection()
        logger.info("Recognizer collection reset", collection_id=settings.REKOGNITION_COLLECTION_ID)
        return {"success": True, "collection_id": settings.REKOGNITION_COLLECTION_ID}
