"""SQL-backed record store for face track mappings."""
from contextlib import asynccontextmanager
from typing import AsyncGenerator, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from facetrack.core.exceptions import StoreUnavailableError, TrackNotFoundError
from facetrack.core.logging import get_logger
from facetrack.domain.entities.face_track import FaceTrackMapping
from facetrack.domain.interfaces.storage.record_store import FaceTrackStore
from facetrack.infrastructure.database import models
from facetrack.infrastructure.database.unit_of_work import UnitOfWork

logger = get_logger(__name__)


def to_entity(row: models.FaceTrackMapping) -> FaceTrackMapping:
    return FaceTrackMapping.model_validate(row)


class SqlFaceTrackStore(FaceTrackStore):
    """FaceTrackStore over SQLAlchemy, one unit of work per call.

    Driver and connection failures surface as StoreUnavailableError.
    """

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self.session_factory = session_factory

    @asynccontextmanager
    async def _unit_of_work(self, operation: str) -> AsyncGenerator[UnitOfWork, None]:
        try:
            async with UnitOfWork(self.session_factory) as uow:
                yield uow
        except IntegrityError:
            raise
        except (SQLAlchemyError, OSError) as e:
            logger.error("Record store operation failed", operation=operation, error=str(e))
            raise StoreUnavailableError(
                f"Record store unavailable: {e}",
                details={"operation": operation},
            ) from e

    async def list_all(self) -> List[FaceTrackMapping]:
        async with self._unit_of_work("list_all") as uow:
            rows = await uow.face_tracks.list_all()
            return [to_entity(row) for row in rows]

    async def get_by_track_id(self, track_id: str) -> Optional[FaceTrackMapping]:
        async with self._unit_of_work("get_by_track_id") as uow:
            row = await uow.face_tracks.get_by_track_id(track_id)
            return to_entity(row) if row is not None else None

    async def create(
        self,
        track_id: str,
        audio_url: str,
        face_descriptor: Optional[List[int]] = None,
    ) -> FaceTrackMapping:
        try:
            async with self._unit_of_work("create") as uow:
                row = await uow.face_tracks.get_or_create(track_id, audio_url, face_descriptor)
                record = to_entity(row)
        except IntegrityError:
            logger.info("Mapping created concurrently, using existing row", track_id=track_id)
            existing = await self.get_by_track_id(track_id)
            if existing is None:
                raise StoreUnavailableError(
                    "Mapping insert conflicted but no row was found",
                    details={"track_id": track_id},
                )
            return existing
        return record

    async def record_access(self, record_id: int) -> FaceTrackMapping:
        async with self._unit_of_work("record_access") as uow:
            row = await uow.face_tracks.record_access(record_id)
            if row is None:
                raise TrackNotFoundError(
                    f"No mapping with id {record_id}",
                    details={"record_id": record_id},
                )
            return to_entity(row)

    async def update_descriptor(self, record_id: int, face_descriptor: List[int]) -> None:
        async with self._unit_of_work("update_descriptor") as uow:
            await uow.face_tracks.update_descriptor(record_id, face_descriptor)

    async def attach_email(
        self,
        track_id: str,
        email: str,
        promotional_consent: bool = False,
    ) -> Optional[FaceTrackMapping]:
        async with self._unit_of_work("attach_email") as uow:
            row = await uow.face_tracks.attach_email(track_id, email, promotional_consent)
            return to_entity(row) if row is not None else None

    async def list_recent(self, limit: int = 50) -> List[FaceTrackMapping]:
        async with self._unit_of_work("list_recent") as uow:
            rows = await uow.face_tracks.list_recent(limit)
            return [to_entity(row) for row in rows]
