"""Database repositories for the face track service."""
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from facetrack.domain.entities.face_track import utc_now
from facetrack.infrastructure.database.models import FaceTrackMapping


class FaceTrackRepository:
    """Repository for face track mapping operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository.

        Args:
            session: Database session
        """
        self._session = session

    async def list_all(self) -> List[FaceTrackMapping]:
        """All mappings in ascending id order."""
        result = await self._session.execute(select(FaceTrackMapping).order_by(FaceTrackMapping.id))
        return list(result.scalars().all())

    async def get(self, record_id: int) -> Optional[FaceTrackMapping]:
        return await self._session.get(FaceTrackMapping, record_id, populate_existing=True)

    async def get_by_track_id(self, track_id: str) -> Optional[FaceTrackMapping]:
        """Get mapping by track id.

        Args:
            track_id: Track identifier

        Returns:
            Optional[FaceTrackMapping]: Found mapping, or None
        """
        stmt = select(FaceTrackMapping).where(FaceTrackMapping.track_id == track_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create(
        self,
        track_id: str,
        audio_url: str,
        face_descriptor: Optional[List[int]] = None,
    ) -> FaceTrackMapping:
        """Get mapping by track id or create it if it does not exist.

        A concurrent insert of the same track id fails on the unique
        constraint when the session flushes.

        Args:
            track_id: Track identifier
            audio_url: Retrieval URL of the mixed track
            face_descriptor: Normalized descriptor

        Returns:
            FaceTrackMapping: Found or created mapping

        Raises:
            IntegrityError: If another session inserted the track id first
        """
        existing = await self.get_by_track_id(track_id)
        if existing is not None:
            return existing

        mapping = FaceTrackMapping(
            track_id=track_id,
            audio_url=audio_url,
            face_descriptor=face_descriptor,
            generated_count=1,
        )
        self._session.add(mapping)
        await self._session.flush()
        return mapping

    async def record_access(self, record_id: int) -> Optional[FaceTrackMapping]:
        """Increment the access counter in a single statement."""
        stmt = (
            update(FaceTrackMapping)
            .where(FaceTrackMapping.id == record_id)
            .values(
                generated_count=FaceTrackMapping.generated_count + 1,
                last_accessed=utc_now(),
            )
        )
        await self._session.execute(stmt)
        return await self.get(record_id)

    async def update_descriptor(self, record_id: int, face_descriptor: List[int]) -> None:
        stmt = (
            update(FaceTrackMapping)
            .where(FaceTrackMapping.id == record_id)
            .values(face_descriptor=face_descriptor)
        )
        await self._session.execute(stmt)

    async def attach_email(
        self,
        track_id: str,
        email: str,
        promotional_consent: bool = False,
    ) -> Optional[FaceTrackMapping]:
        mapping = await self.get_by_track_id(track_id)
        if mapping is None:
            return None
        mapping.user_email = email
        mapping.promotional_consent = promotional_consent
        await self._session.flush()
        return mapping

    async def list_recent(self, limit: int = 50) -> List[FaceTrackMapping]:
        stmt = (
            select(FaceTrackMapping)
            .order_by(FaceTrackMapping.last_accessed.desc(), FaceTrackMapping.id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
