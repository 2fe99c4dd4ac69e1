"""Unit of work pattern implementation."""
from types import TracebackType
from typing import Optional, Type

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from facetrack.core.logging import get_logger
from facetrack.infrastructure.database.repositories import FaceTrackRepository

logger = get_logger(__name__)


class UnitOfWork:
    """One session and transaction around the face track repository.

    Commits when the block exits cleanly, rolls back otherwise, and always
    closes the session.

    Example:
        ```python
        async with UnitOfWork(async_session_factory) as uow:
            await uow.face_tracks.record_access(record_id)
        ```
    """

    def __init__(self, session_factory: async_sessionmaker) -> None:
        """Initialize unit of work.

        Args:
            session_factory: Factory producing database sessions
        """
        self._session_factory = session_factory
        self._session: Optional[AsyncSession] = None
        self.face_tracks: Optional[FaceTrackRepository] = None

    async def __aenter__(self) -> "UnitOfWork":
        """Open a session and bind the repositories to it.

        Returns:
            UnitOfWork: Self
        """
        self._session = self._session_factory()
        self.face_tracks = FaceTrackRepository(self._session)
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        """Commit or roll back, then close the session.

        Args:
            exc_type: Exception type if an error occurred
            exc_val: Exception value if an error occurred
            exc_tb: Exception traceback if an error occurred
        """
        try:
            if exc_type is not None:
                logger.debug("Rolling back unit of work", error=str(exc_val))
                await self.rollback()
            else:
                await self.commit()
        finally:
            await self._session.close()
            self._session = None

    async def commit(self) -> None:
        """Commit the current transaction."""
        await self._session.commit()

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        await self._session.rollback()
