"""Persistent record store interface for face track mappings."""
from abc import ABC, abstractmethod
from typing import List, Optional

from ...entities.face_track import FaceTrackMapping


class FaceTrackStore(ABC):
    """Interface for the keyed store of face track mappings.

    Implementations are queried fresh on every call; no results are cached
    across requests. Connectivity problems surface as StoreUnavailableError.
    """

    @abstractmethod
    async def list_all(self) -> List[FaceTrackMapping]:
        """
        Return every mapping, ordered by ascending id.

        Raises:
            StoreUnavailableError: If the store cannot be reached
        """
        pass

    @abstractmethod
    async def get_by_track_id(self, track_id: str) -> Optional[FaceTrackMapping]:
        """
        Look up a mapping by its track id.

        Args:
            track_id: Deterministic track identifier

        Returns:
            The mapping, or None when no record exists

        Raises:
            StoreUnavailableError: If the store cannot be reached
        """
        pass

    @abstractmethod
    async def create(
        self,
        track_id: str,
        audio_url: str,
        face_descriptor: Optional[List[int]] = None,
    ) -> FaceTrackMapping:
        """
        Create a mapping, or return the existing one for the same track id.

        Args:
            track_id: Deterministic track identifier (unique)
            audio_url: Retrieval URL of the mixed track
            face_descriptor: Normalized descriptor, None for cloud-backed identities

        Returns:
            The stored mapping

        Raises:
            StoreUnavailableError: If the store cannot be reached
        """
        pass

    @abstractmethod
    async def record_access(self, record_id: int) -> FaceTrackMapping:
        """
        Increment the access counter and refresh the access timestamp.

        Args:
            record_id: Store surrogate key

        Returns:
            The updated mapping

        Raises:
            StoreUnavailableError: If the store cannot be reached
        """
        pass

    @abstractmethod
    async def update_descriptor(self, record_id: int, face_descriptor: List[int]) -> None:
        """
        Replace the stored descriptor of a mapping.

        Raises:
            StoreUnavailableError: If the store cannot be reached
        """
        pass

    @abstractmethod
    async def attach_email(
        self,
        track_id: str,
        email: str,
        promotional_consent: bool = False,
    ) -> Optional[FaceTrackMapping]:
        """
        Attach a visitor email to the mapping of a track.

        Returns:
            The updated mapping, or None when the track id is unknown

        Raises:
            StoreUnavailableError: If the store cannot be reached
        """
        pass

    @abstractmethod
    async def list_recent(self, limit: int = 50) -> List[FaceTrackMapping]:
        """
        Return the most recently accessed mappings first.

        Raises:
            StoreUnavailableError: If the store cannot be reached
        """
        pass
