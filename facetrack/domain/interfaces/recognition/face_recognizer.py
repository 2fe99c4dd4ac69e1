"""Cloud face recognizer interface."""
from abc import ABC, abstractmethod
from typing import Optional

from ...value_objects.recognition import RecognizerMatch


class CloudFaceRecognizer(ABC):
    """Interface for a cloud service that matches faces against a named collection."""

    @abstractmethod
    async def search_best_match(
        self,
        image_bytes: bytes,
        similarity_floor: float,
    ) -> Optional[RecognizerMatch]:
        """
        Search the collection for the face in the image.

        Args:
            image_bytes: Raw image data
            similarity_floor: Minimum similarity (0-100) for a match

        Returns:
            The best match, or None when nothing crosses the floor

        Raises:
            NoFaceDetectedError: If the image contains no face
            ExternalServiceError: If the service fails or times out
        """
        pass

    @abstractmethod
    async def index_face(self, image_bytes: bytes, external_id: str) -> str:
        """
        Add the face in the image to the collection.

        Args:
            image_bytes: Raw image data
            external_id: Reference stored with the face, returned by later searches

        Returns:
            Recognizer face identifier

        Raises:
            NoFaceDetectedError: If the image contains no face
            ExternalServiceError: If the service fails or times out
        """
        pass

    @abstractmethod
    async def ensure_collection(self) -> None:
        """Create the collection if it does not exist."""
        pass

    @abstractmethod
    async def reset_collection(self) -> None:
        """Delete every face by recreating the collection."""
        pass
