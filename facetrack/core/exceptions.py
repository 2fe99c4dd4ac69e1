"""Custom exceptions for the face track service."""
from typing import List, Optional


class FaceTrackError(Exception):
    """Base exception for face track operations."""

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize face track error.

        Args:
            message: Error description
            details: Additional error context
        """
        super().__init__(message)
        self.details = details or {}


class ValidationError(FaceTrackError):
    """Raised when a descriptor or image payload is malformed or missing."""
    pass


class StoreUnavailableError(FaceTrackError):
    """Raised when the persistent record store cannot be reached."""
    pass


class MixFailureError(FaceTrackError):
    """Raised when stems cannot be downloaded, mixed or uploaded."""
    pass


class StemUnavailableError(MixFailureError):
    """Raised when one or more selected stems are missing or unreachable."""

    def __init__(self, missing: List[str], details: Optional[dict] = None):
        self.missing = list(missing)
        super().__init__(
            f"Stems unavailable for categories: {', '.join(self.missing)}",
            details
        )


class ExternalServiceError(FaceTrackError):
    """Raised when the cloud face recognizer fails or times out."""
    pass


class NoFaceDetectedError(ExternalServiceError):
    """Raised when the cloud face recognizer finds no face in the image."""
    pass


class StorageError(FaceTrackError):
    """Raised when the artifact store cannot read or write an object."""
    pass


class NotificationError(FaceTrackError):
    """Raised when the track email cannot be dispatched."""
    pass


class ServiceNotInitializedError(FaceTrackError):
    """Raised when a service is requested before the container is initialized."""
    pass


class TrackNotFoundError(FaceTrackError):
    """Raised when no mapping or artifact exists for a track id."""
    pass
