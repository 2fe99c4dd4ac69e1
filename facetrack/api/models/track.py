"""API specific track models."""
from typing import Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field

from facetrack.domain.value_objects.track import CaptureInput, DeliveryResult, TrackResult


class DescriptorTrackRequest(BaseModel):
    """Request model for the /tracks/descriptor endpoint."""
    descriptor: Optional[List[float]] = Field(
        None,
        description="Single raw face descriptor"
    )
    descriptors: Optional[List[List[float]]] = Field(
        None,
        description="Several raw descriptor scans of the same face, averaged before matching"
    )

    def to_capture(self) -> CaptureInput:
        scans = list(self.descriptors or [])
        if self.descriptor is not None:
            scans.append(self.descriptor)
        return CaptureInput(descriptors=scans)


class ImageTrackRequest(BaseModel):
    """Request model for the /tracks/image endpoint."""
    image_data: str = Field(
        ...,
        description="Base64 camera frame, optionally prefixed with data:image/...;base64,"
    )


class TrackResponse(BaseModel):
    """Response model for a generated or recognized track."""
    success: bool = True
    track_id: str = Field(..., description="Stable track identifier")
    audio_url: str = Field(..., description="Retrieval URL of the mixed track")
    stems: Dict[str, str] = Field(default_factory=dict, description="Stem URL per category")
    cached: bool = Field(False, description="True when an existing track was returned")
    matched: bool = Field(False, description="True when the face matched a known visitor")
    access_count: Optional[int] = Field(None, description="Times this identity has been resolved")
    similarity: Optional[float] = Field(None, description="Similarity with the matched identity")
    persisted: bool = Field(True, description="False when the mapping could not be stored")
    warnings: List[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: TrackResult) -> "TrackResponse":
        """Convert a successful service result to the API response model."""
        return cls(
            success=result.success,
            track_id=result.track_id,
            audio_url=result.audio_url,
            stems=result.stems or {},
            cached=result.cached,
            matched=result.matched,
            access_count=result.access_count,
            similarity=result.similarity,
            persisted=result.persisted,
            warnings=list(result.warnings),
        )


class StemsResponse(BaseModel):
    """Response model for the /tracks/{track_id}/stems endpoint."""
    track_id: str
    stems: Dict[str, str]


class EmailRequest(BaseModel):
    """Request model for the /tracks/{track_id}/email endpoint."""
    email: EmailStr = Field(..., description="Visitor email address")
    promotional_consent: bool = Field(False, description="Visitor opted into promotional email")
    send: bool = Field(True, description="Send the track link after saving the email")


class EmailResponse(BaseModel):
    """Response model for the /tracks/{track_id}/email endpoint."""
    success: bool = True
    track_id: str
    email_saved: bool
    email_sent: bool
    warnings: List[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: DeliveryResult) -> "EmailResponse":
        return cls(
            track_id=result.track_id,
            email_saved=result.email_saved,
            email_sent=result.email_sent,
            warnings=list(result.warnings),
        )
