"""Core face track domain entities."""
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class FaceTrackMapping(BaseModel):
    """A resolved visitor identity and the track generated for it."""
    id: int = Field(..., description="Store surrogate key")
    track_id: str = Field(..., description="Deterministic short hex identifier of the track")
    face_descriptor: Optional[List[int]] = Field(
        None, description="Normalized, quantized descriptor; absent for cloud-backed identities"
    )
    audio_url: str = Field(..., description="Retrieval URL of the mixed audio")
    generated_count: int = Field(1, description="Number of times this identity was resolved", ge=1)
    created_at: datetime = Field(default_factory=utc_now)
    last_accessed: datetime = Field(default_factory=utc_now)
    user_email: Optional[str] = Field(None, description="Email attached after the track was delivered")
    promotional_consent: bool = Field(False, description="Whether the visitor opted into promotions")

    model_config = ConfigDict(from_attributes=True)

    def accessed(self, at: Optional[datetime] = None) -> "FaceTrackMapping":
        """Return a copy reflecting one more access.

        Only the counter and the access timestamp change; the track id and
        audio URL are never touched by a repeat visit.
        """
        return self.model_copy(
            update={
                "generated_count": self.generated_count + 1,
                "last_accessed": at or utc_now(),
            }
        )
