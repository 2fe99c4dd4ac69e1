"""Track generation value objects."""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from facetrack.domain.value_objects.audio import StemSelection


class TrackStage(str, Enum):
    """Stages of a single capture-to-track request."""
    IDLE = "idle"
    DESCRIPTOR_CAPTURED = "descriptor_captured"
    RESOLVING = "resolving"
    MATCHED_EXISTING = "matched_existing"
    CREATING_NEW = "creating_new"
    SELECTING_STEMS = "selecting_stems"
    MIXING = "mixing"
    UPLOADING = "uploading"
    PERSISTING = "persisting"
    DONE = "done"


class ErrorKind(str, Enum):
    """Diagnostic error categories reported with a track result."""
    VALIDATION = "validation"
    RESOLUTION_DEGRADED = "resolution_degraded"
    STEM_UNAVAILABLE = "stem_unavailable"
    MIX_FAILED = "mix_failed"
    PERSIST_FAILED = "persist_failed"
    EXTERNAL_SERVICE = "external_service"
    INTERNAL = "internal"


class CaptureInput(BaseModel):
    """Raw capture submitted by the installation front end."""
    descriptors: Optional[List[List[float]]] = Field(
        None, description="One or more raw descriptor scans of the same face"
    )
    image_bytes: Optional[bytes] = Field(None, description="Decoded camera frame")


class TrackResult(BaseModel):
    """Structured outcome of a capture-to-track request."""
    success: bool
    track_id: Optional[str] = None
    audio_url: Optional[str] = None
    stems: Optional[StemSelection] = None
    cached: bool = False
    matched: bool = False
    access_count: Optional[int] = None
    similarity: Optional[float] = None
    persisted: bool = True
    stage: TrackStage = TrackStage.IDLE
    error_kind: Optional[ErrorKind] = None
    detail: Optional[str] = None
    missing_stems: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class DeliveryResult(BaseModel):
    """Outcome of attaching an email to a track and sending it."""
    track_id: str
    email_saved: bool
    email_sent: bool = False
    warnings: List[str] = Field(default_factory=list)
