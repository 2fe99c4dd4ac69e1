"""Identity resolution value objects."""
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, Field, model_validator

from facetrack.domain.entities.face_track import FaceTrackMapping


class MatchPolicy(BaseModel):
    """Similarity thresholds for descriptor matching."""
    strict_threshold: float = Field(0.90, description="Cosine similarity required for a match", ge=-1.0, le=1.0)
    adaptive_enabled: bool = Field(True, description="Accept matches inside the adaptive band")
    adaptive_threshold: float = Field(0.82, description="Lower bound of the adaptive band", ge=-1.0, le=1.0)

    @model_validator(mode="after")
    def check_band(self) -> "MatchPolicy":
        if self.adaptive_threshold > self.strict_threshold:
            raise ValueError("adaptive_threshold must not exceed strict_threshold")
        return self


class Matched(BaseModel):
    """A stored record crossed the match threshold."""
    record: FaceTrackMapping
    score: float = Field(..., description="Cosine similarity with the query")
    adaptive: bool = Field(False, description="True when accepted through the adaptive band")


class Unmatched(BaseModel):
    """No stored record crossed any threshold."""
    best_candidate: Optional[FaceTrackMapping] = None
    best_score: Optional[float] = None


MatchResult = Union[Matched, Unmatched]


class ResolutionStatus(str, Enum):
    """Outcome of resolving a capture to an identity."""
    MATCHED = "matched"
    ADAPTED = "adapted"
    UNMATCHED = "unmatched"
    ORPHANED = "orphaned"


class Resolution(BaseModel):
    """Identity decision handed to the track generation flow.

    For matched statuses ``record`` is the existing mapping. For ``UNMATCHED``
    and ``ORPHANED`` the caller creates a new mapping under ``track_id``.
    """
    status: ResolutionStatus
    track_id: str
    record: Optional[FaceTrackMapping] = None
    score: Optional[float] = None
    descriptor: Optional[List[int]] = None
    degraded: bool = False

    @property
    def is_match(self) -> bool:
        return self.status in (ResolutionStatus.MATCHED, ResolutionStatus.ADAPTED)
