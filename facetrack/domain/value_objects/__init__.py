"""Value objects package."""
from .audio import CategoryConfig, MixInput, StemSelection
from .recognition import RecognizerMatch
from .resolution import (
    Matched,
    MatchPolicy,
    MatchResult,
    Resolution,
    ResolutionStatus,
    Unmatched,
)
from .track import CaptureInput, DeliveryResult, ErrorKind, TrackResult, TrackStage

__all__ = [
    "CategoryConfig",
    "MixInput",
    "StemSelection",
    "RecognizerMatch",
    "Matched",
    "MatchPolicy",
    "MatchResult",
    "Resolution",
    "ResolutionStatus",
    "Unmatched",
    "CaptureInput",
    "DeliveryResult",
    "ErrorKind",
    "TrackResult",
    "TrackStage",
]
