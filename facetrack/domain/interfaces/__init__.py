"""Service interfaces package."""
from .audio import AudioMixer, StemSource
from .identity import IdentityResolver
from .notification import TrackNotifier
from .recognition import CloudFaceRecognizer
from .storage import ArtifactStore, FaceTrackStore

__all__ = [
    "AudioMixer",
    "StemSource",
    "IdentityResolver",
    "TrackNotifier",
    "CloudFaceRecognizer",
    "ArtifactStore",
    "FaceTrackStore",
]
