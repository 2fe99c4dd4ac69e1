from .artifact_store import ArtifactStore
from .record_store import FaceTrackStore

__all__ = ["ArtifactStore", "FaceTrackStore"]
