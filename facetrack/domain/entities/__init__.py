"""Domain entities package."""
from .face_track import FaceTrackMapping, utc_now

__all__ = ["FaceTrackMapping", "utc_now"]
