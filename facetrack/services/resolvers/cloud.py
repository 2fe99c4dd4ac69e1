"""Identity resolution delegated to a cloud face recognizer."""
from typing import Optional, Tuple

from facetrack.core.config import settings
from facetrack.core.exceptions import (
    ExternalServiceError,
    NoFaceDetectedError,
    StoreUnavailableError,
    ValidationError,
)
from facetrack.core.logging import get_logger
from facetrack.domain.interfaces.identity.resolver import IdentityResolver
from facetrack.domain.interfaces.recognition.face_recognizer import CloudFaceRecognizer
from facetrack.domain.interfaces.storage.record_store import FaceTrackStore
from facetrack.domain.value_objects.recognition import RecognizerMatch
from facetrack.domain.value_objects.resolution import Resolution, ResolutionStatus
from facetrack.domain.value_objects.track import CaptureInput
from facetrack.services.track_identity import random_track_id

logger = get_logger(__name__)


class CloudIdentityResolver(IdentityResolver):
    """Resolves captures through a recognizer collection keyed by track id.

    The recognizer stores each face with its track id as external reference.
    The recognizer collection and the record store evolve independently, so a
    recognizer match without a local record is reconciled by creating the
    record rather than failing.
    """

    def __init__(
        self,
        recognizer: CloudFaceRecognizer,
        store: FaceTrackStore,
        similarity_floor: Optional[float] = None,
        track_id_length: Optional[int] = None,
    ) -> None:
        self.recognizer = recognizer
        self.store = store
        self.similarity_floor = similarity_floor or settings.REKOGNITION_SIMILARITY_FLOOR
        self.track_id_length = track_id_length or settings.TRACK_ID_LENGTH

    async def _search(self, image_bytes: bytes) -> Tuple[Optional[RecognizerMatch], bool]:
        try:
            match = await self.recognizer.search_best_match(image_bytes, self.similarity_floor)
            return match, False
        except NoFaceDetectedError:
            logger.info("Recognizer found no face in capture")
            return None, False
        except ExternalServiceError as e:
            logger.warning(
                "Recognizer search failed, resolving as new identity",
                condition="resolution_degraded",
                error=str(e),
            )
            return None, True

    async def resolve(self, capture: CaptureInput) -> Resolution:
        if not capture.image_bytes:
            raise ValidationError("Image data is required")
        image_bytes = capture.image_bytes

        match, degraded = await self._search(image_bytes)

        if match is not None and match.external_id:
            track_id = match.external_id
            score = match.similarity / 100.0
            try:
                record = await self.store.get_by_track_id(track_id)
            except StoreUnavailableError as e:
                logger.warning(
                    "Record store unavailable during lookup",
                    condition="resolution_degraded",
                    track_id=track_id,
                    error=str(e),
                )
                record = None
                degraded = True

            if record is not None:
                logger.info("Recognizer matched", track_id=track_id, similarity=match.similarity)
                return Resolution(
                    status=ResolutionStatus.MATCHED,
                    track_id=track_id,
                    record=record,
                    score=score,
                    degraded=degraded,
                )

            logger.warning("Recognizer match has no local record, reconciling", track_id=track_id)
            return Resolution(
                status=ResolutionStatus.ORPHANED,
                track_id=track_id,
                score=score,
                degraded=degraded,
            )

        track_id = random_track_id(self.track_id_length)
        try:
            face_id = await self.recognizer.index_face(image_bytes, track_id)
            logger.info("Indexed new face", track_id=track_id, face_id=face_id)
        except NoFaceDetectedError as e:
            raise ValidationError("No face detected in image") from e
        except ExternalServiceError as e:
            logger.warning("Failed to index new face", track_id=track_id, error=str(e))
            degraded = True

        return Resolution(
            status=ResolutionStatus.UNMATCHED,
            track_id=track_id,
            degraded=degraded,
        )
