"""Identity resolution by descriptor similarity against the record store."""
from typing import List, Optional

from facetrack.core.config import settings
from facetrack.core.exceptions import StoreUnavailableError, ValidationError
from facetrack.core.logging import get_logger
from facetrack.domain.entities.face_track import FaceTrackMapping
from facetrack.domain.interfaces.identity.resolver import IdentityResolver
from facetrack.domain.interfaces.storage.record_store import FaceTrackStore
from facetrack.domain.value_objects.resolution import (
    Matched,
    MatchPolicy,
    Resolution,
    ResolutionStatus,
)
from facetrack.domain.value_objects.track import CaptureInput
from facetrack.services.descriptors import (
    average_descriptors,
    blend_descriptors,
    normalize,
    validate_descriptor,
)
from facetrack.services.matching import match_descriptor
from facetrack.services.track_identity import derive_track_id

logger = get_logger(__name__)


def default_policy() -> MatchPolicy:
    return MatchPolicy(
        strict_threshold=settings.MATCH_THRESHOLD,
        adaptive_enabled=settings.ADAPTIVE_MATCHING_ENABLED,
        adaptive_threshold=settings.ADAPTIVE_THRESHOLD,
    )


class DescriptorIdentityResolver(IdentityResolver):
    """Resolves captures by comparing normalized descriptors with every stored record.

    Matches inside the adaptive band pull the stored descriptor toward the new
    observation, weighted by how often the record has been seen.
    """

    def __init__(
        self,
        store: FaceTrackStore,
        policy: Optional[MatchPolicy] = None,
        multiplier: Optional[int] = None,
        dimension: Optional[int] = None,
        check_dimension: bool = True,
        max_scans: Optional[int] = None,
        track_id_length: Optional[int] = None,
    ) -> None:
        self.store = store
        self.policy = policy or default_policy()
        self.multiplier = multiplier or settings.QUANTIZATION_MULTIPLIER
        self.dimension = (dimension or settings.DESCRIPTOR_DIMENSION) if check_dimension else None
        self.max_scans = max_scans or settings.MAX_DESCRIPTOR_SCANS
        self.track_id_length = track_id_length or settings.TRACK_ID_LENGTH

    def prepare(self, capture: CaptureInput) -> List[int]:
        """Validate, average and normalize the descriptor scans of a capture.

        Raises:
            ValidationError: If the capture carries no usable descriptor
        """
        scans = capture.descriptors
        if not scans:
            raise ValidationError("Descriptor array is required")
        if len(scans) > self.max_scans:
            raise ValidationError(
                f"At most {self.max_scans} descriptor scans are accepted",
                details={"scans": len(scans)},
            )
        for scan in scans:
            validate_descriptor(scan, self.dimension)
        return normalize(average_descriptors(scans), self.multiplier)

    async def resolve(self, capture: CaptureInput) -> Resolution:
        descriptor = self.prepare(capture)

        degraded = False
        try:
            records = await self.store.list_all()
        except StoreUnavailableError as e:
            logger.warning(
                "Record store unavailable, resolving as new identity",
                condition="resolution_degraded",
                error=str(e),
            )
            records = []
            degraded = True

        result = match_descriptor(descriptor, records, self.policy)

        if isinstance(result, Matched):
            record = result.record
            if result.adaptive:
                record = await self._drift(record, descriptor)
            logger.info(
                "Descriptor matched",
                track_id=record.track_id,
                score=round(result.score, 4),
                adaptive=result.adaptive,
            )
            return Resolution(
                status=ResolutionStatus.ADAPTED if result.adaptive else ResolutionStatus.MATCHED,
                track_id=record.track_id,
                record=record,
                score=result.score,
                descriptor=descriptor,
                degraded=degraded,
            )

        track_id = derive_track_id(descriptor, self.track_id_length)
        logger.info(
            "No descriptor match",
            track_id=track_id,
            best_score=None if result.best_score is None else round(result.best_score, 4),
            candidates=len(records),
        )
        return Resolution(
            status=ResolutionStatus.UNMATCHED,
            track_id=track_id,
            score=result.best_score,
            descriptor=descriptor,
            degraded=degraded,
        )

    async def _drift(self, record: FaceTrackMapping, observed: List[int]) -> FaceTrackMapping:
        """Move the stored descriptor toward an adaptive-band observation."""
        blended = blend_descriptors(record.face_descriptor, observed, record.generated_count)
        try:
            await self.store.update_descriptor(record.id, blended)
        except StoreUnavailableError as e:
            logger.warning("Failed to update drifted descriptor", track_id=record.track_id, error=str(e))
            return record
        logger.debug("Drifted stored descriptor", track_id=record.track_id, weight=record.generated_count)
        return record.model_copy(update={"face_descriptor": blended})
