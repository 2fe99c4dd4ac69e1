"""Capture-to-track generation service."""
from typing import List, Optional

from facetrack.core.exceptions import (
    ExternalServiceError,
    MixFailureError,
    StemUnavailableError,
    StoreUnavailableError,
    ValidationError,
)
from facetrack.core.logging import get_logger
from facetrack.domain.entities.face_track import FaceTrackMapping
from facetrack.domain.interfaces.identity.resolver import IdentityResolver
from facetrack.domain.interfaces.storage.record_store import FaceTrackStore
from facetrack.domain.value_objects.audio import StemSelection
from facetrack.domain.value_objects.resolution import Resolution, ResolutionStatus
from facetrack.domain.value_objects.track import (
    CaptureInput,
    ErrorKind,
    TrackResult,
    TrackStage,
)
from facetrack.services.mixing import MixerOrchestrator
from facetrack.services.stems import StemSelector

logger = get_logger(__name__)

RESOLUTION_DEGRADED_WARNING = "resolution_degraded"
PERSIST_FAILED_WARNING = "persist_failed"


class _StageTracker:
    """Tracks the current stage of one request and logs each transition."""

    def __init__(self) -> None:
        self.stage = TrackStage.IDLE
        self.track_id: Optional[str] = None

    def __call__(self, stage: TrackStage) -> None:
        self.stage = stage
        logger.debug("Track request stage", stage=stage.value, track_id=self.track_id)


class TrackGenerationService:
    """Turns a face capture into a stable personal track.

    The flow is:
    1. Resolve the capture to an identity (existing record or new track id)
    2. For a known identity, record the visit and return the cached track
    3. Otherwise select stems from the track id, mix and upload them
    4. Persist the new mapping

    A failure to persist after a successful upload still returns the track,
    flagged as not persisted; the next visit recomputes the same track id and
    converges on the same stored artifact.

    Example:
        ```python
        service = TrackGenerationService(resolver, store, selector, orchestrator)
        result = await service.generate(CaptureInput(descriptors=[descriptor]))
        print(result.track_id, result.audio_url)
        ```
    """

    def __init__(
        self,
        resolver: IdentityResolver,
        store: FaceTrackStore,
        selector: StemSelector,
        orchestrator: MixerOrchestrator,
    ) -> None:
        """Initialize the track generation service.

        Args:
            resolver: Capture to identity resolver
            store: Record store of face track mappings
            selector: Deterministic stem selector
            orchestrator: Mixer orchestrator producing the track audio
        """
        self.resolver = resolver
        self.store = store
        self.selector = selector
        self.orchestrator = orchestrator

    async def generate(self, capture: CaptureInput) -> TrackResult:
        """Resolve a capture and return its track.

        Args:
            capture: Descriptor scans or camera frame of one visitor

        Returns:
            TrackResult: Outcome of the request, including failures other
            than malformed input

        Raises:
            ValidationError: If the capture is malformed or has no face
        """
        tracker = _StageTracker()
        tracker(TrackStage.DESCRIPTOR_CAPTURED)

        try:
            tracker(TrackStage.RESOLVING)
            resolution = await self.resolver.resolve(capture)
            tracker.track_id = resolution.track_id

            warnings: List[str] = []
            if resolution.degraded:
                warnings.append(RESOLUTION_DEGRADED_WARNING)

            if resolution.is_match and resolution.record is not None:
                tracker(TrackStage.MATCHED_EXISTING)
                return await self._return_existing(resolution, warnings, tracker)

            tracker(TrackStage.CREATING_NEW)
            return await self._create_new(resolution, warnings, tracker)

        except ValidationError:
            raise
        except StemUnavailableError as e:
            logger.error("Track generation failed: stems unavailable", track_id=tracker.track_id, missing=e.missing)
            return self._failure(tracker, ErrorKind.STEM_UNAVAILABLE, str(e), missing_stems=e.missing)
        except MixFailureError as e:
            logger.error("Track generation failed: mix failed", track_id=tracker.track_id, error=str(e))
            return self._failure(tracker, ErrorKind.MIX_FAILED, str(e))
        except ExternalServiceError as e:
            logger.error("Track generation failed: external service", track_id=tracker.track_id, error=str(e))
            return self._failure(tracker, ErrorKind.EXTERNAL_SERVICE, str(e))
        except Exception as e:
            logger.exception("Unexpected error generating track", track_id=tracker.track_id, error=str(e))
            return self._failure(tracker, ErrorKind.INTERNAL, "Internal error while generating track")

    async def _return_existing(
        self,
        resolution: Resolution,
        warnings: List[str],
        tracker: _StageTracker,
    ) -> TrackResult:
        record = resolution.record
        persisted = True
        try:
            record = await self.store.record_access(record.id)
        except StoreUnavailableError as e:
            logger.warning("Failed to record access", track_id=record.track_id, error=str(e))
            record = record.accessed()
            persisted = False
            warnings.append(PERSIST_FAILED_WARNING)

        tracker(TrackStage.DONE)
        logger.info(
            "Returning existing track",
            track_id=record.track_id,
            access_count=record.generated_count,
            status=resolution.status.value,
        )
        return TrackResult(
            success=True,
            track_id=record.track_id,
            audio_url=record.audio_url,
            stems=self.selector.select(record.track_id),
            cached=True,
            matched=True,
            access_count=record.generated_count,
            similarity=resolution.score,
            persisted=persisted,
            stage=tracker.stage,
            error_kind=None if persisted else ErrorKind.PERSIST_FAILED,
            warnings=warnings,
        )

    async def _create_new(
        self,
        resolution: Resolution,
        warnings: List[str],
        tracker: _StageTracker,
    ) -> TrackResult:
        track_id = resolution.track_id

        tracker(TrackStage.SELECTING_STEMS)
        stems: StemSelection = self.selector.select(track_id)
        logger.info("Selected stems", track_id=track_id, stems=stems)

        audio_url = await self.orchestrator.produce_track(track_id, stems, on_stage=tracker)

        tracker(TrackStage.PERSISTING)
        record: Optional[FaceTrackMapping] = None
        try:
            record = await self.store.create(track_id, audio_url, resolution.descriptor)
        except StoreUnavailableError as e:
            logger.error(
                "Track uploaded but mapping not persisted",
                condition="persist_failed",
                track_id=track_id,
                audio_url=audio_url,
                error=str(e),
            )
            warnings.append(PERSIST_FAILED_WARNING)

        tracker(TrackStage.DONE)
        persisted = record is not None
        logger.info("Generated new track", track_id=track_id, persisted=persisted)
        return TrackResult(
            success=True,
            track_id=track_id,
            audio_url=record.audio_url if record is not None else audio_url,
            stems=stems,
            cached=False,
            matched=False,
            access_count=record.generated_count if record is not None else 1,
            similarity=resolution.score if resolution.status == ResolutionStatus.ORPHANED else None,
            persisted=persisted,
            stage=tracker.stage,
            error_kind=None if persisted else ErrorKind.PERSIST_FAILED,
            warnings=warnings,
        )

    @staticmethod
    def _failure(
        tracker: _StageTracker,
        kind: ErrorKind,
        detail: str,
        missing_stems: Optional[List[str]] = None,
    ) -> TrackResult:
        return TrackResult(
            success=False,
            track_id=tracker.track_id,
            stage=tracker.stage,
            error_kind=kind,
            detail=detail,
            missing_stems=missing_stems or [],
        )
