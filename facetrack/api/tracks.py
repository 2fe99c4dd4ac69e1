"""Track generation API endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Response

from facetrack.api.models.track import (
    DescriptorTrackRequest,
    EmailRequest,
    EmailResponse,
    ImageTrackRequest,
    StemsResponse,
    TrackResponse,
)
from facetrack.core.config import settings
from facetrack.core.exceptions import (
    StorageError,
    StoreUnavailableError,
    TrackNotFoundError,
    ValidationError,
)
from facetrack.core.logging import get_logger
from facetrack.core.utils.image import decode_image_data
from facetrack.domain.interfaces.storage.artifact_store import ArtifactStore
from facetrack.domain.value_objects.track import CaptureInput, ErrorKind, TrackResult
from facetrack.infrastructure.dependencies import (
    get_artifact_store,
    get_delivery_service,
    get_stem_selector,
    get_track_service,
)
from facetrack.services.delivery import TrackDeliveryService
from facetrack.services.mixing import track_key
from facetrack.services.stems import StemSelector
from facetrack.services.track_generation import TrackGenerationService
from facetrack.services.track_identity import is_track_id

logger = get_logger(__name__)
router = APIRouter(
    responses={
        400: {"description": "Invalid request"},
        500: {"description": "Internal server error"}
    }
)

_FAILURE_MESSAGES = {
    ErrorKind.STEM_UNAVAILABLE: "Some sound stems are unavailable",
    ErrorKind.MIX_FAILED: "Failed to generate track",
    ErrorKind.EXTERNAL_SERVICE: "Face recognition service unavailable",
}


def _failure_detail(result: TrackResult) -> dict:
    """Generic failure body; internal detail is only exposed in debug mode."""
    detail = {
        "error": _FAILURE_MESSAGES.get(result.error_kind, "Failed to generate track"),
        "error_kind": result.error_kind.value if result.error_kind else None,
    }
    if result.missing_stems:
        detail["missing_stems"] = result.missing_stems
    if settings.DEBUG and result.detail:
        detail["detail"] = result.detail
    return detail


def _require_track_id(track_id: str) -> None:
    if not is_track_id(track_id):
        raise HTTPException(status_code=400, detail="Invalid track id")


async def _generate(service: TrackGenerationService, capture: CaptureInput) -> TrackResponse:
    try:
        result = await service.generate(capture)
    except ValidationError as e:
        logger.warning("Invalid capture", error=str(e))
        raise HTTPException(status_code=400, detail=str(e))

    if not result.success:
        raise HTTPException(status_code=500, detail=_failure_detail(result))
    return TrackResponse.from_result(result)


@router.post(
    "/descriptor",
    response_model=TrackResponse,
    summary="Generate a track from a face descriptor",
    description="Resolves the descriptor to a visitor identity and returns its track, mixing a new one if needed.",
)
async def generate_from_descriptor(
    request: DescriptorTrackRequest,
    service: TrackGenerationService = Depends(get_track_service)
) -> TrackResponse:
    """Generate or recognize a track from descriptor scans.

    Raises:
        HTTPException: 400 for a malformed descriptor, 500 if generation fails
    """
    return await _generate(service, request.to_capture())


@router.post(
    "/image",
    response_model=TrackResponse,
    summary="Generate a track from a camera frame",
    description="Resolves the face in the image through the cloud recognizer and returns its track.",
)
async def generate_from_image(
    request: ImageTrackRequest,
    service: TrackGenerationService = Depends(get_track_service)
) -> TrackResponse:
    """Generate or recognize a track from a base64 image.

    Raises:
        HTTPException: 400 for bad image data or no face, 500 if generation fails
    """
    try:
        image_bytes = decode_image_data(request.image_data)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return await _generate(service, CaptureInput(image_bytes=image_bytes))


@router.get(
    "/{track_id}/stems",
    response_model=StemsResponse,
    summary="Stems selected for a track",
)
async def get_stems(
    track_id: str,
    selector: StemSelector = Depends(get_stem_selector)
) -> StemsResponse:
    _require_track_id(track_id)
    return StemsResponse(track_id=track_id, stems=selector.select(track_id))


@router.get(
    "/{track_id}/audio",
    summary="Download a mixed track",
    response_class=Response,
    responses={200: {"content": {"audio/mpeg": {}}}, 404: {"description": "Track not found"}},
)
async def download_audio(
    track_id: str,
    artifact_store: ArtifactStore = Depends(get_artifact_store)
) -> Response:
    """Stream the stored MP3 of a track as an attachment.

    Raises:
        HTTPException: 404 if no audio is stored for the track
    """
    _require_track_id(track_id)
    try:
        audio = await artifact_store.get_object(track_key(track_id))
    except StorageError as e:
        if e.details.get("not_found"):
            raise HTTPException(status_code=404, detail="Track not found")
        logger.error("Failed to read track audio", track_id=track_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to read track audio")

    return Response(
        content=audio,
        media_type="audio/mpeg",
        headers={"Content-Disposition": f'attachment; filename="{track_id}.mp3"'},
    )


@router.post(
    "/{track_id}/email",
    response_model=EmailResponse,
    summary="Attach an email to a track and send it",
)
async def save_email(
    track_id: str,
    request: EmailRequest,
    service: TrackDeliveryService = Depends(get_delivery_service)
) -> EmailResponse:
    """Store the visitor email and consent, then send the track link.

    A failed send is reported in ``warnings``; the email stays saved.

    Raises:
        HTTPException: 400 for a bad email, 404 for an unknown track, 503 if the store is down
    """
    _require_track_id(track_id)
    try:
        result = await service.deliver(
            track_id,
            request.email,
            promotional_consent=request.promotional_consent,
            send=request.send,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TrackNotFoundError:
        raise HTTPException(status_code=404, detail="No matching face mapping found")
    except StoreUnavailableError as e:
        logger.error("Failed to save email", track_id=track_id, error=str(e))
        raise HTTPException(status_code=503, detail="Failed to save email")
    return EmailResponse.from_result(result)
