"""Email attachment and delivery of generated tracks."""
from typing import Optional

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from facetrack.core.exceptions import NotificationError, TrackNotFoundError, ValidationError
from facetrack.core.logging import get_logger
from facetrack.domain.interfaces.notification.notifier import TrackNotifier
from facetrack.domain.interfaces.storage.record_store import FaceTrackStore
from facetrack.domain.value_objects.track import DeliveryResult

logger = get_logger(__name__)

_EMAIL_ADAPTER = TypeAdapter(EmailStr)

EMAIL_NOT_SENT_WARNING = "email_not_sent"


def validate_email(email: Optional[str]) -> str:
    """Check an email address with pydantic's ``EmailStr``.

    Returns:
        str: The normalized address

    Raises:
        ValidationError: If the address is missing or malformed
    """
    try:
        return _EMAIL_ADAPTER.validate_python((email or "").strip())
    except PydanticValidationError as e:
        raise ValidationError("A valid email address is required") from e


class TrackDeliveryService:
    """Attaches a visitor email to a track and optionally sends the link.

    The email is stored first. A failed send is reported as a warning, the
    stored email is kept.
    """

    def __init__(self, store: FaceTrackStore, notifier: Optional[TrackNotifier] = None) -> None:
        self.store = store
        self.notifier = notifier

    async def deliver(
        self,
        track_id: str,
        email: str,
        promotional_consent: bool = False,
        send: bool = True,
    ) -> DeliveryResult:
        """Attach an email to a track and send it the track link.

        Args:
            track_id: Track identifier
            email: Visitor email address
            promotional_consent: Whether the visitor opted into promotions
            send: Send the notification after saving

        Returns:
            DeliveryResult: What was saved and sent

        Raises:
            ValidationError: If the email is malformed
            TrackNotFoundError: If no mapping exists for the track id
            StoreUnavailableError: If the store cannot be reached
        """
        email = validate_email(email)

        record = await self.store.attach_email(track_id, email, promotional_consent)
        if record is None:
            raise TrackNotFoundError(f"No track found for id {track_id}", details={"track_id": track_id})
        logger.info("Email attached to track", track_id=track_id, promotional_consent=promotional_consent)

        result = DeliveryResult(track_id=track_id, email_saved=True)
        if not send:
            return result

        if self.notifier is None:
            result.warnings.append(EMAIL_NOT_SENT_WARNING)
            return result

        try:
            await self.notifier.send_track(email, record.track_id, record.audio_url)
            result.email_sent = True
        except NotificationError as e:
            logger.warning("Track email not sent", track_id=track_id, error=str(e))
            result.warnings.append(EMAIL_NOT_SENT_WARNING)
        return result
