"""SMTP delivery of finished tracks."""
import asyncio
import html
import smtplib
from email.message import EmailMessage
from typing import Optional

from facetrack.core.config import settings
from facetrack.core.exceptions import NotificationError
from facetrack.core.logging import get_logger
from facetrack.domain.interfaces.notification.notifier import TrackNotifier

logger = get_logger(__name__)

SUBJECT = "Your track is ready"


def build_message(sender: str, email: str, track_id: str, audio_url: str) -> EmailMessage:
    """Compose the plain-text and HTML track email."""
    message = EmailMessage()
    message["Subject"] = SUBJECT
    message["From"] = sender
    message["To"] = email

    message.set_content(
        f"Your sound has been generated from your face.\n\n"
        f"Track ID: {track_id}\n"
        f"Download: {audio_url}\n"
    )
    message.add_alternative(
        "<html><body>"
        "<p>Your sound has been generated from your face.</p>"
        f"<p><strong>Track ID:</strong> {html.escape(track_id)}</p>"
        f'<p><a href="{html.escape(audio_url, quote=True)}" download>Download your track</a></p>'
        "</body></html>",
        subtype="html",
    )
    return message


class SmtpTrackNotifier(TrackNotifier):
    """Sends track links over SMTP.

    smtplib is blocking, so each send runs in a worker thread.
    """

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        secure: Optional[bool] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        sender: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.host = host if host is not None else settings.EMAIL_HOST
        self.port = port or settings.EMAIL_PORT
        self.secure = settings.EMAIL_SECURE if secure is None else secure
        self.user = user if user is not None else settings.EMAIL_USER
        self.password = password if password is not None else settings.EMAIL_PASS
        self.sender = sender if sender is not None else settings.EMAIL_FROM
        self.timeout = timeout or settings.EMAIL_TIMEOUT

    @property
    def configured(self) -> bool:
        return bool(self.host and self.user and self.password and self.sender)

    async def send_track(self, email: str, track_id: str, audio_url: str) -> None:
        if not self.configured:
            raise NotificationError("Email service not configured")

        message = build_message(self.sender, email, track_id, audio_url)
        try:
            await asyncio.to_thread(self._send, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send track email", track_id=track_id, error=str(e))
            raise NotificationError(
                f"Failed to send email: {e}",
                details={"track_id": track_id},
            ) from e

        logger.info("Track email sent", track_id=track_id)

    def _send(self, message: EmailMessage) -> None:
        if self.secure:
            client = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        else:
            client = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        with client:
            if not self.secure:
                client.starttls()
            client.login(self.user, self.password)
            client.send_message(message)
