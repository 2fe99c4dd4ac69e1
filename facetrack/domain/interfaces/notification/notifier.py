"""Outbound notification interface."""
from abc import ABC, abstractmethod


class TrackNotifier(ABC):
    """Delivers a finished track to a visitor."""

    @abstractmethod
    async def send_track(self, email: str, track_id: str, audio_url: str) -> None:
        """
        Send the track link to the visitor.

        Raises:
            NotificationError: If the message cannot be dispatched
        """
        pass
