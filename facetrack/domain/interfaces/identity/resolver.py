"""Identity resolver interface."""
from abc import ABC, abstractmethod

from ...value_objects.resolution import Resolution
from ...value_objects.track import CaptureInput


class IdentityResolver(ABC):
    """Decides whether a capture belongs to a known visitor.

    One implementation is active per deployment, selected by configuration.
    """

    @abstractmethod
    async def resolve(self, capture: CaptureInput) -> Resolution:
        """
        Resolve a capture to an existing or new identity.

        Args:
            capture: Descriptor scans or image bytes from the front end

        Returns:
            Resolution carrying the track id to serve or create

        Raises:
            ValidationError: If the capture lacks the input this resolver needs
        """
        pass
