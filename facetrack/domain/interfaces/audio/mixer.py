"""Audio mixing and stem source interfaces."""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Sequence

from ...value_objects.audio import MixInput


class StemSource(ABC):
    """Read-only access to the stem library."""

    @abstractmethod
    async def exists(self, url: str) -> bool:
        """Lightweight reachability check for a stem URL."""
        pass

    @abstractmethod
    async def download(self, url: str, destination: Path) -> Path:
        """
        Download a stem to a local file.

        Raises:
            MixFailureError: If the stem cannot be retrieved
        """
        pass


class AudioMixer(ABC):
    """Mixes stems into a single encoded track."""

    @abstractmethod
    async def mix(self, inputs: Sequence[MixInput], workdir: Path) -> bytes:
        """
        Apply each input's gain, mix to the longest input and encode.

        Args:
            inputs: Downloaded stems with their category gains
            workdir: Job-scoped directory for intermediate files

        Returns:
            Encoded MP3 bytes

        Raises:
            MixFailureError: If mixing fails or times out
        """
        pass
