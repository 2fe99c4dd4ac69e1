"""Mixer orchestration: verify, download, mix and upload a track's stems."""
import asyncio
import tempfile
from pathlib import Path
from typing import Callable, List, Optional

from facetrack.core.config import settings
from facetrack.core.exceptions import MixFailureError, StemUnavailableError, StorageError
from facetrack.core.logging import get_logger
from facetrack.domain.interfaces.audio.mixer import AudioMixer, StemSource
from facetrack.domain.interfaces.storage.artifact_store import ArtifactStore
from facetrack.domain.value_objects.audio import MixInput, StemSelection
from facetrack.domain.value_objects.track import TrackStage
from facetrack.services.stems import StemSelector

logger = get_logger(__name__)

AUDIO_CONTENT_TYPE = "audio/mpeg"

StageCallback = Callable[[TrackStage], None]


def track_key(track_id: str, prefix: Optional[str] = None) -> str:
    """Artifact store key of a track's mixed audio."""
    prefix = (settings.GENERATED_AUDIO_PREFIX if prefix is None else prefix).strip("/")
    return f"{prefix}/{track_id}.mp3" if prefix else f"{track_id}.mp3"


class MixerOrchestrator:
    """Produces the mixed track for a track id.

    The flow is:
    1. Check every stem URL; fail before any download if one is missing
    2. Download the stems into a job-scoped temporary directory
    3. Mix them with per-category gains
    4. Upload the result under a key derived from the track id, overwriting

    Retrying with the same track id and stems produces the same object under
    the same key.

    Example:
        ```python
        orchestrator = MixerOrchestrator(selector, HttpStemSource(), FfmpegMixer(), S3ArtifactStore())
        url = await orchestrator.produce_track("abc1234567", selector.select("abc1234567"))
        ```
    """

    def __init__(
        self,
        selector: StemSelector,
        stem_source: StemSource,
        mixer: AudioMixer,
        artifact_store: ArtifactStore,
        foreground_gain: Optional[float] = None,
        background_gain: Optional[float] = None,
        temp_dir: Optional[str] = None,
    ) -> None:
        self.selector = selector
        self.stem_source = stem_source
        self.mixer = mixer
        self.artifact_store = artifact_store
        self.foreground_gain = settings.FOREGROUND_GAIN if foreground_gain is None else foreground_gain
        self.background_gain = settings.BACKGROUND_GAIN if background_gain is None else background_gain
        self.temp_dir = temp_dir or settings.MIX_TEMP_DIR

    def gain_for(self, category: str) -> float:
        config = self.selector.category(category)
        if config is not None and config.foreground:
            return self.foreground_gain
        return self.background_gain

    async def find_missing(self, stem_urls: StemSelection) -> List[str]:
        """Categories whose stem URL fails the existence check, in input order."""
        categories = list(stem_urls)
        results = await asyncio.gather(
            *(self.stem_source.exists(stem_urls[c]) for c in categories)
        )
        return [c for c, ok in zip(categories, results) if not ok]

    async def produce_track(
        self,
        track_id: str,
        stem_urls: StemSelection,
        on_stage: Optional[StageCallback] = None,
    ) -> str:
        """Build and store the mixed track.

        Args:
            track_id: Track identifier, used as the artifact key
            stem_urls: Category to stem URL mapping
            on_stage: Called when the job enters the mixing and uploading stages

        Returns:
            Public URL of the uploaded track

        Raises:
            StemUnavailableError: If any stem is missing or unreachable
            MixFailureError: If download, mixing or upload fails
        """
        if not stem_urls:
            raise MixFailureError("No stems selected", details={"track_id": track_id})

        notify = on_stage or (lambda stage: None)
        notify(TrackStage.MIXING)
        missing = await self.find_missing(stem_urls)
        if missing:
            logger.error("Stems unavailable", track_id=track_id, missing=missing)
            raise StemUnavailableError(missing, details={"track_id": track_id})

        with tempfile.TemporaryDirectory(prefix=f"mix-{track_id}-", dir=self.temp_dir) as tmp:
            workdir = Path(tmp)
            inputs = await self._download_all(stem_urls, workdir)
            logger.info("Mixing stems", track_id=track_id, stems=len(inputs))
            audio = await self.mixer.mix(inputs, workdir)

        notify(TrackStage.UPLOADING)
        key = track_key(track_id)
        try:
            url = await self.artifact_store.upload(key, audio, AUDIO_CONTENT_TYPE, overwrite=True)
        except StorageError as e:
            raise MixFailureError(
                f"Failed to upload mixed track: {e}",
                details={"track_id": track_id, "key": key},
            ) from e

        logger.info("Track produced", track_id=track_id, key=key, size=len(audio))
        return url

    async def _download_all(self, stem_urls: StemSelection, workdir: Path) -> List[MixInput]:
        async def fetch(category: str, url: str) -> MixInput:
            filename = url.rsplit("/", 1)[-1] or f"{category}.{self.selector.extension}"
            path = await self.stem_source.download(url, workdir / f"{category}-{filename}")
            return MixInput(category=category, path=path, gain=self.gain_for(category))

        tasks = [
            asyncio.ensure_future(fetch(category, url))
            for category, url in stem_urls.items()
        ]
        try:
            return list(await asyncio.gather(*tasks))
        finally:
            # Downloads must not outlive the job's workdir
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
