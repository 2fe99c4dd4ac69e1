"""ffmpeg-backed audio mixer."""
import asyncio
from pathlib import Path
from typing import List, Optional, Sequence

from facetrack.core.config import settings
from facetrack.core.exceptions import MixFailureError
from facetrack.core.logging import get_logger
from facetrack.domain.interfaces.audio.mixer import AudioMixer
from facetrack.domain.value_objects.audio import MixInput

logger = get_logger(__name__)

OUTPUT_FILENAME = "mix.mp3"


def build_filter(inputs: Sequence[MixInput]) -> str:
    """filter_complex graph: per-input volume, then amix to the longest input."""
    parts = [
        f"[{i}:a]volume={item.gain:.2f}[s{i}]"
        for i, item in enumerate(inputs)
    ]
    labels = "".join(f"[s{i}]" for i in range(len(inputs)))
    parts.append(
        f"{labels}amix=inputs={len(inputs)}:duration=longest:dropout_transition=2[out]"
    )
    return ";".join(parts)


def build_command(
    inputs: Sequence[MixInput],
    output_path: Path,
    binary: str = "ffmpeg",
) -> List[str]:
    """Full ffmpeg argument list for mixing ``inputs`` into an MP3."""
    cmd = [binary, "-y", "-hide_banner", "-loglevel", "error"]
    for item in inputs:
        cmd.extend(["-i", str(item.path)])
    cmd.extend([
        "-filter_complex", build_filter(inputs),
        "-map", "[out]",
        "-c:a", "libmp3lame", "-q:a", "2",
        str(output_path),
    ])
    return cmd


class FfmpegMixer(AudioMixer):
    """Runs ffmpeg as a subprocess, bounded by a timeout."""

    def __init__(self, binary: Optional[str] = None, timeout: Optional[float] = None) -> None:
        self.binary = binary or settings.FFMPEG_BINARY
        self.timeout = timeout or settings.MIX_TIMEOUT

    async def mix(self, inputs: Sequence[MixInput], workdir: Path) -> bytes:
        if not inputs:
            raise MixFailureError("No stems to mix")

        output_path = workdir / OUTPUT_FILENAME
        cmd = build_command(inputs, output_path, self.binary)
        logger.debug("Running ffmpeg", inputs=len(inputs), output=str(output_path))

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise MixFailureError(f"ffmpeg binary not found: {self.binary}") from e

        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            proc.kill()
            await proc.wait()
            logger.error("ffmpeg timed out", timeout=self.timeout)
            raise MixFailureError(
                f"Mixing timed out after {self.timeout}s",
                details={"timeout": self.timeout},
            ) from e

        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace")[-300:]
            logger.error("ffmpeg failed", returncode=proc.returncode, stderr=message)
            raise MixFailureError(
                f"ffmpeg failed (rc={proc.returncode}): {message}",
                details={"returncode": proc.returncode},
            )

        if not output_path.exists():
            raise MixFailureError("ffmpeg produced no output")
        return output_path.read_bytes()
