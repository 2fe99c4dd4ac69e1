"""Tests for the ffmpeg mixer and the HTTP stem source."""
import sys
import time
from pathlib import Path

import httpx
import pytest

from facetrack.core.exceptions import MixFailureError
from facetrack.domain.value_objects.audio import MixInput
from facetrack.services.audio.ffmpeg import FfmpegMixer, build_command, build_filter
from facetrack.services.audio.stem_source import HttpStemSource


def inputs():
    return [
        MixInput(category="bass", path=Path("/tmp/bass.wav"), gain=0.6),
        MixInput(category="vox", path=Path("/tmp/vox.wav"), gain=1.5),
    ]


def test_build_filter():
    assert build_filter(inputs()) == (
        "[0:a]volume=0.60[s0];[1:a]volume=1.50[s1];"
        "[s0][s1]amix=inputs=2:duration=longest:dropout_transition=2[out]"
    )


def test_build_command():
    cmd = build_command(inputs(), Path("/tmp/out/mix.mp3"), binary="ffmpeg")

    assert cmd[0] == "ffmpeg"
    assert cmd.count("-i") == 2
    assert cmd[cmd.index("-i") + 1] == "/tmp/bass.wav"
    assert cmd[cmd.index("-filter_complex") + 1] == build_filter(inputs())
    assert cmd[cmd.index("-map") + 1] == "[out]"
    assert cmd[-1] == "/tmp/out/mix.mp3"


@pytest.mark.asyncio
async def test_missing_ffmpeg_binary_is_a_mix_failure(tmp_path):
    mixer = FfmpegMixer(binary=str(tmp_path / "no-such-ffmpeg"), timeout=5)
    with pytest.raises(MixFailureError):
        await mixer.mix(inputs(), tmp_path)


@pytest.mark.asyncio
async def test_mix_requires_inputs(tmp_path):
    with pytest.raises(MixFailureError):
        await FfmpegMixer(timeout=5).mix([], tmp_path)


def stem_transport(status_by_path, calls=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append((request.method, request.url.path))
        status = status_by_path.get(request.url.path, 404)
        if isinstance(status, list):
            status = status.pop(0)
        return httpx.Response(status, content=b"RIFFstem" if request.method == "GET" else b"")
    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_exists_uses_head():
    calls = []
    source = HttpStemSource(transport=stem_transport({"/bass/b1.wav": 200}, calls))

    assert await source.exists("https://stems.test/bass/b1.wav") is True
    assert await source.exists("https://stems.test/bass/b9.wav") is False
    assert calls[0] == ("HEAD", "/bass/b1.wav")


@pytest.mark.asyncio
async def test_exists_treats_network_errors_as_missing():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    source = HttpStemSource(transport=httpx.MockTransport(handler))
    assert await source.exists("https://stems.test/bass/b1.wav") is False


@pytest.mark.asyncio
async def test_download_writes_file(tmp_path):
    source = HttpStemSource(transport=stem_transport({"/bass/b1.wav": 200}))
    destination = tmp_path / "bass.wav"

    result = await source.download("https://stems.test/bass/b1.wav", destination)

    assert result == destination
    assert destination.read_bytes() == b"RIFFstem"


@pytest.mark.asyncio
async def test_download_retries_then_succeeds(tmp_path):
    calls = []
    source = HttpStemSource(
        attempts=2,
        retry_delay=0,
        transport=stem_transport({"/bass/b1.wav": [503, 200]}, calls),
    )

    await source.download("https://stems.test/bass/b1.wav", tmp_path / "bass.wav")

    assert len(calls) == 2


@pytest.mark.asyncio
async def test_download_gives_up_after_attempts(tmp_path):
    calls = []
    source = HttpStemSource(
        attempts=3,
        retry_delay=0,
        transport=stem_transport({"/bass/b1.wav": 500}, calls),
    )

    with pytest.raises(MixFailureError) as exc_info:
        await source.download("https://stems.test/bass/b1.wav", tmp_path / "bass.wav")

    assert len(calls) == 3
    assert exc_info.value.details["attempts"] == 3


posix_only = pytest.mark.skipif(sys.platform == "win32", reason="stub binary is a POSIX shell script")


def stub_binary(tmp_path, script):
    path = tmp_path / "ffmpeg"
    path.write_text("#!/bin/sh\n" + script + "\n")
    path.chmod(0o755)
    return str(path)


@posix_only
@pytest.mark.asyncio
async def test_mix_returns_output_file(tmp_path):
    binary = stub_binary(tmp_path, 'for last in "$@"; do :; done\nprintf ID3mix > "$last"')

    audio = await FfmpegMixer(binary=binary, timeout=5).mix(inputs(), tmp_path)

    assert audio == b"ID3mix"


@posix_only
@pytest.mark.asyncio
async def test_mix_timeout_kills_ffmpeg(tmp_path):
    binary = stub_binary(tmp_path, "exec sleep 30")
    mixer = FfmpegMixer(binary=binary, timeout=0.2)

    started = time.monotonic()
    with pytest.raises(MixFailureError) as exc_info:
        await mixer.mix(inputs(), tmp_path)

    assert exc_info.value.details["timeout"] == 0.2
    assert time.monotonic() - started < 10


@posix_only
@pytest.mark.asyncio
async def test_mix_nonzero_exit(tmp_path):
    binary = stub_binary(tmp_path, "echo 'Invalid data found' >&2\nexit 3")

    with pytest.raises(MixFailureError, match="Invalid data found") as exc_info:
        await FfmpegMixer(binary=binary, timeout=5).mix(inputs(), tmp_path)

    assert exc_info.value.details["returncode"] == 3


@posix_only
@pytest.mark.asyncio
async def test_mix_without_output_file(tmp_path):
    binary = stub_binary(tmp_path, "exit 0")

    with pytest.raises(MixFailureError, match="no output"):
        await FfmpegMixer(binary=binary, timeout=5).mix(inputs(), tmp_path)
