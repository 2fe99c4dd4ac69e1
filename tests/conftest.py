"""Shared fixtures and in-memory fakes for the external interfaces."""
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set

import pytest

from facetrack.core.exceptions import (
    NoFaceDetectedError,
    NotificationError,
    StorageError,
    StoreUnavailableError,
)
from facetrack.domain.entities.face_track import FaceTrackMapping, utc_now
from facetrack.domain.interfaces.audio.mixer import AudioMixer, StemSource
from facetrack.domain.interfaces.notification.notifier import TrackNotifier
from facetrack.domain.interfaces.recognition.face_recognizer import CloudFaceRecognizer
from facetrack.domain.interfaces.storage.artifact_store import ArtifactStore
from facetrack.domain.interfaces.storage.record_store import FaceTrackStore
from facetrack.domain.value_objects.audio import MixInput
from facetrack.domain.value_objects.recognition import RecognizerMatch
from facetrack.services.mixing import MixerOrchestrator
from facetrack.services.resolvers import DescriptorIdentityResolver
from facetrack.services.stems import StemSelector
from facetrack.services.track_generation import TrackGenerationService

STEM_BASE_URL = "https://stems.test/stems"
AUDIO_BASE_URL = "https://audio.test"


class InMemoryFaceTrackStore(FaceTrackStore):
    """Dict-backed store; set ``available`` to False to simulate an outage."""

    def __init__(self) -> None:
        self.records: Dict[int, FaceTrackMapping] = {}
        self.available = True
        self.writes_available = True
        self.create_calls = 0
        self._next_id = 1

    def _check(self, write: bool = False) -> None:
        if not self.available or (write and not self.writes_available):
            raise StoreUnavailableError("store offline")

    def add(self, track_id: str, face_descriptor: Optional[List[int]] = None, **fields: Any) -> FaceTrackMapping:
        record = FaceTrackMapping(
            id=self._next_id,
            track_id=track_id,
            face_descriptor=face_descriptor,
            audio_url=fields.pop("audio_url", f"{AUDIO_BASE_URL}/generated/{track_id}.mp3"),
            **fields,
        )
        self.records[record.id] = record
        self._next_id += 1
        return record

    async def list_all(self) -> List[FaceTrackMapping]:
        self._check()
        return [self.records[k] for k in sorted(self.records)]

    async def get_by_track_id(self, track_id: str) -> Optional[FaceTrackMapping]:
        self._check()
        for record in self.records.values():
            if record.track_id == track_id:
                return record
        return None

    async def create(self, track_id: str, audio_url: str, face_descriptor: Optional[List[int]] = None) -> FaceTrackMapping:
        self._check(write=True)
        self.create_calls += 1
        existing = await self.get_by_track_id(track_id)
        if existing is not None:
            return existing
        return self.add(track_id, face_descriptor, audio_url=audio_url)

    async def record_access(self, record_id: int) -> FaceTrackMapping:
        self._check(write=True)
        record = self.records[record_id].accessed()
        self.records[record_id] = record
        return record

    async def update_descriptor(self, record_id: int, face_descriptor: List[int]) -> None:
        self._check(write=True)
        self.records[record_id] = self.records[record_id].model_copy(
            update={"face_descriptor": list(face_descriptor)}
        )

    async def attach_email(self, track_id: str, email: str, promotional_consent: bool = False) -> Optional[FaceTrackMapping]:
        self._check(write=True)
        existing = await self.get_by_track_id(track_id)
        if existing is None:
            return None
        updated = existing.model_copy(update={"user_email": email, "promotional_consent": promotional_consent})
        self.records[updated.id] = updated
        return updated

    async def list_recent(self, limit: int = 50) -> List[FaceTrackMapping]:
        self._check()
        ordered = sorted(self.records.values(), key=lambda r: (r.last_accessed, r.id), reverse=True)
        return ordered[:limit]


class FakeRecognizer(CloudFaceRecognizer):
    """Recognizer keyed by exact image bytes."""

    def __init__(self) -> None:
        self.faces: Dict[bytes, str] = {}
        self.no_face: Set[bytes] = set()
        self.search_error: Optional[Exception] = None
        self.index_error: Optional[Exception] = None
        self.similarity = 99.5
        self.indexed: List[str] = []
        self.resets = 0

    async def search_best_match(self, image_bytes: bytes, similarity_floor: float) -> Optional[RecognizerMatch]:
        if self.search_error is not None:
            raise self.search_error
        if image_bytes in self.no_face:
            raise NoFaceDetectedError("no faces in image")
        external_id = self.faces.get(image_bytes)
        if external_id is None or self.similarity < similarity_floor:
            return None
        return RecognizerMatch(face_id=f"face-{external_id}", external_id=external_id, similarity=self.similarity)

    async def index_face(self, image_bytes: bytes, external_id: str) -> str:
        if self.index_error is not None:
            raise self.index_error
        if image_bytes in self.no_face:
            raise NoFaceDetectedError("no faces in image")
        self.faces[image_bytes] = external_id
        self.indexed.append(external_id)
        return f"face-{external_id}"

    async def ensure_collection(self) -> None:
        return None

    async def reset_collection(self) -> None:
        if self.search_error is not None:
            raise self.search_error
        self.faces.clear()
        self.resets += 1


class FakeStemSource(StemSource):
    """Serves every URL except those listed in ``missing``."""

    def __init__(self) -> None:
        self.missing: Set[str] = set()
        self.checked: List[str] = []
        self.downloads: List[str] = []

    async def exists(self, url: str) -> bool:
        self.checked.append(url)
        return url not in self.missing

    async def download(self, url: str, destination: Path) -> Path:
        self.downloads.append(url)
        destination.write_bytes(f"stem:{url}".encode())
        return destination


class FakeMixer(AudioMixer):
    """Records its inputs and returns a deterministic payload."""

    def __init__(self) -> None:
        self.calls: List[List[MixInput]] = []
        self.workdirs: List[Path] = []
        self.error: Optional[Exception] = None

    async def mix(self, inputs: Sequence[MixInput], workdir: Path) -> bytes:
        if self.error is not None:
            raise self.error
        assert all(item.path.exists() for item in inputs)
        self.calls.append(list(inputs))
        self.workdirs.append(workdir)
        return b"mixed:" + ",".join(item.category for item in inputs).encode()


class InMemoryArtifactStore(ArtifactStore):
    """Dict-backed artifact store."""

    def __init__(self) -> None:
        self.objects: Dict[str, bytes] = {}
        self.uploads: List[str] = []
        self.available = True

    def _check(self) -> None:
        if not self.available:
            raise StorageError("storage offline")

    async def upload(self, key: str, data: bytes, content_type: str, overwrite: bool = True) -> str:
        self._check()
        self.uploads.append(key)
        if key not in self.objects or overwrite:
            self.objects[key] = data
        return self.public_url(key)

    async def get_object(self, key: str) -> bytes:
        self._check()
        if key not in self.objects:
            raise StorageError(f"Object not found: {key}", details={"not_found": True})
        return self.objects[key]

    async def list_objects(self, prefix: str = "", max_keys: int = 1000) -> List[Dict[str, Any]]:
        self._check()
        return [
            {"key": key, "size": len(data), "last_modified": utc_now()}
            for key, data in sorted(self.objects.items())
            if key.startswith(prefix)
        ][:max_keys]

    def public_url(self, key: str) -> str:
        return f"{AUDIO_BASE_URL}/{key}"


class FakeNotifier(TrackNotifier):
    def __init__(self) -> None:
        self.sent: List[Dict[str, str]] = []
        self.fail = False

    async def send_track(self, email: str, track_id: str, audio_url: str) -> None:
        if self.fail:
            raise NotificationError("smtp down")
        self.sent.append({"email": email, "track_id": track_id, "audio_url": audio_url})


@pytest.fixture
def store() -> InMemoryFaceTrackStore:
    return InMemoryFaceTrackStore()


@pytest.fixture
def recognizer() -> FakeRecognizer:
    return FakeRecognizer()


@pytest.fixture
def stem_source() -> FakeStemSource:
    return FakeStemSource()


@pytest.fixture
def mixer() -> FakeMixer:
    return FakeMixer()


@pytest.fixture
def artifact_store() -> InMemoryArtifactStore:
    return InMemoryArtifactStore()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def selector() -> StemSelector:
    return StemSelector(base_url=STEM_BASE_URL, extension="wav")


@pytest.fixture
def orchestrator(selector, stem_source, mixer, artifact_store, tmp_path) -> MixerOrchestrator:
    return MixerOrchestrator(
        selector=selector,
        stem_source=stem_source,
        mixer=mixer,
        artifact_store=artifact_store,
        foreground_gain=1.5,
        background_gain=0.6,
        temp_dir=str(tmp_path),
    )


@pytest.fixture
def descriptor_resolver(store) -> DescriptorIdentityResolver:
    return DescriptorIdentityResolver(store)


@pytest.fixture
def track_service(descriptor_resolver, store, selector, orchestrator) -> TrackGenerationService:
    return TrackGenerationService(descriptor_resolver, store, selector, orchestrator)