"""Service container for dependency injection."""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from facetrack.core.config import settings
from facetrack.core.logging import get_logger
from facetrack.core.utils.once import AsyncOnce
from facetrack.domain.interfaces.identity.resolver import IdentityResolver
from facetrack.domain.interfaces.notification.notifier import TrackNotifier
from facetrack.domain.interfaces.recognition.face_recognizer import CloudFaceRecognizer
from facetrack.domain.interfaces.storage.artifact_store import ArtifactStore
from facetrack.domain.interfaces.storage.record_store import FaceTrackStore
from facetrack.infrastructure.database.session import build_engine, build_session_factory
from facetrack.infrastructure.database.store import SqlFaceTrackStore
from facetrack.services.admin import AdminService
from facetrack.services.audio.ffmpeg import FfmpegMixer
from facetrack.services.audio.stem_source import HttpStemSource
from facetrack.services.aws.rekognition import RekognitionRecognizer
from facetrack.services.aws.s3 import S3ArtifactStore
from facetrack.services.delivery import TrackDeliveryService
from facetrack.services.mixing import MixerOrchestrator
from facetrack.services.notification import SmtpTrackNotifier
from facetrack.services.resolvers import CloudIdentityResolver, DescriptorIdentityResolver
from facetrack.services.stems import StemSelector
from facetrack.services.track_generation import TrackGenerationService

logger = get_logger(__name__)


class ServiceContainer:
    """Container for application services.

    Builds every service once, in dependency order. The identity resolver is
    chosen by ``IDENTITY_BACKEND``; the cloud recognizer is only created for
    the ``rekognition`` backend.

    Example:
        ```python
        container = ServiceContainer()
        await container.initialize()

        result = await container.track_service.generate(capture)
        ```
    """

    def __init__(self) -> None:
        """Initialize empty container."""
        # Infrastructure
        self.engine: Optional[AsyncEngine] = None
        self.store: Optional[FaceTrackStore] = None
        self.artifact_store: Optional[ArtifactStore] = None
        self.recognizer: Optional[CloudFaceRecognizer] = None
        self.notifier: Optional[TrackNotifier] = None

        # Domain services
        self.selector: Optional[StemSelector] = None
        self.resolver: Optional[IdentityResolver] = None
        self.orchestrator: Optional[MixerOrchestrator] = None
        self.track_service: Optional[TrackGenerationService] = None
        self.delivery_service: Optional[TrackDeliveryService] = None
        self.admin_service: Optional[AdminService] = None

        self._initialized = AsyncOnce(self._build)

    @property
    def initialized(self) -> bool:
        return self._initialized.done

    async def initialize(self) -> None:
        """Initialize all services in the correct order; later calls are no-ops."""
        await self._initialized.get()

    async def _build(self) -> None:
        self.engine = build_engine()
        self.store = SqlFaceTrackStore(build_session_factory(self.engine))
        self.artifact_store = S3ArtifactStore()
        self.notifier = SmtpTrackNotifier()

        self.selector = StemSelector()
        if settings.IDENTITY_BACKEND == "rekognition":
            self.recognizer = RekognitionRecognizer()
            self.resolver = CloudIdentityResolver(self.recognizer, self.store)
        else:
            self.resolver = DescriptorIdentityResolver(self.store)

        self.orchestrator = MixerOrchestrator(
            selector=self.selector,
            stem_source=HttpStemSource(),
            mixer=FfmpegMixer(),
            artifact_store=self.artifact_store,
        )
        self.track_service = TrackGenerationService(
            resolver=self.resolver,
            store=self.store,
            selector=self.selector,
            orchestrator=self.orchestrator,
        )
        self.delivery_service = TrackDeliveryService(self.store, self.notifier)
        self.admin_service = AdminService(self.store, self.artifact_store, self.recognizer)

        logger.info(
            "Initialized application services",
            identity_backend=settings.IDENTITY_BACKEND,
            categories=[c.name for c in self.selector.categories],
        )

    async def cleanup(self) -> None:
        """Cleanup all services in reverse order of initialization."""
        self.admin_service = None
        self.delivery_service = None
        self.track_service = None
        self.orchestrator = None
        self.resolver = None
        self.selector = None

        self.notifier = None
        self.recognizer = None
        self.artifact_store = None
        self.store = None

        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None

        self._initialized.reset()


# Global container instance
container = ServiceContainer()
