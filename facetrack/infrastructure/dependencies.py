"""FastAPI dependency providers."""
from typing import AsyncGenerator

from fastapi import Depends

from facetrack.core.container import ServiceContainer, container
from facetrack.core.exceptions import ServiceNotInitializedError
from facetrack.domain.interfaces.storage.artifact_store import ArtifactStore
from facetrack.services.admin import AdminService
from facetrack.services.delivery import TrackDeliveryService
from facetrack.services.stems import StemSelector
from facetrack.services.track_generation import TrackGenerationService


async def get_container() -> ServiceContainer:
    """Dependency provider for the global ServiceContainer instance."""
    if not container.initialized:
        # Lifespan normally initializes; this covers callers outside it
        try:
            await container.initialize()
        except Exception as e:
            raise ServiceNotInitializedError(f"Service container could not be initialized: {e}") from e
    return container


async def get_track_service(
    cont: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[TrackGenerationService, None]:
    """Provide the track generation service.

    Yields:
        TrackGenerationService: Initialized track generation service

    Raises:
        ServiceNotInitializedError: If the service is not initialized
    """
    if cont.track_service is None:
        raise ServiceNotInitializedError("Track generation service not initialized")
    yield cont.track_service


async def get_stem_selector(
    cont: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[StemSelector, None]:
    """Provide the stem selector."""
    if cont.selector is None:
        raise ServiceNotInitializedError("Stem selector not initialized")
    yield cont.selector


async def get_artifact_store(
    cont: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[ArtifactStore, None]:
    """Provide the artifact store holding generated audio."""
    if cont.artifact_store is None:
        raise ServiceNotInitializedError("Artifact store not initialized")
    yield cont.artifact_store


async def get_delivery_service(
    cont: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[TrackDeliveryService, None]:
    """Provide the email delivery service."""
    if cont.delivery_service is None:
        raise ServiceNotInitializedError("Delivery service not initialized")
    yield cont.delivery_service


async def get_admin_service(
    cont: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[AdminService, None]:
    """Provide the admin service."""
    if cont.admin_service is None:
        raise ServiceNotInitializedError("Admin service not initialized")
    yield cont.admin_service
