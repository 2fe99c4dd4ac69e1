"""
AWS Rekognition face recognizer using aioboto3.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Awaitable, Optional, TypeVar

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from facetrack.core.config import settings
from facetrack.core.exceptions import ExternalServiceError, NoFaceDetectedError
from facetrack.core.logging import get_logger
from facetrack.core.utils.once import AsyncOnce
from facetrack.domain.interfaces.recognition.face_recognizer import CloudFaceRecognizer
from facetrack.domain.value_objects.recognition import RecognizerMatch

logger = get_logger(__name__)

T = TypeVar("T")


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


def _is_no_face(error: ClientError) -> bool:
    message = str(error).lower()
    return _error_code(error) == "InvalidParameterException" and "no faces" in message


class RekognitionRecognizer(CloudFaceRecognizer):
    """Face search and indexing against a Rekognition collection.

    The collection is created lazily, once per process, before the first
    search or index call.
    """

    def __init__(
        self,
        collection_id: Optional[str] = None,
        region_name: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.collection_id = collection_id or settings.REKOGNITION_COLLECTION_ID
        self.region_name = region_name or settings.AWS_REGION
        self.access_key_id = access_key_id or settings.AWS_ACCESS_KEY_ID
        self.secret_access_key = secret_access_key or settings.AWS_SECRET_ACCESS_KEY
        self.timeout = timeout or settings.RECOGNIZER_TIMEOUT
        self._session = aioboto3.Session()
        self._collection_ready = AsyncOnce(self.ensure_collection)

    @asynccontextmanager
    async def _get_client(self) -> AsyncGenerator[Any, None]:
        client_args = {'region_name': self.region_name or "us-east-1"}
        if self.access_key_id and self.secret_access_key:
            client_args['aws_access_key_id'] = self.access_key_id
            client_args['aws_secret_access_key'] = self.secret_access_key
        async with self._session.client("rekognition", **client_args) as client:
            yield client

    async def _bounded(self, operation: str, call: Awaitable[T]) -> T:
        """Await a Rekognition call with the configured timeout."""
        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error("Rekognition call timed out", operation=operation, timeout=self.timeout)
            raise ExternalServiceError(
                f"Rekognition {operation} timed out after {self.timeout}s"
            ) from e

    async def ensure_collection(self) -> None:
        async with self._get_client() as client:
            try:
                await self._bounded(
                    "create_collection",
                    client.create_collection(CollectionId=self.collection_id),
                )
                logger.info("Created Rekognition collection", collection_id=self.collection_id)
            except ClientError as e:
                if _error_code(e) != "ResourceAlreadyExistsException":
                    raise ExternalServiceError(f"Failed to create collection: {e}") from e
                logger.debug("Rekognition collection exists", collection_id=self.collection_id)
            except BotoCoreError as e:
                raise ExternalServiceError(f"Failed to create collection: {e}") from e

    async def reset_collection(self) -> None:
        async with self._get_client() as client:
            try:
                await self._bounded(
                    "delete_collection",
                    client.delete_collection(CollectionId=self.collection_id),
                )
                logger.info("Deleted Rekognition collection", collection_id=self.collection_id)
            except ClientError as e:
                if _error_code(e) != "ResourceNotFoundException":
                    raise ExternalServiceError(f"Failed to delete collection: {e}") from e
                logger.info("Rekognition collection did not exist", collection_id=self.collection_id)
            except BotoCoreError as e:
                raise ExternalServiceError(f"Failed to delete collection: {e}") from e

        self._collection_ready.reset()
        await self._collection_ready.get()

    async def search_best_match(
        self,
        image_bytes: bytes,
        similarity_floor: float,
    ) -> Optional[RecognizerMatch]:
        await self._collection_ready.get()
        async with self._get_client() as client:
            try:
                response = await self._bounded(
                    "search_faces_by_image",
                    client.search_faces_by_image(
                        CollectionId=self.collection_id,
                        Image={"Bytes": image_bytes},
                        FaceMatchThreshold=similarity_floor,
                        MaxFaces=1,
                    ),
                )
            except ClientError as e:
                if _is_no_face(e):
                    raise NoFaceDetectedError("No face detected in image") from e
                logger.error("Rekognition search failed", error=str(e))
                raise ExternalServiceError(f"Face search failed: {e}") from e
            except BotoCoreError as e:
                raise ExternalServiceError(f"Face search failed: {e}") from e

        matches = response.get("FaceMatches") or []
        if not matches:
            return None

        best = matches[0]
        face = best.get("Face", {})
        return RecognizerMatch(
            face_id=face.get("FaceId"),
            external_id=face.get("ExternalImageId"),
            similarity=float(best.get("Similarity", 0.0)),
        )

    async def index_face(self, image_bytes: bytes, external_id: str) -> str:
        await self._collection_ready.get()
        async with self._get_client() as client:
            try:
                response = await self._bounded(
                    "index_faces",
                    client.index_faces(
                        CollectionId=self.collection_id,
                        Image={"Bytes": image_bytes},
                        ExternalImageId=external_id,
                        MaxFaces=1,
                        QualityFilter="AUTO",
                        DetectionAttributes=["DEFAULT"],
                    ),
                )
            except ClientError as e:
                if _is_no_face(e):
                    raise NoFaceDetectedError("No face detected in image") from e
                logger.error("Rekognition indexing failed", error=str(e))
                raise ExternalServiceError(f"Face indexing failed: {e}") from e
            except BotoCoreError as e:
                raise ExternalServiceError(f"Face indexing failed: {e}") from e

        records = response.get("FaceRecords") or []
        if not records:
            raise NoFaceDetectedError("No face detected in image")

        face_id = records[0].get("Face", {}).get("FaceId", "")
        logger.info("Indexed face", face_id=face_id, external_id=external_id)
        return face_id
