"""Durable artifact store interface for generated audio."""
from abc import ABC, abstractmethod
from typing import Any, Dict, List


class ArtifactStore(ABC):
    """Interface for storing and retrieving generated audio artifacts."""

    @abstractmethod
    async def upload(
        self,
        key: str,
        data: bytes,
        content_type: str,
        overwrite: bool = True,
    ) -> str:
        """
        Store an object under a key.

        Args:
            key: Object key
            data: Object contents
            content_type: MIME type of the object
            overwrite: Replace an existing object under the same key

        Returns:
            Public retrieval URL of the object

        Raises:
            StorageError: If the upload fails
        """
        pass

    @abstractmethod
    async def get_object(self, key: str) -> bytes:
        """
        Read an object.

        Raises:
            StorageError: If the object is missing or cannot be read
        """
        pass

    @abstractmethod
    async def list_objects(self, prefix: str = "", max_keys: int = 1000) -> List[Dict[str, Any]]:
        """
        List object metadata (key, size, last_modified) under a prefix.

        Raises:
            StorageError: If listing fails
        """
        pass

    @abstractmethod
    def public_url(self, key: str) -> str:
        """Public retrieval URL for a key."""
        pass
