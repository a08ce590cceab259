"""
Abstract Object Storage Interface

DESIGN DECISION: We define an abstract interface for the object store.
This allows us to:
1. Swap Firebase Storage for another bucket provider
2. Use in-memory storage for testing
3. Keep the upload adapter free of SDK details

The interface is exactly what the upload adapter needs: put, resolve a
display URL, map a display URL back to an object, delete.
"""

from abc import ABC, abstractmethod

from expense_assets.models.upload import ObjectMetadata, StorageRef


class ObjectStorageInterface(ABC):
    """
    Abstract interface for object storage operations.

    Any storage implementation (Firebase Storage, S3, local disk, ...)
    must implement these methods.
    """

    @abstractmethod
    async def put(
        self,
        payload: bytes,
        destination_key: str,
        content_type: str,
    ) -> ObjectMetadata:
        """
        Store payload under destination_key.

        An existing object at the same key is overwritten.

        Returns:
            Bucket and full path the object was written to
        """
        pass

    @abstractmethod
    async def get_download_url(self, ref: StorageRef) -> str:
        """
        Resolve a URL that displays the object.

        Raises:
            ObjectNotFoundError: If the object does not exist
        """
        pass

    @abstractmethod
    def ref_from_url(self, url: str) -> StorageRef:
        """
        Map a URL previously issued by get_download_url (or a gs:// URI)
        back to the object it points at.

        Raises:
            InvalidStorageUrlError: If the URL is not a storage URL
        """
        pass

    @abstractmethod
    async def delete(self, ref: StorageRef) -> None:
        """
        Delete an object.

        No existence check is made; a missing object is whatever error the
        provider raises.
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ObjectNotFoundError(StorageError):
    """Object does not exist in the bucket."""
    pass


class InvalidStorageUrlError(StorageError, ValueError):
    """URL does not point at an object in a storage bucket."""
    pass


class StorageUnavailableError(StorageError):
    """No storage bucket could be resolved (e.g. the app never initialized)."""
    pass
