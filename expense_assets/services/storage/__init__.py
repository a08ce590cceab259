"""
Storage Services Package

Provides the abstract object storage interface and the Firebase Storage
implementation behind it.
"""

from expense_assets.services.storage.interface import (
    InvalidStorageUrlError,
    ObjectNotFoundError,
    ObjectStorageInterface,
    StorageError,
    StorageUnavailableError,
)
from expense_assets.services.storage.firebase_storage import (
    DOWNLOAD_TOKENS_KEY,
    FirebaseObjectStorage,
    build_download_url,
    parse_storage_url,
)

__all__ = [
    # Interface
    "ObjectStorageInterface",
    # Exceptions
    "InvalidStorageUrlError",
    "ObjectNotFoundError",
    "StorageError",
    "StorageUnavailableError",
    # Firebase implementation
    "DOWNLOAD_TOKENS_KEY",
    "FirebaseObjectStorage",
    "build_download_url",
    "parse_storage_url",
]
