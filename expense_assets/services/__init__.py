"""Services package."""

from expense_assets.services.api import BackendApiClient, HttpError
from expense_assets.services.auth import (
    AppContext,
    AuthError,
    AuthTokenProvider,
    FirebaseIdentityProvider,
    IdentityProviderInterface,
    InitializationError,
)
from expense_assets.services.storage import (
    FirebaseObjectStorage,
    InvalidStorageUrlError,
    ObjectNotFoundError,
    ObjectStorageInterface,
    StorageError,
)
from expense_assets.services.upload import (
    AssetUploadError,
    ImageSourceError,
    ReceiptUploader,
    ReceiptUploadError,
)

__all__ = [
    # API
    "BackendApiClient",
    "HttpError",
    # Auth
    "AppContext",
    "AuthError",
    "AuthTokenProvider",
    "FirebaseIdentityProvider",
    "IdentityProviderInterface",
    "InitializationError",
    # Storage
    "FirebaseObjectStorage",
    "InvalidStorageUrlError",
    "ObjectNotFoundError",
    "ObjectStorageInterface",
    "StorageError",
    # Upload
    "AssetUploadError",
    "ImageSourceError",
    "ReceiptUploader",
    "ReceiptUploadError",
]
