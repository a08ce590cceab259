"""Asset upload services package."""

from expense_assets.services.upload.errors import (
    AssetUploadError,
    ImageSourceError,
    ReceiptUploadError,
)
from expense_assets.services.upload.sources import (
    DataUrlSource,
    FileUriSource,
    ImageSource,
    select_image_source,
)
from expense_assets.services.upload.uploader import (
    ReceiptUploader,
    build_avatar_path,
    build_receipt_path,
    current_millis,
)

__all__ = [
    "AssetUploadError",
    "ImageSourceError",
    "ReceiptUploadError",
    "DataUrlSource",
    "FileUriSource",
    "ImageSource",
    "select_image_source",
    "ReceiptUploader",
    "build_avatar_path",
    "build_receipt_path",
    "current_millis",
]
