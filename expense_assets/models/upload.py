"""
Upload Data Models

These models describe what goes in and comes out of the asset upload
adapter and the storage backend behind it.

DESIGN DECISION: Results are frozen. An UploadResult is produced once per
upload call and handed to the caller; nothing downstream may mutate it.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ObjectMetadata(BaseModel):
    """Metadata reported by the storage backend after a transfer."""
    model_config = ConfigDict(frozen=True)

    bucket: str = Field(..., min_length=1, description="Bucket the object landed in")
    full_path: str = Field(..., min_length=1, description="Object key inside the bucket")

    @property
    def gs_uri(self) -> str:
        return f"gs://{self.bucket}/{self.full_path}"


class StorageRef(BaseModel):
    """A reference to a stored object, e.g. resolved from a download URL."""
    model_config = ConfigDict(frozen=True)

    bucket: str = Field(..., min_length=1)
    full_path: str = Field(..., min_length=1)

    @property
    def gs_uri(self) -> str:
        return f"gs://{self.bucket}/{self.full_path}"


class ReceiptUrls(BaseModel):
    """
    Per-item result of a batch upload.

    The storage path is dropped on purpose: batch callers only need
    something to display and something to feed to OCR.
    """
    model_config = ConfigDict(frozen=True)

    download_url: str = Field(..., description="URL for immediate display")
    gs_uri: str = Field(..., description="gs:// locator for AI processing")


class UploadResult(BaseModel):
    """
    Result of a single upload.

    - file_path: storage-relative key, the value to persist via the backend
    - download_url: tokenized URL for immediate display
    - gs_uri: provider-native locator for AI/OCR pipelines
    """
    model_config = ConfigDict(frozen=True)

    file_path: str = Field(..., min_length=1)
    download_url: str
    gs_uri: str

    def to_urls(self) -> ReceiptUrls:
        return ReceiptUrls(download_url=self.download_url, gs_uri=self.gs_uri)


class SignedUpload(BaseModel):
    """Signed upload slot issued by the backend for guest receipts."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    signed_url: str = Field(..., alias="signedUrl")
    file_path: str = Field(..., alias="filePath")
    expires_at: Optional[str] = Field(default=None, alias="expiresAt")
