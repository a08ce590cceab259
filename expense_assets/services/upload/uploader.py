"""
Receipt Upload Service

Uploads receipt and avatar images and returns the three references the rest
of the app needs:
- file_path: stored in the database via the backend API
- download_url: shown to the user right away
- gs_uri: handed to the AI/OCR pipeline

Storage layout:
    receipts/{owner_id}/{timestamp_ms}.jpg
    receipts/{owner_id}/{group_id}/{timestamp_ms}.jpg
    avatars/{owner_id}

KNOWN WEAKNESS: Receipt keys are unique only per millisecond. Within one
ReceiptUploader timestamps are made strictly increasing, but two processes
uploading for the same owner/group in the same millisecond overwrite each
other.

Failures are never retried and never partially reported: an upload either
returns a complete UploadResult or raises ReceiptUploadError.
"""

import asyncio
import time
from typing import Callable, Optional, Sequence
from uuid import UUID

import structlog

from expense_assets.audit.logger import AuditLogger, create_correlation_id
from expense_assets.config.settings import AppSettings, get_settings
from expense_assets.models.upload import ReceiptUrls, StorageRef, UploadResult
from expense_assets.services.api.client import BackendApiClient
from expense_assets.services.storage.interface import ObjectStorageInterface
from expense_assets.services.upload.errors import ReceiptUploadError
from expense_assets.services.upload.sources import ImageSource, select_image_source


logger = structlog.get_logger(__name__)


def current_millis() -> int:
    return int(time.time() * 1000)


def _check_segment(name: str, value: str) -> None:
    if not value:
        raise ValueError(f"{name} must not be empty")
    if "/" in value:
        raise ValueError(f"{name} must not contain '/': {value!r}")


def build_receipt_path(
    owner_id: str,
    timestamp_ms: int,
    group_id: Optional[str] = None,
    prefix: str = "receipts",
) -> str:
    """
    Build the storage key for a receipt.

    >>> build_receipt_path("u1", 1700000000000)
    'receipts/u1/1700000000000.jpg'
    >>> build_receipt_path("u1", 1700000000000, group_id="e9")
    'receipts/u1/e9/1700000000000.jpg'
    """
    _check_segment("owner_id", owner_id)
    if group_id is not None:
        _check_segment("group_id", group_id)
        return f"{prefix}/{owner_id}/{group_id}/{timestamp_ms}.jpg"
    return f"{prefix}/{owner_id}/{timestamp_ms}.jpg"


def build_avatar_path(owner_id: str, prefix: str = "avatars") -> str:
    _check_segment("owner_id", owner_id)
    return f"{prefix}/{owner_id}"


class ReceiptUploader:
    """
    Asset upload adapter.

    Flow per upload:
    1. Read the local image through the platform's ImageSource
    2. Put it at a deterministic storage key
    3. Resolve a display URL for the stored object
    4. Derive the gs:// URI from the bucket/path the storage reported
    """

    def __init__(
        self,
        storage: ObjectStorageInterface,
        image_source: Optional[ImageSource] = None,
        api_client: Optional[BackendApiClient] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
        clock: Callable[[], int] = current_millis,
        bucket_name: Optional[str] = None,
    ):
        self._settings = settings or get_settings().app
        self._bucket_name = bucket_name
        self._storage = storage
        self._image_source = image_source or select_image_source(self._settings.client_platform)
        self._api_client = api_client
        self._audit_logger = audit_logger
        self._clock = clock
        self._last_timestamp = 0

    def _next_timestamp(self) -> int:
        # Concurrent batch uploads would otherwise share a millisecond
        timestamp = max(self._clock(), self._last_timestamp + 1)
        self._last_timestamp = timestamp
        return timestamp

    async def _store(
        self,
        local_uri: str,
        file_path: str,
        correlation_id: Optional[UUID] = None,
    ) -> UploadResult:
        """Steps 1-4 for one object. Any failure becomes ReceiptUploadError."""
        try:
            payload = await self._image_source.read(local_uri)
            metadata = await self._storage.put(
                payload,
                file_path,
                self._settings.upload_content_type,
            )
            download_url = await self._storage.get_download_url(
                StorageRef(bucket=metadata.bucket, full_path=metadata.full_path)
            )
        except Exception as e:
            logger.error(
                "asset_upload_failed",
                file_path=file_path,
                error=str(e),
                error_type=type(e).__name__,
            )
            if self._audit_logger:
                self._audit_logger.log_receipt_upload_failed(file_path, e, correlation_id)
            raise ReceiptUploadError(f"Upload to {file_path} failed: {e}", file_path) from e

        return UploadResult(
            file_path=file_path,
            download_url=download_url,
            gs_uri=metadata.gs_uri,
        )

    async def upload_receipt(
        self,
        local_uri: str,
        owner_id: str,
        group_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> UploadResult:
        """
        Upload one receipt image.

        Args:
            local_uri: file:// URI (native) or data: URL (web)
            owner_id: The user's Firebase UID
            group_id: Optional expense ID to group receipts under
            correlation_id: Ties this upload to a batch in the audit log

        Returns:
            UploadResult with file_path, download_url and gs_uri

        Raises:
            ValueError: If owner_id/group_id cannot form a storage key
            ReceiptUploadError: If reading, transfer or URL resolution fails
        """
        file_path = build_receipt_path(
            owner_id,
            self._next_timestamp(),
            group_id=group_id,
            prefix=self._settings.receipts_prefix,
        )
        result = await self._store(local_uri, file_path, correlation_id)

        logger.info("receipt_uploaded", file_path=file_path, owner_id=owner_id)
        if self._audit_logger:
            self._audit_logger.log_receipt_uploaded(owner_id, file_path, group_id, correlation_id)
        return result

    async def upload_multiple_receipts(
        self,
        local_uris: Sequence[str],
        owner_id: str,
        group_id: Optional[str] = None,
    ) -> list[ReceiptUrls]:
        """
        Upload several receipts concurrently.

        All-or-nothing: if any upload fails, the first failure is raised and
        no results are returned (uploads already finished stay in storage).
        Results are in input order regardless of completion order.
        """
        if not local_uris:
            return []

        correlation_id = create_correlation_id()
        results = await asyncio.gather(
            *(
                self.upload_receipt(uri, owner_id, group_id, correlation_id)
                for uri in local_uris
            )
        )

        if self._audit_logger:
            self._audit_logger.log_receipt_batch_uploaded(owner_id, len(results), correlation_id)
        return [result.to_urls() for result in results]

    async def delete_receipt(self, receipt_url: str) -> None:
        """
        Delete a receipt by the download URL it was issued.

        No existence check; provider errors propagate unchanged.
        """
        ref = self._storage.ref_from_url(receipt_url)
        await self._storage.delete(ref)

        logger.info("receipt_deleted", bucket=ref.bucket, full_path=ref.full_path)
        if self._audit_logger:
            self._audit_logger.log_receipt_deleted(ref.bucket, ref.full_path)

    async def upload_avatar(self, local_uri: str, owner_id: str) -> UploadResult:
        """Upload a profile picture, replacing the previous one."""
        file_path = build_avatar_path(owner_id, prefix=self._settings.avatars_prefix)
        result = await self._store(local_uri, file_path)

        logger.info("avatar_uploaded", file_path=file_path, owner_id=owner_id)
        if self._audit_logger:
            self._audit_logger.log_avatar_uploaded(owner_id, file_path)
        return result

    async def upload_receipt_as_guest(
        self,
        local_uri: str,
        guest_token: str,
        bucket_name: Optional[str] = None,
    ) -> UploadResult:
        """
        Upload a receipt for a guest (no Firebase session) via a signed URL.

        The backend chooses the storage path. The returned download URL is
        the backend's file endpoint for that path, which streams the image
        to holders of a guest token with review access. A token that can
        only submit receives the upload references but cannot display them.

        Args:
            local_uri: file:// URI (native) or data: URL (web)
            guest_token: Guest link token
            bucket_name: Bucket the backend signs uploads for (for gs_uri);
                defaults to the bucket the uploader was built with

        Raises:
            ReceiptUploadError: If no API client or bucket is configured,
                or any step fails
        """
        if self._api_client is None:
            raise ReceiptUploadError("Guest uploads need a backend API client")
        bucket_name = bucket_name or self._bucket_name
        if not bucket_name:
            raise ReceiptUploadError("Guest uploads need the storage bucket name")

        content_type = self._settings.upload_content_type
        file_name = f"receipt_{self._next_timestamp()}.jpg"
        try:
            payload = await self._image_source.read(local_uri)
            signed = await self._api_client.get_guest_signed_upload_url(
                guest_token, file_name, content_type
            )
            await self._api_client.put_signed_upload(signed.signed_url, payload, content_type)
        except Exception as e:
            logger.error("guest_upload_failed", file_name=file_name, error=str(e))
            if self._audit_logger:
                self._audit_logger.log_receipt_upload_failed(file_name, e)
            raise ReceiptUploadError(f"Guest upload failed: {e}", file_name) from e

        logger.info("guest_receipt_uploaded", file_path=signed.file_path)
        if self._audit_logger:
            self._audit_logger.log_guest_receipt_uploaded(signed.file_path)
        return UploadResult(
            file_path=signed.file_path,
            download_url=self._api_client.guest_file_url(signed.file_path, guest_token),
            gs_uri=StorageRef(bucket=bucket_name, full_path=signed.file_path).gs_uri,
        )
