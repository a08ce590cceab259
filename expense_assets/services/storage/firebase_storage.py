"""
Firebase Storage Implementation

Objects live in the app's default Cloud Storage bucket, reached through
firebase-admin. Display URLs use the same tokenized
firebasestorage.googleapis.com form the Firebase client SDKs hand out, so
URLs produced here and by the mobile/web clients are interchangeable.

The google-cloud-storage calls underneath are blocking; each one runs in a
worker thread so the event loop keeps serving other uploads.
"""

import asyncio
import re
from typing import Optional
from urllib.parse import quote, unquote, urlparse
from uuid import uuid4

import structlog
from firebase_admin import storage
from google.cloud.storage import Bucket

from expense_assets.models.upload import ObjectMetadata, StorageRef
from expense_assets.services.auth.context import AppContext
from expense_assets.services.storage.interface import (
    InvalidStorageUrlError,
    ObjectNotFoundError,
    ObjectStorageInterface,
    StorageUnavailableError,
)


logger = structlog.get_logger(__name__)

# Custom metadata key Firebase reads download tokens from.
# May hold several comma-separated tokens; the first one is used.
DOWNLOAD_TOKENS_KEY = "firebaseStorageDownloadTokens"

FIREBASE_STORAGE_HOST = "firebasestorage.googleapis.com"
GCS_HOST = "storage.googleapis.com"

_FIREBASE_PATH_RE = re.compile(r"^/v0/b/(?P<bucket>[^/]+)/o/(?P<path>.+)$")


def build_download_url(bucket: str, full_path: str, token: str) -> str:
    """Build a tokenized Firebase download URL for an object."""
    return (
        f"https://{FIREBASE_STORAGE_HOST}/v0/b/{bucket}/o/"
        f"{quote(full_path, safe='')}?alt=media&token={token}"
    )


def parse_storage_url(url: str) -> StorageRef:
    """
    Resolve a storage URL to the object it names.

    Accepted forms:
        https://firebasestorage.googleapis.com/v0/b/<bucket>/o/<quoted path>?...
        gs://<bucket>/<path>
        https://storage.googleapis.com/<bucket>/<path>
    """
    parsed = urlparse(url)

    if parsed.scheme == "gs":
        full_path = parsed.path.lstrip("/")
        if parsed.netloc and full_path:
            return StorageRef(bucket=parsed.netloc, full_path=full_path)

    elif parsed.scheme in ("http", "https"):
        if parsed.netloc == FIREBASE_STORAGE_HOST:
            match = _FIREBASE_PATH_RE.match(parsed.path)
            if match:
                return StorageRef(
                    bucket=match.group("bucket"),
                    full_path=unquote(match.group("path")),
                )
        elif parsed.netloc == GCS_HOST:
            bucket, _, full_path = parsed.path.lstrip("/").partition("/")
            if bucket and full_path:
                return StorageRef(bucket=bucket, full_path=unquote(full_path))

    raise InvalidStorageUrlError(f"Not a storage URL: {url}")


class FirebaseObjectStorage(ObjectStorageInterface):
    """
    Firebase Storage backend.

    The bucket is resolved lazily from the app held by app_context,
    or from firebase-admin's default app when no context is given.
    A ready-made bucket can be injected instead (tests, scripts).
    """

    def __init__(
        self,
        app_context: Optional[AppContext] = None,
        bucket_name: Optional[str] = None,
        bucket: Optional[Bucket] = None,
    ):
        self._app_context = app_context
        self._bucket_name = bucket_name
        self._bucket = bucket

    def _get_bucket(self) -> Bucket:
        if self._bucket is None:
            app = None
            if self._app_context is not None:
                app = self._app_context.get_or_initialize()
                if app is None:
                    raise StorageUnavailableError("Firebase app is not initialized")
            self._bucket = storage.bucket(self._bucket_name, app=app)
        return self._bucket

    def _bucket_for(self, ref: StorageRef) -> Bucket:
        bucket = self._get_bucket()
        if ref.bucket == bucket.name:
            return bucket
        return bucket.client.bucket(ref.bucket)

    # -------------------------------------------------------------------------
    # Blocking helpers (run via asyncio.to_thread)
    # -------------------------------------------------------------------------

    def _put_sync(self, payload: bytes, destination_key: str, content_type: str) -> ObjectMetadata:
        bucket = self._get_bucket()
        blob = bucket.blob(destination_key)
        blob.metadata = {DOWNLOAD_TOKENS_KEY: str(uuid4())}
        blob.upload_from_string(payload, content_type=content_type)
        logger.debug(
            "storage_object_written",
            bucket=bucket.name,
            full_path=blob.name,
            size_bytes=len(payload),
        )
        return ObjectMetadata(bucket=bucket.name, full_path=blob.name)

    def _download_url_sync(self, ref: StorageRef) -> str:
        blob = self._bucket_for(ref).get_blob(ref.full_path)
        if blob is None:
            raise ObjectNotFoundError(f"Object not found: {ref.gs_uri}")

        metadata = dict(blob.metadata or {})
        tokens = metadata.get(DOWNLOAD_TOKENS_KEY)
        if not tokens:
            # Objects written by other tools have no token yet
            tokens = str(uuid4())
            metadata[DOWNLOAD_TOKENS_KEY] = tokens
            blob.metadata = metadata
            blob.patch()

        return build_download_url(ref.bucket, ref.full_path, tokens.split(",")[0])

    def _delete_sync(self, ref: StorageRef) -> None:
        self._bucket_for(ref).blob(ref.full_path).delete()

    # -------------------------------------------------------------------------
    # ObjectStorageInterface
    # -------------------------------------------------------------------------

    async def put(
        self,
        payload: bytes,
        destination_key: str,
        content_type: str,
    ) -> ObjectMetadata:
        return await asyncio.to_thread(self._put_sync, payload, destination_key, content_type)

    async def get_download_url(self, ref: StorageRef) -> str:
        return await asyncio.to_thread(self._download_url_sync, ref)

    def ref_from_url(self, url: str) -> StorageRef:
        return parse_storage_url(url)

    async def delete(self, ref: StorageRef) -> None:
        await asyncio.to_thread(self._delete_sync, ref)
