"""
Shared test doubles.

No test talks to Firebase or the backend: storage, image sources and the
identity provider are replaced by the in-memory versions below.
"""

import asyncio
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest

from expense_assets.config.settings import AppSettings, FirebaseSettings
from expense_assets.models.auth import AuthUser
from expense_assets.models.upload import ObjectMetadata, StorageRef
from expense_assets.services.auth.interface import IdentityProviderInterface
from expense_assets.services.storage.firebase_storage import (
    build_download_url,
    parse_storage_url,
)
from expense_assets.services.storage.interface import (
    ObjectNotFoundError,
    ObjectStorageInterface,
)
from expense_assets.services.upload.sources import ImageSource


class InMemoryStorage(ObjectStorageInterface):
    """Object store backed by a dict, with per-payload delays and failures."""

    def __init__(
        self,
        bucket: str = "test-bucket",
        delays: Optional[dict[bytes, float]] = None,
        fail_on: Optional[set[bytes]] = None,
        fail_url_fetch: bool = False,
    ):
        self.bucket = bucket
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.put_calls: list[str] = []
        self.deleted: list[StorageRef] = []
        self._delays = delays or {}
        self._fail_on = fail_on or set()
        self._fail_url_fetch = fail_url_fetch

    async def put(self, payload: bytes, destination_key: str, content_type: str) -> ObjectMetadata:
        self.put_calls.append(destination_key)
        await asyncio.sleep(self._delays.get(payload, 0))
        if payload in self._fail_on:
            raise RuntimeError("transfer rejected")
        self.objects[destination_key] = (payload, content_type)
        return ObjectMetadata(bucket=self.bucket, full_path=destination_key)

    async def get_download_url(self, ref: StorageRef) -> str:
        if self._fail_url_fetch:
            raise RuntimeError("url fetch rejected")
        if ref.full_path not in self.objects:
            raise ObjectNotFoundError(ref.gs_uri)
        return build_download_url(ref.bucket, ref.full_path, "test-token")

    def ref_from_url(self, url: str) -> StorageRef:
        return parse_storage_url(url)

    async def delete(self, ref: StorageRef) -> None:
        self.deleted.append(ref)
        if ref.full_path not in self.objects:
            raise ObjectNotFoundError(ref.gs_uri)
        del self.objects[ref.full_path]


class EchoImageSource(ImageSource):
    """Returns the URI itself as the image bytes, so payloads identify inputs."""

    def __init__(self):
        self.reads: list[str] = []

    async def read(self, local_uri: str) -> bytes:
        self.reads.append(local_uri)
        return local_uri.encode()


class FakeAuth:
    def __init__(self, user: Optional[AuthUser] = None):
        self.current_user = user


class FakeIdentityProvider(IdentityProviderInterface):
    """
    Identity provider double.

    Tokens differ by refresh flag so tests can see which path was taken.
    """

    def __init__(
        self,
        user: Optional[AuthUser] = None,
        fail_init: bool = False,
        existing: Any = None,
        token_error: Optional[Exception] = None,
        init_delay: float = 0.0,
    ):
        self.app = object()
        self.auth = FakeAuth(user)
        self.init_calls = 0
        self.init_threads: list[int] = []
        self.token_calls: list[bool] = []
        self._fail_init = fail_init
        self._existing = existing
        self._token_error = token_error
        self._init_delay = init_delay

    def existing_app(self, config: FirebaseSettings) -> Any:
        return self._existing

    def initialize_app(self, config: FirebaseSettings) -> Any:
        self.init_calls += 1
        self.init_threads.append(threading.get_ident())
        if self._init_delay:
            time.sleep(self._init_delay)
        if self._fail_init:
            raise RuntimeError("invalid service account")
        return self.app

    def get_auth(self, app: Any) -> FakeAuth:
        return self.auth

    async def get_id_token(self, user: AuthUser, force_refresh: bool = False) -> str:
        self.token_calls.append(force_refresh)
        if self._token_error:
            raise self._token_error
        return "refreshed-token" if force_refresh else "cached-token"


@pytest.fixture
def firebase_settings() -> FirebaseSettings:
    return FirebaseSettings(
        api_key="test-api-key",
        project_id="test-project",
        storage_bucket="test-bucket",
    )


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(client_platform="native")


@pytest.fixture
def signed_in_user() -> AuthUser:
    return AuthUser(
        uid="u1",
        email="u1@example.com",
        id_token="id-token-1",
        refresh_token="refresh-token-1",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
    )
