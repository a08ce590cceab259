"""Tests for configuration loading and component wiring."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from expense_assets.config import get_settings, validate_all_settings
from expense_assets.config.settings import BackendApiSettings, FirebaseSettings
from expense_assets.models.upload import SignedUpload
from expense_assets.orchestrator import create_app_components
from expense_assets.services.upload import DataUrlSource, FileUriSource

from tests.conftest import FakeIdentityProvider, InMemoryStorage


@pytest.fixture
def firebase_env(monkeypatch):
    monkeypatch.setenv("FIREBASE_API_KEY", "env-api-key")
    monkeypatch.setenv("FIREBASE_PROJECT_ID", "env-project")
    monkeypatch.setenv("FIREBASE_STORAGE_BUCKET", "env-bucket")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Tests for the pydantic-settings sections."""

    def test_firebase_from_env(self, firebase_env):
        """Test FIREBASE_-prefixed variables are picked up."""
        settings = get_settings().firebase
        assert settings.api_key == "env-api-key"
        assert settings.app_name == "[DEFAULT]"
        assert settings.to_app_options() == {
            "projectId": "env-project",
            "storageBucket": "env-bucket",
        }

    def test_missing_firebase_config(self, monkeypatch):
        """Test validate_all_settings reports a missing section instead of raising."""
        for name in ("FIREBASE_API_KEY", "FIREBASE_PROJECT_ID", "FIREBASE_STORAGE_BUCKET"):
            monkeypatch.delenv(name, raising=False)
        get_settings.cache_clear()

        results = validate_all_settings()

        assert results["firebase"] is False
        assert "firebase_error" in results
        assert results["app"] is True
        get_settings.cache_clear()

    def test_base_url_trailing_slash_is_stripped(self):
        """Test endpoint paths can be appended directly."""
        assert BackendApiSettings(base_url="https://api.test/").base_url == "https://api.test"

    def test_service_account_path_warns_when_missing(self, tmp_path):
        """Test a missing credentials file warns but does not fail."""
        with pytest.warns(UserWarning, match="service account"):
            FirebaseSettings(
                api_key="k",
                project_id="p",
                storage_bucket="b",
                service_account_path=str(tmp_path / "missing.json"),
            )


class TestCreateAppComponents:
    """Tests for the component factory."""

    def test_wires_shared_context(self, firebase_env, signed_in_user):
        """Test uploader and token provider share one lazily created app."""
        identity = FakeIdentityProvider(user=signed_in_user)
        storage = InMemoryStorage(bucket="env-bucket")

        uploader, token_provider, api_client = create_app_components(
            identity_provider=identity,
            storage=storage,
        )

        assert identity.init_calls == 0
        assert asyncio.run(token_provider.get_token()) == "cached-token"
        assert identity.init_calls == 1
        assert api_client.base_url == "https://api.gokeystone.org"

        result = asyncio.run(uploader.upload_receipt(__file__, "u1"))
        assert result.gs_uri.startswith("gs://env-bucket/receipts/u1/")

    def test_guest_uploads_use_configured_bucket(self, firebase_env):
        """Test the uploader receives the Firebase bucket for guest gs:// URIs."""
        uploader, _, api_client = create_app_components(
            identity_provider=FakeIdentityProvider(),
            storage=InMemoryStorage(),
        )
        api_client.get_guest_signed_upload_url = AsyncMock(return_value=SignedUpload(
            signed_url="https://storage.googleapis.com/upload?sig=1",
            file_path="receipts/guest/1.jpg",
        ))
        api_client.put_signed_upload = AsyncMock()

        result = asyncio.run(uploader.upload_receipt_as_guest(__file__, "guest-tok"))

        assert result.gs_uri == "gs://env-bucket/receipts/guest/1.jpg"
        assert result.download_url == (
            "https://api.gokeystone.org/api/guest/file/receipts%2Fguest%2F1.jpg?token=guest-tok"
        )

    @pytest.mark.parametrize("platform, source_type", [
        ("native", FileUriSource),
        ("web", DataUrlSource),
    ])
    def test_image_source_follows_platform(self, firebase_env, monkeypatch, platform, source_type):
        """Test CLIENT_PLATFORM selects the image source."""
        monkeypatch.setenv("CLIENT_PLATFORM", platform)

        uploader, _, _ = create_app_components(
            identity_provider=FakeIdentityProvider(),
            storage=InMemoryStorage(),
        )

        assert isinstance(uploader._image_source, source_type)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
