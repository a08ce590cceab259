"""
Tests for Expense Assets models

Test strategy:
1. Unit tests for individual components (models, builders)
2. Service tests with in-memory doubles (see conftest)
3. No real Firebase or backend calls in tests (use mocks)
"""

import pytest
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from pydantic import ValidationError

from expense_assets.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from expense_assets.models.auth import AuthUser, InitializationState
from expense_assets.models.upload import (
    ObjectMetadata,
    ReceiptUrls,
    SignedUpload,
    StorageRef,
    UploadResult,
)


class TestUploadModels:
    """Tests for upload-related Pydantic models."""

    def test_object_metadata_gs_uri(self):
        """Test gs:// URI is derived from bucket and path."""
        metadata = ObjectMetadata(bucket="test-bucket", full_path="receipts/u1/1.jpg")
        assert metadata.gs_uri == "gs://test-bucket/receipts/u1/1.jpg"

    def test_storage_ref_rejects_empty_path(self):
        """Test StorageRef requires a non-empty path."""
        with pytest.raises(ValidationError):
            StorageRef(bucket="test-bucket", full_path="")

    def test_upload_result_is_frozen(self):
        """Test UploadResult cannot be modified after creation."""
        result = UploadResult(
            file_path="receipts/u1/1.jpg",
            download_url="https://example.com/1.jpg",
            gs_uri="gs://test-bucket/receipts/u1/1.jpg",
        )
        with pytest.raises(ValidationError):
            result.file_path = "receipts/u2/1.jpg"

    def test_upload_result_to_urls(self):
        """Test the batch view keeps only the two URLs."""
        result = UploadResult(
            file_path="receipts/u1/1.jpg",
            download_url="https://example.com/1.jpg",
            gs_uri="gs://test-bucket/receipts/u1/1.jpg",
        )
        urls = result.to_urls()
        assert urls == ReceiptUrls(
            download_url="https://example.com/1.jpg",
            gs_uri="gs://test-bucket/receipts/u1/1.jpg",
        )

    def test_signed_upload_from_api_body(self):
        """Test SignedUpload parses the backend's camelCase body."""
        signed = SignedUpload.model_validate({
            "signedUrl": "https://storage.googleapis.com/x?sig=1",
            "filePath": "receipts/guest/1.jpg",
            "expiresAt": "2026-01-01T00:00:00Z",
        })
        assert signed.signed_url == "https://storage.googleapis.com/x?sig=1"
        assert signed.file_path == "receipts/guest/1.jpg"

    def test_signed_upload_without_expiry(self):
        """Test expiresAt is optional."""
        signed = SignedUpload(signed_url="https://x", file_path="a.jpg")
        assert signed.expires_at is None


class TestAuthModels:
    """Tests for the auth session model."""

    def _user(self, expires_at: datetime) -> AuthUser:
        return AuthUser(
            uid="u1",
            id_token="id-token",
            refresh_token="refresh-token",
            expires_at=expires_at,
        )

    def test_fresh_token_does_not_need_refresh(self):
        """Test a token valid for an hour is reused."""
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        user = self._user(now + timedelta(hours=1))
        assert user.needs_refresh(now) is False

    def test_token_inside_margin_needs_refresh(self):
        """Test a token expiring within five minutes is treated as stale."""
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        user = self._user(now + timedelta(minutes=4))
        assert user.needs_refresh(now) is True

    def test_expiry_from_string_seconds(self):
        """Test expiresIn strings from the REST API are converted."""
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert AuthUser.expiry_from("3600", now) == now + timedelta(hours=1)

    def test_initialization_states(self):
        """Test the three initialization states exist."""
        assert {s.value for s in InitializationState} == {
            "uninitialized", "succeeded", "failed"
        }


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.RECEIPT_UPLOADED,
            description="Test receipt uploaded",
        )
        assert event.event_type == AuditEventType.RECEIPT_UPLOADED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.RECEIPT_DELETED,
            description="Receipt deleted",
            details={"bucket": "test-bucket"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "receipt_deleted"
        assert log_dict["details"]["bucket"] == "test-bucket"
        assert log_dict["correlation_id"] is None

    def test_audit_event_builder_receipt_uploaded(self):
        """Test AuditEventBuilder.receipt_uploaded."""
        correlation_id = uuid4()

        event = AuditEventBuilder.receipt_uploaded(
            owner_id="u1",
            file_path="receipts/u1/e1/1.jpg",
            group_id="e1",
            correlation_id=correlation_id,
        )

        assert event.event_type == AuditEventType.RECEIPT_UPLOADED
        assert event.entity_id == "receipts/u1/e1/1.jpg"
        assert event.correlation_id == correlation_id
        assert event.details == {"owner_id": "u1", "group_id": "e1"}

    def test_audit_event_builder_upload_failed(self):
        """Test failures record the error type and message."""
        event = AuditEventBuilder.receipt_upload_failed(
            file_path="receipts/u1/1.jpg",
            error=RuntimeError("quota exceeded"),
        )

        assert event.severity == AuditSeverity.ERROR
        assert event.error_type == "RuntimeError"
        assert event.error_message == "quota exceeded"

    def test_audit_event_builder_token_unavailable(self):
        """Test token degradation is a warning, not an error."""
        event = AuditEventBuilder.token_unavailable(ValueError("boom"), force_refresh=True)

        assert event.event_type == AuditEventType.TOKEN_UNAVAILABLE
        assert event.severity == AuditSeverity.WARNING
        assert event.details["force_refresh"] is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
