"""
Audit Models for Expense Assets

Every upload, deletion and auth degradation is recorded as an AuditEvent.
Auth failures never surface as exceptions, so these events are the only
place an outage that looks like "logged out" can be told apart from a
real sign-out.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Uploads
    RECEIPT_UPLOADED = "receipt_uploaded"
    RECEIPT_UPLOAD_FAILED = "receipt_upload_failed"
    RECEIPT_BATCH_UPLOADED = "receipt_batch_uploaded"
    RECEIPT_DELETED = "receipt_deleted"
    AVATAR_UPLOADED = "avatar_uploaded"
    GUEST_RECEIPT_UPLOADED = "guest_receipt_uploaded"

    # Auth
    APP_INITIALIZED = "app_initialized"
    APP_INITIALIZATION_FAILED = "app_initialization_failed"
    TOKEN_UNAVAILABLE = "token_unavailable"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=_utcnow)

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Storage paths and user IDs, not UUIDs
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'receipt', 'avatar', 'app')"
    )
    entity_id: Optional[str] = None

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all uploads in one batch)"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_type: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_type": self.error_type,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.receipt_uploaded(owner_id, file_path)
        event = AuditEventBuilder.token_unavailable(error)
    """

    @staticmethod
    def receipt_uploaded(
        owner_id: str,
        file_path: str,
        group_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_UPLOADED,
            entity_type="receipt",
            entity_id=file_path,
            correlation_id=correlation_id,
            description=f"Receipt uploaded: {file_path}",
            details={
                "owner_id": owner_id,
                "group_id": group_id,
            },
        )

    @staticmethod
    def receipt_upload_failed(
        file_path: str,
        error: BaseException,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_UPLOAD_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="receipt",
            entity_id=file_path,
            correlation_id=correlation_id,
            description=f"Receipt upload failed: {file_path}",
            error_type=type(error).__name__,
            error_message=str(error),
        )

    @staticmethod
    def receipt_batch_uploaded(
        owner_id: str,
        count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_BATCH_UPLOADED,
            entity_type="receipt_batch",
            entity_id=owner_id,
            correlation_id=correlation_id,
            description=f"Uploaded {count} receipts",
            details={"count": count},
        )

    @staticmethod
    def receipt_deleted(bucket: str, full_path: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_DELETED,
            entity_type="receipt",
            entity_id=full_path,
            description=f"Receipt deleted: {full_path}",
            details={"bucket": bucket},
        )

    @staticmethod
    def avatar_uploaded(owner_id: str, file_path: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AVATAR_UPLOADED,
            entity_type="avatar",
            entity_id=file_path,
            description=f"Avatar uploaded for {owner_id}",
            details={"owner_id": owner_id},
        )

    @staticmethod
    def guest_receipt_uploaded(file_path: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GUEST_RECEIPT_UPLOADED,
            entity_type="receipt",
            entity_id=file_path,
            description=f"Guest receipt uploaded: {file_path}",
        )

    @staticmethod
    def app_initialized(app_name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.APP_INITIALIZED,
            entity_type="app",
            entity_id=app_name,
            description=f"Firebase app initialized: {app_name}",
        )

    @staticmethod
    def app_initialization_failed(app_name: str, error: BaseException) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.APP_INITIALIZATION_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="app",
            entity_id=app_name,
            description=f"Firebase app initialization failed: {app_name}",
            error_type=type(error).__name__,
            error_message=str(error),
        )

    @staticmethod
    def token_unavailable(error: BaseException, force_refresh: bool) -> AuditEvent:
        # WARNING, not ERROR: callers see this as a signed-out state
        return AuditEvent(
            event_type=AuditEventType.TOKEN_UNAVAILABLE,
            severity=AuditSeverity.WARNING,
            entity_type="token",
            description="ID token unavailable, treating caller as signed out",
            details={"force_refresh": force_refresh},
            error_type=type(error).__name__,
            error_message=str(error),
        )
