"""
Data Models Package

This package contains all Pydantic models used by Expense Assets.
"""

from expense_assets.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from expense_assets.models.auth import (
    TOKEN_REFRESH_MARGIN,
    AuthUser,
    InitializationState,
)
from expense_assets.models.upload import (
    ObjectMetadata,
    ReceiptUrls,
    SignedUpload,
    StorageRef,
    UploadResult,
)

__all__ = [
    # Upload models
    "ObjectMetadata",
    "ReceiptUrls",
    "SignedUpload",
    "StorageRef",
    "UploadResult",
    # Auth models
    "TOKEN_REFRESH_MARGIN",
    "AuthUser",
    "InitializationState",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
