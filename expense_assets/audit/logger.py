"""
Audit Logger

Every upload, deletion and auth degradation is logged as a structured
event. The token provider swallows its errors by contract, so this log is
where those errors end up.

The audit logger:
- Logs locally through structlog (JSON lines)
- Never raises into the caller
- Supports correlation IDs to trace related events (e.g., one batch upload)
"""

import logging
from typing import Callable, Optional
from uuid import UUID, uuid4

import structlog
from pydantic import ValidationError

from expense_assets.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through stdlib logging at the given level."""
    logging.basicConfig(format="%(message)s", level=level.upper())


class AuditLogger:
    """Central audit logging service."""

    def __init__(self, logger_name: str = "expense_assets.audit"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be written.
        """
        log_dict = event.to_log_dict()
        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            # A broken log handler must not break an upload
            return False
        return True

    def _build_and_log(self, build: Callable[..., AuditEvent], **kwargs) -> bool:
        """Build an event with an AuditEventBuilder method and log it."""
        try:
            event = build(**kwargs)
        except ValidationError as e:
            # e.g. a storage path too long for the description field
            self._logger.warning(
                "audit_event_invalid",
                builder=build.__name__,
                error_count=e.error_count(),
                error=str(e),
            )
            return False
        return self.log(event)

    def log_receipt_uploaded(
        self,
        owner_id: str,
        file_path: str,
        group_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        return self._build_and_log(
            AuditEventBuilder.receipt_uploaded,
            owner_id=owner_id,
            file_path=file_path,
            group_id=group_id,
            correlation_id=correlation_id,
        )

    def log_receipt_upload_failed(
        self,
        file_path: str,
        error: BaseException,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        return self._build_and_log(
            AuditEventBuilder.receipt_upload_failed,
            file_path=file_path,
            error=error,
            correlation_id=correlation_id,
        )

    def log_receipt_batch_uploaded(
        self,
        owner_id: str,
        count: int,
        correlation_id: UUID,
    ) -> bool:
        return self._build_and_log(
            AuditEventBuilder.receipt_batch_uploaded,
            owner_id=owner_id,
            count=count,
            correlation_id=correlation_id,
        )

    def log_receipt_deleted(self, bucket: str, full_path: str) -> bool:
        return self._build_and_log(
            AuditEventBuilder.receipt_deleted, bucket=bucket, full_path=full_path
        )

    def log_avatar_uploaded(self, owner_id: str, file_path: str) -> bool:
        return self._build_and_log(
            AuditEventBuilder.avatar_uploaded, owner_id=owner_id, file_path=file_path
        )

    def log_guest_receipt_uploaded(self, file_path: str) -> bool:
        return self._build_and_log(AuditEventBuilder.guest_receipt_uploaded, file_path=file_path)

    def log_app_initialized(self, app_name: str) -> bool:
        return self._build_and_log(AuditEventBuilder.app_initialized, app_name=app_name)

    def log_app_initialization_failed(self, app_name: str, error: BaseException) -> bool:
        return self._build_and_log(
            AuditEventBuilder.app_initialization_failed, app_name=app_name, error=error
        )

    def log_token_unavailable(self, error: BaseException, force_refresh: bool) -> bool:
        return self._build_and_log(
            AuditEventBuilder.token_unavailable, error=error, force_refresh=force_refresh
        )


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a multi-step action (e.g., a batch upload)
    and pass it through all subsequent operations.
    """
    return uuid4()
