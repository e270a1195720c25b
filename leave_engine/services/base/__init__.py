"""
Base service layer: results, base service and external collaborators.
"""

from leave_engine.services.base.audit_service import (
    AuditAction,
    AuditEntry,
    AuditLogger,
    InMemoryAuditLogger,
    LoggingAuditLogger,
    record_safely,
)
from leave_engine.services.base.base_service import BaseService
from leave_engine.services.base.notification_dispatcher import (
    InMemoryNotificationDispatcher,
    LeaveNotification,
    LoggingNotificationDispatcher,
    NotificationDispatcher,
    NotificationEvent,
    dispatch_safely,
)
from leave_engine.services.base.service_result import (
    ErrorCode,
    ErrorSeverity,
    ServiceError,
    ServiceResult,
)

__all__ = [
    "AuditAction",
    "AuditEntry",
    "AuditLogger",
    "InMemoryAuditLogger",
    "LoggingAuditLogger",
    "record_safely",
    "BaseService",
    "InMemoryNotificationDispatcher",
    "LeaveNotification",
    "LoggingNotificationDispatcher",
    "NotificationDispatcher",
    "NotificationEvent",
    "dispatch_safely",
    "ErrorCode",
    "ErrorSeverity",
    "ServiceError",
    "ServiceResult",
]
