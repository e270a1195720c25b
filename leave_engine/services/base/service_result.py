"""
Service result patterns for standardized response handling.
"""

from typing import TypeVar, Generic, Optional, Any, Dict, List
from dataclasses import dataclass
from enum import Enum
from datetime import datetime, timezone

from leave_engine.core.exceptions import (
    AuthorizationError,
    BaseAppException,
    ConfigurationError,
    PersistenceError,
    ResourceNotFoundError,
    StateConflictError,
    ValidationError,
)


class ErrorCode(str, Enum):
    """Standard error codes for service operations."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    # Lifecycle errors
    CONFLICT = "CONFLICT"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Security errors
    UNAUTHORIZED = "UNAUTHORIZED"

    # Data errors
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"


class ErrorSeverity(str, Enum):
    """Error severity levels."""

    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class ServiceError:
    """Represents a service operation error with context."""

    code: ErrorCode
    message: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    details: Optional[Dict[str, Any]] = None
    field: Optional[str] = None
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        """Set timestamp if not provided."""
        if self.timestamp is None:
            self.timestamp = datetime.now(timezone.utc)

    @property
    def rule_codes(self) -> List[str]:
        """Violated rule codes of a validation failure."""
        issues = (self.details or {}).get("issues") or []
        return [issue["code"] for issue in issues]

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        return {
            "code": self.code.value,
            "message": self.message,
            "severity": self.severity.value,
            "details": self.details,
            "field": self.field,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

    def to_exception(self) -> BaseAppException:
        """Rebuild the typed exception this error stands for."""
        details = self.details or {}
        if self.code == ErrorCode.VALIDATION_ERROR:
            return ValidationError(self.message, issues=details.get("issues"))
        if self.code == ErrorCode.CONFLICT:
            return StateConflictError(self.message, details=details)
        if self.code == ErrorCode.CONFIGURATION_ERROR:
            return ConfigurationError(self.message, details=details)
        if self.code == ErrorCode.PERSISTENCE_ERROR:
            return PersistenceError(self.message, details=details)
        if self.code == ErrorCode.NOT_FOUND:
            return ResourceNotFoundError(
                details.get("resource_type", "Resource"),
                details.get("resource_id"),
                message=self.message,
            )
        if self.code == ErrorCode.UNAUTHORIZED:
            return AuthorizationError(self.message)
        return BaseAppException(self.message, details=details)


TData = TypeVar("TData")


@dataclass
class ServiceResult(Generic[TData]):
    """
    Standardized service operation result with success/failure pattern.

    Attributes:
        is_success: Operation success indicator
        data: Result data (if successful)
        error: Error information (if failed)
        message: Human-readable status message
        metadata: Additional context information
    """

    is_success: bool
    data: Optional[TData] = None
    error: Optional[ServiceError] = None
    message: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def success(
        cls,
        data: Optional[TData] = None,
        message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ServiceResult[TData]":
        """Create a successful result."""
        return cls(
            is_success=True,
            data=data,
            message=message,
            metadata=metadata or {},
        )

    @classmethod
    def failure(
        cls,
        error: ServiceError,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ServiceResult[TData]":
        """Create a failed result."""
        return cls(
            is_success=False,
            error=error,
            message=error.message,
            metadata=metadata or {},
        )

    def unwrap(self) -> TData:
        """
        Unwrap the result data or raise the typed exception if failed.

        Raises:
            BaseAppException: The exception matching the error code
        """
        if not self.is_success:
            if self.error is None:
                raise BaseAppException("Unknown error")
            raise self.error.to_exception()
        return self.data

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary representation."""
        result = {
            "is_success": self.is_success,
            "message": self.message,
            "metadata": self.metadata,
        }

        if self.is_success:
            result["data"] = self.data
        else:
            result["error"] = self.error.to_dict() if self.error else None

        return result

    def __bool__(self) -> bool:
        """Allow boolean evaluation of the result."""
        return self.is_success

    def __repr__(self) -> str:
        """String representation of the result."""
        status = "Success" if self.is_success else "Failure"
        if self.message:
            return f"ServiceResult({status}: {self.message})"
        return f"ServiceResult({status})"


__all__ = [
    "ErrorCode",
    "ErrorSeverity",
    "ServiceError",
    "ServiceResult",
]
