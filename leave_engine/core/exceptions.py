"""
Custom Exceptions for the Leave Engine

This module defines custom exception classes used throughout the engine
for better error handling and debugging.
"""

from typing import Any, Dict, List, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the engine"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    OPERATION_FAILED = "OPERATION_FAILED"

    # Authorization
    AUTHORIZATION_FAILED = "AUTHORIZATION_FAILED"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Lifecycle errors
    STATE_CONFLICT = "STATE_CONFLICT"
    OPTIMISTIC_LOCK_FAILED = "OPTIMISTIC_LOCK_FAILED"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class BaseAppException(Exception):
    """
    Base exception class for all engine exceptions.

    Provides consistent error handling across the engine with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format"""
        return {
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# Lifecycle Exceptions
# ========================================

class ValidationError(BaseAppException):
    """
    Raised when one or more blocking leave rules are violated.

    ``issues`` holds the violated rules as dictionaries with ``code``,
    ``message`` and optional ``field`` keys. The exception message names
    the first violated rule so callers can surface rule-specific guidance.
    """

    def __init__(
        self,
        message: Optional[str] = None,
        issues: Optional[List[Dict[str, Any]]] = None,
    ):
        self.issues = issues or []
        if message is None:
            message = self.issues[0]["message"] if self.issues else "Validation failed"
        details = {"issues": self.issues} if self.issues else {}
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details)

    @property
    def rule_codes(self) -> List[str]:
        return [issue["code"] for issue in self.issues]


class StateConflictError(BaseAppException):
    """Raised when a transition is not allowed from the current state"""

    def __init__(
        self,
        message: str = "Operation conflicts with the current state",
        current_status: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        error_code: ErrorCode = ErrorCode.STATE_CONFLICT,
    ):
        details = dict(details or {})
        if current_status is not None:
            details["current_status"] = current_status
        super().__init__(message, error_code, details)


class OptimisticLockError(StateConflictError):
    """Raised when a row changed underneath a transition"""

    def __init__(self, message: str = "Record was modified concurrently"):
        super().__init__(message, error_code=ErrorCode.OPTIMISTIC_LOCK_FAILED)


class ConfigurationError(BaseAppException):
    """Raised for office configuration problems (workflow, delegations, approvers)"""

    def __init__(
        self,
        message: str = "Configuration error",
        config_key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if config_key:
            details["config_key"] = config_key
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class AuthorizationError(BaseAppException):
    """Raised when the actor may not perform the operation"""

    def __init__(
        self,
        message: str = "Not authorized",
        actor_id: Optional[str] = None,
    ):
        details = {"actor_id": actor_id} if actor_id else {}
        super().__init__(message, ErrorCode.AUTHORIZATION_FAILED, details)


class ResourceNotFoundError(BaseAppException):
    """Exception raised when a requested resource is not found"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, ErrorCode.RESOURCE_NOT_FOUND, details)


# ========================================
# Persistence Exceptions
# ========================================

class PersistenceError(BaseAppException):
    """Raised when a transaction cannot be committed"""

    def __init__(
        self,
        message: str = "Database operation failed",
        error_code: ErrorCode = ErrorCode.DATABASE_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, details)


class RepositoryError(PersistenceError):
    """Raised by repositories on data access failures"""


class EntityNotFoundError(ResourceNotFoundError):
    """Raised by repositories when a looked-up row does not exist"""


class EntityAlreadyExistsError(PersistenceError):
    """Raised on unique constraint violations"""

    def __init__(self, message: str = "Entity already exists"):
        super().__init__(message, ErrorCode.DUPLICATE_ENTRY)


__all__ = [
    "ErrorCode",
    "BaseAppException",
    "ValidationError",
    "StateConflictError",
    "OptimisticLockError",
    "ConfigurationError",
    "AuthorizationError",
    "ResourceNotFoundError",
    "PersistenceError",
    "RepositoryError",
    "EntityNotFoundError",
    "EntityAlreadyExistsError",
]
