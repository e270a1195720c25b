"""
Core utilities: exceptions and logging.
"""

from leave_engine.core.exceptions import (
    AuthorizationError,
    BaseAppException,
    ConfigurationError,
    ErrorCode,
    PersistenceError,
    ResourceNotFoundError,
    StateConflictError,
    ValidationError,
)
from leave_engine.core.logging import get_logger, setup_logging

__all__ = [
    "AuthorizationError",
    "BaseAppException",
    "ConfigurationError",
    "ErrorCode",
    "PersistenceError",
    "ResourceNotFoundError",
    "StateConflictError",
    "ValidationError",
    "get_logger",
    "setup_logging",
]
