"""
Base service class providing common functionality for all services.
"""

from typing import TypeVar, Generic, Optional, Dict, Any
from abc import ABC
from contextlib import contextmanager

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from leave_engine.core.exceptions import (
    AuthorizationError,
    BaseAppException,
    ConfigurationError,
    OptimisticLockError,
    PersistenceError,
    ResourceNotFoundError,
    StateConflictError,
    ValidationError,
)
from leave_engine.core.logging import get_logger
from leave_engine.repositories.base.base_repository import BaseRepository
from leave_engine.services.base.service_result import (
    ServiceResult,
    ServiceError,
    ErrorCode,
    ErrorSeverity,
)


TModel = TypeVar("TModel")
TRepo = TypeVar("TRepo", bound=BaseRepository)


class BaseService(ABC, Generic[TModel, TRepo]):
    """
    Base service with common behaviors:
    - Shared logger and db session
    - Consistent error handling via ServiceResult
    - Transaction management utilities
    """

    def __init__(self, repository: TRepo, db_session: Session):
        """
        Initialize base service.

        Args:
            repository: Repository instance for data access
            db_session: SQLAlchemy database session
        """
        self.repository: TRepo = repository
        self.db: Session = db_session
        self._logger = get_logger(self.__class__.__name__)

    # -------------------------------------------------------------------------
    # Exception & Error Handling
    # -------------------------------------------------------------------------

    def _handle_exception(
        self,
        exception: Exception,
        operation: str,
        entity_ref: Optional[Any] = None,
        severity: ErrorSeverity = ErrorSeverity.CRITICAL,
        additional_context: Optional[Dict[str, Any]] = None,
    ) -> ServiceResult:
        """
        Convert exception to a ServiceResult failure with logging.

        Engine exceptions keep their own message and details so callers
        can show rule-specific guidance; anything else is reported as a
        failure of ``operation``.

        Args:
            exception: The caught exception
            operation: Description of the operation that failed
            entity_ref: Reference to the entity involved (ID, name, etc.)
            severity: Error severity level for unexpected failures
            additional_context: Extra context for logging/debugging

        Returns:
            ServiceResult with failure status and error details
        """
        context = {
            "operation": operation,
            "entity_ref": str(entity_ref) if entity_ref is not None else None,
            "exception_type": type(exception).__name__,
        }

        if additional_context:
            context.update(additional_context)

        error_code = self._map_exception_to_error_code(exception)

        if isinstance(exception, BaseAppException):
            self._logger.warning(
                f"{operation} rejected: {exception.message}",
                extra=context,
            )
            return ServiceResult.failure(
                ServiceError(
                    code=error_code,
                    message=exception.message,
                    details=exception.details,
                    severity=ErrorSeverity.WARNING,
                )
            )

        # Log with full context
        self._logger.error(
            f"Error during {operation}: {exception}",
            exc_info=True,
            extra=context,
        )

        return ServiceResult.failure(
            ServiceError(
                code=error_code,
                message=f"Failed to {operation}",
                details={
                    "error": str(exception),
                    "entity_ref": str(entity_ref) if entity_ref is not None else None,
                    "context": additional_context,
                },
                severity=severity,
            )
        )

    def _map_exception_to_error_code(self, exception: Exception) -> ErrorCode:
        """
        Map exception types to appropriate error codes.

        Args:
            exception: The exception to map

        Returns:
            Appropriate ErrorCode for the exception
        """
        exception_mapping = {
            ValidationError: ErrorCode.VALIDATION_ERROR,
            StateConflictError: ErrorCode.CONFLICT,
            StaleDataError: ErrorCode.CONFLICT,
            ConfigurationError: ErrorCode.CONFIGURATION_ERROR,
            AuthorizationError: ErrorCode.UNAUTHORIZED,
            ResourceNotFoundError: ErrorCode.NOT_FOUND,
            PersistenceError: ErrorCode.PERSISTENCE_ERROR,
            SQLAlchemyError: ErrorCode.PERSISTENCE_ERROR,
        }

        for exc_type, error_code in exception_mapping.items():
            if isinstance(exception, exc_type):
                return error_code

        return ErrorCode.INTERNAL_ERROR

    # -------------------------------------------------------------------------
    # Transaction Management
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self, auto_commit: bool = True):
        """
        Context manager for database transactions with automatic rollback.

        Args:
            auto_commit: Whether to commit automatically on success

        Yields:
            The database session

        Example:
            with self.transaction():
                self.repository.create(entity)
                # automatic commit on success, rollback on exception
        """
        try:
            yield self.db
            if auto_commit:
                self._commit()
        except StaleDataError as e:
            self._rollback()
            self._logger.warning(f"Concurrent modification detected: {e}")
            raise OptimisticLockError() from e
        except Exception as e:
            self._rollback()
            if isinstance(e, BaseAppException):
                self._logger.debug(f"Transaction aborted: {e}")
            else:
                self._logger.error(f"Transaction failed: {e}", exc_info=True)
            raise

    def _commit(self) -> None:
        """Commit the current transaction with error handling."""
        try:
            self.db.commit()
            self._logger.debug("Transaction committed successfully")
        except StaleDataError:
            raise
        except SQLAlchemyError as e:
            self._logger.error(f"Commit failed: {e}", exc_info=True)
            raise PersistenceError(f"Commit failed: {e}") from e

    def _rollback(self) -> None:
        """Rollback the current transaction, suppressing rollback errors."""
        try:
            self.db.rollback()
            self._logger.debug("Transaction rolled back")
        except SQLAlchemyError as e:
            # Log but don't raise - rollback errors should not mask original error
            self._logger.warning(f"Rollback failed: {e}")

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    def _log_operation(
        self,
        operation: str,
        entity_ref: Optional[Any] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Log service operation with standardized format.

        Args:
            operation: Description of the operation
            entity_ref: Reference to the entity involved
            extra: Additional context to log
        """
        context = {"entity_ref": str(entity_ref) if entity_ref else None}
        if extra:
            context.update(extra)

        self._logger.info(f"Operation: {operation}", extra=context)
