"""
Base repository with standardized CRUD operations and error handling.

Provides foundation for all domain repositories. Repositories flush
by default so that services own the transaction boundary.
"""

from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError, IntegrityError

from leave_engine.models.base import BaseModel
from leave_engine.core.logging import get_logger
from leave_engine.core.exceptions import (
    RepositoryError,
    EntityAlreadyExistsError,
)

logger = get_logger(__name__)

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with standardized operations.

    Provides CRUD operations and error handling
    for all domain repositories.
    """

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    # ==================== Create Operations ====================

    def create(self, entity: ModelType) -> ModelType:
        """
        Add a new entity and flush it.

        Raises:
            EntityAlreadyExistsError: If a unique constraint is violated
        """
        try:
            self.db.add(entity)
            self.db.flush()
            logger.debug(f"Created {self.model.__name__} with id: {entity.id}")
            return entity
        except IntegrityError as e:
            raise EntityAlreadyExistsError(
                f"{self.model.__name__} already exists"
            ) from e
        except SQLAlchemyError as e:
            raise RepositoryError(f"Create failed: {str(e)}") from e

    # ==================== Read Operations ====================

    def find_by_id(self, id: str) -> Optional[ModelType]:
        """
        Find entity by ID.

        Args:
            id: Entity ID

        Returns:
            Entity or None
        """
        try:
            return self.db.get(self.model, id)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Find by ID failed: {str(e)}") from e

    def find_by_criteria(
        self,
        criteria: Dict[str, Any],
        order_by: Optional[List[str]] = None,
        limit: Optional[int] = None,
    ) -> List[ModelType]:
        """
        Find entities matching criteria.

        Args:
            criteria: Filter criteria as key-value pairs
            order_by: List of fields to order by (prefix with - for desc)
            limit: Maximum number of records

        Returns:
            List of matching entities
        """
        try:
            stmt = select(self.model)

            # Apply criteria filters
            for key, value in criteria.items():
                column = getattr(self.model, key)
                if isinstance(value, (list, tuple, set, frozenset)):
                    stmt = stmt.where(column.in_(list(value)))
                else:
                    stmt = stmt.where(column == value)

            # Apply ordering
            for field_name in order_by or []:
                if field_name.startswith('-'):
                    stmt = stmt.order_by(getattr(self.model, field_name[1:]).desc())
                else:
                    stmt = stmt.order_by(getattr(self.model, field_name))

            if limit is not None:
                stmt = stmt.limit(limit)

            return list(self.db.scalars(stmt).all())

        except SQLAlchemyError as e:
            raise RepositoryError(f"Find by criteria failed: {str(e)}") from e

    def find_one_by_criteria(self, criteria: Dict[str, Any]) -> Optional[ModelType]:
        """Find single entity matching criteria."""
        results = self.find_by_criteria(criteria, limit=1)
        return results[0] if results else None

    # ==================== Session Helpers ====================

    def refresh(self, entity: ModelType) -> ModelType:
        """Reload entity state from the database."""
        self.db.refresh(entity)
        return entity

    def flush(self) -> None:
        try:
            self.db.flush()
        except IntegrityError as e:
            raise EntityAlreadyExistsError(
                f"{self.model.__name__} already exists"
            ) from e
