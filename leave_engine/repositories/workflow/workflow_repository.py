"""
Workflow configuration and delegation repositories.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from leave_engine.core.exceptions import RepositoryError
from leave_engine.models.workflow import Delegation, WorkflowConfig
from leave_engine.repositories.base.base_repository import BaseRepository


class WorkflowConfigRepository(BaseRepository[WorkflowConfig]):
    """Office workflows."""

    def __init__(self, db: Session):
        super().__init__(WorkflowConfig, db)

    def find_by_office(self, office_id: str) -> Optional[WorkflowConfig]:
        return self.find_one_by_criteria({"office_id": office_id, "is_active": True})


class DelegationRepository(BaseRepository[Delegation]):
    """Approval delegations."""

    def __init__(self, db: Session):
        super().__init__(Delegation, db)

    def find_active_from(self, from_user_id: str, on_date: date) -> List[Delegation]:
        """
        Active delegations of ``from_user_id`` covering ``on_date``.

        Most recently created first.
        """
        try:
            stmt = (
                select(Delegation)
                .where(
                    Delegation.from_user_id == from_user_id,
                    Delegation.is_active.is_(True),
                    Delegation.start_date <= on_date,
                    Delegation.end_date >= on_date,
                )
                .order_by(Delegation.created_at.desc(), Delegation.id.desc())
            )
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as e:
            raise RepositoryError(f"Delegation lookup failed: {str(e)}") from e

    def find_active_to(self, to_user_id: str, on_date: date) -> List[Delegation]:
        """Active delegations granted to ``to_user_id`` covering ``on_date``."""
        try:
            stmt = (
                select(Delegation)
                .where(
                    Delegation.to_user_id == to_user_id,
                    Delegation.is_active.is_(True),
                    Delegation.start_date <= on_date,
                    Delegation.end_date >= on_date,
                )
                .order_by(Delegation.created_at.desc(), Delegation.id.desc())
            )
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as e:
            raise RepositoryError(f"Delegation lookup failed: {str(e)}") from e

    def find_overlapping(
        self,
        from_user_id: str,
        start: date,
        end: date,
        exclude_id: Optional[str] = None,
    ) -> List[Delegation]:
        """Active delegations of ``from_user_id`` intersecting [start, end]."""
        try:
            stmt = select(Delegation).where(
                Delegation.from_user_id == from_user_id,
                Delegation.is_active.is_(True),
                Delegation.start_date <= end,
                Delegation.end_date >= start,
            )
            if exclude_id:
                stmt = stmt.where(Delegation.id != exclude_id)
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as e:
            raise RepositoryError(f"Delegation lookup failed: {str(e)}") from e
