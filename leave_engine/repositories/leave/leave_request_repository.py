"""
Leave request and approval step repositories.

Transitions load the request row with ``FOR UPDATE``, serialize the
request writes of one employee on the employee row, and record step
decisions with a conditional update, so a racing second decision on
the same step affects no row.
"""

from datetime import date, datetime
from typing import Iterable, List, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from leave_engine.core.exceptions import EntityNotFoundError, RepositoryError
from leave_engine.models.common.enums import (
    NON_BLOCKING_STATUSES,
    ApprovalAction,
    LeaveStatus,
)
from leave_engine.models.leave import ApprovalStep, LeaveRequest
from leave_engine.models.office import Employee
from leave_engine.repositories.base.base_repository import BaseRepository


class LeaveRequestRepository(BaseRepository[LeaveRequest]):
    """Leave requests."""

    def __init__(self, db: Session):
        super().__init__(LeaveRequest, db)

    def get_for_update(self, request_id: str) -> LeaveRequest:
        """
        Load a request with a row lock and fresh state.

        Raises:
            EntityNotFoundError: If the request does not exist
        """
        try:
            stmt = (
                select(LeaveRequest)
                .where(LeaveRequest.id == request_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            request = self.db.scalars(stmt).first()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Lock of leave request failed: {str(e)}") from e

        if request is None:
            raise EntityNotFoundError("LeaveRequest", request_id)
        return request

    def lock_requester(self, user_id: str) -> None:
        """
        Serialize request writes of one employee until the transaction ends.

        Rewrites the employee row in place, which takes a row lock on server
        databases and the database write lock on SQLite. Overlap and balance
        checks made after this call see every request committed before it.
        """
        try:
            self.db.execute(
                update(Employee)
                .where(Employee.id == user_id)
                .values(updated_at=Employee.updated_at)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            raise RepositoryError(f"Lock of requester failed: {str(e)}") from e

    def find_overlapping(
        self,
        user_id: str,
        start: date,
        end: date,
        exclude_id: Optional[str] = None,
    ) -> List[LeaveRequest]:
        """Requests of ``user_id`` intersecting [start, end] that still hold the dates."""
        try:
            stmt = select(LeaveRequest).where(
                LeaveRequest.user_id == user_id,
                LeaveRequest.start_date <= end,
                LeaveRequest.end_date >= start,
                LeaveRequest.status.not_in(list(NON_BLOCKING_STATUSES)),
            )
            if exclude_id:
                stmt = stmt.where(LeaveRequest.id != exclude_id)
            return list(self.db.scalars(stmt.order_by(LeaveRequest.start_date)).all())
        except SQLAlchemyError as e:
            raise RepositoryError(f"Overlap lookup failed: {str(e)}") from e

    def find_by_user(
        self,
        user_id: str,
        statuses: Optional[Iterable[LeaveStatus]] = None,
    ) -> List[LeaveRequest]:
        criteria = {"user_id": user_id}
        if statuses is not None:
            criteria["status"] = list(statuses)
        return self.find_by_criteria(criteria, order_by=["-start_date"])


class ApprovalStepRepository(BaseRepository[ApprovalStep]):
    """Approval steps."""

    def __init__(self, db: Session):
        super().__init__(ApprovalStep, db)

    def record_decision(
        self,
        step_id: str,
        action: ApprovalAction,
        comment: Optional[str],
        decided_by: str,
        decided_at: datetime,
    ) -> bool:
        """
        Write a decision if the step is still undecided.

        Returns:
            True when this call recorded the decision, False when the
            step had already been decided
        """
        try:
            stmt = (
                update(ApprovalStep)
                .where(ApprovalStep.id == step_id, ApprovalStep.action.is_(None))
                .values(
                    action=action,
                    comment=comment,
                    decided_by=decided_by,
                    decided_at=decided_at,
                    updated_at=decided_at,
                )
                .execution_options(synchronize_session="fetch")
            )
            result = self.db.execute(stmt)
            return result.rowcount == 1
        except SQLAlchemyError as e:
            raise RepositoryError(f"Recording decision failed: {str(e)}") from e

    def find_open_for_approvers(self, approver_ids: Iterable[str]) -> List[ApprovalStep]:
        """
        Undecided steps of the current cycle assigned to any of ``approver_ids``,
        either as the snapshotted approver or as the natural approver the
        step was delegated away from, on requests still awaiting a decision.
        """
        ids = list(approver_ids)
        if not ids:
            return []
        try:
            stmt = (
                select(ApprovalStep)
                .join(LeaveRequest, ApprovalStep.leave_request_id == LeaveRequest.id)
                .where(
                    or_(
                        ApprovalStep.approver_id.in_(ids),
                        ApprovalStep.natural_approver_id.in_(ids),
                    ),
                    ApprovalStep.action.is_(None),
                    ApprovalStep.cycle == LeaveRequest.submission_cycle,
                    LeaveRequest.status.in_(
                        [LeaveStatus.PENDING_MANAGER, LeaveStatus.PENDING_HR]
                    ),
                )
                .order_by(LeaveRequest.start_date, ApprovalStep.step_order)
            )
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as e:
            raise RepositoryError(f"Pending step lookup failed: {str(e)}") from e
