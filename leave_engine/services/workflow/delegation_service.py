"""
Delegation management service.

Creates and revokes delegations of approval authority.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from leave_engine.core.exceptions import (
    AuthorizationError,
    ResourceNotFoundError,
    StateConflictError,
    ValidationError,
)
from leave_engine.models.common.enums import EmployeeRole
from leave_engine.models.workflow import Delegation
from leave_engine.repositories.workflow.workflow_repository import DelegationRepository
from leave_engine.schemas.leave.validation import RuleCode, ValidationIssue
from leave_engine.schemas.office.office_config import EmployeeProfile
from leave_engine.schemas.workflow.delegation import DelegationCreate, DelegationResponse
from leave_engine.services.base.audit_service import (
    AuditAction,
    AuditEntry,
    AuditLogger,
    record_safely,
)
from leave_engine.services.base.base_service import BaseService
from leave_engine.services.base.service_result import ServiceResult
from leave_engine.services.office.employee_directory import EmployeeDirectory


class DelegationService(BaseService[Delegation, DelegationRepository]):
    """Manage approval delegations."""

    def __init__(
        self,
        repository: DelegationRepository,
        db_session: Session,
        employee_directory: EmployeeDirectory,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(repository, db_session)
        self.employee_directory = employee_directory
        self.audit_logger = audit_logger

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def create_delegation(
        self,
        request: DelegationCreate,
        actor_id: str,
    ) -> ServiceResult[DelegationResponse]:
        """
        Delegate ``from_user_id``'s approvals to ``to_user_id``.

        Rejected when the window is reversed, the user delegates to
        themselves, or an active delegation of the same user overlaps.
        """
        try:
            with self.transaction():
                actor = self._require_employee(actor_id)
                self._require_employee(request.from_user_id)
                self._require_employee(request.to_user_id)
                self._check_authority(actor, request.from_user_id)
                self._validate_window(request)

                delegation = self.repository.create(
                    Delegation(
                        from_user_id=request.from_user_id,
                        to_user_id=request.to_user_id,
                        start_date=request.start_date,
                        end_date=request.end_date,
                        reason=request.reason,
                        is_active=True,
                    )
                )
                response = DelegationResponse.model_validate(delegation)

            self._log_operation(
                "create delegation",
                delegation.id,
                {"from_user_id": request.from_user_id, "to_user_id": request.to_user_id},
            )
            record_safely(
                self.audit_logger,
                AuditEntry(
                    actor_id=actor_id,
                    action=AuditAction.DELEGATION_CREATED,
                    entity_type="Delegation",
                    entity_id=delegation.id,
                    details={
                        "from_user_id": request.from_user_id,
                        "to_user_id": request.to_user_id,
                        "start_date": request.start_date.isoformat(),
                        "end_date": request.end_date.isoformat(),
                    },
                ),
                self._logger,
            )
            return ServiceResult.success(response, message="Delegation created")

        except Exception as e:
            return self._handle_exception(e, "create delegation", request.from_user_id)

    def revoke_delegation(
        self,
        delegation_id: str,
        actor_id: str,
    ) -> ServiceResult[DelegationResponse]:
        """Deactivate a delegation; steps already assigned keep their approver."""
        try:
            with self.transaction():
                actor = self._require_employee(actor_id)
                delegation = self.repository.find_by_id(delegation_id)
                if delegation is None:
                    raise ResourceNotFoundError("Delegation", delegation_id)
                self._check_authority(actor, delegation.from_user_id)
                if not delegation.is_active:
                    raise StateConflictError("Delegation is already revoked")

                delegation.is_active = False
                self.repository.flush()
                response = DelegationResponse.model_validate(delegation)

            self._log_operation("revoke delegation", delegation_id)
            record_safely(
                self.audit_logger,
                AuditEntry(
                    actor_id=actor_id,
                    action=AuditAction.DELEGATION_REVOKED,
                    entity_type="Delegation",
                    entity_id=delegation_id,
                    details={"from_user_id": delegation.from_user_id, "to_user_id": delegation.to_user_id},
                ),
                self._logger,
            )
            return ServiceResult.success(response, message="Delegation revoked")

        except Exception as e:
            return self._handle_exception(e, "revoke delegation", delegation_id)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_active_delegations(
        self,
        from_user_id: str,
        on_date: date,
    ) -> ServiceResult[List[DelegationResponse]]:
        try:
            items = [
                DelegationResponse.model_validate(d)
                for d in self.repository.find_active_from(from_user_id, on_date)
            ]
            return ServiceResult.success(items, metadata={"count": len(items)})
        except Exception as e:
            return self._handle_exception(e, "list delegations", from_user_id)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _require_employee(self, user_id: str) -> EmployeeProfile:
        employee = self.employee_directory.get_employee(user_id)
        if employee is None:
            raise ResourceNotFoundError("Employee", user_id)
        return employee

    def _check_authority(self, actor: EmployeeProfile, from_user_id: str) -> None:
        if actor.id == from_user_id:
            return
        if actor.has_role(EmployeeRole.ADMIN) or actor.has_role(EmployeeRole.HR):
            return
        raise AuthorizationError(
            "Only the delegating user, HR or an administrator can manage this delegation",
            actor_id=actor.id,
        )

    def _validate_window(self, request: DelegationCreate) -> None:
        issues = []
        if request.end_date < request.start_date:
            issues.append(ValidationIssue(
                code=RuleCode.INVALID_DATE_RANGE,
                message="Delegation end date must not be before its start date",
                field="end_date",
            ))
        if request.from_user_id == request.to_user_id:
            issues.append(ValidationIssue(
                code=RuleCode.SELF_DELEGATION,
                message="A user cannot delegate to themselves",
                field="to_user_id",
            ))
        if not issues:
            overlapping = self.repository.find_overlapping(
                request.from_user_id, request.start_date, request.end_date
            )
            if overlapping:
                issues.append(ValidationIssue(
                    code=RuleCode.DELEGATION_OVERLAP,
                    message="An active delegation already covers part of this period",
                    field="start_date",
                ))
        if issues:
            raise ValidationError(issues=[issue.to_dict() for issue in issues])
