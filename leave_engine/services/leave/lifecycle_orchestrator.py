"""
Leave lifecycle orchestrator.

Owns the request state machine:

    DRAFT -> PENDING_<first step type> -> ... -> APPROVED
    branch exits: REFUSED, RETURNED (editable, resubmittable), CANCELLED

Every transition runs in one transaction with the request row locked,
so the request, its approval steps and the balance row change together
or not at all. Create, update and submit also lock the requester, so
their overlap and balance checks cannot interleave with a concurrent
write for the same employee. Audit entries and notifications are
emitted only after the commit succeeded.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Tuple, Union

from dateutil import tz
from sqlalchemy.orm import Session

from leave_engine.config.settings import Settings, get_settings
from leave_engine.core.exceptions import (
    AuthorizationError,
    ConfigurationError,
    ResourceNotFoundError,
    StateConflictError,
    ValidationError,
)
from leave_engine.models.base import utcnow
from leave_engine.models.common.enums import (
    ApprovalAction,
    EmployeeRole,
    HalfDay,
    LeaveStatus,
    WorkflowStepType,
)
from leave_engine.models.leave import ApprovalStep, LeaveRequest
from leave_engine.repositories.leave.leave_balance_repository import LeaveBalanceRepository
from leave_engine.repositories.leave.leave_request_repository import (
    ApprovalStepRepository,
    LeaveRequestRepository,
)
from leave_engine.repositories.workflow.workflow_repository import DelegationRepository
from leave_engine.schemas.leave.leave_request import (
    DurationPreview,
    LeaveDraft,
    LeaveRequestCreate,
    LeaveRequestResponse,
    LeaveRequestUpdate,
)
from leave_engine.schemas.leave.validation import RuleCode, ValidationIssue, ValidationReport
from leave_engine.schemas.office.office_config import (
    EmployeeContext,
    EmployeeProfile,
    LeaveTypeInfo,
    OfficeConfig,
)
from leave_engine.services.base.audit_service import (
    AuditAction,
    AuditEntry,
    AuditLogger,
    LoggingAuditLogger,
    record_safely,
)
from leave_engine.services.base.base_service import BaseService
from leave_engine.services.base.notification_dispatcher import (
    LeaveNotification,
    LoggingNotificationDispatcher,
    NotificationDispatcher,
    NotificationEvent,
    dispatch_safely,
)
from leave_engine.services.base.service_result import ServiceResult
from leave_engine.services.calendar.calendar_service import CalendarService
from leave_engine.services.calendar.duration_calculator import DateInput
from leave_engine.services.leave.balance_ledger import BalanceLedger
from leave_engine.services.leave.validation_engine import DRAFT_BLOCKING_RULES, ValidationEngine
from leave_engine.services.office.config_provider import (
    OfficeConfigProvider,
    SqlAlchemyOfficeConfigProvider,
)
from leave_engine.services.office.employee_directory import (
    EmployeeDirectory,
    SqlAlchemyEmployeeDirectory,
)
from leave_engine.services.workflow.delegation_resolver import DelegationResolver
from leave_engine.services.workflow.workflow_resolver import WorkflowResolver

Clock = Callable[[], datetime]

CANCELLABLE_STATUSES = frozenset({
    LeaveStatus.DRAFT,
    LeaveStatus.PENDING_MANAGER,
    LeaveStatus.PENDING_HR,
    LeaveStatus.RETURNED,
})

# Fields of LeaveRequestUpdate that may be cleared with an explicit None
CLEARABLE_FIELDS = frozenset({"reason", "exceptional_reason_id"})

DECISION_EVENTS = {
    ApprovalAction.REFUSED: NotificationEvent.REFUSED,
    ApprovalAction.RETURNED: NotificationEvent.RETURNED,
}


class LeaveLifecycleService(BaseService[LeaveRequest, LeaveRequestRepository]):
    """
    Create, edit, submit, decide and cancel leave requests.

    All commands return a ServiceResult; typed engine errors become
    failures with VALIDATION_ERROR, CONFLICT, UNAUTHORIZED, NOT_FOUND,
    CONFIGURATION_ERROR or PERSISTENCE_ERROR codes.
    """

    def __init__(
        self,
        repository: LeaveRequestRepository,
        db_session: Session,
        config_provider: OfficeConfigProvider,
        employee_directory: EmployeeDirectory,
        ledger: BalanceLedger,
        workflow_resolver: WorkflowResolver,
        delegation_resolver: DelegationResolver,
        step_repository: Optional[ApprovalStepRepository] = None,
        validation_engine: Optional[ValidationEngine] = None,
        calendar_service: Optional[CalendarService] = None,
        notification_dispatcher: Optional[NotificationDispatcher] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(repository, db_session)
        self.settings = settings or get_settings()
        self.config_provider = config_provider
        self.employee_directory = employee_directory
        self.ledger = ledger
        self.workflow_resolver = workflow_resolver
        self.delegation_resolver = delegation_resolver
        self.step_repository = step_repository or ApprovalStepRepository(db_session)
        self.validation_engine = validation_engine or ValidationEngine(self.settings)
        self.calendar_service = calendar_service or CalendarService(config_provider)
        self.notification_dispatcher = notification_dispatcher
        self.audit_logger = audit_logger
        self.clock: Clock = clock or utcnow

    @classmethod
    def from_session(
        cls,
        db: Session,
        config_provider: Optional[OfficeConfigProvider] = None,
        employee_directory: Optional[EmployeeDirectory] = None,
        notification_dispatcher: Optional[NotificationDispatcher] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ) -> "LeaveLifecycleService":
        """Wire the service with the SQLAlchemy-backed collaborators of ``db``."""
        settings = settings or get_settings()
        config_provider = config_provider or SqlAlchemyOfficeConfigProvider(db)
        if audit_logger is None:
            audit_logger = LoggingAuditLogger()
        if notification_dispatcher is None:
            notification_dispatcher = LoggingNotificationDispatcher()

        return cls(
            repository=LeaveRequestRepository(db),
            db_session=db,
            config_provider=config_provider,
            employee_directory=employee_directory or SqlAlchemyEmployeeDirectory(db),
            ledger=BalanceLedger(
                LeaveBalanceRepository(db), allow_negative=settings.ALLOW_NEGATIVE_BALANCE
            ),
            workflow_resolver=WorkflowResolver(config_provider, settings),
            delegation_resolver=DelegationResolver(DelegationRepository(db), audit_logger),
            notification_dispatcher=notification_dispatcher,
            audit_logger=audit_logger,
            settings=settings,
            clock=clock,
        )

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def create_request(
        self,
        data: LeaveRequestCreate,
        submit: bool = False,
        actor_id: Optional[str] = None,
    ) -> ServiceResult[LeaveRequestResponse]:
        """
        Create a request as DRAFT, optionally submitting it right away.

        Args:
            data: Request payload; total_days is always computed here
            submit: Run the submit transition in the same transaction
            actor_id: Acting user (defaults to the requester)

        Returns:
            ServiceResult with the stored request and its warnings
        """
        actor_id = actor_id or data.user_id
        try:
            with self.transaction():
                now, today = self._now(), self._today()
                employee = self._require_employee(data.user_id)
                self._check_owner(actor_id, employee.id)
                self.repository.lock_requester(employee.id)

                draft, office_config, context = self._build_draft(
                    employee,
                    employee.office_id,
                    leave_type_id=data.leave_type_id,
                    start_date=data.start_date,
                    end_date=data.end_date,
                    start_half_day=data.start_half_day,
                    end_half_day=data.end_half_day,
                    exceptional_reason_id=data.exceptional_reason_id,
                    attachment_refs=data.attachment_refs,
                )
                report = self._validate(draft, office_config, context, today, submitting=submit)

                request = self.repository.create(
                    LeaveRequest(
                        user_id=employee.id,
                        office_id=employee.office_id,
                        leave_type_id=data.leave_type_id,
                        start_date=data.start_date,
                        end_date=data.end_date,
                        start_half_day=data.start_half_day,
                        end_half_day=data.end_half_day,
                        total_days=draft.total_days,
                        status=LeaveStatus.DRAFT,
                        reason=data.reason,
                        exceptional_reason_id=data.exceptional_reason_id,
                        attachment_refs=list(data.attachment_refs),
                        submission_cycle=0,
                        reservation_open=False,
                        reserved_days=Decimal("0"),
                    )
                )

                first_step = None
                if submit:
                    first_step = self._submit(request, employee, office_config.leave_type, now, today)
                response = self._to_response(request, report.warnings)

            audits = [self._audit(actor_id, AuditAction.LEAVE_CREATED, request, None, LeaveStatus.DRAFT)]
            notifications = []
            if first_step is not None:
                audits.append(self._audit(
                    actor_id, AuditAction.LEAVE_SUBMITTED, request, LeaveStatus.DRAFT, request.status,
                ))
                notifications.append(self._new_request_notification(request, actor_id, first_step))
            self._after_commit(audits, notifications)

            self._log_operation(
                "create leave request",
                request.id,
                {"status": request.status.value, "total_days": str(request.total_days)},
            )
            return ServiceResult.success(
                response,
                message="Leave request submitted" if submit else "Leave request saved as draft",
            )

        except Exception as e:
            return self._handle_exception(e, "create leave request", data.user_id)

    def update_request(
        self,
        request_id: str,
        data: LeaveRequestUpdate,
        actor_id: str,
    ) -> ServiceResult[LeaveRequestResponse]:
        """Edit a DRAFT or RETURNED request and recompute its duration."""
        try:
            with self.transaction():
                today = self._today()
                request = self.repository.get_for_update(request_id)
                employee = self._require_employee(request.user_id)
                self._check_owner(actor_id, employee.id)
                self.repository.lock_requester(employee.id)
                if not request.status.is_editable:
                    raise StateConflictError(
                        f"A {request.status.value} request can no longer be edited",
                        current_status=request.status.value,
                    )

                changes = {
                    key: value
                    for key, value in data.model_dump(exclude_unset=True).items()
                    if value is not None or key in CLEARABLE_FIELDS
                }
                merged = {
                    key: changes.get(key, getattr(request, key))
                    for key in (
                        "leave_type_id", "start_date", "end_date", "start_half_day",
                        "end_half_day", "exceptional_reason_id", "attachment_refs",
                    )
                }
                draft, office_config, context = self._build_draft(
                    employee, request.office_id, request_id=request.id, **merged
                )
                report = self._validate(draft, office_config, context, today, submitting=False)

                for key, value in changes.items():
                    setattr(request, key, value)
                request.total_days = draft.total_days
                request.updated_at = self._now()
                self.repository.flush()
                response = self._to_response(request, report.warnings)

            self._after_commit(
                [self._audit(
                    actor_id, AuditAction.LEAVE_UPDATED, request, request.status, request.status,
                    {"changed": sorted(changes)},
                )],
                [],
            )
            self._log_operation("update leave request", request_id, {"changed": sorted(changes)})
            return ServiceResult.success(response, message="Leave request updated")

        except Exception as e:
            return self._handle_exception(e, "update leave request", request_id)

    def submit_request(
        self,
        request_id: str,
        actor_id: str,
    ) -> ServiceResult[LeaveRequestResponse]:
        """
        Submit a DRAFT or RETURNED request.

        Resolves the office workflow, snapshots the approvers with their
        delegations, reserves balance days for deducting leave types and
        moves the request to the first step's pending status.
        """
        try:
            with self.transaction():
                now, today = self._now(), self._today()
                request = self.repository.get_for_update(request_id)
                employee = self._require_employee(request.user_id)
                self._check_owner(actor_id, employee.id)
                self.repository.lock_requester(employee.id)
                old_status = request.status
                if not old_status.is_editable:
                    raise StateConflictError(
                        f"A {old_status.value} request cannot be submitted",
                        current_status=old_status.value,
                    )

                draft, office_config, context = self._build_draft(
                    employee,
                    request.office_id,
                    leave_type_id=request.leave_type_id,
                    start_date=request.start_date,
                    end_date=request.end_date,
                    start_half_day=request.start_half_day,
                    end_half_day=request.end_half_day,
                    exceptional_reason_id=request.exceptional_reason_id,
                    attachment_refs=request.attachment_refs,
                    request_id=request.id,
                )
                report = self._validate(draft, office_config, context, today, submitting=True)

                request.total_days = draft.total_days
                first_step = self._submit(request, employee, office_config.leave_type, now, today)
                response = self._to_response(request, report.warnings)

            self._after_commit(
                [self._audit(actor_id, AuditAction.LEAVE_SUBMITTED, request, old_status, request.status)],
                [self._new_request_notification(request, actor_id, first_step)],
            )
            self._log_operation(
                "submit leave request",
                request_id,
                {"status": request.status.value, "cycle": request.submission_cycle},
            )
            return ServiceResult.success(response, message="Leave request submitted")

        except Exception as e:
            return self._handle_exception(e, "submit leave request", request_id)

    def approve_step(
        self,
        request_id: str,
        actor_id: str,
        comment: Optional[str] = None,
        step_id: Optional[str] = None,
    ) -> ServiceResult[LeaveRequestResponse]:
        return self.decide_step(request_id, actor_id, ApprovalAction.APPROVED, comment, step_id)

    def refuse_step(
        self,
        request_id: str,
        actor_id: str,
        comment: Optional[str],
        step_id: Optional[str] = None,
    ) -> ServiceResult[LeaveRequestResponse]:
        return self.decide_step(request_id, actor_id, ApprovalAction.REFUSED, comment, step_id)

    def return_step(
        self,
        request_id: str,
        actor_id: str,
        comment: Optional[str],
        step_id: Optional[str] = None,
    ) -> ServiceResult[LeaveRequestResponse]:
        return self.decide_step(request_id, actor_id, ApprovalAction.RETURNED, comment, step_id)

    def decide_step(
        self,
        request_id: str,
        actor_id: str,
        action: Union[ApprovalAction, str],
        comment: Optional[str] = None,
        step_id: Optional[str] = None,
    ) -> ServiceResult[LeaveRequestResponse]:
        """
        Record a decision on the request's actionable step.

        Approving advances to the next step or finalizes the request and
        consumes its reservation; refusing or returning releases it.

        Args:
            request_id: Leave request
            actor_id: Deciding user
            action: APPROVED, REFUSED or RETURNED
            comment: Required for REFUSED and RETURNED
            step_id: Step the caller believes is actionable; a mismatch
                is rejected instead of deciding another step

        Returns:
            ServiceResult with the updated request
        """
        comment = (comment or "").strip() or None
        try:
            action = ApprovalAction(action)
            if action != ApprovalAction.APPROVED and not comment:
                issue = ValidationIssue(
                    code=RuleCode.COMMENT_REQUIRED,
                    message=f"A comment is required when a request is {action.value.lower()}",
                    field="comment",
                )
                raise ValidationError(issues=[issue.to_dict()])

            with self.transaction():
                now, today = self._now(), self._today()
                actor = self._require_employee(actor_id)
                request = self.repository.get_for_update(request_id)
                old_status = request.status
                step = self._actionable_step(request, step_id)
                self._check_decision_authority(actor, request, step, today)

                if not self.step_repository.record_decision(step.id, action, comment, actor.id, now):
                    raise StateConflictError(
                        "Approval step has already been decided",
                        current_status=old_status.value,
                        details={"step_id": step.id},
                    )
                self.step_repository.refresh(step)

                next_step = None
                if action == ApprovalAction.APPROVED:
                    next_step = request.actionable_step
                    if next_step is not None:
                        request.status = next_step.step_type.pending_status
                    else:
                        request.status = LeaveStatus.APPROVED
                        self._consume_reservation(request)
                elif action == ApprovalAction.REFUSED:
                    request.status = LeaveStatus.REFUSED
                    self._release_reservation(request)
                else:
                    request.status = LeaveStatus.RETURNED
                    self._release_reservation(request)

                request.updated_at = now
                self.repository.flush()
                response = self._to_response(request)

            self._after_commit(
                [self._audit(
                    actor_id,
                    AuditAction.for_decision(step.step_type.value, action.value),
                    request,
                    old_status,
                    request.status,
                    {"step_id": step.id, "step_order": step.step_order, "comment": comment},
                )],
                [self._decision_notification(request, actor_id, action, comment, next_step)],
            )
            self._log_operation(
                f"{action.value.lower()} approval step",
                request_id,
                {"step_order": step.step_order, "status": request.status.value},
            )
            return ServiceResult.success(response, message=f"Step {action.value.lower()}")

        except Exception as e:
            return self._handle_exception(e, "decide approval step", request_id)

    def cancel_request(
        self,
        request_id: str,
        actor_id: str,
        reason: Optional[str] = None,
    ) -> ServiceResult[LeaveRequestResponse]:
        """Cancel a request that is not yet final, releasing any reservation."""
        try:
            with self.transaction():
                actor = self._require_employee(actor_id)
                request = self.repository.get_for_update(request_id)
                self._check_owner(actor.id, request.user_id, actor)
                old_status = request.status
                if old_status not in CANCELLABLE_STATUSES:
                    raise StateConflictError(
                        f"A {old_status.value} request cannot be cancelled",
                        current_status=old_status.value,
                    )

                pending_step = request.actionable_step if old_status.is_pending else None
                self._release_reservation(request)
                request.status = LeaveStatus.CANCELLED
                request.updated_at = self._now()
                self.repository.flush()
                response = self._to_response(request)

            notifications = []
            if pending_step is not None:
                notifications.append(LeaveNotification(
                    event=NotificationEvent.CANCELLED,
                    leave_request_id=request.id,
                    actor_id=actor_id,
                    recipient_ids=[pending_step.approver_id],
                    outcome=LeaveStatus.CANCELLED.value,
                    comment=reason,
                    context=self._notification_context(request),
                ))
            self._after_commit(
                [self._audit(
                    actor_id, AuditAction.LEAVE_CANCELLED, request, old_status, LeaveStatus.CANCELLED,
                    {"reason": reason} if reason else None,
                )],
                notifications,
            )
            self._log_operation("cancel leave request", request_id, {"previous_status": old_status.value})
            return ServiceResult.success(response, message="Leave request cancelled")

        except Exception as e:
            return self._handle_exception(e, "cancel leave request", request_id)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_request(self, request_id: str) -> ServiceResult[LeaveRequestResponse]:
        try:
            request = self.repository.find_by_id(request_id)
            if request is None:
                raise ResourceNotFoundError("LeaveRequest", request_id)
            return ServiceResult.success(self._to_response(request))
        except Exception as e:
            return self._handle_exception(e, "get leave request", request_id)

    def list_user_requests(
        self,
        user_id: str,
        statuses: Optional[Iterable[LeaveStatus]] = None,
    ) -> ServiceResult[List[LeaveRequestResponse]]:
        try:
            items = [self._to_response(r) for r in self.repository.find_by_user(user_id, statuses)]
            return ServiceResult.success(items, metadata={"count": len(items)})
        except Exception as e:
            return self._handle_exception(e, "list leave requests", user_id)

    def list_pending_approvals(
        self,
        user_id: str,
        on_date: Optional[date] = None,
    ) -> ServiceResult[List[LeaveRequestResponse]]:
        """
        Requests whose actionable step ``user_id`` may decide on ``on_date``.

        A step is listed for its snapshotted approver, for its natural
        approver when it was delegated at submission, and for delegates of
        either. HR steps are not listed for the rest of the office HR pool.
        """
        try:
            on_date = on_date or self._today()
            approver_ids = [user_id] + self.delegation_resolver.delegators_for(user_id, on_date)

            items: List[LeaveRequestResponse] = []
            seen = set()
            for step in self.step_repository.find_open_for_approvers(approver_ids):
                request = step.leave_request
                if request.id in seen:
                    continue
                actionable = request.actionable_step
                if actionable is None or actionable.id != step.id:
                    continue
                seen.add(request.id)
                items.append(self._to_response(request))

            return ServiceResult.success(items, metadata={"count": len(items)})
        except Exception as e:
            return self._handle_exception(e, "list pending approvals", user_id)

    def preview_duration(
        self,
        user_id: str,
        start_date: DateInput,
        end_date: DateInput,
        start_half_day: Union[HalfDay, str] = HalfDay.FULL_DAY,
        end_half_day: Union[HalfDay, str] = HalfDay.FULL_DAY,
    ) -> ServiceResult[DurationPreview]:
        """Duration the engine would charge, using the employee's office calendar."""
        try:
            employee = self._require_employee(user_id)
            preview = self.calendar_service.preview(
                employee.office_id, start_date, end_date, start_half_day, end_half_day
            )
            return ServiceResult.success(preview)
        except Exception as e:
            return self._handle_exception(e, "preview duration", user_id)

    # -------------------------------------------------------------------------
    # Transition helpers
    # -------------------------------------------------------------------------

    def _submit(
        self,
        request: LeaveRequest,
        employee: EmployeeProfile,
        leave_type: LeaveTypeInfo,
        now: datetime,
        today: date,
    ) -> ApprovalStep:
        """Create the next cycle of steps, reserve days and enter the first pending status."""
        if request.reservation_open:
            raise StateConflictError(
                "Request already holds a balance reservation",
                current_status=request.status.value,
            )

        resolved = self.workflow_resolver.resolve_steps(request.office_id)
        cycle = (request.submission_cycle or 0) + 1

        steps = []
        for resolved_step in resolved:
            natural_id = self._natural_approver(resolved_step.step_type, employee)
            approver_id = self.delegation_resolver.resolve_approver(natural_id, today)
            if approver_id == employee.id:
                self._logger.warning(
                    "Delegate is the requester; keeping the natural approver",
                    extra={"leave_request_id": request.id, "natural_approver_id": natural_id},
                )
                approver_id = natural_id
            steps.append(ApprovalStep(
                cycle=cycle,
                step_order=resolved_step.step_order,
                step_type=resolved_step.step_type,
                is_required=resolved_step.is_required,
                approver_id=approver_id,
                natural_approver_id=natural_id,
            ))

        request.submission_cycle = cycle
        request.approval_steps.extend(steps)
        request.status = steps[0].step_type.pending_status
        request.submitted_at = now
        request.updated_at = now

        if self.validation_engine.deducts_from_balance(leave_type):
            year = request.start_date.year
            self.ledger.reserve(
                request.user_id, year, leave_type.balance_type, request.total_days, request.id
            )
            request.reservation_open = True
            request.reserved_days = request.total_days
            request.reservation_year = year
            request.reservation_balance_type = leave_type.balance_type

        self.repository.flush()
        return steps[0]

    def _consume_reservation(self, request: LeaveRequest) -> None:
        if not request.reservation_open:
            return
        self.ledger.consume(
            request.user_id,
            request.reservation_year,
            request.reservation_balance_type,
            request.reserved_days,
            request.id,
        )
        request.reservation_open = False

    def _release_reservation(self, request: LeaveRequest) -> None:
        if not request.reservation_open:
            return
        self.ledger.release(
            request.user_id,
            request.reservation_year,
            request.reservation_balance_type,
            request.reserved_days,
            request.id,
        )
        request.reservation_open = False

    def _actionable_step(self, request: LeaveRequest, step_id: Optional[str]) -> ApprovalStep:
        status = request.status
        if not status.is_pending:
            raise StateConflictError(
                f"A {status.value} request has no step awaiting a decision",
                current_status=status.value,
            )

        step = request.actionable_step
        if step is None:
            raise StateConflictError(
                "No approval step is awaiting a decision",
                current_status=status.value,
            )

        if step_id is not None and step_id != step.id:
            target = next((s for s in request.approval_steps if s.id == step_id), None)
            if target is None:
                raise ResourceNotFoundError("ApprovalStep", step_id)
            if target.is_decided or target.cycle != request.submission_cycle:
                raise StateConflictError(
                    "Approval step has already been decided",
                    current_status=status.value,
                    details={"step_id": step_id},
                )
            raise StateConflictError(
                "Earlier approval steps must be decided first",
                current_status=status.value,
                details={"step_id": step_id, "actionable_step_id": step.id},
            )

        if step.step_type.pending_status != status:
            raise StateConflictError(
                "Request status does not match its actionable approval step",
                current_status=status.value,
                details={"step_type": step.step_type.value},
            )
        return step

    # -------------------------------------------------------------------------
    # Validation helpers
    # -------------------------------------------------------------------------

    def _build_draft(
        self,
        employee: EmployeeProfile,
        office_id: str,
        leave_type_id: str,
        start_date: date,
        end_date: date,
        start_half_day: HalfDay,
        end_half_day: HalfDay,
        exceptional_reason_id: Optional[str],
        attachment_refs: Optional[List[str]],
        request_id: Optional[str] = None,
    ) -> Tuple[LeaveDraft, OfficeConfig, EmployeeContext]:
        """Compute the authoritative duration and gather what validation needs."""
        leave_type = self.config_provider.get_leave_type(leave_type_id)
        office_config = OfficeConfig(
            rules=self.config_provider.get_office_rules(office_id),
            leave_type=leave_type,
            exceptional_rules=self.config_provider.get_exceptional_rules(office_id),
        )

        total_days = self.calendar_service.compute_days(
            office_id, start_date, end_date, start_half_day, end_half_day
        )
        draft = LeaveDraft(
            user_id=employee.id,
            leave_type_id=leave_type_id,
            start_date=start_date,
            end_date=end_date,
            start_half_day=start_half_day,
            end_half_day=end_half_day,
            total_days=total_days,
            exceptional_reason_id=exceptional_reason_id,
            attachment_refs=list(attachment_refs or []),
            request_id=request_id,
        )

        balance = None
        if self.validation_engine.deducts_from_balance(leave_type):
            balance = self.ledger.snapshot(employee.id, start_date.year, leave_type.balance_type)

        overlapping = []
        if end_date >= start_date:
            overlapping = [
                r.id
                for r in self.repository.find_overlapping(
                    employee.id, start_date, end_date, exclude_id=request_id
                )
            ]

        context = EmployeeContext(
            user_id=employee.id,
            hire_date=employee.hire_date,
            balance=balance,
            overlapping_request_ids=overlapping,
        )
        return draft, office_config, context

    def _validate(
        self,
        draft: LeaveDraft,
        office_config: OfficeConfig,
        context: EmployeeContext,
        today: date,
        submitting: bool,
    ) -> ValidationReport:
        report = self.validation_engine.validate(draft, office_config, context, today)
        blocking = report.errors if submitting else report.errors_for(DRAFT_BLOCKING_RULES)
        if blocking:
            raise ValidationError(issues=[issue.to_dict() for issue in blocking])
        return report

    # -------------------------------------------------------------------------
    # Actors
    # -------------------------------------------------------------------------

    def _require_employee(self, user_id: str) -> EmployeeProfile:
        employee = self.employee_directory.get_employee(user_id)
        if employee is None:
            raise ResourceNotFoundError("Employee", user_id)
        if not employee.is_active:
            raise AuthorizationError("Employee is inactive", actor_id=user_id)
        return employee

    def _check_owner(
        self,
        actor_id: str,
        owner_id: str,
        actor: Optional[EmployeeProfile] = None,
    ) -> None:
        if actor_id == owner_id:
            return
        actor = actor or self._require_employee(actor_id)
        if actor.has_role(EmployeeRole.ADMIN):
            return
        raise AuthorizationError(
            "Only the requester or an administrator can change this request",
            actor_id=actor_id,
        )

    def _natural_approver(self, step_type: WorkflowStepType, employee: EmployeeProfile) -> str:
        if step_type == WorkflowStepType.MANAGER:
            if employee.manager_id and employee.manager_id != employee.id:
                return employee.manager_id
            self._logger.warning(
                "Requester has no other manager; routing manager step to HR",
                extra={"user_id": employee.id, "team_id": employee.team_id},
            )

        for hr_id in self.employee_directory.list_hr_users(employee.office_id):
            if hr_id != employee.id:
                return hr_id

        raise ConfigurationError(
            f"No approver available for the {step_type.value} step",
            config_key="approvers",
            details={"office_id": employee.office_id, "user_id": employee.id},
        )

    def _check_decision_authority(
        self,
        actor: EmployeeProfile,
        request: LeaveRequest,
        step: ApprovalStep,
        today: date,
    ) -> None:
        if actor.id == request.user_id:
            raise AuthorizationError("Employees cannot decide their own leave requests", actor_id=actor.id)
        if actor.has_role(EmployeeRole.ADMIN):
            return

        assigned = {step.approver_id, step.natural_approver_id}
        if actor.id in assigned:
            return
        if assigned.intersection(self.delegation_resolver.delegators_for(actor.id, today)):
            return
        if (
            step.step_type == WorkflowStepType.HR
            and actor.has_role(EmployeeRole.HR)
            and actor.office_id == request.office_id
        ):
            return

        raise AuthorizationError("Not allowed to decide this approval step", actor_id=actor.id)

    # -------------------------------------------------------------------------
    # Output helpers
    # -------------------------------------------------------------------------

    def _now(self) -> datetime:
        now = self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now

    def _today(self) -> date:
        """Current date in the configured business timezone."""
        zone = tz.gettz(self.settings.TIMEZONE) or timezone.utc
        return self._now().astimezone(zone).date()

    def _to_response(
        self,
        request: LeaveRequest,
        warnings: Optional[List[ValidationIssue]] = None,
    ) -> LeaveRequestResponse:
        response = LeaveRequestResponse.model_validate(request)
        if warnings:
            response.warnings = list(warnings)
        return response

    def _audit(
        self,
        actor_id: Optional[str],
        action: AuditAction,
        request: LeaveRequest,
        old_status: Optional[LeaveStatus],
        new_status: Optional[LeaveStatus],
        details: Optional[dict] = None,
    ) -> AuditEntry:
        return AuditEntry(
            actor_id=actor_id,
            action=action,
            entity_type="LeaveRequest",
            entity_id=request.id,
            old_status=old_status.value if old_status else None,
            new_status=new_status.value if new_status else None,
            details=details or {},
        )

    @staticmethod
    def _notification_context(request: LeaveRequest) -> dict:
        return {
            "user_id": request.user_id,
            "start_date": request.start_date.isoformat(),
            "end_date": request.end_date.isoformat(),
            "total_days": str(request.total_days),
            "status": request.status.value,
        }

    def _new_request_notification(
        self,
        request: LeaveRequest,
        actor_id: str,
        first_step: ApprovalStep,
    ) -> LeaveNotification:
        context = self._notification_context(request)
        context["step_type"] = first_step.step_type.value
        return LeaveNotification(
            event=NotificationEvent.NEW_REQUEST,
            leave_request_id=request.id,
            actor_id=actor_id,
            recipient_ids=[first_step.approver_id],
            outcome=request.status.value,
            context=context,
        )

    def _decision_notification(
        self,
        request: LeaveRequest,
        actor_id: str,
        action: ApprovalAction,
        comment: Optional[str],
        next_step: Optional[ApprovalStep],
    ) -> LeaveNotification:
        if action == ApprovalAction.APPROVED and next_step is not None:
            event = NotificationEvent.STEP_APPROVED
            recipients = [request.user_id, next_step.approver_id]
        elif action == ApprovalAction.APPROVED:
            event = NotificationEvent.APPROVED
            recipients = [request.user_id]
        else:
            event = DECISION_EVENTS[action]
            recipients = [request.user_id]

        return LeaveNotification(
            event=event,
            leave_request_id=request.id,
            actor_id=actor_id,
            recipient_ids=recipients,
            outcome=request.status.value,
            comment=comment,
            context=self._notification_context(request),
        )

    def _after_commit(
        self,
        audits: List[AuditEntry],
        notifications: List[LeaveNotification],
    ) -> None:
        for entry in audits:
            record_safely(self.audit_logger, entry, self._logger)
        for notification in notifications:
            dispatch_safely(self.notification_dispatcher, notification, self._logger)


__all__ = ["CANCELLABLE_STATUSES", "LeaveLifecycleService"]
