"""Leave request state machine, end to end against the database."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from leave_engine.core.exceptions import StateConflictError
from leave_engine.models import ApprovalStep, Delegation, LeaveRequest
from leave_engine.models.common.enums import (
    ApprovalAction,
    BalanceType,
    HalfDay,
    LeaveStatus,
    WorkflowStepType,
)
from leave_engine.repositories.leave.leave_balance_repository import LeaveBalanceRepository
from leave_engine.schemas.leave.leave_request import LeaveRequestCreate, LeaveRequestUpdate
from leave_engine.services.base import (
    AuditAction,
    ErrorCode,
    NotificationDispatcher,
    NotificationEvent,
)
from leave_engine.services.leave import BalanceLedger


FIXED_NOW = datetime(2026, 2, 16, 8, 0, tzinfo=timezone.utc)
MONDAY = date(2026, 3, 2)
FRIDAY = date(2026, 3, 6)


def new_request(org, user=None, leave_type=None, start=MONDAY, end=MONDAY, **kwargs):
    return LeaveRequestCreate(
        user_id=(user or org.employee).id,
        leave_type_id=(leave_type or org.annual).id,
        start_date=start,
        end_date=end,
        **kwargs,
    )


def submitted(lifecycle, org, **kwargs):
    result = lifecycle.create_request(new_request(org, **kwargs), submit=True)
    assert result.is_success, result.error
    return result.data


# ---------------------------------------------------------------------------
# Creation and submission
# ---------------------------------------------------------------------------


def test_draft_is_saved_without_reservation(lifecycle, org, balance_of, audit, notifier):
    result = lifecycle.create_request(new_request(org, end=FRIDAY))

    assert result.is_success
    request = result.data
    assert request.status == LeaveStatus.DRAFT
    assert request.total_days == Decimal("5")
    assert request.current_steps == []
    assert balance_of(org.employee).pending_days == Decimal("0")
    assert audit.actions() == [AuditAction.LEAVE_CREATED]
    assert notifier.sent == []


def test_submit_resolves_workflow_and_reserves(lifecycle, org, balance_of, audit, notifier):
    request = submitted(lifecycle, org, end=FRIDAY, end_half_day=HalfDay.MORNING)

    assert request.status == LeaveStatus.PENDING_MANAGER
    assert request.total_days == Decimal("4.5")
    assert request.submission_cycle == 1
    assert request.reservation_open
    assert [(s.step_order, s.step_type, s.approver_id) for s in request.current_steps] == [
        (1, WorkflowStepType.MANAGER, org.manager.id)
    ]
    assert balance_of(org.employee).pending_days == Decimal("4.5")
    assert audit.actions() == [AuditAction.LEAVE_CREATED, AuditAction.LEAVE_SUBMITTED]
    assert notifier.events() == [NotificationEvent.NEW_REQUEST]
    assert notifier.sent[0].recipient_ids == [org.manager.id]


def test_client_total_is_never_trusted(lifecycle, org):
    payload = new_request(org, start=date(2025, 12, 31), end=date(2026, 1, 2)).model_dump()
    payload["total_days"] = 3
    result = lifecycle.create_request(LeaveRequestCreate.model_validate(payload))
    # 2026-01-01 is a public holiday in Geneva
    assert result.data.total_days == Decimal("2")


def test_probation_blocks_submission_but_not_draft(lifecycle, org, session):
    payload = new_request(org, user=org.newcomer, start=date(2026, 2, 2), end=date(2026, 2, 2))

    refused = lifecycle.create_request(payload, submit=True)
    assert refused.error.code == ErrorCode.VALIDATION_ERROR
    assert refused.error.rule_codes == ["ON_PROBATION"]
    assert session.query(LeaveRequest).filter_by(user_id=org.newcomer.id).count() == 0

    draft = lifecycle.create_request(payload)
    assert draft.is_success
    assert draft.data.status == LeaveStatus.DRAFT


def test_validation_failure_names_the_rule(lifecycle, org):
    result = lifecycle.create_request(
        new_request(org, leave_type=org.sick, start=MONDAY, end=date(2026, 3, 4)), submit=True
    )
    assert result.error.code == ErrorCode.VALIDATION_ERROR
    assert result.error.message == "Attachment required from day 3"


def test_overlapping_request_is_rejected_even_as_draft(lifecycle, org):
    submitted(lifecycle, org, end=FRIDAY)
    overlap = lifecycle.create_request(new_request(org, start=FRIDAY, end=date(2026, 3, 9)))
    assert overlap.error.rule_codes == ["OVERLAPPING_REQUEST"]


def test_insufficient_balance_blocks_submission(lifecycle, org, balance_of):
    result = lifecycle.create_request(
        new_request(org, start=date(2026, 4, 1), end=date(2026, 5, 15)), submit=True
    )
    assert result.error.rule_codes == ["INSUFFICIENT_BALANCE"]
    assert balance_of(org.employee).pending_days == Decimal("0")


def test_non_deducting_type_does_not_reserve(lifecycle, org, balance_of):
    request = submitted(lifecycle, org, leave_type=org.unpaid, end=FRIDAY)
    assert not request.reservation_open
    assert balance_of(org.employee).pending_days == Decimal("0")


def test_offered_type_reserves_on_offered_balance(lifecycle, org, balance_of):
    submitted(lifecycle, org, leave_type=org.offered)
    assert balance_of(org.employee, balance_type=BalanceType.OFFERED).pending_days == Decimal("1")
    assert balance_of(org.employee).pending_days == Decimal("0")


def test_short_notice_is_returned_as_warning(lifecycle, org):
    request = submitted(lifecycle, org, start=date(2026, 2, 17), end=date(2026, 2, 17))
    assert [w.code.value for w in request.warnings] == ["SHORT_NOTICE"]


def test_exceptional_leave_never_touches_balance(lifecycle, org, balance_of):
    request = submitted(
        lifecycle, org, leave_type=org.exceptional, end=date(2026, 3, 4),
        exceptional_reason_id=org.wedding.id,
    )
    assert not request.reservation_open
    assert balance_of(org.employee).pending_days == Decimal("0")


def test_manager_step_of_a_manager_goes_to_hr(lifecycle, org):
    request = submitted(lifecycle, org, user=org.manager)
    assert request.current_steps[0].approver_id == org.hr.id
    assert request.current_steps[0].natural_approver_id == org.hr.id


def test_two_step_workflow_starts_with_manager(lifecycle, org, two_step_workflow):
    request = submitted(lifecycle, org)
    assert [s.step_type for s in request.current_steps] == [WorkflowStepType.MANAGER, WorkflowStepType.HR]
    assert request.current_steps[1].approver_id == org.hr.id


def test_hr_only_workflow_starts_pending_hr(lifecycle, org, session):
    org.workflow.steps[0].step_type = WorkflowStepType.HR
    session.commit()
    request = submitted(lifecycle, org)
    assert request.status == LeaveStatus.PENDING_HR


def test_step_is_snapshotted_with_delegate(lifecycle, org, session):
    session.add(Delegation(
        from_user_id=org.manager.id,
        to_user_id=org.colleague.id,
        start_date=date(2026, 2, 10),
        end_date=date(2026, 2, 20),
        is_active=True,
    ))
    session.commit()

    request = submitted(lifecycle, org)
    step = request.current_steps[0]
    assert step.approver_id == org.colleague.id
    assert step.natural_approver_id == org.manager.id


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


def test_single_step_approval_consumes_reservation(lifecycle, org, balance_of, audit, notifier):
    request = submitted(lifecycle, org)
    assert balance_of(org.employee).pending_days == Decimal("1")

    result = lifecycle.approve_step(request.id, org.manager.id)

    assert result.is_success
    assert result.data.status == LeaveStatus.APPROVED
    assert not result.data.reservation_open
    balance = balance_of(org.employee)
    assert balance.pending_days == Decimal("0")
    assert balance.used_days == Decimal("1")
    assert audit.actions()[-1] == AuditAction.MANAGER_APPROVAL_APPROVED
    assert audit.entries[-1].old_status == "PENDING_MANAGER"
    assert audit.entries[-1].new_status == "APPROVED"
    assert notifier.events()[-1] == NotificationEvent.APPROVED


def test_manager_then_hr_refusal_releases_everything(lifecycle, org, balance_of, two_step_workflow, notifier):
    request = submitted(lifecycle, org, end=FRIDAY)

    after_manager = lifecycle.approve_step(request.id, org.manager.id)
    assert after_manager.data.status == LeaveStatus.PENDING_HR
    assert notifier.events()[-1] == NotificationEvent.STEP_APPROVED
    assert balance_of(org.employee).pending_days == Decimal("5")

    refused = lifecycle.refuse_step(request.id, org.hr.id, comment="insufficient staffing")
    assert refused.data.status == LeaveStatus.REFUSED
    steps = refused.data.current_steps
    assert [s.action for s in steps] == [ApprovalAction.APPROVED, ApprovalAction.REFUSED]
    assert steps[1].comment == "insufficient staffing"

    balance = balance_of(org.employee)
    assert balance.pending_days == Decimal("0")
    assert balance.used_days == Decimal("0")
    assert notifier.events()[-1] == NotificationEvent.REFUSED


def test_refuse_and_return_require_comment(lifecycle, org):
    request = submitted(lifecycle, org)
    for decide in (lifecycle.refuse_step, lifecycle.return_step):
        result = decide(request.id, org.manager.id, comment="   ")
        assert result.error.code == ErrorCode.VALIDATION_ERROR
        assert result.error.rule_codes == ["COMMENT_REQUIRED"]
    assert lifecycle.get_request(request.id).data.status == LeaveStatus.PENDING_MANAGER


def test_hr_step_cannot_be_decided_before_manager_step(lifecycle, org, two_step_workflow):
    request = submitted(lifecycle, org)
    hr_step = request.current_steps[1]

    result = lifecycle.approve_step(request.id, org.hr.id, step_id=hr_step.id)

    assert result.error.code == ErrorCode.CONFLICT
    assert result.error.message == "Earlier approval steps must be decided first"


def test_second_decision_on_same_step_is_a_conflict(lifecycle, org, balance_of):
    request = submitted(lifecycle, org)
    step_id = request.current_steps[0].id

    assert lifecycle.approve_step(request.id, org.manager.id, step_id=step_id).is_success
    again = lifecycle.approve_step(request.id, org.manager.id, step_id=step_id)

    assert again.error.code == ErrorCode.CONFLICT
    assert balance_of(org.employee).used_days == Decimal("1")


def test_racing_decision_is_rejected_by_write_once_step(lifecycle, org, session, balance_of):
    request = submitted(lifecycle, org)
    step_id = request.current_steps[0].id
    # Another actor decided the step without this session noticing
    session.execute(
        ApprovalStep.__table__.update()
        .where(ApprovalStep.__table__.c.id == step_id)
        .values(action=ApprovalAction.APPROVED, decided_by=org.admin.id)
    )
    session.commit()
    session.expire_all()

    result = lifecycle.refuse_step(request.id, org.manager.id, comment="too late", step_id=step_id)

    assert result.error.code == ErrorCode.CONFLICT
    assert balance_of(org.employee).pending_days == Decimal("1")


def test_decisions_on_terminal_requests_are_conflicts(lifecycle, org):
    request = submitted(lifecycle, org)
    lifecycle.approve_step(request.id, org.manager.id)
    result = lifecycle.refuse_step(request.id, org.manager.id, comment="changed my mind")
    assert result.error.code == ErrorCode.CONFLICT
    assert result.error.details["current_status"] == "APPROVED"


def test_unrelated_employee_cannot_decide(lifecycle, org):
    request = submitted(lifecycle, org)
    result = lifecycle.approve_step(request.id, org.colleague.id)
    assert result.error.code == ErrorCode.UNAUTHORIZED


def test_requester_cannot_decide_own_request(lifecycle, org):
    request = submitted(lifecycle, org, user=org.manager)
    result = lifecycle.approve_step(request.id, org.manager.id)
    assert result.error.code == ErrorCode.UNAUTHORIZED


def test_delegate_and_other_hr_users_may_decide(lifecycle, org, session, two_step_workflow):
    request = submitted(lifecycle, org)
    session.add(Delegation(
        from_user_id=org.manager.id,
        to_user_id=org.colleague.id,
        start_date=date(2026, 2, 16),
        end_date=date(2026, 2, 28),
        is_active=True,
    ))
    session.commit()

    assert lifecycle.approve_step(request.id, org.colleague.id).is_success
    # HR step is assigned to the first HR user; any HR user of the office may act
    result = lifecycle.approve_step(request.id, org.hr2.id)
    assert result.data.status == LeaveStatus.APPROVED


def test_return_then_resubmit_creates_new_cycle(lifecycle, org, balance_of):
    request = submitted(lifecycle, org, end=FRIDAY)

    returned = lifecycle.return_step(request.id, org.manager.id, comment="please split the week")
    assert returned.data.status == LeaveStatus.RETURNED
    assert balance_of(org.employee).pending_days == Decimal("0")

    updated = lifecycle.update_request(
        request.id, LeaveRequestUpdate(end_date=date(2026, 3, 3)), org.employee.id
    )
    assert updated.data.total_days == Decimal("2")
    assert updated.data.status == LeaveStatus.RETURNED

    resubmitted = lifecycle.submit_request(request.id, org.employee.id)
    assert resubmitted.data.status == LeaveStatus.PENDING_MANAGER
    assert resubmitted.data.submission_cycle == 2
    assert [s.cycle for s in resubmitted.data.current_steps] == [2]
    assert resubmitted.data.current_steps[0].action is None
    assert balance_of(org.employee).pending_days == Decimal("2")

    lifecycle.approve_step(request.id, org.manager.id)
    balance = balance_of(org.employee)
    assert balance.used_days == Decimal("2")
    assert balance.pending_days == Decimal("0")


def test_pending_request_cannot_be_edited_or_resubmitted(lifecycle, org):
    request = submitted(lifecycle, org)
    edit = lifecycle.update_request(request.id, LeaveRequestUpdate(reason="x"), org.employee.id)
    assert edit.error.code == ErrorCode.CONFLICT
    resubmit = lifecycle.submit_request(request.id, org.employee.id)
    assert resubmit.error.code == ErrorCode.CONFLICT


def test_only_owner_edits_draft(lifecycle, org):
    draft = lifecycle.create_request(new_request(org)).data
    result = lifecycle.update_request(draft.id, LeaveRequestUpdate(reason="x"), org.colleague.id)
    assert result.error.code == ErrorCode.UNAUTHORIZED


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


def test_cancel_pending_request_releases_reservation(lifecycle, org, balance_of, notifier):
    request = submitted(lifecycle, org, end=FRIDAY)

    result = lifecycle.cancel_request(request.id, org.employee.id, reason="plans changed")

    assert result.data.status == LeaveStatus.CANCELLED
    assert balance_of(org.employee).pending_days == Decimal("0")
    assert notifier.events()[-1] == NotificationEvent.CANCELLED
    assert notifier.sent[-1].recipient_ids == [org.manager.id]


def test_cancel_draft_touches_no_balance(lifecycle, org, balance_of, session):
    draft = lifecycle.create_request(new_request(org)).data
    result = lifecycle.cancel_request(draft.id, org.employee.id)
    assert result.data.status == LeaveStatus.CANCELLED
    assert balance_of(org.employee).pending_days == Decimal("0")
    assert LeaveBalanceRepository(session).find_movements_for_request(draft.id) == []


def test_cancelled_dates_can_be_requested_again(lifecycle, org):
    request = submitted(lifecycle, org)
    lifecycle.cancel_request(request.id, org.employee.id)
    assert lifecycle.create_request(new_request(org), submit=True).is_success


def test_approved_request_cannot_be_cancelled(lifecycle, org, balance_of):
    request = submitted(lifecycle, org)
    lifecycle.approve_step(request.id, org.manager.id)
    result = lifecycle.cancel_request(request.id, org.employee.id)
    assert result.error.code == ErrorCode.CONFLICT
    assert balance_of(org.employee).used_days == Decimal("1")


def test_reservation_is_reserved_and_settled_once(lifecycle, org, session):
    request = submitted(lifecycle, org, end=FRIDAY)
    lifecycle.approve_step(request.id, org.manager.id)
    lifecycle.cancel_request(request.id, org.employee.id)

    kinds = sorted(
        m.movement_type.value
        for m in LeaveBalanceRepository(session).find_movements_for_request(request.id)
    )
    assert kinds == ["CONSUME", "RESERVE"]


# ---------------------------------------------------------------------------
# Failure handling
# ---------------------------------------------------------------------------


class ExplodingLedger(BalanceLedger):
    """Fails after the pending days were already incremented."""

    def consume(self, *args, **kwargs):
        super().consume(*args, **kwargs)
        raise RuntimeError("disk full")


def test_failed_transition_rolls_back_everything(lifecycle, org, session, balance_of):
    request = submitted(lifecycle, org)
    lifecycle.ledger = ExplodingLedger(LeaveBalanceRepository(session))

    result = lifecycle.approve_step(request.id, org.manager.id)

    assert result.error.code == ErrorCode.INTERNAL_ERROR
    stored = lifecycle.get_request(request.id).data
    assert stored.status == LeaveStatus.PENDING_MANAGER
    assert stored.current_steps[0].action is None
    balance = balance_of(org.employee)
    assert balance.pending_days == Decimal("1")
    assert balance.used_days == Decimal("0")


class FailingDispatcher(NotificationDispatcher):
    def dispatch(self, notification):
        raise ConnectionError("smtp down")


def test_notification_failure_does_not_undo_transition(lifecycle, org):
    lifecycle.notification_dispatcher = FailingDispatcher()
    request = submitted(lifecycle, org)
    assert request.status == LeaveStatus.PENDING_MANAGER
    assert lifecycle.get_request(request.id).data.status == LeaveStatus.PENDING_MANAGER


def test_missing_hr_approver_is_a_configuration_error(lifecycle, org, session, two_step_workflow):
    org.hr.roles = ["EMPLOYEE"]
    org.hr2.roles = ["EMPLOYEE"]
    session.commit()

    result = lifecycle.create_request(new_request(org), submit=True)

    assert result.error.code == ErrorCode.CONFIGURATION_ERROR
    assert session.query(LeaveRequest).count() == 0


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def test_pending_approvals_include_delegated_steps(lifecycle, org, session):
    own = submitted(lifecycle, org)

    session.add(Delegation(
        from_user_id=org.manager.id,
        to_user_id=org.colleague.id,
        start_date=date(2026, 3, 1),
        end_date=date(2026, 3, 10),
        is_active=True,
    ))
    session.commit()

    manager_inbox = lifecycle.list_pending_approvals(org.manager.id).data
    assert [r.id for r in manager_inbox] == [own.id]

    assert lifecycle.list_pending_approvals(org.colleague.id).data == []
    delegated_inbox = lifecycle.list_pending_approvals(org.colleague.id, on_date=date(2026, 3, 5)).data
    assert [r.id for r in delegated_inbox] == [own.id]


def test_natural_approver_keeps_delegated_steps_in_inbox(lifecycle, org, session):
    session.add(Delegation(
        from_user_id=org.manager.id,
        to_user_id=org.colleague.id,
        start_date=date(2026, 2, 10),
        end_date=date(2026, 2, 20),
        is_active=True,
    ))
    session.commit()
    request = submitted(lifecycle, org)
    assert request.current_steps[0].approver_id == org.colleague.id

    manager_inbox = lifecycle.list_pending_approvals(org.manager.id).data
    delegate_inbox = lifecycle.list_pending_approvals(org.colleague.id).data
    assert [r.id for r in manager_inbox] == [request.id]
    assert [r.id for r in delegate_inbox] == [request.id]

    assert lifecycle.approve_step(request.id, org.manager.id).is_success
    assert lifecycle.list_pending_approvals(org.manager.id).data == []


def test_decided_requests_leave_the_inbox(lifecycle, org):
    request = submitted(lifecycle, org)
    lifecycle.approve_step(request.id, org.manager.id)
    assert lifecycle.list_pending_approvals(org.manager.id).data == []


def test_preview_matches_authoritative_duration(lifecycle, org):
    preview = lifecycle.preview_duration(
        org.employee.id, "2025-12-31", "2026-01-02", HalfDay.AFTERNOON, HalfDay.FULL_DAY
    ).data
    created = lifecycle.create_request(new_request(
        org, start=date(2025, 12, 31), end=date(2026, 1, 2), start_half_day=HalfDay.AFTERNOON,
    )).data
    assert preview.total_days == created.total_days == Decimal("1.5")
    assert preview.excluded_dates == [date(2026, 1, 1)]


def test_preview_rejects_unknown_half_day_flag(lifecycle, org):
    result = lifecycle.preview_duration(org.employee.id, "2026-03-02", "2026-03-03", "FULL_DAY", "EVENING")

    assert result.error.code == ErrorCode.VALIDATION_ERROR
    assert result.error.rule_codes == ["INVALID_HALF_DAY"]


def test_unknown_request_is_not_found(lifecycle):
    assert lifecycle.get_request("missing").error.code == ErrorCode.NOT_FOUND
    assert lifecycle.cancel_request("missing", "nobody").error.code == ErrorCode.NOT_FOUND


def test_fixed_clock_is_used_for_timestamps(lifecycle, org, session):
    request = submitted(lifecycle, org)
    stored = session.get(LeaveRequest, request.id)
    assert stored.submitted_at.replace(tzinfo=None) == FIXED_NOW.replace(tzinfo=None)


def test_list_user_requests_filters_by_status(lifecycle, org):
    draft = lifecycle.create_request(new_request(org, start=date(2026, 4, 6), end=date(2026, 4, 6))).data
    pending = submitted(lifecycle, org)

    everything = lifecycle.list_user_requests(org.employee.id)
    drafts = lifecycle.list_user_requests(org.employee.id, statuses=[LeaveStatus.DRAFT])

    assert [r.id for r in everything.data] == [draft.id, pending.id]
    assert [r.id for r in drafts.data] == [draft.id]
    assert lifecycle.list_user_requests(org.colleague.id).data == []


def test_unwrap_raises_typed_errors(lifecycle, org):
    request = submitted(lifecycle, org)
    lifecycle.approve_step(request.id, org.manager.id)

    with pytest.raises(StateConflictError):
        lifecycle.cancel_request(request.id, org.employee.id).unwrap()
    assert lifecycle.get_request(request.id).unwrap().status == LeaveStatus.APPROVED
