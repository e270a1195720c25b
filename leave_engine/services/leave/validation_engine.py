"""
Leave validation engine.

Stateless and side-effect free: given a draft, the office configuration
and the employee context it returns blocking errors and non-blocking
warnings, each naming the rule it comes from.
"""

from datetime import date
from typing import List, Optional

from dateutil.relativedelta import relativedelta

from leave_engine.config.settings import Settings, get_settings
from leave_engine.schemas.leave.leave_request import LeaveDraft
from leave_engine.schemas.leave.validation import (
    RuleCode,
    ValidationIssue,
    ValidationReport,
    format_days,
)
from leave_engine.schemas.office.office_config import (
    EmployeeContext,
    LeaveTypeInfo,
    OfficeConfig,
)

# Errors that also block saving a draft; every other error only blocks submission
DRAFT_BLOCKING_RULES = frozenset({
    RuleCode.INVALID_DATE_RANGE,
    RuleCode.NO_WORKING_DAYS,
    RuleCode.INVALID_LEAVE_TYPE,
    RuleCode.OVERLAPPING_REQUEST,
    RuleCode.EXCEPTIONAL_REASON_NOT_ALLOWED,
})


class ValidationEngine:
    """Checks a leave draft against office and employee rules."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def validate(
        self,
        draft: LeaveDraft,
        office_config: OfficeConfig,
        employee_context: EmployeeContext,
        today: Optional[date] = None,
    ) -> ValidationReport:
        """
        Evaluate every rule for ``draft``.

        Args:
            draft: Candidate request with its computed total_days
            office_config: Office rules, the draft's leave type and exceptional rules
            employee_context: Hire date, balance snapshot and overlapping requests
            today: Reference date for probation and notice rules

        Returns:
            Report with all errors and warnings
        """
        today = today or date.today()
        errors: List[ValidationIssue] = []
        warnings: List[ValidationIssue] = []

        leave_type = office_config.leave_type
        dates_valid = self._check_dates(draft, errors)
        type_valid = self._check_leave_type(leave_type, office_config, errors)
        is_exceptional = type_valid and self.is_exceptional(leave_type)

        self._check_overlap(employee_context, errors)
        self._check_probation(office_config, employee_context, today, errors)

        if type_valid:
            self._check_exceptional(draft, office_config, is_exceptional, errors)
            if dates_valid:
                self._check_attachment(draft, leave_type, errors)
                self._check_balance(draft, leave_type, is_exceptional, employee_context, errors, warnings)

        if dates_valid:
            self._check_notice(draft, office_config, today, warnings)
            if type_valid:
                self._check_sick_justification(draft, leave_type, office_config, warnings)

        return ValidationReport(errors=errors, warnings=warnings)

    def is_exceptional(self, leave_type: Optional[LeaveTypeInfo]) -> bool:
        return leave_type is not None and leave_type.code.upper() == self.settings.EXCEPTIONAL_LEAVE_CODE

    def is_sick(self, leave_type: Optional[LeaveTypeInfo]) -> bool:
        return leave_type is not None and leave_type.code.upper() == self.settings.SICK_LEAVE_CODE

    def deducts_from_balance(self, leave_type: Optional[LeaveTypeInfo]) -> bool:
        """Exceptional leave never deducts, whatever its configuration says."""
        if leave_type is None or self.is_exceptional(leave_type):
            return False
        return leave_type.deducts_from_balance

    # -------------------------------------------------------------------------
    # Blocking rules
    # -------------------------------------------------------------------------

    def _check_dates(self, draft: LeaveDraft, errors: List[ValidationIssue]) -> bool:
        if draft.end_date < draft.start_date:
            errors.append(ValidationIssue(
                code=RuleCode.INVALID_DATE_RANGE,
                message="End date must not be before start date",
                field="end_date",
            ))
            return False
        if draft.total_days <= 0:
            errors.append(ValidationIssue(
                code=RuleCode.NO_WORKING_DAYS,
                message="The selected period contains no working day",
                field="start_date",
            ))
            return False
        return True

    def _check_leave_type(
        self,
        leave_type: Optional[LeaveTypeInfo],
        office_config: OfficeConfig,
        errors: List[ValidationIssue],
    ) -> bool:
        if leave_type is None or not leave_type.is_active:
            errors.append(ValidationIssue(
                code=RuleCode.INVALID_LEAVE_TYPE,
                message="Leave type is unknown or no longer available",
                field="leave_type_id",
            ))
            return False
        if leave_type.office_id != office_config.rules.office_id:
            errors.append(ValidationIssue(
                code=RuleCode.INVALID_LEAVE_TYPE,
                message="Leave type is not available in your office",
                field="leave_type_id",
            ))
            return False
        return True

    def _check_overlap(self, context: EmployeeContext, errors: List[ValidationIssue]) -> None:
        if context.overlapping_request_ids:
            errors.append(ValidationIssue(
                code=RuleCode.OVERLAPPING_REQUEST,
                message="Another leave request already covers part of this period",
                field="start_date",
            ))

    def _check_probation(
        self,
        office_config: OfficeConfig,
        context: EmployeeContext,
        today: date,
        errors: List[ValidationIssue],
    ) -> None:
        if context.hire_date is None:
            return
        probation_end = context.hire_date + relativedelta(months=office_config.rules.probation_months)
        if probation_end > today:
            errors.append(ValidationIssue(
                code=RuleCode.ON_PROBATION,
                message=f"Employee is on probation until {probation_end.isoformat()}",
            ))

    def _check_exceptional(
        self,
        draft: LeaveDraft,
        office_config: OfficeConfig,
        is_exceptional: bool,
        errors: List[ValidationIssue],
    ) -> None:
        if not is_exceptional:
            if draft.exceptional_reason_id:
                errors.append(ValidationIssue(
                    code=RuleCode.EXCEPTIONAL_REASON_NOT_ALLOWED,
                    message="An exceptional reason can only be given for exceptional leave",
                    field="exceptional_reason_id",
                ))
            return

        rule = office_config.find_exceptional_rule(draft.exceptional_reason_id)
        if rule is None or not rule.is_active:
            errors.append(ValidationIssue(
                code=RuleCode.EXCEPTIONAL_REASON_REQUIRED,
                message="Exceptional leave requires a valid reason of your office",
                field="exceptional_reason_id",
            ))
            return

        if draft.total_days > rule.max_days:
            errors.append(ValidationIssue(
                code=RuleCode.EXCEPTIONAL_MAX_EXCEEDED,
                message=(
                    f"{rule.label or rule.reason_code} is limited to "
                    f"{format_days(rule.max_days)} days"
                ),
                field="end_date",
            ))

    def _check_attachment(
        self,
        draft: LeaveDraft,
        leave_type: LeaveTypeInfo,
        errors: List[ValidationIssue],
    ) -> None:
        if draft.has_attachment:
            return
        if leave_type.requires_attachment:
            errors.append(ValidationIssue(
                code=RuleCode.ATTACHMENT_REQUIRED,
                message=f"An attachment is required for {leave_type.label or leave_type.code}",
                field="attachment_refs",
            ))
            return
        threshold = leave_type.attachment_from_day
        if self.is_sick(leave_type) and threshold and draft.total_days >= threshold:
            errors.append(ValidationIssue(
                code=RuleCode.ATTACHMENT_REQUIRED,
                message=f"Attachment required from day {threshold}",
                field="attachment_refs",
            ))

    def _check_balance(
        self,
        draft: LeaveDraft,
        leave_type: LeaveTypeInfo,
        is_exceptional: bool,
        context: EmployeeContext,
        errors: List[ValidationIssue],
        warnings: List[ValidationIssue],
    ) -> None:
        if is_exceptional or not leave_type.deducts_from_balance:
            return

        balance = context.balance
        if balance is None:
            errors.append(ValidationIssue(
                code=RuleCode.NO_BALANCE_CONFIGURED,
                message=(
                    f"No {leave_type.balance_type.value} balance configured for "
                    f"{draft.start_date.year}"
                ),
            ))
            return

        remaining = balance.remaining
        if draft.total_days > remaining:
            issue = ValidationIssue(
                code=RuleCode.INSUFFICIENT_BALANCE,
                message=(
                    f"Insufficient balance: {format_days(draft.total_days)} days requested, "
                    f"{format_days(remaining)} remaining"
                ),
            )
            if self.settings.ALLOW_NEGATIVE_BALANCE:
                warnings.append(issue.model_copy(update={
                    "code": RuleCode.NEGATIVE_BALANCE,
                    "blocking": False,
                }))
            else:
                errors.append(issue)

    # -------------------------------------------------------------------------
    # Warnings
    # -------------------------------------------------------------------------

    def _check_notice(
        self,
        draft: LeaveDraft,
        office_config: OfficeConfig,
        today: date,
        warnings: List[ValidationIssue],
    ) -> None:
        min_notice = office_config.rules.min_notice_days
        if (draft.start_date - today).days < min_notice:
            warnings.append(ValidationIssue(
                code=RuleCode.SHORT_NOTICE,
                message=f"Notice period is shorter than {min_notice} days",
                field="start_date",
                blocking=False,
            ))

    def _check_sick_justification(
        self,
        draft: LeaveDraft,
        leave_type: LeaveTypeInfo,
        office_config: OfficeConfig,
        warnings: List[ValidationIssue],
    ) -> None:
        threshold = office_config.rules.sick_leave_justif_from_day
        if self.is_sick(leave_type) and not draft.has_attachment and draft.total_days >= threshold:
            warnings.append(ValidationIssue(
                code=RuleCode.SICK_JUSTIFICATION_EXPECTED,
                message=f"A medical certificate is expected from day {threshold}",
                field="attachment_refs",
                blocking=False,
            ))


__all__ = ["DRAFT_BLOCKING_RULES", "ValidationEngine"]
