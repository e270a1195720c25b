"""Validation engine rules, driven from plain fixtures."""

from datetime import date
from decimal import Decimal

import pytest

from leave_engine.config.settings import Settings
from leave_engine.models.common.enums import BalanceType
from leave_engine.schemas.leave.leave_request import LeaveDraft
from leave_engine.schemas.leave.validation import RuleCode
from leave_engine.schemas.office.office_config import (
    BalanceSnapshot,
    EmployeeContext,
    ExceptionalRuleInfo,
    LeaveTypeInfo,
    OfficeConfig,
    OfficeRules,
)
from leave_engine.services.leave import DRAFT_BLOCKING_RULES, ValidationEngine

TODAY = date(2026, 2, 16)
OFFICE = "office-geneva"

ANNUAL = LeaveTypeInfo(id="lt-annual", office_id=OFFICE, code="ANNUAL", label="Annual leave")
SICK = LeaveTypeInfo(
    id="lt-sick", office_id=OFFICE, code="SICK", label="Sick leave",
    attachment_from_day=3, deducts_from_balance=False,
)
EXCEPTIONAL = LeaveTypeInfo(
    id="lt-exc", office_id=OFFICE, code="EXCEPTIONAL", label="Exceptional leave",
    deducts_from_balance=True,
)
WEDDING = ExceptionalRuleInfo(
    id="rule-wedding", office_id=OFFICE, reason_code="WEDDING", label="Wedding", max_days=Decimal("3"),
)


def make_config(leave_type=ANNUAL, **rules):
    return OfficeConfig(
        rules=OfficeRules(office_id=OFFICE, name="Geneva", **rules),
        leave_type=leave_type,
        exceptional_rules=[WEDDING],
    )


def make_context(hire_date=date(2024, 3, 1), remaining="25", overlapping=(), balance=True):
    snapshot = None
    if balance:
        snapshot = BalanceSnapshot(
            user_id="u1", year=2026, balance_type=BalanceType.ANNUAL, total_days=Decimal(remaining),
        )
    return EmployeeContext(
        user_id="u1", hire_date=hire_date, balance=snapshot, overlapping_request_ids=list(overlapping),
    )


def make_draft(start=date(2026, 3, 2), end=date(2026, 3, 6), total="5", leave_type=ANNUAL, **kwargs):
    return LeaveDraft(
        user_id="u1",
        leave_type_id=leave_type.id,
        start_date=start,
        end_date=end,
        total_days=Decimal(total),
        **kwargs,
    )


@pytest.fixture
def engine():
    return ValidationEngine(Settings(_env_file=None, ALLOW_NEGATIVE_BALANCE=False))


def test_valid_request_has_no_errors(engine):
    report = engine.validate(make_draft(), make_config(), make_context(), TODAY)
    assert report.is_valid
    assert report.warnings == []


def test_employee_on_probation_is_blocked(engine):
    draft = make_draft(start=date(2026, 2, 2), end=date(2026, 2, 2), total="1")
    report = engine.validate(draft, make_config(probation_months=3), make_context(hire_date=date(2026, 1, 1)), TODAY)
    assert report.error_codes == [RuleCode.ON_PROBATION]
    assert "2026-04-01" in report.errors[0].message


def test_probation_ends_on_anniversary(engine):
    context = make_context(hire_date=date(2025, 11, 16))
    assert engine.validate(make_draft(), make_config(probation_months=3), context, TODAY).is_valid


def test_reversed_range_is_reported(engine):
    draft = make_draft(start=date(2026, 3, 6), end=date(2026, 3, 2), total="0")
    report = engine.validate(draft, make_config(), make_context(), TODAY)
    assert report.error_codes == [RuleCode.INVALID_DATE_RANGE]


def test_range_without_working_day_is_reported(engine):
    draft = make_draft(start=date(2026, 3, 7), end=date(2026, 3, 8), total="0")
    report = engine.validate(draft, make_config(), make_context(), TODAY)
    assert report.error_codes == [RuleCode.NO_WORKING_DAYS]


def test_inactive_or_foreign_leave_type_is_invalid(engine):
    inactive = ANNUAL.model_copy(update={"is_active": False})
    foreign = ANNUAL.model_copy(update={"office_id": "office-lisbon"})
    for leave_type in (None, inactive, foreign):
        report = engine.validate(make_draft(), make_config(leave_type=leave_type), make_context(), TODAY)
        assert report.error_codes == [RuleCode.INVALID_LEAVE_TYPE]


def test_overlap_blocks(engine):
    report = engine.validate(make_draft(), make_config(), make_context(overlapping=["other"]), TODAY)
    assert report.has_error(RuleCode.OVERLAPPING_REQUEST)


def test_sick_leave_needs_attachment_from_configured_day(engine):
    config = make_config(leave_type=SICK)
    short = make_draft(start=date(2026, 3, 2), end=date(2026, 3, 3), total="2", leave_type=SICK)
    long = make_draft(leave_type=SICK, total="3", end=date(2026, 3, 4))

    assert engine.validate(short, config, make_context(), TODAY).is_valid

    report = engine.validate(long, config, make_context(), TODAY)
    assert report.error_codes == [RuleCode.ATTACHMENT_REQUIRED]
    assert report.errors[0].message == "Attachment required from day 3"

    attached = long.model_copy(update={"attachment_refs": ["doc-1"]})
    assert engine.validate(attached, config, make_context(), TODAY).is_valid


def test_sick_justification_warning_without_attachment(engine):
    config = make_config(leave_type=SICK, sick_leave_justif_from_day=2)
    draft = make_draft(start=date(2026, 3, 2), end=date(2026, 3, 3), total="2", leave_type=SICK)
    report = engine.validate(draft, config, make_context(), TODAY)
    assert report.is_valid
    assert report.warning_codes == [RuleCode.SICK_JUSTIFICATION_EXPECTED]


def test_type_requiring_attachment(engine):
    training = ANNUAL.model_copy(update={"code": "TRAINING", "requires_attachment": True, "deducts_from_balance": False})
    report = engine.validate(make_draft(leave_type=training), make_config(leave_type=training), make_context(), TODAY)
    assert report.error_codes == [RuleCode.ATTACHMENT_REQUIRED]


def test_exceptional_leave_rules(engine):
    config = make_config(leave_type=EXCEPTIONAL)

    missing = make_draft(leave_type=EXCEPTIONAL, total="2", end=date(2026, 3, 3))
    assert engine.validate(missing, config, make_context(), TODAY).error_codes == [
        RuleCode.EXCEPTIONAL_REASON_REQUIRED
    ]

    within = missing.model_copy(update={"exceptional_reason_id": WEDDING.id})
    assert engine.validate(within, config, make_context(), TODAY).is_valid

    too_long = make_draft(leave_type=EXCEPTIONAL, exceptional_reason_id=WEDDING.id)
    report = engine.validate(too_long, config, make_context(), TODAY)
    assert report.error_codes == [RuleCode.EXCEPTIONAL_MAX_EXCEEDED]
    assert report.errors[0].message == "Wedding is limited to 3 days"


def test_exceptional_leave_never_checks_balance(engine):
    draft = make_draft(leave_type=EXCEPTIONAL, exceptional_reason_id=WEDDING.id, total="3", end=date(2026, 3, 4))
    report = engine.validate(draft, make_config(leave_type=EXCEPTIONAL), make_context(balance=False), TODAY)
    assert report.is_valid
    assert not engine.deducts_from_balance(EXCEPTIONAL)


def test_exceptional_reason_on_regular_type_is_rejected(engine):
    draft = make_draft(exceptional_reason_id=WEDDING.id)
    report = engine.validate(draft, make_config(), make_context(), TODAY)
    assert report.error_codes == [RuleCode.EXCEPTIONAL_REASON_NOT_ALLOWED]


def test_insufficient_balance_blocks(engine):
    report = engine.validate(make_draft(), make_config(), make_context(remaining="4.5"), TODAY)
    assert report.error_codes == [RuleCode.INSUFFICIENT_BALANCE]
    assert report.errors[0].message == "Insufficient balance: 5 days requested, 4.5 remaining"


def test_negative_balance_only_warns_when_allowed():
    engine = ValidationEngine(Settings(_env_file=None, ALLOW_NEGATIVE_BALANCE=True))
    report = engine.validate(make_draft(), make_config(), make_context(remaining="4.5"), TODAY)
    assert report.is_valid
    assert report.warning_codes == [RuleCode.NEGATIVE_BALANCE]


def test_missing_balance_row_blocks(engine):
    report = engine.validate(make_draft(), make_config(), make_context(balance=False), TODAY)
    assert report.error_codes == [RuleCode.NO_BALANCE_CONFIGURED]


def test_short_notice_warning(engine):
    draft = make_draft(start=date(2026, 2, 17), end=date(2026, 2, 17), total="1")
    report = engine.validate(draft, make_config(min_notice_days=2), make_context(), TODAY)
    assert report.is_valid
    assert report.warning_codes == [RuleCode.SHORT_NOTICE]


def test_submit_only_rules_do_not_block_drafts(engine):
    draft = make_draft(start=date(2026, 2, 2), end=date(2026, 2, 2), total="1")
    report = engine.validate(draft, make_config(), make_context(hire_date=date(2026, 1, 1), remaining="0"), TODAY)
    assert set(report.error_codes) == {RuleCode.ON_PROBATION, RuleCode.INSUFFICIENT_BALANCE}
    assert report.errors_for(DRAFT_BLOCKING_RULES) == []
