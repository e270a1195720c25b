"""
Office configuration provider.

The engine reads office rules, calendars, workflows and leave types
only through this interface so it can run against fixtures.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from leave_engine.core.exceptions import ResourceNotFoundError
from leave_engine.repositories.leave.leave_type_repository import (
    ExceptionalLeaveRuleRepository,
    LeaveTypeRepository,
)
from leave_engine.repositories.office.office_repository import OfficeRepository
from leave_engine.repositories.workflow.workflow_repository import WorkflowConfigRepository
from leave_engine.schemas.office.office_config import (
    ExceptionalRuleInfo,
    LeaveTypeInfo,
    OfficeCalendar,
    OfficeRules,
)
from leave_engine.schemas.workflow.delegation import ResolvedStep
from leave_engine.services.calendar.duration_calculator import iter_dates


class OfficeConfigProvider(ABC):
    """Read-only access to office configuration."""

    @abstractmethod
    def get_office_rules(self, office_id: str) -> OfficeRules:
        """Rule scalars of the office; raises ResourceNotFoundError if unknown."""

    @abstractmethod
    def get_calendar(self, office_id: str, start: date, end: date) -> OfficeCalendar:
        """Working days plus holiday and closure dates within [start, end]."""

    @abstractmethod
    def get_workflow_steps(self, office_id: str) -> List[ResolvedStep]:
        """Configured steps ordered by step_order, possibly empty."""

    @abstractmethod
    def get_leave_type(self, leave_type_id: str) -> Optional[LeaveTypeInfo]:
        """Leave type by id, or None."""

    @abstractmethod
    def get_exceptional_rules(self, office_id: str) -> List[ExceptionalRuleInfo]:
        """Active exceptional leave rules of the office."""


class SqlAlchemyOfficeConfigProvider(OfficeConfigProvider):
    """Provider backed by the engine's own tables."""

    def __init__(self, db: Session):
        self.db = db
        self.office_repo = OfficeRepository(db)
        self.workflow_repo = WorkflowConfigRepository(db)
        self.leave_type_repo = LeaveTypeRepository(db)
        self.exceptional_repo = ExceptionalLeaveRuleRepository(db)

    def _get_office(self, office_id: str):
        office = self.office_repo.find_by_id(office_id)
        if office is None:
            raise ResourceNotFoundError("Office", office_id)
        return office

    def get_office_rules(self, office_id: str) -> OfficeRules:
        office = self._get_office(office_id)
        return OfficeRules(
            office_id=office.id,
            name=office.name,
            probation_months=office.probation_months,
            min_notice_days=office.min_notice_days,
            sick_leave_justif_from_day=office.sick_leave_justif_from_day,
            max_carry_over_days=office.max_carry_over_days,
            carry_over_deadline=office.carry_over_deadline,
            default_annual_leave=office.default_annual_leave,
            default_offered_days=office.default_offered_days,
            working_days=office.working_days,
        )

    def get_calendar(self, office_id: str, start: date, end: date) -> OfficeCalendar:
        office = self._get_office(office_id)
        excluded = set()
        if end >= start:
            excluded.update(
                h.date for h in self.office_repo.find_holidays_between(office_id, start, end)
            )
            for closure in self.office_repo.find_closures_overlapping(office_id, start, end):
                for day in iter_dates(max(closure.start_date, start), min(closure.end_date, end)):
                    excluded.add(day)
        return OfficeCalendar(
            office_id=office.id,
            working_days=office.working_days,
            holidays=frozenset(excluded),
        )

    def get_workflow_steps(self, office_id: str) -> List[ResolvedStep]:
        workflow = self.workflow_repo.find_by_office(office_id)
        if workflow is None:
            return []
        return [
            ResolvedStep(
                step_order=step.step_order,
                step_type=step.step_type,
                is_required=step.is_required,
            )
            for step in sorted(workflow.steps, key=lambda s: s.step_order)
        ]

    def get_leave_type(self, leave_type_id: str) -> Optional[LeaveTypeInfo]:
        leave_type = self.leave_type_repo.find_by_id(leave_type_id)
        if leave_type is None:
            return None
        return LeaveTypeInfo.model_validate(leave_type)

    def get_exceptional_rules(self, office_id: str) -> List[ExceptionalRuleInfo]:
        return [
            ExceptionalRuleInfo.model_validate(rule)
            for rule in self.exceptional_repo.find_active_for_office(office_id)
        ]
