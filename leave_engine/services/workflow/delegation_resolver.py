"""
Delegation resolver.

Runs while approval steps are created, so it never raises: any lookup
problem falls back to the natural approver.
"""

from datetime import date
from typing import List, Optional

from leave_engine.core.exceptions import ConfigurationError
from leave_engine.core.logging import get_logger
from leave_engine.repositories.workflow.workflow_repository import DelegationRepository
from leave_engine.services.base.audit_service import (
    AuditAction,
    AuditEntry,
    AuditLogger,
    record_safely,
)


class DelegationResolver:
    """Maps a natural approver to the effective approver on a date."""

    def __init__(
        self,
        delegation_repo: DelegationRepository,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self.delegation_repo = delegation_repo
        self.audit_logger = audit_logger
        self._logger = get_logger(self.__class__.__name__)

    def resolve_approver(self, natural_approver_id: str, on_date: date) -> str:
        """
        Effective approver for ``natural_approver_id`` on ``on_date``.

        One active delegation covering the date hands the step to its
        delegate. Several are a configuration anomaly: the most recently
        created wins and the ambiguity is logged and audited.
        """
        try:
            delegations = self.delegation_repo.find_active_from(natural_approver_id, on_date)
        except Exception as e:
            self._logger.error(
                f"Delegation lookup failed, keeping natural approver: {e}",
                exc_info=True,
                extra={"approver_id": natural_approver_id, "on_date": on_date.isoformat()},
            )
            return natural_approver_id

        if not delegations:
            return natural_approver_id

        chosen = delegations[0]
        if len(delegations) > 1:
            error = ConfigurationError(
                "Several active delegations cover the same date",
                config_key="delegations",
                details={
                    "from_user_id": natural_approver_id,
                    "on_date": on_date.isoformat(),
                    "delegation_ids": [d.id for d in delegations],
                    "chosen_delegation_id": chosen.id,
                },
            )
            self._logger.warning(error.message, extra=error.details)
            record_safely(
                self.audit_logger,
                AuditEntry(
                    actor_id=None,
                    action=AuditAction.DELEGATION_AMBIGUOUS,
                    entity_type="Delegation",
                    entity_id=chosen.id,
                    details=error.details,
                ),
                self._logger,
            )

        self._logger.debug(
            f"Approver {natural_approver_id} delegated to {chosen.to_user_id}",
            extra={"delegation_id": chosen.id},
        )
        return chosen.to_user_id

    def delegators_for(self, user_id: str, on_date: date) -> List[str]:
        """Users who have delegated their authority to ``user_id`` on ``on_date``."""
        try:
            return [d.from_user_id for d in self.delegation_repo.find_active_to(user_id, on_date)]
        except Exception as e:
            self._logger.error(f"Delegation lookup failed: {e}", exc_info=True)
            return []
