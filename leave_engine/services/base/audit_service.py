"""
Audit logging collaborator.

The engine records every committed transition through an ``AuditLogger``.
Persistence of audit entries is owned outside the engine; the default
implementation writes them to the application log.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from leave_engine.core.logging import get_logger


class AuditAction(str, Enum):
    """Audited engine actions."""

    LEAVE_CREATED = "LEAVE_CREATED"
    LEAVE_UPDATED = "LEAVE_UPDATED"
    LEAVE_SUBMITTED = "LEAVE_SUBMITTED"
    LEAVE_CANCELLED = "LEAVE_CANCELLED"
    MANAGER_APPROVAL_APPROVED = "MANAGER_APPROVAL_APPROVED"
    MANAGER_APPROVAL_REFUSED = "MANAGER_APPROVAL_REFUSED"
    MANAGER_APPROVAL_RETURNED = "MANAGER_APPROVAL_RETURNED"
    HR_APPROVAL_APPROVED = "HR_APPROVAL_APPROVED"
    HR_APPROVAL_REFUSED = "HR_APPROVAL_REFUSED"
    HR_APPROVAL_RETURNED = "HR_APPROVAL_RETURNED"
    DELEGATION_CREATED = "DELEGATION_CREATED"
    DELEGATION_REVOKED = "DELEGATION_REVOKED"
    DELEGATION_AMBIGUOUS = "DELEGATION_AMBIGUOUS"
    BALANCE_SEEDED = "BALANCE_SEEDED"

    @classmethod
    def for_decision(cls, step_type: str, action: str) -> "AuditAction":
        """Audit action of a step decision, e.g. MANAGER + REFUSED."""
        return cls(f"{step_type}_APPROVAL_{action}")


@dataclass
class AuditEntry:
    """One audit record."""

    actor_id: Optional[str]
    action: AuditAction
    entity_type: str
    entity_id: str
    old_status: Optional[str] = None
    new_status: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "actor_id": self.actor_id,
            "action": self.action.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "old_status": self.old_status,
            "new_status": self.new_status,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class AuditLogger(ABC):
    """Audit sink called after every committed transition."""

    @abstractmethod
    def record(self, entry: AuditEntry) -> None:
        """Record one entry. Implementations may raise; callers contain failures."""


class LoggingAuditLogger(AuditLogger):
    """Writes audit entries to the ``leave_engine.audit`` logger."""

    def __init__(self):
        self._logger = get_logger("leave_engine.audit")

    def record(self, entry: AuditEntry) -> None:
        self._logger.info(
            f"{entry.action.value} {entry.entity_type}:{entry.entity_id}",
            extra={"audit": entry.to_dict()},
        )


def record_safely(audit_logger: Optional[AuditLogger], entry: AuditEntry, logger=None) -> bool:
    """
    Record an audit entry without letting a sink failure propagate.

    Returns:
        True when the entry was recorded
    """
    if audit_logger is None:
        return False
    try:
        audit_logger.record(entry)
        return True
    except Exception as e:
        (logger or get_logger(__name__)).error(
            f"Audit logging failed for {entry.action.value}: {e}",
            exc_info=True,
            extra={"entity_id": entry.entity_id},
        )
        return False


class InMemoryAuditLogger(AuditLogger):
    """Keeps entries in memory; useful for embedding and tests."""

    def __init__(self):
        self.entries: List[AuditEntry] = []

    def record(self, entry: AuditEntry) -> None:
        self.entries.append(entry)

    def actions(self) -> List[AuditAction]:
        return [entry.action for entry in self.entries]


__all__ = [
    "AuditAction",
    "AuditEntry",
    "AuditLogger",
    "LoggingAuditLogger",
    "InMemoryAuditLogger",
    "record_safely",
]
