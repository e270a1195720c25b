"""
Notification dispatcher collaborator.

The lifecycle engine announces submissions and decisions through a
``NotificationDispatcher`` once the transition is committed. Delivery
(email, in-app) is owned outside the engine.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from leave_engine.core.logging import get_logger


class NotificationEvent(str, Enum):
    """Lifecycle events announced to recipients."""

    NEW_REQUEST = "NEW_REQUEST"
    STEP_APPROVED = "STEP_APPROVED"
    APPROVED = "APPROVED"
    REFUSED = "REFUSED"
    RETURNED = "RETURNED"
    CANCELLED = "CANCELLED"


@dataclass
class LeaveNotification:
    """Payload passed to the dispatcher."""

    event: NotificationEvent
    leave_request_id: str
    actor_id: Optional[str]
    recipient_ids: List[str] = field(default_factory=list)
    outcome: Optional[str] = None
    comment: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)


class NotificationDispatcher(ABC):
    """Fire-and-forget notification sink."""

    @abstractmethod
    def dispatch(self, notification: LeaveNotification) -> None:
        """Deliver or enqueue one notification."""


class LoggingNotificationDispatcher(NotificationDispatcher):
    """Logs notifications instead of delivering them."""

    def __init__(self):
        self._logger = get_logger("leave_engine.notifications")

    def dispatch(self, notification: LeaveNotification) -> None:
        self._logger.info(
            f"Notification {notification.event.value} for request {notification.leave_request_id}",
            extra={
                "event": notification.event.value,
                "leave_request_id": notification.leave_request_id,
                "actor_id": notification.actor_id,
                "recipient_ids": notification.recipient_ids,
                "outcome": notification.outcome,
            },
        )


def dispatch_safely(
    dispatcher: Optional[NotificationDispatcher],
    notification: LeaveNotification,
    logger=None,
) -> bool:
    """
    Dispatch a notification without letting a delivery failure propagate.

    Returns:
        True when the dispatcher accepted the notification
    """
    if dispatcher is None:
        return False
    try:
        dispatcher.dispatch(notification)
        return True
    except Exception as e:
        (logger or get_logger(__name__)).error(
            f"Notification {notification.event.value} failed: {e}",
            exc_info=True,
            extra={"leave_request_id": notification.leave_request_id},
        )
        return False


class InMemoryNotificationDispatcher(NotificationDispatcher):
    """Collects notifications in memory."""

    def __init__(self):
        self.sent: List[LeaveNotification] = []

    def dispatch(self, notification: LeaveNotification) -> None:
        self.sent.append(notification)

    def events(self) -> List[NotificationEvent]:
        return [n.event for n in self.sent]


__all__ = [
    "NotificationEvent",
    "LeaveNotification",
    "NotificationDispatcher",
    "LoggingNotificationDispatcher",
    "InMemoryNotificationDispatcher",
    "dispatch_safely",
]
