"""
Service layer root package.

Each subpackage implements engine use-cases on top of:

- SQLAlchemy models (leave_engine.models.*)
- Repositories (leave_engine.repositories.*)
- Pydantic schemas (leave_engine.schemas.*)
- Common service infrastructure (leave_engine.services.base.*)

Typical pattern for a service:

    service = LeaveLifecycleService.from_session(session)
    result = service.submit_request(request_id, actor_id=user_id)
    if not result:
        print(result.error.code, result.error.message)
"""

from leave_engine.services.base import ServiceError, ServiceResult
from leave_engine.services.leave import BalanceService, LeaveLifecycleService, ValidationEngine
from leave_engine.services.workflow import DelegationService

__all__ = [
    "BalanceService",
    "DelegationService",
    "LeaveLifecycleService",
    "ServiceError",
    "ServiceResult",
    "ValidationEngine",
]
