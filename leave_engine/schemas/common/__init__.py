"""Common schema base classes."""

from leave_engine.schemas.common.base import (
    BaseCreateSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
)

__all__ = [
    "BaseCreateSchema",
    "BaseResponseSchema",
    "BaseSchema",
    "BaseUpdateSchema",
]
