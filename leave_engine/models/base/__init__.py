"""
Base models package.

Provides the declarative base and abstract base classes
for all database models.
"""

from leave_engine.models.base.base_model import (
    Base,
    BaseModel,
    TimestampModel,
    utcnow,
)

__all__ = [
    "Base",
    "BaseModel",
    "TimestampModel",
    "utcnow",
]
