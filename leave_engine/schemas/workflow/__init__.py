"""Workflow and delegation schemas."""

from leave_engine.schemas.workflow.delegation import (
    DelegationCreate,
    DelegationResponse,
    ResolvedStep,
)

__all__ = ["DelegationCreate", "DelegationResponse", "ResolvedStep"]
