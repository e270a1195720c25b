"""Workflow and delegation repositories."""

from leave_engine.repositories.workflow.workflow_repository import (
    DelegationRepository,
    WorkflowConfigRepository,
)

__all__ = ["DelegationRepository", "WorkflowConfigRepository"]
