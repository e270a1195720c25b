"""Workflow and delegation services."""

from leave_engine.services.workflow.delegation_resolver import DelegationResolver
from leave_engine.services.workflow.delegation_service import DelegationService
from leave_engine.services.workflow.workflow_resolver import WorkflowResolver

__all__ = ["DelegationResolver", "DelegationService", "WorkflowResolver"]
