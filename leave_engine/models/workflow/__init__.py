"""
Workflow models package.

Office approval workflows and approval delegations.
"""

from leave_engine.models.workflow.delegation import Delegation
from leave_engine.models.workflow.workflow import WorkflowConfig, WorkflowStep

__all__ = ["Delegation", "WorkflowConfig", "WorkflowStep"]
