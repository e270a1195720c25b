"""
Workflow configuration resolver.

Turns an office's configured approval chain into a non-empty list of
steps numbered 1..N.
"""

from typing import List, Optional

from leave_engine.config.settings import Settings, get_settings
from leave_engine.core.exceptions import ConfigurationError
from leave_engine.core.logging import get_logger
from leave_engine.models.common.enums import WorkflowStepType
from leave_engine.schemas.workflow.delegation import ResolvedStep
from leave_engine.services.office.config_provider import OfficeConfigProvider


class WorkflowResolver:
    """Resolves the ordered step types of an office."""

    def __init__(
        self,
        config_provider: OfficeConfigProvider,
        settings: Optional[Settings] = None,
    ):
        self.config_provider = config_provider
        self.settings = settings or get_settings()
        self._logger = get_logger(self.__class__.__name__)

    def resolve_steps(self, office_id: str) -> List[ResolvedStep]:
        """
        Ordered approval steps of ``office_id``.

        An office without configured steps gets the default chain from
        settings; gaps in step_order are closed.

        Raises:
            ConfigurationError: If neither the office nor the defaults
                define any step
        """
        configured = sorted(
            self.config_provider.get_workflow_steps(office_id),
            key=lambda s: s.step_order,
        )

        if not configured:
            error = ConfigurationError(
                "Office has no workflow steps configured",
                config_key="workflow_steps",
                details={"office_id": office_id},
            )
            self._logger.warning(
                f"{error.message}; using default workflow",
                extra={"office_id": office_id, "defaults": self.settings.DEFAULT_WORKFLOW_STEPS},
            )
            configured = self._default_steps()
            if not configured:
                raise error

        steps = [
            ResolvedStep(step_order=index, step_type=step.step_type, is_required=step.is_required)
            for index, step in enumerate(configured, start=1)
        ]

        if [s.step_order for s in configured] != [s.step_order for s in steps]:
            self._logger.warning(
                "Workflow step orders were not contiguous; renumbered from 1",
                extra={
                    "office_id": office_id,
                    "configured_orders": [s.step_order for s in configured],
                },
            )

        return steps

    def resolve_step_types(self, office_id: str) -> List[WorkflowStepType]:
        return [step.step_type for step in self.resolve_steps(office_id)]

    def _default_steps(self) -> List[ResolvedStep]:
        steps = []
        for code in self.settings.DEFAULT_WORKFLOW_STEPS:
            try:
                step_type = WorkflowStepType(code)
            except ValueError:
                self._logger.error(f"Unknown default workflow step type: {code}")
                continue
            steps.append(ResolvedStep(step_order=len(steps) + 1, step_type=step_type))
        return steps
