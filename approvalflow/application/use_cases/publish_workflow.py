"""PublishWorkflowUseCase - publish a workflow that passes validation

Business rules:
- A workflow with at least one error finding cannot be published
- Warnings never block publishing; they are returned to the caller
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from approvalflow.domain.entities.workflow import WorkflowDocument
from approvalflow.domain.exceptions import DomainValidationError
from approvalflow.domain.ports.workflow_repository import WorkflowRepository
from approvalflow.domain.value_objects.validation_finding import (
    ValidationFinding,
    summarize_findings,
)

logger = logging.getLogger(__name__)


@dataclass
class PublishWorkflowInput:
    workflow_id: str


@dataclass
class PublishWorkflowOutput:
    workflow: WorkflowDocument
    warnings: list[ValidationFinding] = field(default_factory=list)


class PublishWorkflowUseCase:
    def __init__(self, workflow_repository: WorkflowRepository):
        self.workflow_repository = workflow_repository

    def execute(self, input_data: PublishWorkflowInput) -> PublishWorkflowOutput:
        """Validate and publish

        Raises:
            NotFoundError: when the workflow does not exist
            DomainValidationError: when validation reports errors; `errors` holds
                every finding (warnings included) as dicts
        """
        workflow = self.workflow_repository.get_by_id(input_data.workflow_id)

        findings = workflow.validate()
        summary = summarize_findings(findings)
        if not summary.is_publishable:
            logger.info(
                "publish refused for %s: errors=%d warnings=%d",
                workflow.id,
                summary.errors,
                summary.warnings,
            )
            raise DomainValidationError(
                f"Workflow has {summary.errors} validation error(s)",
                code="workflow_invalid",
                errors=[finding.to_dict() for finding in findings],
            )

        workflow.publish()
        self.workflow_repository.save(workflow)
        logger.info("published workflow %s (warnings=%d)", workflow.id, summary.warnings)
        return PublishWorkflowOutput(
            workflow=workflow,
            warnings=[finding for finding in findings if not finding.is_error],
        )
