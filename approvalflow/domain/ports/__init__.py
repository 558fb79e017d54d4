"""Domain ports (interfaces implemented by the infrastructure layer)"""

from approvalflow.domain.ports.workflow_repository import WorkflowRepository

__all__ = ["WorkflowRepository"]
