"""Application use cases"""

from approvalflow.application.use_cases.import_workflow import (
    ImportWorkflowInput,
    ImportWorkflowUseCase,
    export_workflow,
)
from approvalflow.application.use_cases.publish_workflow import (
    PublishWorkflowInput,
    PublishWorkflowOutput,
    PublishWorkflowUseCase,
)
from approvalflow.application.use_cases.update_workflow import (
    UpdateWorkflowInput,
    UpdateWorkflowUseCase,
)

__all__ = [
    "ImportWorkflowInput",
    "ImportWorkflowUseCase",
    "PublishWorkflowInput",
    "PublishWorkflowOutput",
    "PublishWorkflowUseCase",
    "UpdateWorkflowInput",
    "UpdateWorkflowUseCase",
    "export_workflow",
]
